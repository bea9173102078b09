"""Domain exceptions rendered by the API as {"erro": message}"""


class DomainError(Exception):
    status_code = 500
    default_message = "Erro interno"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    default_message = "Dados inválidos"


class AuthorizationError(DomainError):
    status_code = 403
    default_message = "Acesso negado"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Registro não encontrado"


class ConflictError(DomainError):
    status_code = 409
    default_message = "Conflito com o estado atual"


class SlotTakenError(ConflictError):
    default_message = "Este horário já está ocupado. Por favor, escolha outro horário."


class InternalError(DomainError):
    status_code = 500
