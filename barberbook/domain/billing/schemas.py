"""Billing domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_positive_id


class SubscriptionCreate(BaseModel):
    """Schema for subscribing a user to a plan"""

    usuario_id: int
    plano_id: int
    pagamento_metodo_id: Optional[int] = None

    @field_validator("usuario_id", "plano_id", "pagamento_metodo_id")
    @classmethod
    def validate_ids(cls, v: Optional[int], info) -> Optional[int]:
        return validate_positive_id(v, info.field_name)


class SubscriptionCancelRequest(BaseModel):
    """Schema for cancelling a subscription"""

    motivo: Optional[str] = None  # Free-text reason given by the subscriber


class SubscriptionCreatedResponse(BaseModel):
    """Schema for a newly created subscription"""

    mensagem: str
    id: int
    free_trial: bool
    proxima_cobranca: date


class UserSubscriptionResponse(BaseModel):
    """Schema for a subscription listed to its subscriber"""

    id: int
    status: str
    data_inicio: date
    proxima_cobranca: date
    preco_periodo_atual: float
    plano_id: int
    plano_nome: Optional[str] = None
    plano_description: Optional[str] = None
    ciclo_pagamento: Optional[str] = None
    estabelecimento_id: int
    estabelecimento_nome: Optional[str] = None
