"""Benefit domain schemas - Pydantic models for validation"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_positive_id
from .evaluator import (
    AFTER_N_USES,
    BENEFIT_TYPES,
    CONDITION_TYPES,
    FIXED_DISCOUNT,
    PERCENT_DISCOUNT,
    WEEKDAY,
)


class BenefitCreate(BaseModel):
    """Schema for adding a benefit rule to a plan"""

    tipo_beneficio: str  # percent_discount | fixed_discount
    servico_id: Optional[int] = None  # None applies to every service
    condicao_tipo: str  # always | first_use | after_n_uses | weekday
    condicao_valor: Optional[int] = None
    desconto_percentual: Optional[Decimal] = None
    desconto_fixo: Optional[Decimal] = None
    ordem: int = 0

    @field_validator("tipo_beneficio")
    @classmethod
    def validate_benefit_type(cls, v: str) -> str:
        if v not in BENEFIT_TYPES:
            raise ValueError(f"tipo_beneficio deve ser um de: {', '.join(sorted(BENEFIT_TYPES))}")
        return v

    @field_validator("condicao_tipo")
    @classmethod
    def validate_condition_type(cls, v: str) -> str:
        if v not in CONDITION_TYPES:
            raise ValueError(f"condicao_tipo deve ser um de: {', '.join(sorted(CONDITION_TYPES))}")
        return v

    @field_validator("servico_id")
    @classmethod
    def validate_service_id(cls, v: Optional[int]) -> Optional[int]:
        return validate_positive_id(v, "servico_id")

    @model_validator(mode="after")
    def validate_rule(self):
        if self.tipo_beneficio == PERCENT_DISCOUNT:
            if self.desconto_percentual is None or not (0 < self.desconto_percentual <= 100):
                raise ValueError("desconto_percentual deve estar entre 0 e 100")
        if self.tipo_beneficio == FIXED_DISCOUNT:
            if self.desconto_fixo is None or self.desconto_fixo <= 0:
                raise ValueError("desconto_fixo deve ser maior que zero")

        if self.condicao_tipo == WEEKDAY:
            if self.condicao_valor is None or not (0 <= self.condicao_valor <= 6):
                raise ValueError("condicao_valor deve ser um dia da semana de 0 (domingo) a 6 (sábado)")
        if self.condicao_tipo == AFTER_N_USES:
            if self.condicao_valor is None or self.condicao_valor < 1:
                raise ValueError("condicao_valor deve ser pelo menos 1 para after_n_uses")
        return self


class BenefitResponse(BaseModel):
    """Schema for a benefit rule with its target service"""

    id: int
    plano_id: int
    tipo_beneficio: str
    servico_id: Optional[int] = None
    servico_nome: Optional[str] = None
    servico_preco: Optional[float] = None
    condicao_tipo: str
    condicao_valor: Optional[int] = None
    desconto_percentual: Optional[float] = None
    desconto_fixo: Optional[float] = None
    ordem: int
    descricao: str


class AppliedBenefit(BaseModel):
    """Schema for a benefit applied to a booking"""

    id: int
    tipo: str
    condicao: str
    desconto: float
    descricao: str
