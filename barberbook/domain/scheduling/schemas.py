"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import normalize_slot_timestamp, validate_positive_id
from ..benefits.schemas import AppliedBenefit


class BookingCreate(BaseModel):
    """Schema for booking an appointment"""

    usuario_id: int
    estabelecimento_id: int
    servico_id: int
    proximo_pag: datetime  # Slot date and time
    metodo_pagamento: Optional[int] = None

    @field_validator("usuario_id", "estabelecimento_id", "servico_id", "metodo_pagamento")
    @classmethod
    def validate_ids(cls, v: Optional[int], info) -> Optional[int]:
        return validate_positive_id(v, info.field_name)

    @field_validator("proximo_pag", mode="before")
    @classmethod
    def validate_slot(cls, v):
        return normalize_slot_timestamp(v)


class CancelAppointmentRequest(BaseModel):
    usuario_id: int


class RescheduleRequest(BaseModel):
    """Schema for moving an appointment to another slot"""

    usuario_id: int
    nova_data: datetime

    @field_validator("nova_data", mode="before")
    @classmethod
    def validate_slot(cls, v):
        return normalize_slot_timestamp(v)


class ConfirmAppointmentRequest(BaseModel):
    barbeiro_id: int


class BookingResponse(BaseModel):
    """Schema for a newly booked appointment with its pricing"""

    mensagem: str
    id: int
    servico: str
    valor_original: float
    valor_final: float
    desconto_total: float
    beneficios_aplicados: list[AppliedBenefit]
    tem_assinatura: bool


class AppointmentListItem(BaseModel):
    """Schema for an appointment listed to its client"""

    id: int
    usuario_id: int
    estabelecimento_id: int
    estabelecimento_nome: Optional[str] = None
    proximo_pag: datetime
    status: str
    pagamento_status: Optional[str] = None
    valor: Optional[float] = None


class BusySlotsResponse(BaseModel):
    horariosOcupados: list[str]
