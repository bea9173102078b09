"""Scheduling router - FastAPI endpoints for appointments"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.exceptions import ValidationError
from ...shared.validators import parse_day
from ..billing.payment_service import PaymentService
from .booking_service import BookingService
from .schemas import (
    AppointmentListItem,
    BookingCreate,
    BookingResponse,
    BusySlotsResponse,
    CancelAppointmentRequest,
    ConfirmAppointmentRequest,
    RescheduleRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agendamentos", tags=["Appointments"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_appointment(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Book an appointment, applying the user's subscription benefits"""
    result = service.book_appointment(
        data.usuario_id,
        data.estabelecimento_id,
        data.servico_id,
        data.proximo_pag,
        data.metodo_pagamento,
    )
    return BookingResponse(
        mensagem="Agendamento criado com sucesso",
        id=result["appointment_id"],
        servico=result["service_name"],
        valor_original=float(result["base_price"]),
        valor_final=float(result["final_price"]),
        desconto_total=float(result["total_discount"]),
        beneficios_aplicados=[
            {**b, "desconto": float(b["desconto"])} for b in result["applied_benefits"]
        ],
        tem_assinatura=result["used_subscription"],
    )


@router.get("", response_model=list[AppointmentListItem])
async def list_appointments(
    usuario_id: Optional[int] = None,
    service: BookingService = Depends(get_booking_service),
):
    """List a client's appointments, latest slot first"""
    if not usuario_id:
        raise ValidationError("usuario_id é obrigatório")

    items = []
    for a in service.list_user_appointments(usuario_id):
        payment = max(a.payments, key=lambda p: (p.created_at, p.id)) if a.payments else None
        items.append(
            AppointmentListItem(
                id=a.id,
                usuario_id=a.client_id,
                estabelecimento_id=a.establishment_id,
                estabelecimento_nome=a.establishment.name if a.establishment else None,
                proximo_pag=a.scheduled_at,
                status=a.status,
                pagamento_status=payment.status if payment else None,
                valor=float(payment.amount) if payment else None,
            )
        )
    return items


@router.get("/horarios-disponiveis/{estabelecimento_id}", response_model=BusySlotsResponse)
async def list_busy_slots(
    estabelecimento_id: int,
    data: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    """Slots already taken on a day for the establishment's barber"""
    if not data:
        raise ValidationError("Data é obrigatória")
    try:
        day = parse_day(data)
    except ValueError as e:
        raise ValidationError(str(e))

    slots = service.busy_slots(estabelecimento_id, day)
    return BusySlotsResponse(horariosOcupados=[s.isoformat() for s in slots])


@router.patch("/{agendamento_id}/cancelar")
async def cancel_appointment(
    agendamento_id: int,
    data: CancelAppointmentRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Cancel an appointment owned by the user"""
    service.cancel_appointment(agendamento_id, data.usuario_id)
    return {"mensagem": "Agendamento cancelado com sucesso"}


@router.patch("/{agendamento_id}/reagendar")
async def reschedule_appointment(
    agendamento_id: int,
    data: RescheduleRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Move an appointment to another slot"""
    service.reschedule_appointment(agendamento_id, data.usuario_id, data.nova_data)
    return {"mensagem": "Agendamento reagendado com sucesso"}


@router.patch("/{agendamento_id}/pagar")
async def pay_appointment(
    agendamento_id: int,
    service: PaymentService = Depends(get_payment_service),
):
    """Mark the appointment's payment as complete"""
    service.pay_appointment(agendamento_id)
    return {"mensagem": "Pagamento confirmado com sucesso"}


@router.patch("/{agendamento_id}/confirmar")
async def confirm_appointment(
    agendamento_id: int,
    data: ConfirmAppointmentRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Barber confirms a pending appointment"""
    service.confirm_appointment(agendamento_id, data.barbeiro_id)
    return {"mensagem": "Agendamento confirmado com sucesso"}
