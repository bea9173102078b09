"""Booking service - Appointment booking, rescheduling and status changes"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, DEFAULT_PAYMENT_METHOD_ID
from ...database import transaction_scope
from ...models import Appointment
from ...shared.exceptions import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    SlotTakenError,
)
from ...shared.money import to_money
from ..benefits.evaluator import BenefitEvaluator
from ..billing.repository import BillingRepository
from ..billing.subscription_service import SubscriptionService
from ..catalog.repository import CatalogRepository
from .conflicts import SlotConflictChecker
from .repository import SchedulingRepository
from .status import CANCELLED, CONFIRMED, PENDING, ensure_transition

logger = logging.getLogger(__name__)


class BookingService:
    """
    Coordinates a booking: resolves the service and barber, checks the slot,
    prices the service through the subscriber's plan benefits and writes the
    appointment, its payment and the usage record as one unit of work.
    """

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or datetime.now
        self.repo = SchedulingRepository()
        self.billing = BillingRepository()
        self.catalog = CatalogRepository()
        self.conflicts = SlotConflictChecker(db)
        self.subscriptions = SubscriptionService(db, clock=self.clock)
        self.evaluator = BenefitEvaluator(db, clock=self.clock)

    def book_appointment(
        self,
        user_id: int,
        establishment_id: int,
        service_id: int,
        scheduled_at: datetime,
        payment_method_id: Optional[int] = None,
    ) -> dict:
        """Book a slot and return the priced booking"""
        service = self.catalog.get_active_service(self.db, service_id)
        if not service:
            raise NotFoundError("Serviço não encontrado")
        service_name = service.name
        base_price = to_money(service.base_price)

        establishment = self.catalog.get_establishment(self.db, establishment_id)
        if not establishment:
            raise NotFoundError("Estabelecimento não encontrado")
        barber_id = establishment.owner_id

        if self.conflicts.has_conflict(barber_id, scheduled_at):
            logger.info(f"📅 Slot {scheduled_at} of barber {barber_id} already taken")
            raise SlotTakenError()

        subscription = self.subscriptions.find_active_subscription(user_id, establishment_id)
        subscription_id = subscription.id if subscription else None

        if subscription_id:
            pricing = self.evaluator.evaluate(subscription_id, user_id, service_id, base_price)
            logger.info(
                f"Subscription {subscription_id} found for user {user_id}: "
                f"original R$ {base_price}, discount R$ {pricing['total_discount']}, "
                f"final R$ {pricing['final_price']}"
            )
        else:
            pricing = BenefitEvaluator.no_discount(base_price)

        final_price = pricing["final_price"]
        applied = pricing["applied_benefits"]

        try:
            with transaction_scope(self.db):
                appointment = self.repo.add_appointment(
                    self.db,
                    client_id=user_id,
                    barber_id=barber_id,
                    establishment_id=establishment_id,
                    scheduled_at=scheduled_at,
                    status=PENDING,
                )
                self.billing.add_payment(
                    self.db,
                    subscription_id=subscription_id,
                    appointment_id=appointment.id,
                    user_id=user_id,
                    establishment_id=establishment_id,
                    amount=final_price,
                    currency=DEFAULT_CURRENCY,
                    payment_method_id=payment_method_id or DEFAULT_PAYMENT_METHOD_ID,
                    status="pending",
                )
                if subscription_id:
                    self.repo.add_usage(
                        self.db,
                        subscription_id=subscription_id,
                        user_id=user_id,
                        service_id=service_id,
                        appointment_id=appointment.id,
                        amount_paid=final_price,
                        applied_benefit_id=applied[0]["id"] if applied else None,
                        used_at=self.clock(),
                    )
                appointment_id = appointment.id
        except IntegrityError as e:
            self._raise_if_slot_taken(barber_id, scheduled_at)
            logger.error(f"❌ Failed to book appointment for user {user_id}: {e}")
            raise InternalError("Erro ao criar agendamento")
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to book appointment for user {user_id}: {e}")
            raise InternalError("Erro ao criar agendamento")

        logger.info(
            f"✅ Appointment {appointment_id} booked for user {user_id} with barber {barber_id} "
            f"at {scheduled_at} (R$ {final_price})"
        )
        return {
            "appointment_id": appointment_id,
            "service_name": service_name,
            "base_price": base_price,
            "final_price": final_price,
            "total_discount": pricing["total_discount"],
            "applied_benefits": applied,
            "used_subscription": subscription_id is not None,
        }

    def _raise_if_slot_taken(self, barber_id: int, scheduled_at: datetime, exclude_id: Optional[int] = None):
        """A unique-index violation on the slot means another request won the race"""
        if self.conflicts.has_conflict(barber_id, scheduled_at, exclude_id):
            logger.warning(f"⚠️ Concurrent booking lost the race for barber {barber_id} at {scheduled_at}")
            raise SlotTakenError()

    def _get_owned_appointment(self, appointment_id: int, user_id: int) -> Appointment:
        appointment = self.repo.get_client_appointment(self.db, appointment_id, user_id)
        if not appointment:
            raise NotFoundError("Agendamento não encontrado")
        return appointment

    def reschedule_appointment(self, appointment_id: int, user_id: int, new_time: datetime) -> Appointment:
        """Move an appointment to another slot of the same barber"""
        appointment = self._get_owned_appointment(appointment_id, user_id)
        if appointment.status == CANCELLED:
            raise ConflictError("Agendamento cancelado não pode ser reagendado")

        barber_id = appointment.barber_id
        if self.conflicts.has_conflict(barber_id, new_time, exclude_appointment_id=appointment_id):
            raise SlotTakenError()

        try:
            with transaction_scope(self.db):
                appointment.scheduled_at = new_time
        except IntegrityError as e:
            self._raise_if_slot_taken(barber_id, new_time, appointment_id)
            logger.error(f"❌ Failed to reschedule appointment {appointment_id}: {e}")
            raise InternalError("Erro ao reagendar agendamento")
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to reschedule appointment {appointment_id}: {e}")
            raise InternalError("Erro ao reagendar agendamento")

        logger.info(f"📅 Appointment {appointment_id} rescheduled to {new_time}")
        return appointment

    def cancel_appointment(self, appointment_id: int, user_id: int) -> Appointment:
        """Cancel the client's appointment, releasing the slot"""
        appointment = self._get_owned_appointment(appointment_id, user_id)
        if appointment.status == CANCELLED:
            return appointment

        ensure_transition(appointment.status, CANCELLED)
        self._save_status(appointment, CANCELLED)
        logger.info(f"Appointment {appointment_id} cancelled by user {user_id}")
        return appointment

    def confirm_appointment(self, appointment_id: int, barber_id: int) -> Appointment:
        """Barber accepts a pending appointment"""
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Agendamento não encontrado")
        if appointment.barber_id != barber_id:
            raise AuthorizationError("Apenas o barbeiro do agendamento pode confirmá-lo")

        ensure_transition(appointment.status, CONFIRMED)
        self._save_status(appointment, CONFIRMED)
        logger.info(f"✅ Appointment {appointment_id} confirmed by barber {barber_id}")
        return appointment

    def _save_status(self, appointment: Appointment, status: str) -> None:
        try:
            with transaction_scope(self.db):
                appointment.status = status
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to set appointment {appointment.id} to {status}: {e}")
            raise InternalError("Erro ao atualizar agendamento")

    def busy_slots(self, establishment_id: int, day: date) -> list[datetime]:
        """Slots of the establishment's barber already taken on a day"""
        establishment = self.catalog.get_establishment(self.db, establishment_id)
        if not establishment:
            raise NotFoundError("Estabelecimento não encontrado")
        return self.repo.list_busy_slots(self.db, establishment.owner_id, day)

    def list_user_appointments(self, user_id: int) -> list[Appointment]:
        return self.repo.list_client_appointments(self.db, user_id)
