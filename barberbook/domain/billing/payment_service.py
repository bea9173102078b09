"""Payment service - Settlement of appointment payments"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import transaction_scope
from ...models import Payment
from ...shared.exceptions import ConflictError, InternalError, NotFoundError
from .repository import BillingRepository

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for payment status transitions"""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.repo = BillingRepository()
        self.clock = clock or datetime.now

    def pay_appointment(self, appointment_id: int) -> Payment:
        """
        Mark the appointment's payment as complete and stamp paid_at.
        Independent of the appointment's own status.
        """
        payment = self.repo.get_appointment_payment(self.db, appointment_id)
        if not payment:
            raise NotFoundError("Pagamento não encontrado para este agendamento")

        if payment.status == "complete":
            logger.info(f"Payment {payment.id} for appointment {appointment_id} already complete")
            return payment
        if payment.status == "refunded":
            raise ConflictError("Pagamento reembolsado não pode ser confirmado")

        payment_id = payment.id
        try:
            with transaction_scope(self.db):
                self.repo.mark_payment_complete(self.db, payment, self.clock())
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to complete payment {payment_id} for appointment {appointment_id}: {e}")
            raise InternalError("Erro ao confirmar pagamento")

        logger.info(f"💰 Payment {payment_id} for appointment {appointment_id} completed")
        return payment
