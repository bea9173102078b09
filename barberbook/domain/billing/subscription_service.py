"""Subscription service - Business logic for the subscription lifecycle"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_CURRENCY, DEFAULT_PAYMENT_METHOD_ID, PAYMENT_DUE_DAYS
from ...database import transaction_scope
from ...models import Plan, Subscription
from ...shared.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from ...shared.money import to_money
from ..catalog.repository import CatalogRepository
from .repository import BillingRepository

logger = logging.getLogger(__name__)

# Calendar-aware billing periods
BILLING_CYCLES = {
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "annual": relativedelta(years=1),
}


def next_billing_date(plan: Plan, today: date) -> date:
    """
    First charge date of a new subscription: the end of the free trial
    when the plan has one, otherwise one billing cycle from today.
    """
    if (plan.trial_days or 0) > 0:
        return today + timedelta(days=plan.trial_days)

    period = BILLING_CYCLES.get(plan.billing_cycle)
    if period is None:
        raise ValidationError(f"Ciclo de pagamento inválido: {plan.billing_cycle}")
    return today + period


class SubscriptionService:
    """Service for subscription management"""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.repo = BillingRepository()
        self.catalog = CatalogRepository()
        self.clock = clock or datetime.now

    def find_active_subscription(self, user_id: int, establishment_id: int) -> Optional[Subscription]:
        """
        The subscription whose plan benefits apply to the user's bookings here.
        When legacy duplicates exist the most recently created one wins.
        """
        subscriptions = self.repo.find_benefit_subscriptions(self.db, user_id, establishment_id)
        if len(subscriptions) > 1:
            logger.warning(
                f"⚠️ User {user_id} has {len(subscriptions)} active subscriptions at establishment "
                f"{establishment_id} - using the newest ({subscriptions[0].id})"
            )
        return subscriptions[0] if subscriptions else None

    def subscribe(self, user_id: int, plan_id: int, payment_method_id: Optional[int] = None) -> dict:
        """Enroll a user in a plan and create the first payment in one transaction"""
        plan = self.catalog.get_subscribable_plan(self.db, plan_id)
        if not plan:
            raise NotFoundError("Plano não encontrado ou inativo")

        establishment_id = plan.creator_establishment_id
        if self.repo.find_benefit_subscriptions(self.db, user_id, establishment_id):
            raise ConflictError("Usuário já possui uma inscrição ativa neste estabelecimento")

        today = self.clock().date()
        is_trial = (plan.trial_days or 0) > 0
        billing_date = next_billing_date(plan, today)
        # Trial subscribers are first charged when the trial ends
        due_date = billing_date if is_trial else today + timedelta(days=PAYMENT_DUE_DAYS)
        method_id = payment_method_id or DEFAULT_PAYMENT_METHOD_ID
        price = to_money(plan.price)

        try:
            with transaction_scope(self.db):
                subscription = self.repo.add_subscription(
                    self.db,
                    user_id=user_id,
                    plan_id=plan.id,
                    establishment_id=establishment_id,
                    status="free_trial" if is_trial else "active",
                    start_date=today,
                    next_billing_date=billing_date,
                    current_period_price=price,
                    payment_method_id=method_id,
                )
                self.repo.add_payment(
                    self.db,
                    subscription_id=subscription.id,
                    appointment_id=None,
                    user_id=user_id,
                    establishment_id=establishment_id,
                    amount=price,
                    currency=DEFAULT_CURRENCY,
                    payment_method_id=method_id,
                    status="pending",
                    due_date=due_date,
                )
                subscription_id = subscription.id
        except IntegrityError as e:
            # A concurrent subscribe won the race for the live-subscription index
            if self.repo.find_benefit_subscriptions(self.db, user_id, establishment_id):
                raise ConflictError("Usuário já possui uma inscrição ativa neste estabelecimento")
            logger.error(f"❌ Failed to subscribe user {user_id} to plan {plan_id}: {e}")
            raise InternalError("Erro ao criar inscrição")
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to subscribe user {user_id} to plan {plan_id}: {e}")
            raise InternalError("Erro ao criar inscrição")

        logger.info(
            f"✅ User {user_id} subscribed to plan {plan_id} (subscription {subscription_id}, "
            f"trial={is_trial}, next billing {billing_date})"
        )
        return {
            "id": subscription_id,
            "free_trial": is_trial,
            "next_billing_date": billing_date,
        }

    def cancel_subscription(
        self, subscription_id: int, reason: Optional[str] = None, by_user: bool = True
    ) -> Subscription:
        """Cancel a subscription. Cancelled subscriptions stay cancelled."""
        subscription = self.repo.get_subscription(self.db, subscription_id)
        if not subscription:
            raise NotFoundError("Inscrição não encontrada")

        if subscription.status == "cancelled":
            logger.info(f"Subscription {subscription_id} already cancelled")
            return subscription

        try:
            with transaction_scope(self.db):
                subscription.status = "cancelled"
                subscription.cancelled_by_user = by_user
                subscription.cancellation_reason = reason
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to cancel subscription {subscription_id}: {e}")
            raise InternalError("Erro ao cancelar inscrição")

        logger.info(f"✅ Cancelled subscription {subscription_id} (by_user={by_user})")
        return subscription

    def list_user_subscriptions(self, user_id: int) -> list[Subscription]:
        return self.repo.list_user_subscriptions(self.db, user_id)
