"""Billing repository - Database operations for subscriptions and payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Payment, Subscription

# Statuses that grant plan benefits on a booking
BENEFIT_STATUSES = ("active", "free_trial")
# Statuses still shown to the subscriber
LIVE_STATUSES = ("active", "free_trial", "overdue")


class BillingRepository:
    """Repository for billing database operations"""

    @staticmethod
    def get_subscription(db: Session, subscription_id: int) -> Optional[Subscription]:
        """Get subscription by ID"""
        return db.query(Subscription).filter(Subscription.id == subscription_id).first()

    @staticmethod
    def find_benefit_subscriptions(db: Session, user_id: int, establishment_id: int) -> list[Subscription]:
        """Active or trial subscriptions of a user at an establishment, newest first"""
        return (
            db.query(Subscription)
            .filter(
                Subscription.user_id == user_id,
                Subscription.establishment_id == establishment_id,
                Subscription.status.in_(BENEFIT_STATUSES),
            )
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

    @staticmethod
    def list_user_subscriptions(db: Session, user_id: int) -> list[Subscription]:
        """Subscriptions of a user that are not cancelled, newest first"""
        return (
            db.query(Subscription)
            .options(joinedload(Subscription.plan), joinedload(Subscription.establishment))
            .filter(Subscription.user_id == user_id, Subscription.status.in_(LIVE_STATUSES))
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

    @staticmethod
    def add_subscription(db: Session, **subscription_data) -> Subscription:
        """Stage a subscription inside the caller's transaction"""
        subscription = Subscription(**subscription_data)
        db.add(subscription)
        db.flush()
        return subscription

    @staticmethod
    def add_payment(db: Session, **payment_data) -> Payment:
        """Stage a payment inside the caller's transaction"""
        payment = Payment(**payment_data)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def get_appointment_payment(db: Session, appointment_id: int) -> Optional[Payment]:
        """Latest payment created for an appointment"""
        return (
            db.query(Payment)
            .filter(Payment.appointment_id == appointment_id)
            .order_by(Payment.created_at.desc(), Payment.id.desc())
            .first()
        )

    @staticmethod
    def mark_payment_complete(db: Session, payment: Payment, paid_at: datetime) -> Payment:
        """Stage the settlement of a pending payment inside the caller's transaction"""
        payment.status = "complete"
        payment.paid_at = paid_at
        db.flush()
        return payment
