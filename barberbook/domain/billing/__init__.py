"""Billing domain - Subscriptions and payments"""

from .payment_service import PaymentService
from .router import router
from .subscription_service import SubscriptionService

__all__ = ["PaymentService", "SubscriptionService", "router"]
