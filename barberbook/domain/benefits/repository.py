"""Benefit repository - Database operations for plan benefit rules and usage history"""

from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import PlanBenefit, ServiceUsage, Subscription


class BenefitRepository:
    """Repository for benefit rules and the usage records they are evaluated against"""

    @staticmethod
    def get_applicable_rules(db: Session, subscription_id: int, service_id: int) -> list[PlanBenefit]:
        """
        Active rules of the subscription's plan that target this service or every service,
        in evaluation order (order field, then insertion).
        """
        return (
            db.query(PlanBenefit)
            .join(Subscription, Subscription.plan_id == PlanBenefit.plan_id)
            .filter(
                Subscription.id == subscription_id,
                PlanBenefit.active.is_(True),
                or_(PlanBenefit.service_id.is_(None), PlanBenefit.service_id == service_id),
            )
            .order_by(PlanBenefit.order.asc(), PlanBenefit.id.asc())
            .all()
        )

    @staticmethod
    def count_usages(db: Session, subscription_id: int, user_id: int) -> int:
        """Total usage records of a subscriber under a subscription"""
        return (
            db.query(ServiceUsage)
            .filter(
                ServiceUsage.subscription_id == subscription_id,
                ServiceUsage.user_id == user_id,
            )
            .count()
        )

    @staticmethod
    def count_service_usages_between(
        db: Session,
        subscription_id: int,
        service_id: int,
        start: datetime,
        end: datetime,
    ) -> int:
        """Usage records of one service under a subscription within [start, end)"""
        return (
            db.query(ServiceUsage)
            .filter(
                ServiceUsage.subscription_id == subscription_id,
                ServiceUsage.service_id == service_id,
                ServiceUsage.used_at >= start,
                ServiceUsage.used_at < end,
            )
            .count()
        )

    @staticmethod
    def list_plan_benefits(db: Session, plan_id: int) -> list[PlanBenefit]:
        """Active rules of a plan in evaluation order, with their target service"""
        return (
            db.query(PlanBenefit)
            .options(joinedload(PlanBenefit.service))
            .filter(PlanBenefit.plan_id == plan_id, PlanBenefit.active.is_(True))
            .order_by(PlanBenefit.order.asc(), PlanBenefit.id.asc())
            .all()
        )

    @staticmethod
    def create_benefit(db: Session, plan_id: int, **benefit_data) -> PlanBenefit:
        """Stage a benefit rule for a plan inside the caller's transaction"""
        benefit = PlanBenefit(plan_id=plan_id, **benefit_data)
        db.add(benefit)
        db.flush()
        return benefit
