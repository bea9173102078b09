"""Benefit evaluator - Applies a plan's conditional discount rules to a service price"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ...models import PlanBenefit
from ...shared.money import ZERO, percent_of, to_money
from .repository import BenefitRepository

logger = logging.getLogger(__name__)

# Benefit kinds
PERCENT_DISCOUNT = "percent_discount"
FIXED_DISCOUNT = "fixed_discount"
BENEFIT_TYPES = {PERCENT_DISCOUNT, FIXED_DISCOUNT}

# Condition kinds
ALWAYS = "always"
FIRST_USE = "first_use"
AFTER_N_USES = "after_n_uses"
WEEKDAY = "weekday"
CONDITION_TYPES = {ALWAYS, FIRST_USE, AFTER_N_USES, WEEKDAY}

# Index 0 is Sunday
WEEKDAY_NAMES = ["Domingo", "Segunda", "Terça", "Quarta", "Quinta", "Sexta", "Sábado"]


def sunday_based_weekday(moment: datetime) -> int:
    """Weekday index with 0=Sunday..6=Saturday"""
    return (moment.weekday() + 1) % 7


def month_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Start of the calendar month containing `moment` and start of the next one"""
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, start + relativedelta(months=1)


def _format_percent(percent: Decimal) -> str:
    value = to_money(percent)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value.normalize())


def describe_benefit(benefit: PlanBenefit) -> str:
    """Human readable label shown to the client, e.g. Após 3 usos - R$ 5.00 OFF"""
    if benefit.condition_type == ALWAYS:
        desc = "Benefício permanente"
    elif benefit.condition_type == FIRST_USE:
        desc = "Desconto de primeira vez"
    elif benefit.condition_type == AFTER_N_USES:
        desc = f"Após {benefit.condition_value} usos"
    elif benefit.condition_type == WEEKDAY and benefit.condition_value in range(7):
        desc = f"Desconto de {WEEKDAY_NAMES[benefit.condition_value]}"
    else:
        desc = "Benefício"

    if benefit.benefit_type == PERCENT_DISCOUNT and benefit.discount_percent:
        desc += f" - {_format_percent(benefit.discount_percent)}% OFF"
    elif benefit.benefit_type == FIXED_DISCOUNT and benefit.discount_fixed:
        desc += f" - R$ {to_money(benefit.discount_fixed)} OFF"

    return desc


class BenefitEvaluator:
    """
    Evaluates the benefit rules of a subscription's plan against a booking.

    Rules run in ascending order and stack: every satisfied rule discounts the
    running price left by the previous ones, never the original price. The
    result is always within [0, base_price].
    """

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.repo = BenefitRepository()
        self.clock = clock or datetime.now

    @staticmethod
    def no_discount(base_price: Decimal) -> dict:
        return {
            "final_price": to_money(base_price),
            "total_discount": ZERO,
            "applied_benefits": [],
        }

    def evaluate(self, subscription_id: int, user_id: int, service_id: int, base_price) -> dict:
        """
        Returns {"final_price", "total_discount", "applied_benefits"}.

        Lookup failures never block a booking: they are logged and the
        original price is returned with no discount.
        """
        base_price = to_money(base_price)
        try:
            return self._evaluate(subscription_id, user_id, service_id, base_price)
        except Exception:
            logger.exception(
                f"❌ Benefit evaluation failed for subscription {subscription_id}, "
                f"service {service_id} - charging full price"
            )
            # Nothing has been written yet; leave the session usable for the booking
            self.db.rollback()
            return self.no_discount(base_price)

    def _evaluate(self, subscription_id: int, user_id: int, service_id: int, base_price: Decimal) -> dict:
        rules = self.repo.get_applicable_rules(self.db, subscription_id, service_id)
        if not rules:
            return self.no_discount(base_price)

        now = self.clock()
        current_price = base_price
        total_discount = ZERO
        applied = []

        for rule in rules:
            if not self._condition_met(rule, subscription_id, user_id, service_id, now):
                continue

            discount = self._discount_for(rule, current_price)
            if discount <= ZERO:
                continue

            current_price -= discount
            total_discount += discount
            applied.append(
                {
                    "id": rule.id,
                    "tipo": rule.benefit_type,
                    "condicao": rule.condition_type,
                    "desconto": discount,
                    "descricao": describe_benefit(rule),
                }
            )

        return {
            "final_price": max(ZERO, current_price),
            "total_discount": total_discount,
            "applied_benefits": applied,
        }

    def _condition_met(
        self,
        rule: PlanBenefit,
        subscription_id: int,
        user_id: int,
        service_id: int,
        now: datetime,
    ) -> bool:
        condition = rule.condition_type

        if condition == ALWAYS:
            return True

        if condition == FIRST_USE:
            return self.repo.count_usages(self.db, subscription_id, user_id) == 0

        if condition == AFTER_N_USES:
            every = rule.condition_value
            if not every or every < 1:
                return False
            start, end = month_bounds(now)
            used = self.repo.count_service_usages_between(
                self.db, subscription_id, service_id, start, end
            )
            # This booking is use number used + 1 of the month
            return (used + 1) % every == 0

        if condition == WEEKDAY:
            return rule.condition_value is not None and sunday_based_weekday(now) == rule.condition_value

        logger.warning(f"⚠️ Unknown condition type '{condition}' on benefit {rule.id} - skipped")
        return False

    @staticmethod
    def _discount_for(rule: PlanBenefit, current_price: Decimal) -> Decimal:
        if rule.benefit_type == PERCENT_DISCOUNT and rule.discount_percent:
            return min(percent_of(current_price, rule.discount_percent), current_price)
        if rule.benefit_type == FIXED_DISCOUNT and rule.discount_fixed:
            return min(to_money(rule.discount_fixed), current_price)
        return ZERO
