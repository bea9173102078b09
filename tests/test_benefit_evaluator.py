import unittest
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

from barberbook.domain.benefits.evaluator import (
    BenefitEvaluator,
    describe_benefit,
    month_bounds,
    sunday_based_weekday,
)
from barberbook.models import PlanBenefit, Service
from tests.factories import MONDAY, DatabaseTestCase, fixed_clock


class TestBenefitEvaluator(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.plan = self.make_plan()
        self.subscription = self.make_subscription(self.plan)
        self.evaluator = BenefitEvaluator(self.db, clock=fixed_clock())

    def evaluate(self, base_price="40.00", service_id=None):
        return self.evaluator.evaluate(
            self.subscription.id, self.client.id, service_id or self.service.id, Decimal(base_price)
        )

    def test_no_rules_keeps_base_price(self):
        result = self.evaluate()

        self.assertEqual(result["final_price"], Decimal("40.00"))
        self.assertEqual(result["total_discount"], Decimal("0.00"))
        self.assertEqual(result["applied_benefits"], [])

    def test_rules_stack_on_running_price(self):
        """10% always then R$ 5 on Mondays: 40.00 -> 36.00 -> 31.00"""
        percent = self.make_benefit(self.plan, order=0)
        fixed = self.make_benefit(
            self.plan,
            benefit_type="fixed_discount",
            condition_type="weekday",
            condition_value=1,
            discount_percent=None,
            discount_fixed=Decimal("5.00"),
            order=1,
        )

        result = self.evaluate()

        self.assertEqual(result["final_price"], Decimal("31.00"))
        self.assertEqual(result["total_discount"], Decimal("9.00"))
        applied = result["applied_benefits"]
        self.assertEqual([b["id"] for b in applied], [percent.id, fixed.id])
        self.assertEqual(applied[0]["desconto"], Decimal("4.00"))
        self.assertEqual(applied[1]["desconto"], Decimal("5.00"))
        self.assertEqual(applied[1]["descricao"], "Desconto de Segunda - R$ 5.00 OFF")

    def test_rules_follow_order_field_not_insertion(self):
        self.make_benefit(self.plan, order=2)
        self.make_benefit(
            self.plan,
            benefit_type="fixed_discount",
            discount_percent=None,
            discount_fixed=Decimal("10.00"),
            order=1,
        )

        result = self.evaluate()

        # 40 - 10 = 30, then 10% of 30
        self.assertEqual(result["final_price"], Decimal("27.00"))
        self.assertEqual(result["total_discount"], Decimal("13.00"))

    def test_weekday_rule_skipped_on_other_days(self):
        self.make_benefit(self.plan, condition_type="weekday", condition_value=0)

        result = self.evaluate()

        self.assertEqual(result["final_price"], Decimal("40.00"))
        self.assertEqual(result["applied_benefits"], [])

    def test_fixed_discount_never_goes_below_zero(self):
        self.make_benefit(
            self.plan,
            benefit_type="fixed_discount",
            discount_percent=None,
            discount_fixed=Decimal("100.00"),
        )
        self.make_benefit(self.plan, order=1)

        result = self.evaluate()

        self.assertEqual(result["final_price"], Decimal("0.00"))
        self.assertEqual(result["total_discount"], Decimal("40.00"))
        # Nothing left to discount, so the second rule is not recorded
        self.assertEqual(len(result["applied_benefits"]), 1)

    def test_rule_without_amount_is_not_recorded(self):
        self.make_benefit(self.plan, discount_percent=None)

        result = self.evaluate()

        self.assertEqual(result["applied_benefits"], [])

    def test_rule_for_another_service_is_ignored(self):
        other = self.add(Service(name="Barba", base_price=Decimal("25.00")))
        self.make_benefit(self.plan, service_id=other.id)

        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))
        self.assertEqual(self.evaluate("25.00", other.id)["final_price"], Decimal("22.50"))

    def test_inactive_rule_is_ignored(self):
        self.make_benefit(self.plan, active=False)

        self.assertEqual(self.evaluate()["applied_benefits"], [])

    def test_first_use_applies_only_before_any_usage(self):
        self.make_benefit(self.plan, condition_type="first_use", discount_percent=Decimal("50"))

        self.assertEqual(self.evaluate()["final_price"], Decimal("20.00"))

        self.make_usage(self.subscription, datetime(2023, 12, 15, 9, 0))
        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))

    def test_after_n_uses_triggers_on_every_nth_use_of_the_month(self):
        self.make_benefit(self.plan, condition_type="after_n_uses", condition_value=3, discount_percent=Decimal("100"))

        # First use of the month
        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))

        self.make_usage(self.subscription, datetime(2024, 1, 1, 8, 0))
        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))

        # Third use
        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 0))
        self.assertEqual(self.evaluate()["final_price"], Decimal("0.00"))

        # Fourth and fifth use pay again, sixth is free
        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 30))
        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))
        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 45))
        self.assertEqual(self.evaluate()["final_price"], Decimal("40.00"))
        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 50))
        self.assertEqual(self.evaluate()["final_price"], Decimal("0.00"))

    def test_after_n_uses_counts_only_current_month(self):
        self.make_benefit(self.plan, condition_type="after_n_uses", condition_value=2)
        self.make_usage(self.subscription, datetime(2023, 12, 30, 9, 0))

        self.assertEqual(self.evaluate()["applied_benefits"], [])

        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 0))
        self.assertEqual(len(self.evaluate()["applied_benefits"]), 1)

    def test_after_n_uses_counts_only_the_booked_service(self):
        other = self.add(Service(name="Barba", base_price=Decimal("25.00")))
        self.make_benefit(self.plan, condition_type="after_n_uses", condition_value=2)
        self.make_usage(self.subscription, datetime(2024, 1, 1, 9, 0), service_id=other.id)

        self.assertEqual(self.evaluate()["applied_benefits"], [])

    def test_lookup_failure_degrades_to_full_price(self):
        self.make_benefit(self.plan)

        with patch.object(
            self.evaluator.repo, "get_applicable_rules", side_effect=RuntimeError("connection lost")
        ):
            result = self.evaluate()

        self.assertEqual(result["final_price"], Decimal("40.00"))
        self.assertEqual(result["total_discount"], Decimal("0.00"))
        self.assertEqual(result["applied_benefits"], [])

    def test_final_price_stays_within_bounds(self):
        self.make_benefit(self.plan, discount_percent=Decimal("33.33"))
        self.make_benefit(
            self.plan,
            benefit_type="fixed_discount",
            discount_percent=None,
            discount_fixed=Decimal("7.77"),
            order=1,
        )
        self.make_benefit(self.plan, condition_type="first_use", discount_percent=Decimal("99.99"), order=2)

        for base in ("0.00", "0.01", "9.99", "40.00", "123.45"):
            result = self.evaluate(base)
            self.assertGreaterEqual(result["final_price"], Decimal("0.00"))
            self.assertLessEqual(result["final_price"], Decimal(base))
            self.assertEqual(result["final_price"] + result["total_discount"], Decimal(base))


class TestBenefitHelpers(unittest.TestCase):
    def test_sunday_is_zero(self):
        self.assertEqual(sunday_based_weekday(datetime(2024, 1, 7)), 0)
        self.assertEqual(sunday_based_weekday(MONDAY), 1)
        self.assertEqual(sunday_based_weekday(datetime(2024, 1, 6)), 6)

    def test_month_bounds(self):
        start, end = month_bounds(datetime(2024, 2, 29, 18, 30))

        self.assertEqual(start, datetime(2024, 2, 1))
        self.assertEqual(end, datetime(2024, 3, 1))

    def test_month_bounds_across_year(self):
        start, end = month_bounds(datetime(2023, 12, 31, 23, 59))

        self.assertEqual(start, datetime(2023, 12, 1))
        self.assertEqual(end, datetime(2024, 1, 1))

    def test_describe_benefit(self):
        cases = [
            (
                PlanBenefit(benefit_type="percent_discount", condition_type="always", discount_percent=Decimal("10.00")),
                "Benefício permanente - 10% OFF",
            ),
            (
                PlanBenefit(
                    benefit_type="fixed_discount",
                    condition_type="after_n_uses",
                    condition_value=3,
                    discount_fixed=Decimal("5"),
                ),
                "Após 3 usos - R$ 5.00 OFF",
            ),
            (
                PlanBenefit(
                    benefit_type="percent_discount",
                    condition_type="weekday",
                    condition_value=1,
                    discount_percent=Decimal("15"),
                ),
                "Desconto de Segunda - 15% OFF",
            ),
            (
                PlanBenefit(benefit_type="percent_discount", condition_type="first_use", discount_percent=Decimal("12.5")),
                "Desconto de primeira vez - 12.5% OFF",
            ),
        ]
        for benefit, expected in cases:
            self.assertEqual(describe_benefit(benefit), expected)


if __name__ == "__main__":
    unittest.main()
