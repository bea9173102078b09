import unittest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from barberbook.domain.billing.subscription_service import SubscriptionService, next_billing_date
from barberbook.models import Payment, Plan, Subscription
from barberbook.shared.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from tests.factories import DatabaseTestCase, fixed_clock


class TestSubscribe(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = SubscriptionService(self.db, clock=fixed_clock(datetime(2024, 1, 1, 9, 0)))

    def test_trial_plan_bills_when_trial_ends(self):
        plan = self.make_plan(trial_days=7)

        result = self.service.subscribe(self.client.id, plan.id)

        self.assertTrue(result["free_trial"])
        self.assertEqual(result["next_billing_date"], date(2024, 1, 8))

        subscription = self.db.get(Subscription, result["id"])
        self.assertEqual(subscription.status, "free_trial")
        self.assertEqual(subscription.establishment_id, self.establishment.id)
        self.assertEqual(subscription.start_date, date(2024, 1, 1))
        self.assertEqual(subscription.current_period_price, Decimal("80.00"))

        payment = self.db.query(Payment).filter(Payment.subscription_id == result["id"]).one()
        self.assertEqual(payment.status, "pending")
        self.assertEqual(payment.due_date, date(2024, 1, 8))
        self.assertEqual(payment.amount, Decimal("80.00"))
        self.assertIsNone(payment.appointment_id)

    def test_immediate_plan_is_due_in_seven_days(self):
        plan = self.make_plan(billing_cycle="monthly")

        result = self.service.subscribe(self.client.id, plan.id, payment_method_id=3)

        self.assertFalse(result["free_trial"])
        self.assertEqual(result["next_billing_date"], date(2024, 2, 1))
        subscription = self.db.get(Subscription, result["id"])
        self.assertEqual(subscription.status, "active")
        self.assertEqual(subscription.payment_method_id, 3)

        payment = self.db.query(Payment).filter(Payment.subscription_id == result["id"]).one()
        self.assertEqual(payment.due_date, date(2024, 1, 8))
        self.assertEqual(payment.payment_method_id, 3)

    def test_payment_method_defaults_to_configured_one(self):
        plan = self.make_plan()

        result = self.service.subscribe(self.client.id, plan.id)

        payment = self.db.query(Payment).filter(Payment.subscription_id == result["id"]).one()
        self.assertEqual(payment.payment_method_id, 1)

    def test_unknown_plan(self):
        with self.assertRaises(NotFoundError):
            self.service.subscribe(self.client.id, 999)

    def test_inactive_or_deleted_plan(self):
        inactive = self.make_plan(active=False)
        deleted = self.make_plan(deleted_at=datetime(2023, 12, 1))

        with self.assertRaises(NotFoundError):
            self.service.subscribe(self.client.id, inactive.id)
        with self.assertRaises(NotFoundError):
            self.service.subscribe(self.client.id, deleted.id)

    def test_second_active_subscription_at_same_establishment_is_rejected(self):
        plan = self.make_plan()
        other_plan = self.make_plan(name="Plano Trimestral", billing_cycle="quarterly")
        self.service.subscribe(self.client.id, plan.id)

        with self.assertRaises(ConflictError):
            self.service.subscribe(self.client.id, other_plan.id)

        self.assertEqual(self.db.query(Subscription).count(), 1)

    def test_can_subscribe_again_after_cancelling(self):
        plan = self.make_plan()
        first = self.service.subscribe(self.client.id, plan.id)
        self.service.cancel_subscription(first["id"])

        second = self.service.subscribe(self.client.id, plan.id)

        self.assertNotEqual(first["id"], second["id"])

    def test_unique_index_catches_concurrent_subscribe(self):
        plan = self.make_plan()
        self.make_subscription(plan)
        real = self.service.repo.find_benefit_subscriptions
        calls = []

        def miss_first(*args, **kwargs):
            calls.append(args)
            return [] if len(calls) == 1 else real(*args, **kwargs)

        # The early check misses the competing row, the index still rejects the insert
        with patch.object(self.service.repo, "find_benefit_subscriptions", side_effect=miss_first):
            with self.assertRaises(ConflictError):
                self.service.subscribe(self.client.id, plan.id)

        self.assertEqual(len(calls), 2)
        self.assertEqual(self.db.query(Subscription).count(), 1)
        self.assertEqual(self.db.query(Payment).count(), 0)

    def test_storage_failure_writes_nothing(self):
        plan = self.make_plan()

        with patch.object(
            self.service.repo, "add_payment", side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        ):
            with self.assertRaises(InternalError):
                self.service.subscribe(self.client.id, plan.id)

        self.assertEqual(self.db.query(Subscription).count(), 0)
        self.assertEqual(self.db.query(Payment).count(), 0)


class TestNextBillingDate(unittest.TestCase):
    def plan(self, cycle="monthly", trial_days=0):
        return Plan(billing_cycle=cycle, trial_days=trial_days)

    def test_cycles_are_calendar_aware(self):
        today = date(2024, 1, 31)

        self.assertEqual(next_billing_date(self.plan("monthly"), today), date(2024, 2, 29))
        self.assertEqual(next_billing_date(self.plan("quarterly"), today), date(2024, 4, 30))
        self.assertEqual(next_billing_date(self.plan("annual"), date(2024, 2, 29)), date(2025, 2, 28))

    def test_trial_overrides_cycle(self):
        self.assertEqual(next_billing_date(self.plan("annual", trial_days=30), date(2024, 1, 1)), date(2024, 1, 31))

    def test_unknown_cycle(self):
        with self.assertRaises(ValidationError):
            next_billing_date(self.plan("weekly"), date(2024, 1, 1))


class TestCancelSubscription(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = SubscriptionService(self.db, clock=fixed_clock())
        self.subscription = self.make_subscription(self.make_plan())

    def test_cancel_records_reason_and_actor(self):
        result = self.service.cancel_subscription(self.subscription.id, reason="Mudei de cidade")

        self.assertEqual(result.status, "cancelled")
        self.assertTrue(result.cancelled_by_user)
        self.assertEqual(result.cancellation_reason, "Mudei de cidade")

    def test_cancel_twice_keeps_first_cancellation(self):
        self.service.cancel_subscription(self.subscription.id, reason="Caro demais", by_user=False)

        again = self.service.cancel_subscription(self.subscription.id, reason="Outro motivo")

        self.assertEqual(again.status, "cancelled")
        self.assertFalse(again.cancelled_by_user)
        self.assertEqual(again.cancellation_reason, "Caro demais")

    def test_cancel_unknown(self):
        with self.assertRaises(NotFoundError):
            self.service.cancel_subscription(999)

    def test_cancelled_subscription_grants_no_benefits(self):
        self.service.cancel_subscription(self.subscription.id)

        self.assertIsNone(self.service.find_active_subscription(self.client.id, self.establishment.id))


class TestFindActiveSubscription(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = SubscriptionService(self.db, clock=fixed_clock())

    def test_newest_subscription_wins(self):
        # Databases created before the live-subscription index can hold duplicates
        self.db.execute(text("DROP INDEX uq_subscriptions_user_establishment_live"))
        self.db.commit()
        plan = self.make_plan()
        self.make_subscription(plan)
        newest = self.make_subscription(plan, status="free_trial")

        found = self.service.find_active_subscription(self.client.id, self.establishment.id)

        self.assertEqual(found.id, newest.id)

    def test_overdue_subscription_grants_no_benefits(self):
        self.make_subscription(self.make_plan(), status="overdue")

        self.assertIsNone(self.service.find_active_subscription(self.client.id, self.establishment.id))

    def test_lists_live_subscriptions_only(self):
        plan = self.make_plan()
        overdue = self.make_subscription(plan, status="overdue")
        self.make_subscription(plan, status="cancelled")

        listed = self.service.list_user_subscriptions(self.client.id)

        self.assertEqual([s.id for s in listed], [overdue.id])
        self.assertEqual(listed[0].plan.name, "Plano Mensal")


if __name__ == "__main__":
    unittest.main()
