"""Tests for payment requests and premium activation"""

from datetime import datetime, timedelta, timezone

import pytest

from jigesh.services.record_store import RecordStore
from jigesh.services.subscription import SubscriptionWorkflow
from jigesh.services.subscription_plans import PlanCatalogue, add_months, plan_amount
from jigesh.utils.exceptions import PaymentRequestNotFound


class InterleavingStore(RecordStore):
    """Store handle that lets another tab act right after its next account write"""

    def __init__(self, data_dir, after_account_write):
        super().__init__(data_dir)
        self.after_account_write = after_account_write

    def upsert_account(self, account):
        result = super().upsert_account(account)
        callback, self.after_account_write = self.after_account_write, None
        if callback is not None:
            callback()
        return result


def test_submit_creates_pending_request_with_snapshot(subscriptions, student, store, clock):
    request = subscriptions.submit_payment_request(student, "three_month", " TRX1 ")

    assert request.status == "pending"
    assert request.amount == 50
    assert request.plan == "three_month"
    assert request.account_email == "a@x.com"
    assert request.account_name == "Rahim"
    assert request.external_transaction_ref == "TRX1"
    assert request.submitted_at == clock.now()
    # Submitting never grants premium
    assert store.get_account(student.id).is_premium is False


def test_snapshot_not_rederived(subscriptions, student, sessions):
    request = subscriptions.submit_payment_request(student, "one_month", "TRX2")
    sessions.complete_profile("Karim", "Notre Dame College", "12")
    stored = subscriptions.list_payment_requests()[0]
    assert stored.id == request.id
    assert stored.account_name == "Rahim"


def test_submit_rejects_blank_ref_and_unknown_plan(subscriptions, student):
    with pytest.raises(ValueError):
        subscriptions.submit_payment_request(student, "one_month", "   ")
    with pytest.raises(ValueError, match="Unknown plan"):
        subscriptions.submit_payment_request(student, "lifetime", "TRX3")


def test_approve_three_month_plan(subscriptions, student, store, clock):
    request = subscriptions.submit_payment_request(student, "three_month", "TRX1")
    decided = subscriptions.decide_payment(request.id, "approved")

    assert decided.status == "approved"
    assert decided.decided_at == clock.now()
    account = store.get_account(student.id)
    assert account.is_premium is True
    assert account.premium_plan == "three_month"
    assert account.premium_expires_at == datetime(2026, 6, 15, 10, 0, tzinfo=timezone.utc)
    assert account.premium_expires_at >= clock.now()


def test_reapproval_has_no_further_effect(subscriptions, student, store, clock):
    request = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    subscriptions.decide_payment(request.id, "approved")
    first_expiry = store.get_account(student.id).premium_expires_at

    clock.advance(timedelta(days=5))
    assert subscriptions.decide_payment(request.id, "approved") is None
    assert subscriptions.decide_payment(request.id, "rejected") is None
    assert store.get_account(student.id).premium_expires_at == first_expiry
    assert store.get_payment_request(request.id).status == "approved"


def test_reject_only_changes_status(subscriptions, student, store):
    request = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    before = store.get_account(student.id)

    decided = subscriptions.decide_payment(request.id, "rejected")
    assert decided.status == "rejected"
    assert store.get_account(student.id) == before


def test_unknown_request_raises(subscriptions):
    with pytest.raises(PaymentRequestNotFound):
        subscriptions.decide_payment("missing", "approved")


def test_invalid_decision(subscriptions, student):
    request = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    with pytest.raises(ValueError):
        subscriptions.decide_payment(request.id, "pending")


def test_early_renewal_does_not_stack(subscriptions, student, store, clock):
    first = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    subscriptions.decide_payment(first.id, "approved")

    clock.advance(timedelta(days=10))
    second = subscriptions.submit_payment_request(student, "one_month", "TRX2")
    subscriptions.decide_payment(second.id, "approved")

    account = store.get_account(student.id)
    assert account.premium_expires_at == add_months(clock.now(), 1)


def test_approval_for_missing_account_stays_pending(subscriptions, student, store):
    request = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    store.update_payment_request(request.id, lambda r: r.model_copy(update={"account_id": "ghost"}))

    assert subscriptions.decide_payment(request.id, "approved") is None
    assert store.get_payment_request(request.id).status == "pending"


def test_list_newest_first(subscriptions, student, clock):
    older = subscriptions.submit_payment_request(student, "one_month", "TRX1")
    clock.advance(timedelta(hours=1))
    newer = subscriptions.submit_payment_request(student, "three_month", "TRX2")

    assert [r.id for r in subscriptions.list_payment_requests()] == [newer.id, older.id]
    assert len(subscriptions.list_for_account(student.id)) == 2


def test_add_months_clamps_to_month_end():
    start = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)
    assert add_months(start, 1) == datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc)
    assert add_months(start, 3) == datetime(2026, 4, 30, 12, 0, tzinfo=timezone.utc)
    assert add_months(datetime(2026, 11, 15, tzinfo=timezone.utc), 3) == datetime(
        2027, 2, 15, tzinfo=timezone.utc
    )


def test_plan_prices():
    assert plan_amount("one_month") == 20
    assert plan_amount("three_month") == 50
    catalogue = PlanCatalogue({"one_month": {"price": 25, "months": 1}})
    assert catalogue.amount("one_month") == 25
    assert catalogue.amount("three_month") == 50


def test_approval_losing_to_concurrent_rejection_revokes_premium(tmp_path, student, store, clock, admin):
    request = SubscriptionWorkflow(store, clock=clock).submit_payment_request(student, "three_month", "TRX1")

    # Two admin tabs, each with its own handle on the same data directory
    rejecting_tab = SubscriptionWorkflow(RecordStore(tmp_path / "data"), clock=clock)
    approving_tab = SubscriptionWorkflow(
        InterleavingStore(
            tmp_path / "data",
            lambda: rejecting_tab.decide_payment(request.id, "rejected"),
        ),
        clock=clock,
    )

    assert approving_tab.decide_payment(request.id, "approved") is None

    assert store.get_payment_request(request.id).status == "rejected"
    account = store.get_account(student.id)
    assert account.is_premium is False
    assert account.premium_plan == "none"
    assert account.premium_expires_at is None
    stats = admin.compute_stats()
    assert stats.premium_count == 0
    assert stats.total_revenue == 0


def test_revoked_renewal_restores_earlier_premium(tmp_path, student, store, clock):
    workflow = SubscriptionWorkflow(store, clock=clock)
    first = workflow.submit_payment_request(student, "one_month", "TRX1")
    workflow.decide_payment(first.id, "approved")
    earlier_expiry = store.get_account(student.id).premium_expires_at

    clock.advance(timedelta(days=10))
    renewal = workflow.submit_payment_request(student, "three_month", "TRX2")
    rejecting_tab = SubscriptionWorkflow(RecordStore(tmp_path / "data"), clock=clock)
    approving_tab = SubscriptionWorkflow(
        InterleavingStore(
            tmp_path / "data",
            lambda: rejecting_tab.decide_payment(renewal.id, "rejected"),
        ),
        clock=clock,
    )

    assert approving_tab.decide_payment(renewal.id, "approved") is None

    account = store.get_account(student.id)
    assert account.is_premium is True
    assert account.premium_plan == "one_month"
    assert account.premium_expires_at == earlier_expiry
