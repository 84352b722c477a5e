"""Tests for session resolution and reconciliation"""

from datetime import timedelta

import pytest

from jigesh.services.session_manager import SessionManager
from jigesh.utils.exceptions import AccountNotFound, AccountSuspended


def test_no_session(sessions):
    assert sessions.get_current_session() is None
    assert sessions.reconcile() is None


def test_session_resumes_after_reload(auth, store, clock):
    account = auth.register("a@x.com", "secret1")

    # Same client id, fresh process
    reloaded = SessionManager(store, client_id="student-tab", clock=clock)
    assert reloaded.get_current_session().id == account.id


def test_sessions_are_per_client(auth, store, clock):
    auth.register("a@x.com", "secret1")
    other_tab = SessionManager(store, client_id="admin-tab", clock=clock)
    assert other_tab.get_current_session() is None


def test_reconcile_picks_up_changes_from_another_process(student, sessions, subscriptions, store, clock):
    assert sessions.reconcile().is_premium is False

    # Admin tab approves the payment through its own store handle
    request = subscriptions.submit_payment_request(student, "one_month", "TRX9")
    subscriptions.decide_payment(request.id, "approved")
    assert sessions.cached.is_premium is False

    refreshed = sessions.reconcile()
    assert refreshed.is_premium is True
    assert sessions.cached == refreshed


def test_reconcile_logs_out_suspended_account(student, sessions, admin):
    admin.toggle_suspension(student.id)

    with pytest.raises(AccountSuspended):
        sessions.reconcile()
    assert sessions.current_account_id is None
    assert sessions.cached is None
    assert sessions.reconcile() is None


def test_reconcile_clears_pointer_to_missing_account(store, sessions):
    store.set_session_pointer("student-tab", "ghost")
    assert sessions.reconcile() is None
    assert store.get_session_pointer("student-tab") is None


def test_get_current_session_settles_lapsed_premium(student, sessions, store, clock):
    store.upsert_account(
        student.model_copy(
            update={
                "is_premium": True,
                "premium_plan": "three_month",
                "premium_expires_at": clock.now() + timedelta(days=1),
            }
        )
    )
    assert sessions.get_current_session().is_premium is True

    clock.advance(timedelta(days=2))
    current = sessions.get_current_session()
    assert current.is_premium is False
    assert current.premium_plan == "none"
    assert store.get_account(student.id).premium_expires_at is None


def test_complete_profile(auth, sessions, store):
    account = auth.register("a@x.com", "secret1")
    assert account.profile_complete is False

    updated = sessions.complete_profile(" Rahim ", "Dhaka College", "11")
    assert updated.display_name == "Rahim"
    assert updated.track == "11"
    assert updated.profile_complete is True
    assert store.get_account(account.id).institution == "Dhaka College"


def test_complete_profile_validation(auth, sessions):
    auth.register("a@x.com", "secret1")
    with pytest.raises(ValueError):
        sessions.complete_profile("", "Dhaka College", "11")
    with pytest.raises(ValueError, match="Track"):
        sessions.complete_profile("Rahim", "Dhaka College", "10")


def test_complete_profile_without_session(sessions):
    with pytest.raises(AccountNotFound):
        sessions.complete_profile("Rahim", "Dhaka College", "11")
