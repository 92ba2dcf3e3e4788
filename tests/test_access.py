"""Tests for the access gate (authenticate / authorize_admin / optional)."""

from copilot_server.core import access
from copilot_server.core.account_status import AccountStatus, Role
from copilot_server.core.tokens import TokenService
from copilot_server.repositories.user_repo import UserRepository

from conftest import make_user

users = UserRepository()


def test_missing_token(session, tokens):
    for token in (None, ""):
        result = access.authenticate(session, tokens, users, token)
        assert result == access.Rejected(access.NO_TOKEN, access.RejectionKind.UNAUTHENTICATED)


def test_invalid_token(session, tokens):
    result = access.authenticate(session, tokens, users, "not-a-jwt")

    assert result == access.Rejected(access.INVALID_TOKEN, access.RejectionKind.UNAUTHENTICATED)


def test_foreign_secret_token(session, tokens):
    user = make_user(session)
    token = TokenService("another-secret").issue(user)

    result = access.authenticate(session, tokens, users, token)

    assert result == access.Rejected(access.INVALID_TOKEN, access.RejectionKind.UNAUTHENTICATED)


def test_active_user_is_granted_fresh_record(session, tokens):
    user = make_user(session)
    token = tokens.issue(user)

    result = access.authenticate(session, tokens, users, token)

    assert isinstance(result, access.Granted)
    assert result.user.id == user.id


def test_status_change_after_issue_takes_effect(session, tokens):
    user = make_user(session)
    token = tokens.issue(user)

    user.status = AccountStatus.PAUSED
    session.add(user)
    session.commit()

    result = access.authenticate(session, tokens, users, token)

    assert isinstance(result, access.Rejected)
    assert result.kind is access.RejectionKind.FORBIDDEN
    assert result.reason == "Account is paused. Please contact admin."


def test_each_inactive_status_is_forbidden_with_distinct_reason(session, tokens):
    reasons = set()
    for i, status in enumerate(
        (AccountStatus.PENDING, AccountStatus.PAUSED, AccountStatus.DEACTIVATED)
    ):
        user = make_user(session, email=f"u{i}@example.com", status=status)
        result = access.authenticate(session, tokens, users, tokens.issue(user))
        assert result.kind is access.RejectionKind.FORBIDDEN
        reasons.add(result.reason)

    assert len(reasons) == 3


def test_deleted_user_is_rejected(session, tokens):
    user = make_user(session)
    token = tokens.issue(user)
    session.delete(user)
    session.commit()

    result = access.authenticate(session, tokens, users, token)

    assert result == access.Rejected(access.USER_NOT_FOUND, access.RejectionKind.UNAUTHENTICATED)


def test_admin_check_uses_current_role_not_token_claim(session, tokens):
    admin = make_user(session, email="boss@example.com", role=Role.ADMIN)
    token = tokens.issue(admin)
    assert isinstance(access.authorize_admin(session, tokens, users, token), access.Granted)

    admin.role = Role.STANDARD
    session.add(admin)
    session.commit()

    result = access.authorize_admin(session, tokens, users, token)
    assert result == access.Rejected(access.ADMIN_REQUIRED, access.RejectionKind.FORBIDDEN)


def test_standard_user_is_not_admin(session, tokens):
    user = make_user(session)

    result = access.authorize_admin(session, tokens, users, tokens.issue(user))

    assert result == access.Rejected(access.ADMIN_REQUIRED, access.RejectionKind.FORBIDDEN)


def test_admin_check_reports_authentication_failure_first(session, tokens):
    result = access.authorize_admin(session, tokens, users, None)

    assert result.kind is access.RejectionKind.UNAUTHENTICATED


def test_optional_never_rejects(session, tokens):
    user = make_user(session)

    assert access.authenticate_optional(session, tokens, users, None) is None
    assert access.authenticate_optional(session, tokens, users, "junk") is None
    found = access.authenticate_optional(session, tokens, users, tokens.issue(user))
    assert found.id == user.id


def test_gate_writes_nothing(session, tokens):
    user = make_user(session)
    before = (user.status, user.updated_at)

    access.authenticate(session, tokens, users, tokens.issue(user))

    assert not session.dirty
    assert (user.status, user.updated_at) == before
