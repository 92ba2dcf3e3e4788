# copilot_server/core/account_status.py
"""
Account lifecycle.

    pending ──admin──> active <──admin──> paused
        ^                 ^                  |
        └──── admin ──────┴─── deactivated <─┘

Any status may be set to any other through an explicit admin action; nothing
moves on its own (in particular `pending` is never auto-promoted). Only
`active` accounts may log in or pass the access gate.
"""
from enum import Enum


class AccountStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    PAUSED = "paused"
    DEACTIVATED = "deactivated"


class Role(str, Enum):
    STANDARD = "standard"
    ADMIN = "admin"


def parse_status(value: str | AccountStatus) -> AccountStatus:
    """
    Coerce a stored or client-supplied value.

    Raises:
        ValueError: for anything outside the four known statuses.
    """
    return AccountStatus(value)


def rejection_reason(status: str | AccountStatus) -> str | None:
    """
    User-facing reason an account in `status` is refused, or None if it may
    proceed.
    """
    status = parse_status(status)
    if status is AccountStatus.ACTIVE:
        return None
    if status is AccountStatus.PENDING:
        return "Account pending approval. Please wait for admin activation."
    if status is AccountStatus.PAUSED:
        return "Account is paused. Please contact admin."
    if status is AccountStatus.DEACTIVATED:
        return "Account has been deactivated. Please contact admin."
    raise ValueError(f"unhandled account status: {status!r}")


def can_transition(
    current: AccountStatus,
    target: AccountStatus,
    *,
    acting_on_self: bool,
) -> str | None:
    """
    Validate an admin-initiated status change.

    Returns an error message if the change is refused, otherwise None.
    An admin may not deactivate their own account.
    """
    parse_status(current)
    target = parse_status(target)
    if acting_on_self and target is AccountStatus.DEACTIVATED:
        return "Cannot deactivate your own account"
    return None
