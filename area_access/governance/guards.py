"""
Route Guards — Request pre-checks for the delivery layer.

Each guard wraps a pure decision (record permissions, wizard session state)
and turns it into a ``GuardOutcome``: continue, or redirect somewhere safe.
Denials are logged here with the request context the core never sees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from area_access.governance.permissions import AuthorizationResolver, can_create
from area_access.hierarchy.schema import Principal, Record, WizardSession

log = structlog.get_logger()


class RedirectTarget(str, Enum):
    """Where a denied request is sent."""

    HOME = "home"
    JOURNEY_START = "journey_start"


@dataclass(frozen=True)
class GuardOutcome:
    """Result of a guard: either continue, or redirect to ``redirect``."""

    allowed: bool
    redirect: RedirectTarget | None = None
    reason: str = ""

    @classmethod
    def proceed(cls) -> GuardOutcome:
        return cls(allowed=True)

    @classmethod
    def redirect_to(cls, target: RedirectTarget, reason: str) -> GuardOutcome:
        return cls(allowed=False, redirect=target, reason=reason)


def _principal_id(principal: Principal | None) -> str | None:
    return principal.id if principal is not None else None


def require_view_permission(
    resolver: AuthorizationResolver,
    principal: Principal | None,
    record: Record | None,
) -> GuardOutcome:
    """Allow the request only if the principal may view the record."""
    bound = log.bind(principal_id=_principal_id(principal))
    if record is None:
        bound.warning("area_access.guards.view_record_missing")
        return GuardOutcome.redirect_to(RedirectTarget.HOME, "Record not found")

    result = resolver.check_view(principal, record)
    if not result.is_allowed:
        bound.warning(
            "area_access.guards.view_denied",
            record_id=record.id,
            reason=result.reason,
        )
        return GuardOutcome.redirect_to(RedirectTarget.HOME, result.reason)
    return GuardOutcome.proceed()


def require_edit_permission(
    resolver: AuthorizationResolver,
    principal: Principal | None,
    record: Record | None,
) -> GuardOutcome:
    """Allow the request only if the principal may edit the record."""
    bound = log.bind(principal_id=_principal_id(principal))
    if record is None:
        bound.warning("area_access.guards.edit_record_missing")
        return GuardOutcome.redirect_to(RedirectTarget.HOME, "Record not found")

    result = resolver.check_edit(principal, record)
    if not result.is_allowed:
        bound.warning(
            "area_access.guards.edit_denied",
            record_id=record.id,
            record_status=record.status,
            reason=result.reason,
        )
        return GuardOutcome.redirect_to(RedirectTarget.HOME, result.reason)
    return GuardOutcome.proceed()


def require_create_permission(principal: Principal | None) -> GuardOutcome:
    """Only RMA users may start a new record."""
    if not can_create(principal):
        log.warning(
            "area_access.guards.create_denied",
            principal_id=_principal_id(principal),
        )
        return GuardOutcome.redirect_to(RedirectTarget.HOME, "Only RMA users can create records")
    return GuardOutcome.proceed()


def require_journey_started(
    session: WizardSession | None, principal: Principal | None = None
) -> GuardOutcome:
    if session is None or not session.journey_started:
        log.warning(
            "area_access.guards.journey_not_started",
            principal_id=_principal_id(principal),
        )
        return GuardOutcome.redirect_to(RedirectTarget.JOURNEY_START, "Journey not started")
    return GuardOutcome.proceed()


def require_no_edit_session(
    session: WizardSession | None, principal: Principal | None = None
) -> GuardOutcome:
    """Create-only steps are closed while an edit session is active."""
    if session is not None and session.edit_mode:
        log.warning(
            "area_access.guards.edit_session_active",
            principal_id=_principal_id(principal),
            editing_id=session.editing_id,
        )
        return GuardOutcome.redirect_to(RedirectTarget.JOURNEY_START, "Edit session active")
    return GuardOutcome.proceed()
