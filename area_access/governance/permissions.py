"""
Record Permissions — Role-scoped view/edit decisions over the area tree.

Every record is owned by one area. Whether a principal may see or change it
depends on where that area sits relative to the principal's own areas:

- RMA: the record's own area must be one of theirs (zero hops)
- PSO: the PSO above the record's area must be one of theirs (one hop)
- EA:  the EA above the record's area must be one of theirs (two hops),
       and EA users never edit (oversight-only role)
- Admin: view anything; edit any draft

The role-specific part is data (``ROLE_ANCESTOR_RULES`` and
``EDIT_RESPONSIBILITIES``). A single algorithm consumes it: resolve the
record area's ancestors of the rule's type, then intersect with the
principal's associated area ids.

Decisions are returned, never raised or logged here. The delivery layer
logs denials with its own request context (see ``governance.guards``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from area_access.config import settings
from area_access.hierarchy.ancestry import ancestors_of_type
from area_access.hierarchy.index import AreaIndex
from area_access.hierarchy.schema import AreaType, Principal, Record, Responsibility


class AccessDecision(str, Enum):
    """Result of an access check."""

    ALLOWED = "allowed"
    DENIED = "denied"


class AccessAction(str, Enum):
    """What the principal is trying to do with the record."""

    VIEW = "view"
    EDIT = "edit"


@dataclass(frozen=True)
class AncestorRule:
    """The tree level a role is scoped at and its distance above a record's area."""

    area_type: AreaType
    distance: int


ROLE_ANCESTOR_RULES: dict[Responsibility, AncestorRule] = {
    Responsibility.RMA: AncestorRule(area_type=AreaType.RMA, distance=0),
    Responsibility.PSO: AncestorRule(area_type=AreaType.PSO, distance=1),
    Responsibility.EA: AncestorRule(area_type=AreaType.EA, distance=2),
}

#: Roles allowed to edit draft records within their scope.
EDIT_RESPONSIBILITIES: frozenset[Responsibility] = frozenset(
    {Responsibility.RMA, Responsibility.PSO}
)


@dataclass
class AccessCheckResult:
    """Result of checking one action against one record."""

    decision: AccessDecision
    action: AccessAction
    role: Responsibility | None
    is_admin: bool
    reason: str
    ancestor_type: AreaType | None = None
    record_area_id: str | None = None

    @property
    def is_allowed(self) -> bool:
        return self.decision == AccessDecision.ALLOWED

    def __bool__(self) -> bool:
        return self.is_allowed


def is_draft(record: Record | None) -> bool:
    """Whether the record is in the editable lifecycle state."""
    return record is not None and record.status == settings.draft_status


def can_create(principal: Principal | None) -> bool:
    """Only RMA users start new records; admin, PSO and EA users cannot."""
    return principal is not None and principal.role == Responsibility.RMA


class AuthorizationResolver:
    """
    Decides view and edit access for one area snapshot.

    Construct one per request with that request's ``AreaIndex``; the resolver
    holds no other state.
    """

    def __init__(self, index: AreaIndex | None = None) -> None:
        self.index = index if index is not None else AreaIndex.empty()

    def check_view(
        self, principal: Principal | None, record: Record | None
    ) -> AccessCheckResult:
        """
        Check whether a principal may view a record.

        Args:
            principal: The authenticated user, or None.
            record: The record being opened, or None.

        Returns:
            AccessCheckResult with decision and reasoning.
        """
        action = AccessAction.VIEW
        if principal is None or record is None:
            return self._deny(action, principal, record, "No principal or record supplied")

        if principal.is_admin:
            return self._allow(action, principal, record, "Administrators may view every record")

        return self._check_scope(action, principal, record)

    def check_edit(
        self, principal: Principal | None, record: Record | None
    ) -> AccessCheckResult:
        """
        Check whether a principal may edit a record.

        Editing is only ever possible on a draft, and never for EA users.
        """
        action = AccessAction.EDIT
        if principal is None or record is None:
            return self._deny(action, principal, record, "No principal or record supplied")

        if not is_draft(record):
            return self._deny(
                action,
                principal,
                record,
                f"Record status {record.status!r} is not {settings.draft_status!r}",
            )

        if principal.is_admin:
            return self._allow(action, principal, record, "Administrators may edit any draft")

        role = principal.role
        if role is not None and role not in EDIT_RESPONSIBILITIES:
            return self._deny(action, principal, record, f"{role.value} users cannot edit records")

        return self._check_scope(action, principal, record)

    def can_view(self, principal: Principal | None, record: Record | None) -> bool:
        return self.check_view(principal, record).is_allowed

    def can_edit(self, principal: Principal | None, record: Record | None) -> bool:
        return self.check_edit(principal, record).is_allowed

    def scope_area_ids(self, principal: Principal, area_id: str | None) -> list[str]:
        """
        Ids of the areas above ``area_id`` at the principal's role level.

        For an RMA user this is the area itself (when it is an RMA); for PSO
        and EA users it is the enclosing PSO or EA.
        """
        rule = ROLE_ANCESTOR_RULES.get(principal.role) if principal.role else None
        if rule is None or area_id is None:
            return []
        return [area.id for area in ancestors_of_type(self.index, area_id, rule.area_type)]

    # ── Internals ──────────────────────────────────────────────

    def _check_scope(
        self, action: AccessAction, principal: Principal, record: Record
    ) -> AccessCheckResult:
        role = principal.role
        if role is None:
            return self._deny(action, principal, record, "Principal has no responsibility")

        if record.area_id is None:
            return self._deny(action, principal, record, "Record has no owning area")

        rule = ROLE_ANCESTOR_RULES[role]
        associated = principal.associated_area_ids
        if not associated:
            return self._deny(
                action, principal, record, "Principal has no associated areas", rule.area_type
            )

        if rule.distance == 0:
            # Same level: the record's area id itself must be associated,
            # whether or not the snapshot knows about it.
            matched = record.area_id in associated
        else:
            matched = any(
                area_id in associated
                for area_id in self.scope_area_ids(principal, record.area_id)
            )

        if matched:
            return self._allow(
                action,
                principal,
                record,
                f"{role.value} user is associated with the {rule.area_type.value} "
                f"area {rule.distance} hop(s) above the record",
                rule.area_type,
            )
        return self._deny(
            action,
            principal,
            record,
            f"No associated {rule.area_type.value} area found "
            f"{rule.distance} hop(s) above record area {record.area_id}",
            rule.area_type,
        )

    @staticmethod
    def _allow(
        action: AccessAction,
        principal: Principal,
        record: Record,
        reason: str,
        ancestor_type: AreaType | None = None,
    ) -> AccessCheckResult:
        return AccessCheckResult(
            decision=AccessDecision.ALLOWED,
            action=action,
            role=principal.role,
            is_admin=principal.is_admin,
            reason=reason,
            ancestor_type=ancestor_type,
            record_area_id=record.area_id,
        )

    @staticmethod
    def _deny(
        action: AccessAction,
        principal: Principal | None,
        record: Record | None,
        reason: str,
        ancestor_type: AreaType | None = None,
    ) -> AccessCheckResult:
        return AccessCheckResult(
            decision=AccessDecision.DENIED,
            action=action,
            role=principal.role if principal else None,
            is_admin=principal.is_admin if principal else False,
            reason=reason,
            ancestor_type=ancestor_type,
            record_area_id=record.area_id if record else None,
        )


def can_view(index: AreaIndex | None, principal: Principal | None, record: Record | None) -> bool:
    """Convenience wrapper: build a resolver over ``index`` and check view access."""
    return AuthorizationResolver(index).can_view(principal, record)


def can_edit(index: AreaIndex | None, principal: Principal | None, record: Record | None) -> bool:
    """Convenience wrapper: build a resolver over ``index`` and check edit access."""
    return AuthorizationResolver(index).can_edit(principal, record)
