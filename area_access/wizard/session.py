"""
Edit Sessions — Building and tearing down wizard sessions.

An edit session is a ``WizardSession`` pre-filled from a saved account,
with a frozen ``OriginalSnapshot`` to diff against. For PSO and RMA
accounts the transient parent picks are rebuilt from the saved areas so
the parent-area steps open with the right boxes ticked.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from area_access.hierarchy.index import AreaIndex
from area_access.hierarchy.schema import (
    AreaType,
    OriginalSnapshot,
    Responsibility,
    WizardSession,
    coerce_id,
    responsibility_for_area_type,
)
from area_access.wizard.changes import parse_selections
from area_access.wizard.reconciler import reverse_engineer

logger = logging.getLogger(__name__)


def determine_responsibility(
    index: AreaIndex | None, areas: Iterable[Any] | None
) -> Responsibility | None:
    """
    Infer an account's responsibility from the type of its main area.

    Falls back to the first area when none is marked primary; None when the
    area is unknown or administrative.
    """
    selections = parse_selections(areas)
    if index is None or not selections:
        return None
    main = next((s for s in selections if s.primary), selections[0])
    area = index.find_by_id(main.area_id)
    return responsibility_for_area_type(area.area_type) if area else None


def start_create_session() -> WizardSession:
    """A blank session for a new account."""
    return WizardSession(journey_started=True)


def start_edit_session(
    index: AreaIndex | None,
    account: Mapping[str, Any] | None,
    editing_id: Any,
) -> WizardSession:
    """
    Build an edit-mode session from a saved account.

    Args:
        index: Area snapshot used to infer responsibility and parent picks.
        account: The saved account as returned by the backend (camelCase
            or snake_case keys). None is treated as an empty account.
        editing_id: Identifier of the account being edited.

    Returns:
        A new session in edit mode with ``original_data`` set.
    """
    if not isinstance(account, Mapping):
        account = {}
    admin = bool(account.get("admin", False))
    selections = parse_selections(account.get("areas"))
    responsibility = determine_responsibility(index, selections)

    def _field(snake: str, camel: str) -> Any:
        return account.get(snake, account.get(camel))

    personal = {
        "first_name": _field("first_name", "firstName"),
        "last_name": _field("last_name", "lastName"),
        "email": _field("email", "email"),
        "job_title": _field("job_title", "jobTitle"),
        "organisation": _field("organisation", "organisation"),
        "telephone_number": _field("telephone_number", "telephoneNumber"),
    }

    original = OriginalSnapshot(
        admin=admin,
        responsibility=responsibility,
        areas=selections,
        **personal,
    )

    area_data: dict[str, Any] = {}
    if not admin and selections:
        area_data["areas"] = selections
        if responsibility in (Responsibility.PSO, Responsibility.RMA):
            area_data["ea_areas"] = reverse_engineer(index, selections, AreaType.EA)
        if responsibility == Responsibility.RMA:
            area_data["pso_areas"] = reverse_engineer(index, selections, AreaType.PSO)

    session = WizardSession(
        journey_started=True,
        edit_mode=True,
        editing_id=editing_id,
        admin=admin,
        responsibility=responsibility,
        original_data=original,
        **personal,
        **area_data,
    )
    logger.debug("Started edit session for %s", session.editing_id)
    return session


def ensure_edit_session(
    index: AreaIndex | None,
    existing: WizardSession | None,
    account: Mapping[str, Any] | None,
    editing_id: Any,
) -> WizardSession:
    """Reuse ``existing`` when it is already editing ``editing_id``, else start afresh."""
    if (
        existing is not None
        and existing.edit_mode
        and existing.editing_id == coerce_id(editing_id)
    ):
        return existing
    return start_edit_session(index, account, editing_id)


def clear_edit_session(session: WizardSession | None) -> WizardSession | None:
    """
    Drop an edit session once the user leaves it or submits.

    Create-mode sessions are returned unchanged.
    """
    if session is not None and session.edit_mode:
        logger.info("Cleared edit session for %s", session.editing_id)
        return None
    return session
