"""
Edit Change Detector — Diffs an edit session against its original snapshot.

The flags computed here decide which wizard screens appear next, so area
sets are compared exactly: as multisets of ``(area_id, primary)`` pairs,
independent of order.

``ChangeSet.changed_fields`` holds attribute names (``first_name``). Use
``camel_field_names`` for the session store's spelling (``firstName``).
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from area_access.hierarchy.schema import AreaSelection, ChangeSet, WizardSession

logger = logging.getLogger(__name__)

#: Compared on every account.
CORE_FIELDS: tuple[str, ...] = ("admin", "first_name", "last_name", "email")

#: Compared only for non-admin accounts.
NON_ADMIN_FIELDS: tuple[str, ...] = (
    "job_title",
    "organisation",
    "telephone_number",
    "responsibility",
)

PERSONAL_DETAIL_FIELDS: frozenset[str] = frozenset(
    {"first_name", "last_name", "email", "job_title", "organisation", "telephone_number"}
)


def parse_selections(areas: Any) -> list[AreaSelection]:
    """
    Coerce raw area entries to AreaSelection models.

    Entries without a usable area id are skipped, as is anything that is
    not a sequence of entries.
    """
    if not areas or isinstance(areas, (str, bytes)):
        return []
    try:
        entries = list(areas)
    except TypeError:
        return []

    selections: list[AreaSelection] = []
    for entry in entries:
        if isinstance(entry, AreaSelection):
            selections.append(entry)
            continue
        try:
            selections.append(AreaSelection.model_validate(entry))
        except ValidationError:
            logger.debug("Skipping malformed area selection %r", entry)
    return selections


def _area_keys(selections: list[AreaSelection]) -> Counter[tuple[str, bool]]:
    return Counter(selection.key for selection in selections)


def areas_equal(current: Any, original: Any) -> bool:
    """
    Order-insensitive equality of two area selection lists.

    A missing side counts as equal (nothing to compare against). Malformed
    entries are ignored on both sides.
    """
    if current is None or original is None:
        return True
    current, original = parse_selections(current), parse_selections(original)
    if len(current) != len(original):
        return False
    return _area_keys(current) == _area_keys(original)


def camel_field_names(changes: ChangeSet) -> list[str]:
    """``changes.changed_fields`` in camelCase, e.g. ``["firstName"]``."""
    return [to_camel(field) for field in changes.changed_fields]


def detect_changes(session: WizardSession | None) -> ChangeSet:
    """
    Compute the changed fields of an edit session.

    Returns an empty ChangeSet outside edit mode or when there is no
    original snapshot. Fields are reported by attribute name; see
    ``camel_field_names`` for the camelCase spelling.
    """
    if session is None or not session.edit_mode or session.original_data is None:
        return ChangeSet()

    original = session.original_data
    changed: list[str] = [
        field for field in CORE_FIELDS if getattr(session, field) != getattr(original, field)
    ]

    if not session.admin:
        changed.extend(
            field
            for field in NON_ADMIN_FIELDS
            if getattr(session, field) != getattr(original, field)
        )
        if not areas_equal(session.areas, original.areas):
            changed.append("areas")

    return ChangeSet(
        has_changes=bool(changed),
        changed_fields=changed,
        role_changed="admin" in changed,
        responsibility_changed="responsibility" in changed,
        personal_details_changed=any(f in PERSONAL_DETAIL_FIELDS for f in changed),
        areas_changed="areas" in changed,
    )


def has_areas_changed(session: WizardSession | None) -> bool:
    if session is None or not session.edit_mode or session.original_data is None:
        return False
    return not areas_equal(session.areas, session.original_data.areas)
