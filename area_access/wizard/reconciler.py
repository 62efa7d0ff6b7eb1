"""
Wizard Reconciler — Keeps hierarchical area picks consistent across steps.

PSO and RMA users reach their own areas by first narrowing the tree:

    PSO:  pick EA areas → main PSO → additional PSOs
    RMA:  pick EA areas → pick PSO areas → main RMA → additional RMAs

The EA/PSO picks are transient filters (``ea_areas`` / ``pso_areas`` on the
session) and are discarded before persistence. When a user comes back to a
parent step without those picks (back link from check answers, or editing
a saved account) they are rebuilt from the final selections by climbing
the tree, so the right checkboxes are pre-ticked.

All session helpers return a new ``WizardSession``; the caller stores it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from area_access.hierarchy.ancestry import EXPECTED_PARENT_TYPE, ancestors_of_type
from area_access.hierarchy.index import AreaIndex, coerce_area_type
from area_access.hierarchy.schema import (
    RESPONSIBILITY_AREA_TYPE,
    Area,
    AreaGroup,
    AreaSelection,
    AreaType,
    Responsibility,
    WizardSession,
    WizardStep,
    coerce_id,
    coerce_responsibility,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParentStep:
    """Where a parent-area step leads, and what its back link points at."""

    target_type: AreaType
    next_step: WizardStep
    back_step: WizardStep


#: Valid (responsibility, parent level) combinations of the parent-area step.
PARENT_STEP_FLOW: dict[tuple[Responsibility, Responsibility], ParentStep] = {
    (Responsibility.PSO, Responsibility.EA): ParentStep(
        target_type=AreaType.EA,
        next_step=WizardStep.MAIN_AREA,
        back_step=WizardStep.DETAILS,
    ),
    (Responsibility.RMA, Responsibility.EA): ParentStep(
        target_type=AreaType.EA,
        next_step=WizardStep.PARENT_AREAS_PSO,
        back_step=WizardStep.DETAILS,
    ),
    (Responsibility.RMA, Responsibility.PSO): ParentStep(
        target_type=AreaType.PSO,
        next_step=WizardStep.MAIN_AREA,
        back_step=WizardStep.PARENT_AREAS_EA,
    ),
}

_PICK_FIELDS: dict[Responsibility, str] = {
    Responsibility.EA: "ea_areas",
    Responsibility.PSO: "pso_areas",
}


def _selection_id(selection: Any) -> str | None:
    if isinstance(selection, AreaSelection):
        return selection.area_id
    if isinstance(selection, Area):
        return selection.id
    if isinstance(selection, Mapping):
        for key in ("area_id", "areaId", "id"):
            if selection.get(key) is not None:
                return coerce_id(selection[key])
        return None
    return coerce_id(selection)


def _unique_ids(values: Any) -> list[str]:
    """Coerce a single id or a sequence of ids to distinct strings, first-seen order."""
    if values is None:
        return []
    if isinstance(values, (str, int)):
        values = [values]
    seen: dict[str, None] = {}
    for value in values:
        area_id = coerce_id(value)
        if area_id is not None:
            seen.setdefault(area_id, None)
    return list(seen)


def is_valid_parent_step(responsibility: Any, parent_type: Any) -> bool:
    """Whether a user of ``responsibility`` is ever shown the ``parent_type`` step."""
    key = (coerce_responsibility(responsibility), coerce_responsibility(parent_type))
    return key in PARENT_STEP_FLOW


def parent_step(responsibility: Any, parent_type: Any) -> ParentStep | None:
    key = (coerce_responsibility(responsibility), coerce_responsibility(parent_type))
    return PARENT_STEP_FLOW.get(key)


# ════════════════════════════════════════════════════════════════
# Inference and grouping
# ════════════════════════════════════════════════════════════════


def reverse_engineer(
    index: AreaIndex | None,
    final_selections: Iterable[Any] | None,
    parent_type: AreaType | str | None,
) -> list[str]:
    """
    Infer intermediate picks from final area selections.

    For every selected area, collect the ids of its ancestors of
    ``parent_type``. Selections whose area is not in the snapshot are
    skipped.

    Args:
        index: The area index.
        final_selections: AreaSelection models, dicts or bare ids.
        parent_type: The level to climb to, e.g. ``AreaType.EA``.

    Returns:
        Distinct ancestor ids in first-seen order.
    """
    target = coerce_area_type(parent_type)
    if index is None or target is None or not final_selections:
        return []

    parent_ids: dict[str, None] = {}
    for selection in final_selections:
        area_id = _selection_id(selection)
        if index.find_by_id(area_id) is None:
            logger.debug("Selected area %s is not in the snapshot; skipped", area_id)
            continue
        for ancestor in ancestors_of_type(index, area_id, target):
            parent_ids.setdefault(ancestor.id, None)
    return list(parent_ids)


def group_by_parent(
    index: AreaIndex | None,
    child_type: AreaType | str | None,
    selected_parent_ids: Iterable[Any] | None,
    exclude_id: Any = None,
) -> list[AreaGroup]:
    """
    Group ``child_type`` areas under the selected parents for display.

    Groups follow the parents' snapshot order and never come back empty:
    a parent left with no children (for instance once ``exclude_id``, the
    main area, is removed) is dropped. RMA groups also carry the EA above
    their PSO, and a PSO without an EA parent in the snapshot is dropped.
    """
    child = coerce_area_type(child_type)
    parent_type = EXPECTED_PARENT_TYPE.get(child) if child else None
    if index is None or parent_type is None:
        return []

    wanted = set(_unique_ids(selected_parent_ids))
    excluded = coerce_id(exclude_id)

    groups: list[AreaGroup] = []
    for parent in index.of_type(parent_type):
        if parent.id not in wanted:
            continue
        children = [
            area
            for area in index.children_of(parent.id)
            if area.area_type == child and area.id != excluded
        ]
        if not children:
            continue

        ea_parent = None
        if child == AreaType.RMA:
            ea_parent = index.parent_of(parent.id)
            if ea_parent is None or ea_parent.area_type != AreaType.EA:
                continue
        groups.append(AreaGroup(parent=parent, children=children, ea_parent=ea_parent))
    return groups


def grouped_areas_for(
    index: AreaIndex | None,
    session: WizardSession | None,
    responsibility: Any = None,
    exclude_id: Any = None,
) -> list[AreaGroup] | None:
    """
    Groups for the main/additional area screens, driven by the session's picks.

    Returns None when no grouping applies: EA users (top of the tree), an
    unknown responsibility, or no parent picks on the session yet.
    """
    if session is None:
        return None
    resolved = coerce_responsibility(responsibility or session.responsibility)

    if resolved == Responsibility.PSO:
        picks, child_type = session.ea_areas, AreaType.PSO
    elif resolved == Responsibility.RMA:
        picks, child_type = session.pso_areas, AreaType.RMA
    else:
        return None

    if not picks:
        return None
    return group_by_parent(index, child_type, picks, exclude_id)


# ════════════════════════════════════════════════════════════════
# Session steps
# ════════════════════════════════════════════════════════════════


def parent_step_selection(
    index: AreaIndex | None,
    session: WizardSession | None,
    parent_type: Any,
) -> list[str]:
    """
    Ids to pre-tick on a parent-area step.

    Uses the step's stored picks when present; otherwise rebuilds them from
    the session's final area selections.
    """
    if session is None:
        return []
    level = coerce_responsibility(parent_type)
    step = parent_step(session.responsibility, level)
    if step is None:
        return []

    picks = getattr(session, _PICK_FIELDS[level])
    if picks:
        return list(picks)
    return reverse_engineer(index, session.areas, step.target_type)


def record_parent_selection(
    session: WizardSession,
    parent_type: Any,
    area_ids: Any,
) -> WizardSession:
    """Store the user's picks for a parent-area step on a new session."""
    level = coerce_responsibility(parent_type)
    field = _PICK_FIELDS.get(level) if level else None
    if field is None:
        return session
    return session.model_copy(update={field: _unique_ids(area_ids)})


def select_main_area(
    index: AreaIndex | None,
    session: WizardSession,
    main_area_id: Any,
) -> WizardSession:
    """
    Set the main area, keeping only additional areas that still fit.

    An additional area survives when it differs from the new main area, is
    still in the snapshot and has the area type of the session's
    responsibility. Anything else is dropped without complaint.
    """
    main_id = coerce_id(main_area_id)
    if main_id is None or session.responsibility is None:
        return session

    valid_type = RESPONSIBILITY_AREA_TYPE[session.responsibility]
    kept: list[AreaSelection] = []
    for selection in session.areas:
        if selection.primary or selection.area_id == main_id:
            continue
        area = index.find_by_id(selection.area_id) if index is not None else None
        if area is None or area.area_type != valid_type:
            continue
        kept.append(selection)

    areas = [AreaSelection(area_id=main_id, primary=True), *kept]
    return session.model_copy(update={"areas": areas})


def select_additional_areas(session: WizardSession, area_ids: Any) -> WizardSession:
    """Replace the additional areas, keeping the current main area first."""
    main_id = session.main_area_id
    if main_id is None:
        return session

    additional = [
        AreaSelection(area_id=area_id, primary=False)
        for area_id in _unique_ids(area_ids)
        if area_id != main_id
    ]
    areas = [AreaSelection(area_id=main_id, primary=True), *additional]
    return session.model_copy(update={"areas": areas})


def available_main_areas(
    index: AreaIndex | None, session: WizardSession | None
) -> list[Area]:
    """Every area of the session's responsibility type."""
    if index is None or session is None or session.responsibility is None:
        return []
    return index.of_type(RESPONSIBILITY_AREA_TYPE[session.responsibility])


def available_additional_areas(
    index: AreaIndex | None, session: WizardSession | None
) -> list[Area]:
    """Areas offered as additional areas: the main-area options minus the main area."""
    if session is None:
        return []
    main_id = session.main_area_id
    return [area for area in available_main_areas(index, session) if area.id != main_id]
