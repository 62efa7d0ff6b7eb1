"""
Wizard Navigation — Which screen comes next, for create and edit journeys.

Create journeys walk every step. Edit journeys skip what did not change:
no changes at all returns to the record view, a personal-details-only
change goes straight to check answers, and a role or responsibility change
forces the relevant steps again.
"""

from __future__ import annotations

from typing import Any

from area_access.hierarchy.schema import (
    Responsibility,
    WizardSession,
    WizardStep,
    coerce_responsibility,
)
from area_access.wizard.changes import detect_changes
from area_access.wizard.reconciler import parent_step


def next_step_after_role(session: WizardSession) -> WizardStep:
    """Route after the is-admin question."""
    if session.edit_mode:
        changes = detect_changes(session)
        if not changes.role_changed:
            return WizardStep.RECORD_VIEW
        if session.admin:
            return WizardStep.CHECK_ANSWERS
    return WizardStep.DETAILS


def first_area_step(responsibility: Any) -> WizardStep:
    """PSO and RMA users narrow by EA first; EA users pick their area directly."""
    if coerce_responsibility(responsibility) in (Responsibility.PSO, Responsibility.RMA):
        return WizardStep.PARENT_AREAS_EA
    return WizardStep.MAIN_AREA


def next_step_after_details(session: WizardSession) -> WizardStep:
    """Route after the personal details step."""
    changes = detect_changes(session) if session.edit_mode else None

    if session.admin:
        if changes is not None and not changes.has_changes:
            return WizardStep.RECORD_VIEW
        return WizardStep.CHECK_ANSWERS

    if changes is not None:
        if changes.personal_details_changed and not changes.responsibility_changed:
            return WizardStep.CHECK_ANSWERS
        if not changes.has_changes:
            return WizardStep.RECORD_VIEW

    return first_area_step(session.responsibility)


def next_step_after_parent_areas(responsibility: Any, parent_type: Any) -> WizardStep:
    """Route after a parent-area step; invalid combinations fall back to details."""
    step = parent_step(responsibility, parent_type)
    return step.next_step if step else WizardStep.DETAILS


def back_step_for_parent_areas(responsibility: Any, parent_type: Any) -> WizardStep:
    step = parent_step(responsibility, parent_type)
    return step.back_step if step else WizardStep.DETAILS


def back_step_for_main_area(responsibility: Any) -> WizardStep:
    """Back link of the main-area step: the last parent step the user saw."""
    resolved = coerce_responsibility(responsibility)
    if resolved == Responsibility.PSO:
        return WizardStep.PARENT_AREAS_EA
    if resolved == Responsibility.RMA:
        return WizardStep.PARENT_AREAS_PSO
    return WizardStep.DETAILS
