"""
Hierarchy Schema — Pydantic models for the area tree, principals and wizard state.

These models are the canonical data structures shared by every component:
the area index, the ancestor walk, the authorisation resolver and the
account wizard. Inputs arrive from the delivery layer as plain dicts (the
area API and the session store both speak camelCase); the models accept
either spelling and coerce identifiers to strings so that ``1`` and ``"1"``
always name the same area.

Tree shape:
    Country → EA → PSO → RMA   (Authority sits outside the tree)
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def coerce_id(value: Any) -> str | None:
    """Normalise an area/record identifier to a string, or None when absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value) if value != 0 else None
    text = str(value).strip()
    return text or None


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class AreaType(str, enum.Enum):
    """Area levels of the organisational tree."""

    COUNTRY = "Country"
    EA = "EA"
    PSO = "PSO"
    RMA = "RMA"
    AUTHORITY = "Authority"

    @classmethod
    def _missing_(cls, value: object) -> AreaType | None:
        # The area API ships "EA Area" / "PSO Area" as type keys.
        if isinstance(value, str):
            return _AREA_TYPE_ALIASES.get(value.strip().lower())
        return None


_AREA_TYPE_ALIASES: dict[str, AreaType] = {
    "country": AreaType.COUNTRY,
    "ea": AreaType.EA,
    "ea area": AreaType.EA,
    "pso": AreaType.PSO,
    "pso area": AreaType.PSO,
    "rma": AreaType.RMA,
    "authority": AreaType.AUTHORITY,
}

#: Types that are not part of the EA → PSO → RMA working tree.
ADMINISTRATIVE_AREA_TYPES: frozenset[AreaType] = frozenset(
    {AreaType.COUNTRY, AreaType.AUTHORITY}
)


class Responsibility(str, enum.Enum):
    """The hierarchy level a (non-admin) principal is responsible for."""

    EA = "EA"
    PSO = "PSO"
    RMA = "RMA"


#: Area type a principal of each responsibility is associated with.
RESPONSIBILITY_AREA_TYPE: dict[Responsibility, AreaType] = {
    Responsibility.EA: AreaType.EA,
    Responsibility.PSO: AreaType.PSO,
    Responsibility.RMA: AreaType.RMA,
}


def responsibility_for_area_type(area_type: AreaType | None) -> Responsibility | None:
    """Reverse of RESPONSIBILITY_AREA_TYPE; None for administrative types."""
    for responsibility, mapped in RESPONSIBILITY_AREA_TYPE.items():
        if mapped == area_type:
            return responsibility
    return None


def coerce_responsibility(value: Any) -> Responsibility | None:
    """Resolve a responsibility from an enum, an area type or a name such as ``"pso"``."""
    if value is None or isinstance(value, Responsibility):
        return value
    if isinstance(value, AreaType):
        return responsibility_for_area_type(value)
    if isinstance(value, str):
        try:
            return responsibility_for_area_type(AreaType(value))
        except ValueError:
            return None
    return None


class RecordStatus(str, enum.Enum):
    """Lifecycle states of an authorised record."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    ARCHIVED = "archived"


class WizardStep(str, enum.Enum):
    """Screens of the account wizard that routing decisions can land on."""

    DETAILS = "details"
    PARENT_AREAS_EA = "parent_areas_ea"
    PARENT_AREAS_PSO = "parent_areas_pso"
    MAIN_AREA = "main_area"
    ADDITIONAL_AREAS = "additional_areas"
    CHECK_ANSWERS = "check_answers"
    RECORD_VIEW = "record_view"


# ════════════════════════════════════════════════════════════════
# Area Tree Models
# ════════════════════════════════════════════════════════════════


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Area(BaseModel):
    """
    A single node of the area tree.

    Immutable for the lifetime of a request. ``parent_id`` is None for
    top-level areas (EA areas, Country, Authority).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Opaque unique identifier")
    name: str = Field(default="", description="Display name")
    area_type: AreaType = Field(
        validation_alias=AliasChoices("area_type", "areaType", "type"),
        description="Level of this area in the tree",
    )
    parent_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
        description="Identifier of the parent area",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        coerced = coerce_id(value)
        return coerced if coerced is not None else value

    @field_validator("parent_id", mode="before")
    @classmethod
    def _coerce_parent_id(cls, value: Any) -> str | None:
        return coerce_id(value)

    @field_validator("area_type", mode="before")
    @classmethod
    def _resolve_area_type(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, AreaType):
            try:
                return AreaType(value)
            except ValueError:
                return value
        return value


class AreaNode(BaseModel):
    """An area together with its children, for tree rendering."""

    area: Area
    children: list[AreaNode] = Field(default_factory=list)


class AreaGroup(BaseModel):
    """
    A parent area and the child areas offered beneath it.

    For RMA selection the group parent is a PSO and ``ea_parent`` carries the
    EA above it, so the view can render a two-level heading.
    """

    parent: Area
    children: list[Area] = Field(default_factory=list)
    ea_parent: Area | None = None


class AreaSelection(CamelModel):
    """One area picked by, or associated with, a principal."""

    model_config = ConfigDict(frozen=True)

    area_id: str = Field(
        validation_alias=AliasChoices("area_id", "areaId", "id"),
        description="Identifier of the selected area",
    )
    primary: bool = Field(default=False, description="Whether this is the main area")

    @field_validator("area_id", mode="before")
    @classmethod
    def _coerce_area_id(cls, value: Any) -> Any:
        coerced = coerce_id(value)
        return coerced if coerced is not None else value

    @property
    def key(self) -> tuple[str, bool]:
        """Composite identity used for set comparison."""
        return (self.area_id, self.primary)


#: Principals carry the same shape for their associated areas.
AssociatedArea = AreaSelection


# ════════════════════════════════════════════════════════════════
# Authorisation Models
# ════════════════════════════════════════════════════════════════


class Principal(CamelModel):
    """
    The authenticated user a decision is made for.

    ``is_admin`` is orthogonal to the responsibility flags; ``is_rma``,
    ``is_pso`` and ``is_ea`` are mutually exclusive.
    """

    id: str | None = None
    is_admin: bool = Field(
        default=False, validation_alias=AliasChoices("is_admin", "isAdmin", "admin")
    )
    is_rma: bool = False
    is_pso: bool = False
    is_ea: bool = False
    areas: list[AssociatedArea] = Field(
        default_factory=list, description="Areas the principal is associated with"
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_principal_id(cls, value: Any) -> str | None:
        return coerce_id(value)

    @computed_field
    @property
    def role(self) -> Responsibility | None:
        """The principal's responsibility, resolved from the role flags."""
        if self.is_rma:
            return Responsibility.RMA
        if self.is_pso:
            return Responsibility.PSO
        if self.is_ea:
            return Responsibility.EA
        return None

    @property
    def associated_area_ids(self) -> frozenset[str]:
        return frozenset(selection.area_id for selection in self.areas)

    @property
    def main_area(self) -> AreaSelection | None:
        """The primary associated area, falling back to the first one."""
        if not self.areas:
            return None
        return next((a for a in self.areas if a.primary), self.areas[0])


class Record(CamelModel):
    """The thing being authorised: owned by an area, in some lifecycle state."""

    id: str | None = None
    area_id: str | None = None
    status: str | None = Field(
        default=None, description="Raw status string; unknown values deny edits"
    )

    @field_validator("id", "area_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        return coerce_id(value)

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, value: Any) -> Any:
        if isinstance(value, enum.Enum):
            return value.value
        return value


# ════════════════════════════════════════════════════════════════
# Wizard Models
# ════════════════════════════════════════════════════════════════


class OriginalSnapshot(CamelModel):
    """
    One-time snapshot of the record taken when edit mode starts.

    Used only for diffing against the live session; never written back.
    """

    model_config = ConfigDict(frozen=True)

    admin: bool = False
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    job_title: str | None = None
    organisation: str | None = None
    telephone_number: str | None = None
    responsibility: Responsibility | None = None
    areas: list[AreaSelection] = Field(default_factory=list)


class WizardSession(CamelModel):
    """
    State of a multi-step account wizard.

    Immutable per step: reconciler and session helpers return a new value
    (``model_copy``) and the caller stores it. ``ea_areas`` and
    ``pso_areas`` are transient filter picks for the parent-area steps and
    are never part of the submitted payload.
    """

    model_config = ConfigDict(frozen=True)

    journey_started: bool = False
    edit_mode: bool = False
    editing_id: str | None = None

    admin: bool = False
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    job_title: str | None = None
    organisation: str | None = None
    telephone_number: str | None = None
    responsibility: Responsibility | None = None

    areas: list[AreaSelection] = Field(default_factory=list)
    ea_areas: list[str] = Field(default_factory=list)
    pso_areas: list[str] = Field(default_factory=list)

    original_data: OriginalSnapshot | None = None

    @field_validator("editing_id", mode="before")
    @classmethod
    def _coerce_editing_id(cls, value: Any) -> str | None:
        return coerce_id(value)

    @field_validator("ea_areas", "pso_areas", mode="before")
    @classmethod
    def _coerce_pick_ids(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple, set, frozenset)):
            value = [value]
        ids = (coerce_id(v) for v in value)
        return [i for i in ids if i is not None]

    @property
    def main_area_id(self) -> str | None:
        primary = next((a for a in self.areas if a.primary), None)
        return primary.area_id if primary else None

    @property
    def additional_area_ids(self) -> list[str]:
        return [a.area_id for a in self.areas if not a.primary]

    def to_persisted(self) -> WizardSession:
        """Copy of the session with the transient parent-step picks discarded."""
        return self.model_copy(update={"ea_areas": [], "pso_areas": []})

    def to_record_payload(self) -> dict[str, Any]:
        """Serialise for submission, dropping transient picks and edit bookkeeping."""
        return self.model_dump(
            by_alias=True,
            exclude={
                "journey_started",
                "edit_mode",
                "ea_areas",
                "pso_areas",
                "original_data",
            },
        )


class ChangeSet(BaseModel):
    """Fields changed in an edit session plus the navigation flags derived from them."""

    has_changes: bool = False
    changed_fields: list[str] = Field(default_factory=list)
    role_changed: bool = False
    responsibility_changed: bool = False
    personal_details_changed: bool = False
    areas_changed: bool = False
