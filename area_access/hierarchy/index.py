"""
Area Index — In-memory lookup over a per-request area snapshot.

The delivery layer fetches the area tree grouped by type
(``{"EA Area": [...], "PSO Area": [...], "RMA": [...], ...}``) and hands
it over once per request. ``AreaIndex.build`` flattens that snapshot into a
single id-keyed lookup plus children and type buckets, so every later query
is a dictionary hit instead of a scan.

The index never raises on bad input: a missing snapshot, a ``None`` id or
an entry that does not describe an area simply yields an empty result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from area_access.hierarchy.schema import (
    ADMINISTRATIVE_AREA_TYPES,
    Area,
    AreaType,
    coerce_id,
)

logger = logging.getLogger(__name__)

_TYPE_KEYS = ("area_type", "areaType", "type")


def coerce_area_type(value: AreaType | str | None) -> AreaType | None:
    """Resolve a type name (including API spellings) to an AreaType, or None."""
    if value is None:
        return None
    if isinstance(value, AreaType):
        return value
    try:
        return AreaType(value)
    except ValueError:
        return None


def _coerce_area(entry: Any, group_key: Any) -> Area | None:
    """Turn one snapshot entry into an Area, using the group key as a type fallback."""
    if isinstance(entry, Area):
        return entry
    if not isinstance(entry, Mapping):
        return None

    data = dict(entry)
    if not any(data.get(key) for key in _TYPE_KEYS):
        data["area_type"] = group_key
    try:
        return Area.model_validate(data)
    except ValidationError:
        return None


class AreaIndex:
    """
    Read-only index over one area snapshot.

    Safe to share between concurrent requests: nothing mutates it after
    construction.
    """

    def __init__(self, areas: Iterable[Area] = ()) -> None:
        self._by_id: dict[str, Area] = {}
        self._by_type: dict[AreaType, list[Area]] = {}
        self._children: dict[str, list[Area]] = {}

        for area in areas:
            if area.id in self._by_id:
                logger.debug("Duplicate area id %s ignored", area.id)
                continue
            self._by_id[area.id] = area
            self._by_type.setdefault(area.area_type, []).append(area)
            if area.parent_id is not None:
                self._children.setdefault(area.parent_id, []).append(area)

    @classmethod
    def build(cls, areas_by_type: Mapping[Any, Iterable[Any]] | None) -> AreaIndex:
        """
        Build an index from a snapshot grouped by area type.

        Args:
            areas_by_type: Mapping of type key to a list of area dicts (or
                Area models). Entries without their own type field take the
                group key as their type.

        Returns:
            The populated index; empty for absent or malformed input.
        """
        if not isinstance(areas_by_type, Mapping):
            return cls.empty()

        areas: list[Area] = []
        for group_key, entries in areas_by_type.items():
            if entries is None or isinstance(entries, (str, bytes, Mapping)):
                continue
            try:
                iterator = iter(entries)
            except TypeError:
                continue
            for entry in iterator:
                area = _coerce_area(entry, group_key)
                if area is None:
                    logger.debug("Skipping malformed area entry under %r", group_key)
                    continue
                areas.append(area)

        return cls(areas)

    @classmethod
    def empty(cls) -> AreaIndex:
        return cls()

    # ── Lookups ────────────────────────────────────────────────

    def find_by_id(self, area_id: Any) -> Area | None:
        """Find an area by id; ids compare as strings (``6`` == ``"6"``)."""
        key = coerce_id(area_id)
        if key is None:
            return None
        return self._by_id.get(key)

    def name_of(self, area_id: Any) -> str | None:
        area = self.find_by_id(area_id)
        return area.name if area else None

    def parent_of(self, area_id: Any) -> Area | None:
        """The direct parent of an area, or None at the top or on a broken link."""
        area = self.find_by_id(area_id)
        if area is None or area.parent_id is None:
            return None
        return self._by_id.get(area.parent_id)

    def children_of(self, parent_id: Any) -> list[Area]:
        key = coerce_id(parent_id)
        if key is None:
            return []
        return list(self._children.get(key, []))

    def has_children(self, area_id: Any) -> bool:
        return bool(self.children_of(area_id))

    # ── Type-filtered queries ──────────────────────────────────

    def of_type(self, area_type: AreaType | str | None) -> list[Area]:
        resolved = coerce_area_type(area_type)
        if resolved is None:
            return []
        return list(self._by_type.get(resolved, []))

    def of_type_with_parents(
        self,
        area_type: AreaType | str | None,
        parent_ids: Iterable[Any] | None,
    ) -> list[Area]:
        """
        Areas of a type whose parent is one of ``parent_ids``.

        An empty ``parent_ids`` means no parent restriction; ``None`` means
        the caller supplied nothing usable and yields an empty list.
        """
        if parent_ids is None:
            return []
        wanted = {pid for pid in (coerce_id(p) for p in parent_ids) if pid is not None}
        areas = self.of_type(area_type)
        if not wanted:
            return areas
        return [area for area in areas if area.parent_id in wanted]

    def excluding_administrative(self) -> dict[AreaType, list[Area]]:
        """Type-grouped view without the Country and Authority levels."""
        return {
            area_type: list(areas)
            for area_type, areas in self._by_type.items()
            if area_type not in ADMINISTRATIVE_AREA_TYPES
        }

    def all(self) -> list[Area]:
        return list(self._by_id.values())

    # ── Container protocol ─────────────────────────────────────

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, area_id: object) -> bool:
        return self.find_by_id(area_id) is not None

    def __iter__(self) -> Iterator[Area]:
        return iter(self._by_id.values())

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{area_type.value}={len(areas)}" for area_type, areas in self._by_type.items()
        )
        return f"AreaIndex({counts})"
