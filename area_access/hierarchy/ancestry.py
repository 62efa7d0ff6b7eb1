"""
Ancestor Resolver — Bounded parent-pointer walks over an AreaIndex.

Every upward query in the package (authorisation scopes, breadcrumbs,
reverse-engineered wizard picks) goes through ``walk_up``. The walk visits
the start node first, then one parent per hop, and stops at the top of the
tree, at a broken link, on a revisited node, or after
``settings.ancestor_hop_limit`` nodes, so a corrupted snapshot degrades to a
partial answer instead of hanging the request.

A node matches its own type: ``ancestors_of_type(index, pso_id, "PSO")``
returns ``[pso]``. Callers rely on that when filtering by the principal's
own level.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from area_access.config import settings
from area_access.hierarchy.index import AreaIndex, coerce_area_type
from area_access.hierarchy.schema import Area, AreaNode, AreaType

logger = logging.getLogger(__name__)

#: Required parent level for each level below the top of the tree.
EXPECTED_PARENT_TYPE: dict[AreaType, AreaType] = {
    AreaType.PSO: AreaType.EA,
    AreaType.RMA: AreaType.PSO,
}


def walk_up(
    index: AreaIndex | None,
    start_id: Any,
    hop_limit: int | None = None,
) -> Iterator[Area]:
    """
    Yield the start area and then each ancestor, nearest first.

    Args:
        index: The area index; None yields nothing.
        start_id: Id of the area to start from.
        hop_limit: Maximum number of nodes to visit. Defaults to
            ``settings.ancestor_hop_limit``.
    """
    if index is None:
        return
    limit = settings.ancestor_hop_limit if hop_limit is None else hop_limit
    current = index.find_by_id(start_id)
    seen: set[str] = set()

    while current is not None:
        if len(seen) >= limit:
            logger.warning(
                "Ancestor walk from %s stopped after %d hops", start_id, limit
            )
            return
        if current.id in seen:
            logger.warning("Parent cycle detected at area %s", current.id)
            return
        seen.add(current.id)
        yield current

        if current.parent_id is None:
            return
        parent = index.find_by_id(current.parent_id)
        if parent is None:
            logger.debug(
                "Area %s points at missing parent %s", current.id, current.parent_id
            )
            return
        current = parent


def ancestors_of_type(
    index: AreaIndex | None,
    start_id: Any,
    target_type: AreaType | str | None,
) -> list[Area]:
    """
    Collect every area of ``target_type`` on the path from ``start_id`` up.

    The start node is included when it is itself of ``target_type``.

    Returns:
        Matching areas, nearest first; empty for an unknown id or type.
    """
    resolved = coerce_area_type(target_type)
    if resolved is None:
        return []
    return [area for area in walk_up(index, start_id) if area.area_type == resolved]


def nearest_ancestor_of_type(
    index: AreaIndex | None,
    start_id: Any,
    target_type: AreaType | str | None,
) -> Area | None:
    """First area of ``target_type`` on the upward path, or None."""
    matches = ancestors_of_type(index, start_id, target_type)
    return matches[0] if matches else None


def path_to_root(
    index: AreaIndex | None,
    start_id: Any,
    separator: str | None = None,
) -> str:
    """Root-to-leaf breadcrumb of area names, e.g. ``"Wessex > PSO West > Bristol"``."""
    sep = settings.path_separator if separator is None else separator
    names = [area.name for area in walk_up(index, start_id)]
    names.reverse()
    return sep.join(names)


def build_hierarchy(
    index: AreaIndex | None,
    root_types: Iterable[AreaType | str] = (AreaType.EA,),
) -> list[AreaNode]:
    """
    Nest the snapshot into trees rooted at top-level areas of ``root_types``.

    Recursion depth is bounded by ``settings.max_tree_depth``.
    """
    if index is None:
        return []
    roots = {t for t in (coerce_area_type(r) for r in root_types) if t is not None}

    def _node(area: Area, depth: int) -> AreaNode:
        children = []
        if depth < settings.max_tree_depth:
            children = [_node(child, depth + 1) for child in index.children_of(area.id)]
        return AreaNode(area=area, children=children)

    return [
        _node(area, 1)
        for area in index
        if area.parent_id is None and area.area_type in roots
    ]


def verify_hierarchy(index: AreaIndex | None) -> tuple[bool, list[str]]:
    """
    Check the snapshot against the tree invariants.

    Detects dangling parent links, parent cycles, chains deeper than
    ``settings.max_tree_depth`` and children attached to the wrong level.

    Returns:
        Tuple of (is_valid, issues).
    """
    if index is None:
        return True, []

    issues: list[str] = []
    for area in index:
        if area.parent_id is not None:
            parent = index.find_by_id(area.parent_id)
            if parent is None:
                issues.append(f"Area {area.id} has missing parent {area.parent_id}")
            else:
                expected = EXPECTED_PARENT_TYPE.get(area.area_type)
                if expected is not None and parent.area_type != expected:
                    issues.append(
                        f"Area {area.id} ({area.area_type.value}) has parent "
                        f"{parent.id} of type {parent.area_type.value}, "
                        f"expected {expected.value}"
                    )

        chain: list[str] = []
        current: Area | None = area
        while current is not None:
            if current.id in chain:
                issues.append(f"Area {area.id} is part of a parent cycle")
                break
            chain.append(current.id)
            if len(chain) > settings.max_tree_depth:
                issues.append(
                    f"Area {area.id} is deeper than {settings.max_tree_depth} levels"
                )
                break
            current = index.find_by_id(current.parent_id) if current.parent_id else None

    if issues:
        logger.warning("Area snapshot failed %d integrity checks", len(issues))
    return not issues, issues
