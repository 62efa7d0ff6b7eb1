"""
Tests for the Area Index.

Validates:
- Snapshot flattening and id lookup
- Children and type-filtered queries
- Defensive handling of absent or malformed input
"""

from __future__ import annotations

from area_access.hierarchy.index import AreaIndex, coerce_area_type
from area_access.hierarchy.schema import Area, AreaType


class TestBuild:
    """Flattening the grouped snapshot."""

    def test_indexes_every_area(self, index):
        assert len(index) == 11

    def test_group_key_supplies_type(self, index):
        assert index.find_by_id("1").area_type == AreaType.EA
        assert index.find_by_id("3").area_type == AreaType.PSO
        assert index.find_by_id("99").area_type == AreaType.COUNTRY

    def test_entry_type_wins_over_group_key(self):
        index = AreaIndex.build({"misc": [{"id": 1, "name": "Wessex", "area_type": "EA Area"}]})
        assert index.find_by_id(1).area_type == AreaType.EA

    def test_accepts_area_models(self):
        area = Area(id="1", name="Wessex", area_type=AreaType.EA)
        index = AreaIndex.build({"EA": [area]})
        assert index.find_by_id("1") is area

    def test_none_snapshot_is_empty(self):
        assert len(AreaIndex.build(None)) == 0
        assert len(AreaIndex.build(["not", "a", "mapping"])) == 0

    def test_malformed_entries_skipped(self):
        index = AreaIndex.build(
            {
                "RMA": [
                    {"name": "no id"},
                    "not a dict",
                    None,
                    {"id": 6, "name": "Bristol City Council", "parent_id": 3},
                ],
                "Parish": [{"id": 11, "name": "Unknown level"}],
                "PSO Area": 42,
                "EA Area": None,
            }
        )
        assert len(index) == 1
        assert "6" in index

    def test_duplicate_ids_first_wins(self):
        index = AreaIndex.build(
            {
                "EA Area": [{"id": 1, "name": "Wessex"}],
                "PSO Area": [{"id": 1, "name": "Impostor", "parent_id": 2}],
            }
        )
        assert len(index) == 1
        assert index.name_of(1) == "Wessex"
        assert index.of_type(AreaType.PSO) == []

    def test_empty(self):
        empty = AreaIndex.empty()
        assert len(empty) == 0
        assert empty.all() == []


class TestLookups:
    def test_find_by_id_compares_as_strings(self, index):
        assert index.find_by_id(6) == index.find_by_id("6")
        assert index.find_by_id("6").name == "Bristol City Council"

    def test_find_missing_or_none(self, index):
        assert index.find_by_id("404") is None
        assert index.find_by_id(None) is None

    def test_contains(self, index):
        assert 6 in index
        assert "404" not in index
        assert None not in index

    def test_name_of(self, index):
        assert index.name_of("3") == "PSO West of England"
        assert index.name_of("404") is None

    def test_parent_of(self, index):
        assert index.parent_of("6").id == "3"
        assert index.parent_of("1") is None
        assert index.parent_of("404") is None

    def test_children_in_snapshot_order(self, index):
        assert [a.id for a in index.children_of(3)] == ["6", "7"]
        assert [a.id for a in index.children_of("1")] == ["3", "4"]
        assert index.children_of("6") == []
        assert index.children_of(None) == []

    def test_has_children(self, index):
        assert index.has_children("5")
        assert not index.has_children("9")

    def test_iteration_matches_all(self, index):
        assert list(index) == index.all()


class TestTypeQueries:
    def test_of_type(self, index):
        assert [a.id for a in index.of_type(AreaType.PSO)] == ["3", "4", "5"]
        assert [a.id for a in index.of_type("EA Area")] == ["1", "2"]
        assert index.of_type("Parish") == []
        assert index.of_type(None) == []

    def test_of_type_with_parents(self, index):
        assert [a.id for a in index.of_type_with_parents("RMA", ["3", 5])] == ["6", "7", "9"]

    def test_of_type_with_parents_empty_is_unrestricted(self, index):
        assert len(index.of_type_with_parents(AreaType.RMA, [])) == 4

    def test_of_type_with_parents_none(self, index):
        assert index.of_type_with_parents(AreaType.RMA, None) == []

    def test_excluding_administrative(self, index):
        view = index.excluding_administrative()
        assert set(view) == {AreaType.EA, AreaType.PSO, AreaType.RMA}

    def test_coerce_area_type(self):
        assert coerce_area_type("PSO Area") == AreaType.PSO
        assert coerce_area_type(AreaType.RMA) == AreaType.RMA
        assert coerce_area_type("Parish") is None
        assert coerce_area_type(None) is None

    def test_repr(self, index):
        assert "RMA=4" in repr(index)
