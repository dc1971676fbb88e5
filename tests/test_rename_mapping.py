"""Tests for project references and the rename mapping artifact."""

import json
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from timeledger.engine.refs import (
    ByIdentifier,
    ByName,
    Resolved,
    ref_from_fields,
    ref_label,
    ref_to_fields,
)
from timeledger.engine.rename_mapping import RenameMapping, RenameRule, load_rename_mapping


class TestProjectRefs:
    def test_both_fields_make_resolved(self) -> None:
        assert ref_from_fields("p1", "Alpha") == Resolved("p1", "Alpha")

    def test_id_only(self) -> None:
        assert ref_from_fields("p1", None) == ByIdentifier("p1")

    def test_name_only_is_stripped(self) -> None:
        assert ref_from_fields(None, "  Alpha ") == ByName("Alpha")

    def test_blank_fields_count_as_missing(self) -> None:
        assert ref_from_fields("  ", "Alpha") == ByName("Alpha")
        with pytest.raises(ValueError):
            ref_from_fields("", "   ")

    def test_round_trip_to_fields(self) -> None:
        assert ref_to_fields(Resolved("p1", "Alpha")) == ("p1", "Alpha")
        assert ref_to_fields(ByIdentifier("p1")) == ("p1", None)
        assert ref_to_fields(ByName("Alpha")) == (None, "Alpha")

    def test_unknown_shape_rejected(self) -> None:
        with pytest.raises(TypeError):
            ref_to_fields(("p1", "Alpha"))

    def test_label(self) -> None:
        assert ref_label(ByIdentifier("p1")) == "id:p1"
        assert ref_label(Resolved("p1", "Alpha")) == "Alpha (p1)"


class TestRenameMapping:
    def test_direct_rename(self) -> None:
        mapping = RenameMapping.from_pairs({"Picklr": "Picklr test"})
        assert mapping.candidates("Picklr") == ["Picklr test"]
        assert mapping.candidates("Other") == []

    def test_chained_renames_nearest_first(self) -> None:
        mapping = RenameMapping.from_pairs({"A": "B", "B": "C"})
        assert mapping.candidates("A") == ["B", "C"]

    def test_cycle_terminates(self) -> None:
        mapping = RenameMapping.from_pairs({"A": "B", "B": "A"})
        assert mapping.candidates("A") == ["B"]

    def test_rule_order_is_kept(self) -> None:
        mapping = RenameMapping(renames=[
            RenameRule(old_name="Old", new_name="First"),
            RenameRule(old_name="Old", new_name="Second"),
        ])
        assert mapping.candidates("Old") == ["First", "Second"]

    def test_effective_from_limits_rule_to_older_logs(self) -> None:
        mapping = RenameMapping(renames=[
            RenameRule(old_name="CopperField", new_name="CopperTestField", effective_from=date(2025, 6, 1)),
        ])
        assert mapping.candidates("CopperField", date(2025, 5, 31)) == ["CopperTestField"]
        assert mapping.candidates("CopperField", date(2025, 6, 1)) == []
        assert mapping.candidates("CopperField") == ["CopperTestField"]

    def test_blank_names_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            RenameRule(old_name="  ", new_name="X")

    def test_load_from_file(self, tmp_path) -> None:
        path = tmp_path / "renames.json"
        path.write_text(json.dumps({
            "version": 3,
            "renames": [
                {"old_name": "Picklr", "new_name": "Picklr test"},
                {"old_name": "CopperField", "new_name": "CopperTestField", "effective_from": "2025-06-01"},
            ],
        }))

        mapping = load_rename_mapping(path)

        assert mapping.version == 3
        assert len(mapping) == 2
        assert mapping.renames[1].effective_from == date(2025, 6, 1)

    def test_load_rejects_unknown_keys(self, tmp_path) -> None:
        path = tmp_path / "renames.json"
        path.write_text(json.dumps({"version": 1, "renames": [], "extra": True}))
        with pytest.raises(PydanticValidationError):
            load_rename_mapping(path)
