"""Tests for the reference resolver over an in-memory directory snapshot."""

import logging
from datetime import date
from types import SimpleNamespace

from timeledger.engine.refs import ByIdentifier, ByName, Resolved
from timeledger.engine.rename_mapping import RenameMapping, RenameRule
from timeledger.engine.resolver import ReferenceResolver, ResolutionMethod, repair_entries
from timeledger.models.project import ProjectStatus
from timeledger.store.directory import DirectorySnapshot, ProjectRecord


def _snapshot(*projects) -> DirectorySnapshot:
    return DirectorySnapshot(
        ProjectRecord(id=pid, name=name, status=ProjectStatus.IN_PROGRESS) for pid, name in projects
    )


def _entry(project_id=None, project_name=None, hours=1.0, description=None):
    return SimpleNamespace(
        project_id=project_id,
        project_name=project_name,
        hours=hours,
        description=description,
    )


class TestDirectorySnapshot:
    def test_listing_is_sorted_by_name_then_id(self) -> None:
        snapshot = _snapshot(("b", "Zeta"), ("z", "Alpha"), ("a", "Alpha"))
        assert [(p.id, p.name) for p in snapshot.list_all()] == [("a", "Alpha"), ("z", "Alpha"), ("b", "Zeta")]

    def test_duplicate_names_keep_first(self) -> None:
        snapshot = _snapshot(("z", "Alpha"), ("a", "Alpha"))
        assert snapshot.find_by_name("Alpha").id == "a"
        assert "z" in snapshot
        assert len(snapshot) == 2

    def test_name_lookup_is_case_sensitive(self) -> None:
        snapshot = _snapshot(("p1", "Alpha"))
        assert snapshot.find_by_name("alpha") is None


class TestResolveByIdentifier:
    def test_fills_in_name(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")))
        resolution = resolver.resolve(ByIdentifier("p1"))
        assert resolution.ref == Resolved("p1", "Alpha")
        assert resolution.method == ResolutionMethod.ID
        assert resolution.changed

    def test_unknown_id_stays_as_is(self, caplog) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")))
        with caplog.at_level(logging.WARNING, logger="timeledger.engine.resolver"):
            resolution = resolver.resolve(ByIdentifier("gone"))

        assert resolution.ref == ByIdentifier("gone")
        assert not resolution.resolved
        assert resolution.warning is not None
        assert resolution.warning.reference == "id:gone"
        assert any("gone" in r.message for r in caplog.records)


class TestResolveResolved:
    def test_stale_name_is_refreshed(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha2")))
        resolution = resolver.resolve(Resolved("p1", "Alpha"))
        assert resolution.ref == Resolved("p1", "Alpha2")
        assert resolution.project_name == "Alpha2"

    def test_id_wins_over_name_of_another_project(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha"), ("p2", "Beta")))
        resolution = resolver.resolve(Resolved("p1", "Beta"))
        assert resolution.ref == Resolved("p1", "Alpha")

    def test_orphaned_keeps_cached_name(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")))
        resolution = resolver.resolve(Resolved("deleted", "Old Project"))
        assert resolution.ref == Resolved("deleted", "Old Project")
        assert resolution.project_name == "Old Project"
        assert not resolution.resolved


class TestResolveByName:
    def test_exact_match(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")))
        resolution = resolver.resolve(ByName("Alpha"))
        assert resolution.ref == Resolved("p1", "Alpha")
        assert resolution.method == ResolutionMethod.EXACT

    def test_renamed_project_found_by_old_name(self) -> None:
        # "Alpha" was renamed to "Alpha2" after the entry was written
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha2")), fuzzy=True)
        resolution = resolver.resolve(ByName("Alpha"))
        assert resolution.ref == Resolved("p1", "Alpha2")
        assert resolution.method == ResolutionMethod.FUZZY

    def test_strict_resolver_does_not_guess(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha2")))
        resolution = resolver.resolve(ByName("Alpha"))
        assert resolution.ref == ByName("Alpha")
        assert not resolution.resolved

    def test_exact_beats_fuzzy(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p2", "Alpha Mobile"), ("p1", "Alpha")), fuzzy=True)
        assert resolver.resolve(ByName("Alpha")).ref == Resolved("p1", "Alpha")

    def test_mapping_beats_fuzzy(self) -> None:
        snapshot = _snapshot(("p1", "Picklr old"), ("p2", "Picklr test"))
        mapping = RenameMapping.from_pairs({"Picklr": "Picklr test"})
        resolver = ReferenceResolver(snapshot, rename_mapping=mapping, fuzzy=True)

        resolution = resolver.resolve(ByName("Picklr"))

        assert resolution.ref == Resolved("p2", "Picklr test")
        assert resolution.method == ResolutionMethod.MAPPING

    def test_mapping_follows_chain(self) -> None:
        mapping = RenameMapping.from_pairs({"Orion": "Orion v2", "Orion v2": "Nebula"})
        resolver = ReferenceResolver(_snapshot(("p1", "Nebula")), rename_mapping=mapping)
        assert resolver.resolve(ByName("Orion")).ref == Resolved("p1", "Nebula")

    def test_mapping_respects_effective_from(self) -> None:
        mapping = RenameMapping(renames=[
            RenameRule(old_name="CopperField", new_name="CopperTestField", effective_from=date(2025, 6, 1)),
        ])
        resolver = ReferenceResolver(_snapshot(("p1", "CopperTestField")), rename_mapping=mapping, fuzzy=True)

        before = resolver.resolve(ByName("CopperField"), date(2025, 5, 1))
        after = resolver.resolve(ByName("CopperField"), date(2025, 7, 1))

        assert before.ref == Resolved("p1", "CopperTestField")
        assert after.ref == ByName("CopperField")

    def test_fuzzy_is_case_insensitive_and_first_in_name_order(self) -> None:
        resolver = ReferenceResolver(_snapshot(("b", "Beta Web"), ("a", "Beta App")), fuzzy=True)
        assert resolver.resolve(ByName("beta")).ref == Resolved("a", "Beta App")

    def test_fuzzy_matches_when_stored_name_contains_project_name(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Gamma")), fuzzy=True)
        assert resolver.resolve(ByName("Gamma Project Extended")).ref == Resolved("p1", "Gamma")

    def test_fuzzy_is_stable_across_snapshots(self) -> None:
        projects = [("c", "Delta Core"), ("a", "Delta API"), ("b", "Delta Batch")]
        first = ReferenceResolver(_snapshot(*projects), fuzzy=True).resolve(ByName("delta"))
        second = ReferenceResolver(_snapshot(*reversed(projects)), fuzzy=True).resolve(ByName("delta"))
        assert first.ref == second.ref == Resolved("a", "Delta API")

    def test_no_match_keeps_raw_name(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")), fuzzy=True)
        resolution = resolver.resolve(ByName("Unrelated"))
        assert resolution.ref == ByName("Unrelated")
        assert resolution.method == ResolutionMethod.UNRESOLVED


class TestRepairEntries:
    def test_entries_reflect_directory(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha2")), fuzzy=True)
        repaired = repair_entries(
            [
                _entry(project_id="p1", project_name="Alpha", hours=2),
                _entry(project_name="Alpha", hours=3, description="legacy"),
                _entry(project_id="gone", hours=1),
            ],
            resolver,
        )

        assert [(e.project_id, e.project_name, e.resolved) for e in repaired] == [
            ("p1", "Alpha2", True),
            ("p1", "Alpha2", True),
            ("gone", None, False),
        ]
        assert repaired[1].description == "legacy"
        assert [e.hours for e in repaired] == [2, 3, 1]

    def test_entry_without_reference_is_kept(self) -> None:
        resolver = ReferenceResolver(_snapshot(("p1", "Alpha")))
        repaired = repair_entries([_entry(hours=4)], resolver)
        assert len(repaired) == 1
        assert repaired[0].project_id is None
        assert repaired[0].project_name is None
        assert not repaired[0].resolved
