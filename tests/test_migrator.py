"""Tests for batch reconciliation, rename propagation and the consistency audit."""

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from timeledger.engine.migrator import ConsistencyMigrator
from timeledger.engine.rename_mapping import RenameMapping
from timeledger.errors import NotFoundError
from timeledger.store.task_logs import TaskLogStore


async def _stored(db, task_log_id):
    task_log = await TaskLogStore(db).find_by_id(task_log_id)
    return [(e.project_id, e.project_name) for e in task_log.entries]


class TestReconcile:
    async def test_repairs_every_stale_shape(self, db, seed) -> None:
        alpha = await seed.project("Alpha2")
        picklr = await seed.project("Picklr test")
        beta = await seed.project("Beta")
        user = await seed.user("Dana")
        task_log = await seed.log(user, date(2025, 3, 3), [
            (alpha.id, None, 1.0),           # missing name
            (beta.id, "Old Beta", 1.0),      # stale cached name
            (None, "Beta", 1.0),             # name only, exact
            (None, "Picklr", 1.0),           # name only, mapped
            (None, "alpha", 1.0),            # name only, fuzzy
            (None, "Nowhere", 1.0),          # unmatched
        ])

        mapping = RenameMapping.from_pairs({"Picklr": "Picklr test"})
        result = await ConsistencyMigrator(db).reconcile(mapping)

        assert result.updated_entry_count == 5
        assert result.updated_log_count == 1
        assert result.failed_log_count == 0
        assert result.unmatched_names == {"Nowhere"}
        assert await _stored(db, task_log.id) == [
            (alpha.id, "Alpha2"),
            (beta.id, "Beta"),
            (beta.id, "Beta"),
            (picklr.id, "Picklr test"),
            (alpha.id, "Alpha2"),
            (None, "Nowhere"),
        ]

    async def test_second_run_changes_nothing(self, db, seed) -> None:
        project = await seed.project("Alpha2")
        user = await seed.user("Dana")
        await seed.log(user, date(2025, 3, 3), [(None, "Alpha", 2.0), (None, "Ghost", 1.0)])
        await seed.log(user, date(2025, 3, 4), [(project.id, "Alpha", 3.0)])

        migrator = ConsistencyMigrator(db)
        first = await migrator.reconcile()
        second = await migrator.reconcile()

        assert first.updated_entry_count == 2
        assert second.updated_entry_count == 0
        assert second.updated_log_count == 0
        assert first.unmatched_names == second.unmatched_names == {"Ghost"}

    async def test_dry_run_saves_nothing(self, db, seed) -> None:
        project = await seed.project("Alpha")
        user = await seed.user("Dana")
        task_log = await seed.log(user, date(2025, 3, 3), [(project.id, None, 2.0)])

        result = await ConsistencyMigrator(db).reconcile(dry_run=True)

        assert result.dry_run
        assert result.updated_entry_count == 1
        assert await _stored(db, task_log.id) == [(project.id, None)]

    async def test_orphaned_entries_are_left_alone(self, db, seed) -> None:
        user = await seed.user("Dana")
        task_log = await seed.log(user, date(2025, 3, 3), [("deleted-project", "Legacy", 2.0)])

        result = await ConsistencyMigrator(db).reconcile()

        assert result.updated_entry_count == 0
        assert result.unmatched_names == set()
        assert await _stored(db, task_log.id) == [("deleted-project", "Legacy")]

    async def test_result_serialises_sorted_names(self, db, seed) -> None:
        user = await seed.user("Dana")
        await seed.log(user, date(2025, 3, 3), [(None, "Zulu", 1.0), (None, "Echo", 1.0)])

        result = await ConsistencyMigrator(db).reconcile()

        assert result.to_dict()["unmatched_names"] == ["Echo", "Zulu"]

    async def test_failed_save_is_counted_and_batch_continues(self, db, seed, monkeypatch) -> None:
        project_id = (await seed.project("Alpha")).id
        user = await seed.user("Dana")
        first_id = (await seed.log(user, date(2025, 3, 3), [(None, "Alpha", 1.0)])).id
        second_id = (await seed.log(user, date(2025, 3, 4), [(None, "Alpha", 2.0)])).id

        real_commit = db.commit
        commits = []

        async def fails_once():
            commits.append(True)
            if len(commits) == 1:
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            await real_commit()

        monkeypatch.setattr(db, "commit", fails_once)
        migrator = ConsistencyMigrator(db)

        result = await migrator.reconcile()

        assert result.failed_log_count == 1
        assert result.updated_log_count == 1
        assert result.updated_entry_count == 1
        assert await _stored(db, first_id) == [(None, "Alpha")]
        assert await _stored(db, second_id) == [(project_id, "Alpha")]

        rerun = await migrator.reconcile()

        assert rerun.failed_log_count == 0
        assert rerun.updated_entry_count == 1
        assert await _stored(db, first_id) == [(project_id, "Alpha")]


class TestPropagateRename:
    async def test_rewrites_only_stale_entries(self, db, seed) -> None:
        project = await seed.project("Alpha")
        other = await seed.project("Beta")
        user = await seed.user("Dana")
        task_log = await seed.log(user, date(2025, 3, 3), [
            (project.id, "Alpha", 1.0),
            (project.id, None, 1.0),
            (other.id, "Beta", 1.0),
        ])
        await seed.rename(project, "Alpha2")

        updated = await ConsistencyMigrator(db).propagate_rename(project.id)

        assert updated == 2
        assert await _stored(db, task_log.id) == [
            (project.id, "Alpha2"),
            (project.id, "Alpha2"),
            (other.id, "Beta"),
        ]
        assert await ConsistencyMigrator(db).propagate_rename(project.id) == 0

    async def test_reports_the_name_it_wrote(self, db, seed) -> None:
        project = await seed.project("Alpha")
        user = await seed.user("Dana")
        await seed.log(user, date(2025, 3, 3), [(project.id, "Alpha", 1.0)])
        await seed.rename(project, "Alpha2")

        name, updated = await ConsistencyMigrator(db).propagate_project_name(project.id)

        assert (name, updated) == ("Alpha2", 1)

    async def test_unknown_project(self, db) -> None:
        with pytest.raises(NotFoundError):
            await ConsistencyMigrator(db).propagate_rename("missing")

    async def test_deleted_project_is_not_propagated(self, db, seed) -> None:
        project = await seed.project("Alpha")
        await seed.soft_delete(project)
        with pytest.raises(NotFoundError):
            await ConsistencyMigrator(db).propagate_rename(project.id)


class TestAudit:
    async def test_counts_each_state(self, db, seed) -> None:
        alpha = await seed.project("Alpha")
        user = await seed.user("Dana")
        await seed.log(user, date(2025, 3, 3), [
            (alpha.id, "Alpha", 1.0),
            (alpha.id, "Alpha (old)", 1.0),
            (alpha.id, None, 1.0),
            (None, "Alpha", 1.0),
            (None, "Nobody", 1.0),
            ("gone", "Gone", 1.0),
        ])

        audit = await ConsistencyMigrator(db).audit()

        assert audit.to_dict() == {
            "resolved": 1,
            "stale_name": 1,
            "missing_name": 1,
            "name_only": 2,
            "orphaned": 1,
            "stale_names": ["Alpha (old)"],
            "unmatched_names": ["Nobody"],
        }
