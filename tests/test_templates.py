"""Tests for saving and replaying day templates."""

import threading

import pytest

from timebudget.budget import AllocationStore, TemplateManager
from timebudget.errors import NotFoundError, OverlapError, ReplayFailedError
from timebudget.state_store import StateStore

SOURCE = "2025-03-10"
TARGET = "2025-03-17"


def _shape(allocs):
    return sorted((a.category, a.display_label, a.start_time, a.end_time) for a in allocs)


@pytest.fixture
def seeded_day(allocations):
    allocations.create("u1", SOURCE, "work", "09:00", "11:00", label="Deep work", project_id="p1")
    allocations.create("u1", SOURCE, "meals", "12:00", "12:30")
    allocations.create("u1", SOURCE, "health", "17:00", "18:00", label="Gym")
    return allocations.list("u1", SOURCE)


class TestSave:
    def test_captures_blocks_by_value(self, templates, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        assert template.id.startswith("tmpl_")
        assert [b.start_time for b in template.blocks] == ["09:00", "12:00", "17:00"]
        assert template.blocks[1].label == "Meals"
        assert template.blocks[0].project_id == "p1"
        assert template.total_minutes == 210

    def test_survives_source_deletion(self, templates, allocations, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        allocations.clear_date("u1", SOURCE)
        assert len(templates.get_template("u1", template.id).blocks) == 3

    def test_names_not_deduplicated(self, templates, seeded_day):
        templates.save_as_template("u1", "Workday", SOURCE)
        templates.save_as_template("u1", "Workday", SOURCE)
        assert [t.name for t in templates.list_templates("u1")] == ["Workday", "Workday"]

    def test_empty_name_rejected(self, templates):
        with pytest.raises(ValueError):
            templates.save_as_template("u1", "  ", SOURCE)

    def test_list_newest_first_and_per_user(self, templates, seeded_day):
        first = templates.save_as_template("u1", "A", SOURCE)
        second = templates.save_as_template("u1", "B", SOURCE)
        assert [t.id for t in templates.list_templates("u1")] == [second.id, first.id]
        assert templates.list_templates("u2") == []


class TestLoad:
    def test_round_trip(self, templates, allocations, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        created = templates.load_template("u1", template.id, TARGET)
        assert len(created) == 3
        assert _shape(allocations.list("u1", TARGET)) == _shape(seeded_day)
        assert {a.allocation_date for a in created} == {TARGET}

    def test_replay_clears_target(self, templates, allocations, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        stray = allocations.create("u1", TARGET, "admin", "20:00", "21:00")
        templates.load_template("u1", template.id, TARGET)
        ids = {a.id for a in allocations.list("u1", TARGET)}
        assert stray.id not in ids
        assert len(ids) == 3

    def test_replay_does_not_touch_template(self, templates, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        templates.load_template("u1", template.id, TARGET)
        templates.load_template("u1", template.id, TARGET)
        assert templates.get_template("u1", template.id).blocks == template.blocks

    def test_failed_replay_rolls_back(self, templates, allocations, store):
        before = allocations.create("u1", TARGET, "admin", "20:00", "21:00")
        # Overlapping blocks can only reach a template from stored data
        store.insert(
            "time_templates",
            {
                "id": "tmpl_broken",
                "user_id": "u1",
                "name": "Broken",
                "blocks": [
                    {"label": "A", "category": "work", "start_time": "09:00", "end_time": "10:00"},
                    {"label": "B", "category": "work", "start_time": "09:30", "end_time": "10:30"},
                ],
            },
        )

        with pytest.raises(ReplayFailedError) as exc:
            templates.load_template("u1", "tmpl_broken", TARGET)
        assert exc.value.block_index == 1
        assert isinstance(exc.value.__cause__, OverlapError)
        assert [a.id for a in allocations.list("u1", TARGET)] == [before.id]

    def test_unknown_template(self, templates, allocations):
        allocations.create("u1", TARGET, "admin", "20:00", "21:00")
        with pytest.raises(NotFoundError):
            templates.load_template("u1", "tmpl_missing", TARGET)
        assert len(allocations.list("u1", TARGET)) == 1

    def test_other_users_template_not_found(self, templates, seeded_day):
        template = templates.save_as_template("u1", "Workday", SOURCE)
        with pytest.raises(NotFoundError):
            templates.load_template("u2", template.id, TARGET)


def test_delete_template(templates, seeded_day):
    template = templates.save_as_template("u1", "Workday", SOURCE)
    with pytest.raises(NotFoundError):
        templates.delete_template("u2", template.id)
    templates.delete_template("u1", template.id)
    with pytest.raises(NotFoundError):
        templates.get_template("u1", template.id)


class TestStoredBlocks:
    @pytest.fixture
    def partial_template(self, store):
        store.insert(
            "time_templates",
            {
                "id": "tmpl_partial",
                "user_id": "u1",
                "name": "Partial",
                "blocks": [
                    {"label": "A", "category": "work"},
                    {"label": "B", "category": "work", "start_time": "09:00"},
                    {"label": "C", "category": "meals", "start_time": "12:00", "end_time": "12:30"},
                ],
            },
        )
        return "tmpl_partial"

    def test_blocks_without_times_dropped_on_read(self, templates, partial_template):
        template = templates.get_template("u1", partial_template)
        assert [b.label for b in template.blocks] == ["C"]
        assert template.total_minutes == 30
        assert [t.id for t in templates.list_templates("u1")] == [partial_template]

    def test_replay_uses_remaining_blocks(self, templates, allocations, partial_template):
        created = templates.load_template("u1", partial_template, TARGET)
        assert [(a.start_time, a.end_time) for a in created] == [("12:00", "12:30")]
        assert len(allocations.list("u1", TARGET)) == 1


def test_concurrent_replays_leave_one_copy(db_path, templates, seeded_day):
    template = templates.save_as_template("u1", "Workday", SOURCE)
    workers = 2
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def replay():
        manager = TemplateManager(AllocationStore(StateStore(db_path)))
        barrier.wait()
        try:
            manager.load_template("u1", template.id, TARGET)
            outcome = "ok"
        except Exception as e:  # noqa: BLE001
            outcome = type(e).__name__
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=replay) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes == ["ok", "ok"]
    allocations = AllocationStore(StateStore(db_path))
    assert _shape(allocations.list("u1", TARGET)) == _shape(seeded_day)
    assert allocations.get_conflicts("u1", TARGET) == []
