import numpy as np
import pytest

from seatassign.errors import InputError
from seatassign.models import (
    Constraints,
    PreferenceGraph,
    PreferenceRecord,
    SatisfactionStats,
    Student,
    Table,
)
from seatassign.optimizer import optimize_seating, random_fill


def _roster(*names: str) -> list[Student]:
    return [Student(id=f"s{i}", name=name) for i, name in enumerate(names, start=1)]


def _tables(*capacities: int) -> list[Table]:
    return [Table(index=i, capacity=c) for i, c in enumerate(capacities)]


def _table_of(result) -> dict[str, int]:
    return {
        student.name: table.table_index
        for table in result.arrangement.tables
        for student in table.students
    }


def _check_partition(result, students, tables):
    seated = result.arrangement.seated()
    ids = [s.id for s in seated] + [s.id for s in result.arrangement.unassigned]
    assert len(ids) == len(set(ids))
    assert sorted(ids) == sorted(s.id for s in students)
    for table, layout in zip(result.arrangement.tables, tables):
        assert len(table.seats) == layout.capacity
        assert len(table.students) <= layout.capacity


def test_mutual_pair_is_seated_together():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    tables = _tables(2, 2)
    prefs = [PreferenceRecord("Alice", ["Bob"]), PreferenceRecord("Bob", ["Alice"])]

    for seed in range(5):
        result = optimize_seating(
            students, tables, prefs, candidates=1, rng=np.random.default_rng(seed)
        )
        placed = _table_of(result)
        assert placed["Alice"] == placed["Bob"]
        assert (result.stats.satisfied, result.stats.total, result.stats.percentage) == (2, 2, 100)
        assert not result.fallback
        _check_partition(result, students, tables)


def test_capacity_shortfall_reports_unassigned_student():
    students = _roster("Alice", "Bob", "Carol", "Dave", "Erin")
    tables = _tables(2, 2)
    prefs = [PreferenceRecord("Alice", ["Bob", "Carol"]), PreferenceRecord("Erin", ["Dave"])]

    result = optimize_seating(students, tables, prefs, rng=np.random.default_rng(3))

    assert len(result.arrangement.unassigned) == 1
    assert any("need a seat" in notice for notice in result.notices)
    _check_partition(result, students, tables)


def test_capacity_shortfall_in_random_fill():
    students = _roster("Alice", "Bob", "Carol")
    tables = _tables(1, 1)

    result = optimize_seating(students, tables, [], rng=np.random.default_rng(0))

    assert result.fallback
    assert len(result.arrangement.unassigned) == 1
    _check_partition(result, students, tables)


def test_no_preferences_falls_back_to_random_fill():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    tables = _tables(2, 3)

    result = optimize_seating(students, tables, [], rng=np.random.default_rng(1))

    assert result.fallback
    assert (result.stats.satisfied, result.stats.total, result.stats.percentage) == (0, 0, 0)
    assert result.arrangement.unassigned == []
    assert [len(t.students) for t in result.arrangement.tables] == [2, 2]
    assert result.candidates_generated == 1
    _check_partition(result, students, tables)


def test_random_fill_fills_tables_in_seat_order():
    seated, leftover = random_fill(["a", "b", "c", "d", "e"], _tables(2, 2))

    assert seated == [["a", "b"], ["c", "d"]]
    assert leftover == ["e"]


def test_names_match_case_insensitively():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    prefs = [PreferenceRecord("ALICE ", ["bob"])]

    result = optimize_seating(students, _tables(2, 2), prefs, rng=np.random.default_rng(2))

    placed = _table_of(result)
    assert placed["Alice"] == placed["Bob"]
    assert (result.stats.satisfied, result.stats.total) == (1, 1)


def test_best_candidate_ranks_first():
    students = _roster(*[f"Student {i}" for i in range(12)])
    tables = _tables(4, 4, 4)
    prefs = [
        PreferenceRecord(f"Student {i}", [f"Student {(i + 1) % 12}", f"Student {(i + 5) % 12}"])
        for i in range(12)
    ]
    candidates = 8

    results = [
        optimize_seating(
            students,
            tables,
            prefs,
            candidates=candidates,
            selection_index=i,
            rng=np.random.default_rng(11),
        )
        for i in range(candidates)
    ]

    percentages = [r.stats.percentage for r in results]
    assert percentages == sorted(percentages, reverse=True)
    assert all(percentages[0] >= p for p in percentages)


def test_selection_index_clamps_to_last_candidate():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    prefs = [PreferenceRecord("Alice", ["Bob"])]

    result = optimize_seating(
        students,
        _tables(2, 2),
        prefs,
        candidates=5,
        selection_index=50,
        rng=np.random.default_rng(0),
    )

    assert result.selected_index == 4
    assert result.candidates_generated == 5


def test_unsorted_layout_breaks_ties_by_table_index():
    students = _roster("Alice", "Bob")
    tables = [Table(index=5, capacity=2), Table(index=0, capacity=2)]
    prefs = [PreferenceRecord("Alice", ["Bob"])]

    result = optimize_seating(students, tables, prefs, candidates=1, rng=np.random.default_rng(0))

    assert [t.table_index for t in result.arrangement.tables] == [0, 5]
    placed = _table_of(result)
    assert placed["Alice"] == placed["Bob"] == 0


def test_unsorted_layout_random_fill_starts_at_lowest_index():
    students = _roster("Alice", "Bob")
    tables = [Table(index=3, capacity=2), Table(index=1, capacity=2)]

    result = optimize_seating(students, tables, [], rng=np.random.default_rng(0))

    occupied = [t.table_index for t in result.arrangement.tables if t.students]
    assert occupied == [1]


def test_same_seed_same_arrangement():
    students = _roster("Alice", "Bob", "Carol", "Dave", "Erin", "Frank")
    prefs = [PreferenceRecord("Alice", ["Erin"]), PreferenceRecord("Carol", ["Bob", "Frank"])]

    first = optimize_seating(students, _tables(3, 3), prefs, rng=np.random.default_rng(42))
    second = optimize_seating(students, _tables(3, 3), prefs, rng=np.random.default_rng(42))

    assert first.arrangement == second.arrangement
    assert first.stats == second.stats


def test_accepts_prebuilt_graph():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    graph = PreferenceGraph(edges={"alice": {"bob"}, "bob": {"alice"}})

    result = optimize_seating(students, _tables(2, 2), graph, rng=np.random.default_rng(0))

    assert result.stats.percentage == 100


def test_forced_pairs_and_separations_are_honored():
    students = _roster("Alice", "Bob", "Carol", "Dave", "Erin", "Frank")
    tables = _tables(3, 3)
    prefs = [PreferenceRecord("Alice", ["Bob"]), PreferenceRecord("Bob", ["Alice"])]
    rules = Constraints(
        must_sit_together=[("Alice", "carol")],
        must_not_sit_together=[("bob", "Dave")],
    )

    for seed in range(5):
        result = optimize_seating(
            students, tables, prefs, constraints=rules, rng=np.random.default_rng(seed)
        )
        placed = _table_of(result)
        assert placed["Alice"] == placed["Carol"]
        assert placed["Bob"] != placed["Dave"]
        assert result.constraint_violations == 0
        assert result.stats.percentage == 100


def test_separation_overrides_mutual_preference():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    prefs = [PreferenceRecord("Alice", ["Bob"]), PreferenceRecord("Bob", ["Alice"])]
    rules = Constraints(must_not_sit_together=[("Alice", "Bob")])

    for priority in ("student", "teacher"):
        result = optimize_seating(
            students,
            _tables(2, 2),
            prefs,
            candidates=4,
            constraints=rules,
            priority=priority,
            rng=np.random.default_rng(5),
        )
        placed = _table_of(result)
        assert placed["Alice"] != placed["Bob"]
        assert result.stats == SatisfactionStats(satisfied=0, total=2, percentage=0)


def test_pairings_alone_skip_random_fill():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    rules = Constraints(must_sit_together=[("Alice", "Dave")])

    result = optimize_seating(
        students, _tables(2, 2), [], constraints=rules, rng=np.random.default_rng(9)
    )

    assert not result.fallback
    placed = _table_of(result)
    assert placed["Alice"] == placed["Dave"]


def test_malformed_preferences_become_a_notice():
    students = _roster("Alice", "Bob")
    prefs = [PreferenceRecord("Alice", 17), PreferenceRecord("Bob", ["Alice"])]

    result = optimize_seating(students, _tables(2), prefs, rng=np.random.default_rng(0))

    assert any("Alice" in notice for notice in result.notices)
    assert result.stats.percentage == 100


def test_max_preferences_limits_edges():
    students = _roster("Alice", "Bob", "Carol", "Dave")
    prefs = [PreferenceRecord("Alice", ["Bob", "Carol", "Dave"])]

    result = optimize_seating(
        students, _tables(4), prefs, max_preferences=1, rng=np.random.default_rng(0)
    )

    assert result.stats.total == 1


@pytest.mark.parametrize(
    "students, tables, kwargs",
    [
        ([], [Table(0, 2)], {}),
        ([Student("s1", "Alice")], [], {}),
        ([Student("s1", "Alice")], [Table(0, 2)], {"candidates": 0}),
        ([Student("s1", "Alice")], [Table(0, 2)], {"selection_index": -1}),
        ([Student("s1", "Alice"), Student("s2", " alice")], [Table(0, 2)], {}),
        ([Student("s1", "Alice"), Student("s1", "Bob")], [Table(0, 2)], {}),
        ([Student("s1", "Alice")], [Table(0, 2), Table(0, 2)], {}),
        ([Student("s1", "Alice")], [Table(0, -1)], {}),
        (
            [Student("s1", "Alice")],
            [Table(0, 2)],
            {"constraints": Constraints(must_sit_together=[("Alice", "Zed")])},
        ),
    ],
)
def test_invalid_input_raises(students, tables, kwargs):
    with pytest.raises(InputError):
        optimize_seating(students, tables, [], **kwargs)
