"""Candidate generation and selection for seating arrangements."""

import logging

import numpy as np

from seatassign.affinity import affinity_matrix
from seatassign.assigner import assign_tables
from seatassign.clusters import build_clusters
from seatassign.errors import InputError
from seatassign.evaluate import count_constraint_violations, evaluate_satisfaction
from seatassign.models import (
    Arrangement,
    Constraints,
    OptimizationResult,
    PreferenceGraph,
    PreferenceRecord,
    Priority,
    SatisfactionStats,
    Student,
    Table,
    TableAssignment,
)
from seatassign.normalize import build_preference_graph, canonical_name

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES = 20


def _validate(
    students: list[Student],
    tables: list[Table],
    candidates: int,
    selection_index: int,
) -> dict[str, Student]:
    """Check the inputs and return the roster keyed by canonical name."""
    if not students:
        raise InputError("The roster is empty; add students before generating a chart.")
    if not tables:
        raise InputError("The table layout is empty; add tables before generating a chart.")
    if candidates < 1:
        raise InputError(f"Candidate count must be at least 1, got {candidates}")
    if selection_index < 0:
        raise InputError(f"Selection index must not be negative, got {selection_index}")

    indices = [t.index for t in tables]
    if len(set(indices)) != len(indices):
        raise InputError(f"Duplicate table index in layout: {indices}")
    for table in tables:
        if table.capacity < 0:
            raise InputError(f"Table {table.index} has negative capacity {table.capacity}")

    by_name: dict[str, Student] = {}
    ids: set[str] = set()
    for student in students:
        key = canonical_name(student.name)
        if not key:
            raise InputError(f"Student {student.id!r} has a blank name")
        if key in by_name:
            raise InputError(f"Two students share the name {student.name!r}; names must be unique")
        if student.id in ids:
            raise InputError(f"Duplicate student id {student.id!r}")
        by_name[key] = student
        ids.add(student.id)
    return by_name


def _canonical_pairs(
    pairs: list[tuple[str, str]],
    by_name: dict[str, Student],
) -> list[tuple[str, str]]:
    canonical: list[tuple[str, str]] = []
    for a, b in pairs:
        pair = (canonical_name(a), canonical_name(b))
        for name, key in zip((a, b), pair):
            if key not in by_name:
                raise InputError(f"Pairing refers to unknown student {name!r}")
        canonical.append(pair)
    return canonical


def _canonical_constraints(
    constraints: Constraints | None,
    by_name: dict[str, Student],
) -> Constraints:
    if constraints is None:
        return Constraints()
    if constraints.max_friends_per_table is not None and constraints.max_friends_per_table < 0:
        raise InputError("max_friends_per_table must not be negative")
    return Constraints(
        must_sit_together=_canonical_pairs(constraints.must_sit_together, by_name),
        must_not_sit_together=_canonical_pairs(constraints.must_not_sit_together, by_name),
        max_friends_per_table=constraints.max_friends_per_table,
    )


def _to_arrangement(
    tables: list[Table],
    seated: list[list[str]],
    unassigned: list[str],
    by_name: dict[str, Student],
) -> Arrangement:
    assignments: list[TableAssignment] = []
    for table, names in zip(tables, seated):
        seats: list[Student | None] = [by_name[n] for n in names]
        seats.extend([None] * (table.capacity - len(seats)))
        assignments.append(
            TableAssignment(table_index=table.index, capacity=table.capacity, seats=seats)
        )
    return Arrangement(tables=assignments, unassigned=[by_name[n] for n in unassigned])


def random_fill(order: list[str], tables: list[Table]) -> tuple[list[list[str]], list[str]]:
    """Fill tables seat by seat in the given order; leftovers get no seat."""
    seated: list[list[str]] = []
    start = 0
    for table in tables:
        seated.append(order[start : start + table.capacity])
        start += table.capacity
    return seated, order[start:]


def optimize_seating(
    students: list[Student],
    tables: list[Table],
    preferences: list[PreferenceRecord] | PreferenceGraph,
    candidates: int = DEFAULT_CANDIDATES,
    selection_index: int = 0,
    rng: np.random.Generator | None = None,
    constraints: Constraints | None = None,
    max_preferences: int | None = None,
    priority: Priority = "student",
) -> OptimizationResult:
    """
    Generate a seating arrangement that satisfies as many preferences as possible.

    Runs the cluster-and-pack heuristic on ``candidates`` shuffled roster
    orderings, ranks the results by satisfaction percentage (stable, so ties
    keep generation order) and returns the one at ``selection_index``,
    clamped to the last candidate. Callers pass the number of charts already
    generated for the class as ``selection_index`` to get a different chart
    on each regeneration.

    When nobody submitted preferences and there are no pairings, students
    are seated in a single random fill instead.

    Raises InputError when the roster or layout cannot produce a chart.
    """
    by_name = _validate(students, tables, candidates, selection_index)
    # Ties and overflow scans go to the lowest table index, not layout order
    tables = sorted(tables, key=lambda t: t.index)
    rules = _canonical_constraints(constraints, by_name)
    if isinstance(preferences, PreferenceGraph):
        graph = preferences
    else:
        graph = build_preference_graph(preferences, max_preferences=max_preferences)
    rng = rng if rng is not None else np.random.default_rng()

    names = list(by_name)
    notices: list[str] = []
    if graph.malformed:
        unreadable = ", ".join(by_name[n].name if n in by_name else n for n in graph.malformed)
        notices.append(
            f"Could not read the preferences of {unreadable}; "
            "they were treated as having no preferences."
        )

    if graph.edge_count() == 0 and rules.is_empty():
        logger.debug("No preference edges; seating %d students randomly", len(names))
        order = [names[i] for i in rng.permutation(len(names))]
        seated, unassigned = random_fill(order, tables)
        arrangement = _to_arrangement(tables, seated, unassigned, by_name)
        notices.append("No seating preferences were submitted, so students were seated randomly.")
        result = OptimizationResult(
            arrangement=arrangement,
            stats=SatisfactionStats(satisfied=0, total=0, percentage=0),
            candidates_generated=1,
            selected_index=0,
            fallback=True,
            notices=notices,
        )
        _note_shortfall(result, tables, len(names))
        return result

    matrix = affinity_matrix(names, graph)
    index = {name: i for i, name in enumerate(names)}

    pool: list[tuple[Arrangement, SatisfactionStats, int]] = []
    for _ in range(candidates):
        order = [names[i] for i in rng.permutation(len(names))]
        clusters = build_clusters(order, graph, rules)
        seated, unassigned = assign_tables(clusters, tables, matrix, index, rules)
        arrangement = _to_arrangement(tables, seated, unassigned, by_name)
        pool.append(
            (
                arrangement,
                evaluate_satisfaction(arrangement, graph),
                count_constraint_violations(arrangement, rules),
            )
        )

    if priority == "teacher":
        pool.sort(key=lambda c: (c[2], -c[1].percentage))
    else:
        pool.sort(key=lambda c: (-c[1].percentage, c[2]))

    chosen = min(selection_index, candidates - 1)
    arrangement, stats, violations = pool[chosen]
    logger.debug(
        "Selected candidate %d of %d: %d/%d preferences satisfied (%d%%), %d violations",
        chosen + 1,
        candidates,
        stats.satisfied,
        stats.total,
        stats.percentage,
        violations,
    )

    if violations:
        notices.append(f"{violations} teacher pairing(s) could not be honored.")

    result = OptimizationResult(
        arrangement=arrangement,
        stats=stats,
        candidates_generated=candidates,
        selected_index=chosen,
        constraint_violations=violations,
        notices=notices,
    )
    _note_shortfall(result, tables, len(names))
    return result


def _note_shortfall(result: OptimizationResult, tables: list[Table], roster_size: int) -> None:
    """Add a notice when some students could not be seated."""
    unassigned = result.arrangement.unassigned
    if not unassigned:
        return
    capacity = sum(t.capacity for t in tables)
    logger.warning("%d students left without a seat", len(unassigned))
    result.notices.append(
        f"The tables seat {capacity} but the class has {roster_size} students; "
        f"{len(unassigned)} student(s) still need a seat: "
        f"{', '.join(s.name for s in unassigned)}."
    )
