"""Satisfaction scoring for seatassign arrangements."""

from seatassign.models import Arrangement, Constraints, PreferenceGraph, SatisfactionStats
from seatassign.normalize import canonical_name


def _table_lookup(arrangement: Arrangement) -> dict[str, int]:
    return {
        canonical_name(student.name): table.table_index
        for table in arrangement.tables
        for student in table.students
    }


def percentage(satisfied: int, total: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when total is 0."""
    if total == 0:
        return 0
    return (200 * satisfied + total) // (2 * total)


def evaluate_satisfaction(arrangement: Arrangement, graph: PreferenceGraph) -> SatisfactionStats:
    """
    Count the preference edges an arrangement satisfies.

    An edge counts toward the total only when both students are seated; it
    is satisfied when they share a table.
    """
    table_of = _table_lookup(arrangement)
    satisfied = 0
    total = 0

    for source, targets in graph.edges.items():
        if source not in table_of:
            continue
        for target in targets:
            if target not in table_of:
                continue
            total += 1
            if table_of[source] == table_of[target]:
                satisfied += 1

    return SatisfactionStats(
        satisfied=satisfied,
        total=total,
        percentage=percentage(satisfied, total),
    )


def count_constraint_violations(arrangement: Arrangement, constraints: Constraints) -> int:
    """Count forced pairs split apart and forced separations seated together."""
    table_of = _table_lookup(arrangement)
    violations = 0

    for a, b in constraints.must_sit_together:
        if a in table_of and b in table_of and table_of[a] != table_of[b]:
            violations += 1
    for a, b in constraints.must_not_sit_together:
        if a in table_of and b in table_of and table_of[a] == table_of[b]:
            violations += 1

    return violations
