"""Greedy table packing for seatassign."""

import numpy as np

from seatassign.clusters import separations
from seatassign.models import Constraints, Table

# Added to a table's score when the whole cluster fits; dominates affinity sums
FIT_BONUS = 100


def _table_score(
    rows: list[int],
    seated: list[str],
    free: int,
    matrix: np.ndarray,
    index: dict[str, int],
) -> int:
    score = FIT_BONUS if free >= len(rows) else 0
    if seated:
        cols = [index[name] for name in seated]
        score += int(matrix[np.ix_(rows, cols)].sum())
    return score


def assign_tables(
    clusters: list[list[str]],
    tables: list[Table],
    matrix: np.ndarray,
    index: dict[str, int],
    constraints: Constraints | None = None,
) -> tuple[list[list[str]], list[str]]:
    """
    Pack clusters into tables.

    Largest clusters go first, each to the table with the best score: a fit
    bonus when the cluster fits whole, plus the affinity between its members
    and everyone already seated there. Ties go to the lowest table position.
    Members that do not fit spill into the first table with a free seat.

    Returns (names seated per table position, names left without a seat).
    """
    apart = separations(constraints.must_not_sit_together) if constraints else {}
    seated: list[list[str]] = [[] for _ in tables]
    unassigned: list[str] = []

    def conflicts(members: list[str], pos: int) -> bool:
        at_table = set(seated[pos])
        return any(apart[m] & at_table for m in members if m in apart)

    def overflow_table(member: str) -> int | None:
        open_tables = [pos for pos, t in enumerate(tables) if len(seated[pos]) < t.capacity]
        for pos in open_tables:
            if not conflicts([member], pos):
                return pos
        return open_tables[0] if open_tables else None

    for cluster in sorted(clusters, key=len, reverse=True):
        rows = [index[name] for name in cluster]

        best: int | None = None
        best_score = -1
        for pos, table in enumerate(tables):
            free = table.capacity - len(seated[pos])
            if free <= 0 or conflicts(cluster, pos):
                continue
            score = _table_score(rows, seated[pos], free, matrix, index)
            if score > best_score:
                best, best_score = pos, score

        remaining = list(cluster)
        if best is not None:
            free = tables[best].capacity - len(seated[best])
            seated[best].extend(remaining[:free])
            remaining = remaining[free:]

        for member in remaining:
            pos = overflow_table(member)
            if pos is None:
                unassigned.append(member)
            else:
                seated[pos].append(member)

    return seated, unassigned
