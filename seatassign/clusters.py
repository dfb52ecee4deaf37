"""Preference-connected cluster building for seatassign."""

from collections import defaultdict

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components

from seatassign.models import Constraints, PreferenceGraph


def forced_groups(names: list[str], pairs: list[tuple[str, str]]) -> dict[str, list[str]]:
    """
    Group students that must sit together.

    Pairs are joined transitively (A with B and B with C puts all three in
    one group). Returns a mapping from every name to its group, members in
    ``names`` order; unpaired students map to a group of one.
    """
    if not names:
        return {}

    index = {name: i for i, name in enumerate(names)}
    known = [(index[a], index[b]) for a, b in pairs if a in index and b in index]
    rows = np.array([a for a, _ in known], dtype=np.intp)
    cols = np.array([b for _, b in known], dtype=np.intp)
    graph = csr_matrix(
        (np.ones(len(known), dtype=np.int8), (rows, cols)),
        shape=(len(names), len(names)),
    )
    _, labels = connected_components(graph, directed=False)

    members: dict[int, list[str]] = defaultdict(list)
    for name, label in zip(names, labels):
        members[int(label)].append(name)
    return {name: members[int(label)] for name, label in zip(names, labels)}


def separations(pairs: list[tuple[str, str]]) -> dict[str, set[str]]:
    """Map each student to the students they must not share a table with."""
    apart: dict[str, set[str]] = defaultdict(set)
    for a, b in pairs:
        if a != b:
            apart[a].add(b)
            apart[b].add(a)
    return apart


def build_clusters(
    names: list[str],
    graph: PreferenceGraph,
    constraints: Constraints | None = None,
) -> list[list[str]]:
    """
    Partition the roster into preference-connected clusters.

    Students who named the most classmates seed clusters first (ties keep
    roster order); each seed claims every named classmate still unclaimed.
    """
    constraints = constraints or Constraints()
    position = {name: i for i, name in enumerate(names)}
    groups = forced_groups(names, constraints.must_sit_together)
    apart = separations(constraints.must_not_sit_together)
    limit = (
        None if constraints.max_friends_per_table is None else 1 + constraints.max_friends_per_table
    )

    claimed: set[str] = set()
    clusters: list[list[str]] = []

    def conflicts(group: list[str], cluster: list[str]) -> bool:
        return any(apart[member] & set(cluster) for member in group if member in apart)

    for seed in sorted(names, key=lambda n: -graph.out_degree(n)):
        if seed in claimed:
            continue

        cluster = [m for m in groups[seed] if m not in claimed]
        claimed.update(cluster)

        wanted = sorted((t for t in graph.targets(seed) if t in position), key=position.__getitem__)
        for target in wanted:
            if target in claimed:
                continue
            if limit is not None and len(cluster) >= limit:
                break
            group = [m for m in groups[target] if m not in claimed]
            if conflicts(group, cluster):
                continue
            cluster.extend(group)
            claimed.update(group)

        clusters.append(cluster)

    for name in names:
        if name not in claimed:
            clusters.append([name])
            claimed.add(name)

    return clusters
