"""Pairwise affinity scoring for seatassign."""

import numpy as np

from seatassign.models import PreferenceGraph


def affinity(a: str, b: str, graph: PreferenceGraph) -> int:
    """
    Score how much two students want to sit together.

    +1 if a named b, +1 if b named a: mutual preference scores 2,
    one-directional 1, none 0.
    """
    score = 0
    if b in graph.targets(a):
        score += 1
    if a in graph.targets(b):
        score += 1
    return score


def affinity_matrix(names: list[str], graph: PreferenceGraph) -> np.ndarray:
    """
    Build the affinity score of every pair of roster students.

    Returns a symmetric integer matrix indexed like ``names`` where entry
    [i, j] equals ``affinity(names[i], names[j], graph)`` for i != j.
    """
    index = {name: i for i, name in enumerate(names)}
    adjacency = np.zeros((len(names), len(names)), dtype=np.int64)

    for source, targets in graph.edges.items():
        s_idx = index.get(source)
        if s_idx is None:
            continue
        for target in targets:
            t_idx = index.get(target)
            if t_idx is not None:
                adjacency[s_idx, t_idx] = 1

    return adjacency + adjacency.T
