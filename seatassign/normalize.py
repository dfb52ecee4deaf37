"""Preference normalization for seatassign."""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from seatassign.errors import InputError, MalformedPreferenceData
from seatassign.models import PreferenceGraph, PreferenceRecord

logger = logging.getLogger(__name__)


def canonical_name(name: str) -> str:
    """Normalize a student name for matching (trim + lowercase)."""
    return name.strip().lower()


def _item_name(item: Any) -> str | None:
    if isinstance(item, str):
        return item if item.strip() else None
    if isinstance(item, Mapping):
        name = item.get("name")
        if isinstance(name, str) and name.strip():
            return name
    return None


def _item_rank(item: Any) -> float:
    if isinstance(item, Mapping):
        rank = item.get("rank")
        if isinstance(rank, int) and not isinstance(rank, bool):
            return rank
    return float("inf")


def extract_targets(raw: Any) -> list[str]:
    """
    Decode a preference payload into an ordered list of target names.

    Accepts every shape the preference form has stored over time:
      - None (nothing submitted)
      - ["Bob", "Carol"]
      - [{"name": "Bob", "rank": 1}, {"name": "Carol", "rank": 2}]
      - {"students": [...]} wrapping either of the list forms

    Unusable list items are skipped. Any other payload raises
    MalformedPreferenceData.
    """
    if raw is None:
        return []

    if isinstance(raw, Mapping):
        if "students" not in raw:
            raise MalformedPreferenceData(f"unrecognized preference object: {sorted(raw)!r}")
        raw = raw["students"]
        if raw is None:
            return []

    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise MalformedPreferenceData(f"unrecognized preference payload: {type(raw).__name__}")

    # Stable sort: ranked entries first in rank order, unranked keep their position
    ordered = sorted(raw, key=_item_rank)
    names: list[str] = []
    for item in ordered:
        name = _item_name(item)
        if name is not None:
            names.append(name.strip())
    return names


def build_preference_graph(
    records: list[PreferenceRecord],
    max_preferences: int | None = None,
) -> PreferenceGraph:
    """
    Build the directed preference graph from one record per student.

    Names are canonicalized, self references dropped, and duplicates
    collapsed. A record with an unrecognized payload is treated as
    "no preferences" for that student.
    """
    graph = PreferenceGraph()

    for record in records:
        student = canonical_name(record.student_name or "")
        if not student:
            continue

        try:
            names = extract_targets(record.targets)
        except MalformedPreferenceData as e:
            logger.warning("Ignoring preferences of %r: %s", record.student_name, e)
            graph.malformed.append(student)
            names = []

        targets: list[str] = []
        for name in names:
            target = canonical_name(name)
            if target == student or target in targets:
                continue
            targets.append(target)

        if max_preferences is not None:
            targets = targets[:max_preferences]

        graph.edges.setdefault(student, set()).update(targets)

    return graph


def _timestamp(record: PreferenceRecord) -> datetime | None:
    """Parse a submission time as aware UTC; naive times are taken as UTC."""
    if not record.submitted_at:
        return None
    try:
        parsed = datetime.fromisoformat(record.submitted_at)
    except ValueError as e:
        raise InputError(
            f"Preferences of {record.student_name!r} have an unreadable submission time "
            f"{record.submitted_at!r}"
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def latest_preferences(records: list[PreferenceRecord]) -> list[PreferenceRecord]:
    """
    Keep the most recent submission per student.

    Later timestamps win; when a timestamp is missing or equal, the record
    appearing later in the list wins.
    Raises InputError for a submission time that is not ISO 8601.
    """
    latest: dict[str, tuple[PreferenceRecord, datetime | None]] = {}

    for record in records:
        key = canonical_name(record.student_name or "")
        new_ts = _timestamp(record)
        current = latest.get(key)
        if current is None:
            latest[key] = (record, new_ts)
            continue
        current_ts = current[1]
        if new_ts is None or current_ts is None or new_ts >= current_ts:
            latest[key] = (record, new_ts)

    return [record for record, _ in latest.values()]
