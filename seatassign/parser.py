"""CSV and YAML parsing for seatassign."""

import csv
from pathlib import Path
from typing import Any

import yaml

from seatassign.models import ClassSetup, Constraints, PreferenceRecord, Student, Table

DEFAULT_MAX_PREFERENCES = 3


def parse_roster_csv(csv_path: Path) -> list[Student]:
    """
    Parse a roster CSV with ``id`` and ``name`` columns.

    Header matching ignores case and surrounding spaces. Rows without a name
    are skipped; a missing id falls back to the name.
    """
    students: list[Student] = []

    with csv_path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        columns = {(col or "").strip().lower(): col for col in reader.fieldnames or []}
        if "name" not in columns:
            raise ValueError(f"Roster CSV needs a 'name' column, found {reader.fieldnames}")
        name_col = columns["name"]
        id_col = columns.get("id")

        for row in reader:
            name = (row.get(name_col) or "").strip()
            if not name:
                continue
            student_id = (row.get(id_col) or "").strip() if id_col else ""
            students.append(Student(id=student_id or name, name=name))

    return students


def _parse_student(entry: Any) -> Student:
    if isinstance(entry, str):
        return Student(id=entry.strip(), name=entry.strip())
    name = str(entry["name"]).strip()
    return Student(id=str(entry.get("id", name)), name=name)


def _parse_table(position: int, entry: Any) -> Table:
    if isinstance(entry, int):
        return Table(index=position, capacity=entry)
    return Table(index=int(entry.get("index", position)), capacity=int(entry["capacity"]))


def _parse_pairs(entries: list[Any] | None, key: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for entry in entries or []:
        if isinstance(entry, dict):
            entry = [entry.get("student1"), entry.get("student2")]
        if not isinstance(entry, list) or len(entry) != 2 or not all(entry):
            raise ValueError(f"Each {key} entry needs exactly two student names, got {entry!r}")
        pairs.append((str(entry[0]), str(entry[1])))
    return pairs


def _parse_preference(entry: dict[str, Any]) -> PreferenceRecord:
    return PreferenceRecord(
        student_name=str(entry["student"]),
        targets=entry.get("preferences"),
        gender=entry.get("gender"),
        seating_position=entry.get("seating_position"),
        avoid=list(entry.get("avoid") or []),
        submitted_at=str(entry["submitted_at"]) if entry.get("submitted_at") else None,
    )


def parse_class_yaml(yaml_path: Path, roster: list[Student] | None = None) -> ClassSetup:
    """
    Parse a class file.

    ``roster`` replaces the file's ``students`` section when given (for
    rosters exported to CSV).
    """
    with yaml_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Class file must contain a mapping at the top level")

    settings = data.get("settings") or {}
    if roster is not None:
        students = roster
    else:
        students = [_parse_student(s) for s in data.get("students") or []]
    tables = [_parse_table(i, t) for i, t in enumerate(data.get("tables") or [])]
    preferences = [_parse_preference(p) for p in data.get("preferences") or []]

    max_friends = settings.get("max_friends_per_table", 2)
    constraints = Constraints(
        must_sit_together=_parse_pairs(settings.get("must_sit_together"), "must_sit_together"),
        must_not_sit_together=_parse_pairs(
            settings.get("must_not_sit_together"), "must_not_sit_together"
        ),
        max_friends_per_table=int(max_friends) if settings.get("avoid_large_groups") else None,
    )

    return ClassSetup(
        name=str(data.get("name", yaml_path.stem)),
        students=students,
        tables=tables,
        preferences=preferences,
        constraints=constraints,
        max_preferences=int(data.get("max_preferences", DEFAULT_MAX_PREFERENCES)),
        priority="teacher" if settings.get("prioritize_teacher_preferences") else "student",
    )


def create_class_template(output_path: Path, students: list[Student], table_count: int = 4):
    """Create a class file template listing the given roster."""
    template = {
        "name": "My Class",
        "max_preferences": DEFAULT_MAX_PREFERENCES,
        "tables": [{"capacity": 4} for _ in range(table_count)],
        "students": [{"id": s.id, "name": s.name} for s in students]
        or [{"id": "s1", "name": "Student Name"}],
        "preferences": [],
        "settings": {
            "avoid_large_groups": False,
            "max_friends_per_table": 2,
            "prioritize_teacher_preferences": False,
            "must_sit_together": [],
            "must_not_sit_together": [],
        },
    }

    # Add a comment header
    header = """\
# Class file for seatassign
# Describe your tables and roster, then paste in student preferences.
#
# tables: one entry per table, with its number of seats.
#
# preferences: the latest submission of each student, e.g.
#   - student: Alice
#     preferences:
#       - {name: Bob, rank: 1}
#       - {name: Carol, rank: 2}
#
# settings:
#   must_sit_together / must_not_sit_together: pairs of student names
#   avoid_large_groups: cap friend groups at max_friends_per_table
#   prioritize_teacher_preferences: rank pairings above student requests

"""

    with output_path.open("w", encoding="utf-8") as f:
        f.write(header)
        yaml.dump(template, f, default_flow_style=False, sort_keys=False)
