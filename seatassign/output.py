"""Output formatting for seatassign."""

import csv
import io
from datetime import datetime, timezone
from typing import Any

from seatassign.models import OptimizationResult


def format_results(result: OptimizationResult, class_name: str | None = None) -> str:
    """Format an optimization result for display."""
    lines: list[str] = []
    arrangement = result.arrangement
    stats = result.stats

    title = f"=== Seating Chart: {class_name} ===" if class_name else "=== Seating Chart ==="
    lines.append(title)
    if result.fallback:
        lines.append("Random arrangement (no preferences to optimize)")
    else:
        lines.append(
            f"Preferences satisfied: {stats.satisfied}/{stats.total} ({stats.percentage}%)"
        )
        lines.append(
            f"Candidate {result.selected_index + 1} of {result.candidates_generated}"
        )
    if result.constraint_violations:
        lines.append(f"Pairings not honored: {result.constraint_violations}")
    lines.append("")

    for table in arrangement.tables:
        filled = len(table.students)
        lines.append(f"--- Table {table.table_index + 1} ({filled}/{table.capacity} seats) ---")
        for seat_number, student in enumerate(table.seats, start=1):
            occupant = student.name if student is not None else "(empty)"
            lines.append(f"  {seat_number}. {occupant}")
        lines.append("")

    if arrangement.unassigned:
        lines.append("=== Without a Seat ===")
        for student in arrangement.unassigned:
            lines.append(f"  - {student.name}")
        lines.append("")

    if result.notices:
        lines.append("=== Notes ===")
        for notice in result.notices:
            lines.append(f"  * {notice}")

    return "\n".join(lines).rstrip() + "\n"


def arrangement_to_dict(
    result: OptimizationResult,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """Build the record stored for a generated arrangement."""
    generated_at = generated_at or datetime.now(timezone.utc)
    return {
        "tables": [
            {
                "tableIndex": table.table_index,
                "seats": [
                    {"studentId": student.id if student is not None else None}
                    for student in table.seats
                ],
            }
            for table in result.arrangement.tables
        ],
        "unassigned": [student.id for student in result.arrangement.unassigned],
        "satisfaction": {
            "satisfiedCount": result.stats.satisfied,
            "totalCount": result.stats.total,
            "percentage": result.stats.percentage,
        },
        "generatedAt": generated_at.isoformat(),
    }


def format_arrangement_csv(result: OptimizationResult) -> str:
    """Format the seating chart as CSV for export."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["table", "seat", "student_id", "student_name"])

    for table in result.arrangement.tables:
        for seat_number, student in enumerate(table.seats, start=1):
            if student is None:
                continue
            writer.writerow([table.table_index + 1, seat_number, student.id, student.name])

    # Students without a seat have blank table and seat columns
    for student in result.arrangement.unassigned:
        writer.writerow(["", "", student.id, student.name])

    return buffer.getvalue()
