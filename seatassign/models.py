"""Data models for seatassign."""

from dataclasses import dataclass, field
from typing import Any, Literal


@dataclass(frozen=True)
class Student:
    """A student on a class roster."""

    id: str
    name: str


@dataclass(frozen=True)
class Table:
    """A table from the active layout."""

    index: int
    capacity: int


@dataclass
class PreferenceRecord:
    """The latest preference submission of one student."""

    student_name: str
    targets: Any = None  # raw payload: list of names, list of {name, rank}, or {students: [...]}
    gender: str | None = None
    seating_position: str | None = None
    avoid: list[str] = field(default_factory=list)
    submitted_at: str | None = None


@dataclass
class PreferenceGraph:
    """Directed "wants to sit with" edges keyed by canonical name."""

    edges: dict[str, set[str]] = field(default_factory=dict)
    malformed: list[str] = field(default_factory=list)  # students whose record was unreadable

    def targets(self, name: str) -> set[str]:
        return self.edges.get(name, set())

    def out_degree(self, name: str) -> int:
        return len(self.edges.get(name, ()))

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.edges.values())


@dataclass
class Constraints:
    """Teacher-defined hard constraints and grouping options."""

    must_sit_together: list[tuple[str, str]] = field(default_factory=list)
    must_not_sit_together: list[tuple[str, str]] = field(default_factory=list)
    max_friends_per_table: int | None = None  # None = no limit on preference-built clusters

    def is_empty(self) -> bool:
        return not self.must_sit_together and not self.must_not_sit_together


@dataclass
class TableAssignment:
    """The seats of one table; None marks an empty seat."""

    table_index: int
    capacity: int
    seats: list[Student | None] = field(default_factory=list)

    @property
    def students(self) -> list[Student]:
        return [s for s in self.seats if s is not None]


@dataclass
class Arrangement:
    """Students assigned to table seats, plus anyone who did not fit."""

    tables: list[TableAssignment]
    unassigned: list[Student] = field(default_factory=list)

    def seated(self) -> list[Student]:
        return [s for table in self.tables for s in table.students]


@dataclass(frozen=True)
class SatisfactionStats:
    """How many preference edges an arrangement satisfies."""

    satisfied: int
    total: int
    percentage: int


@dataclass
class OptimizationResult:
    """Result of the optimization."""

    arrangement: Arrangement
    stats: SatisfactionStats
    candidates_generated: int
    selected_index: int
    fallback: bool = False  # True when no preferences existed and seats were filled randomly
    constraint_violations: int = 0
    notices: list[str] = field(default_factory=list)


Priority = Literal["student", "teacher"]


@dataclass
class ClassSetup:
    """Everything loaded from a class file."""

    name: str
    students: list[Student]
    tables: list[Table]
    preferences: list[PreferenceRecord] = field(default_factory=list)
    constraints: Constraints = field(default_factory=Constraints)
    max_preferences: int | None = None
    priority: Priority = "student"
