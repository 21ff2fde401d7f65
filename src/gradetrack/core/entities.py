from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


class Semester(str, Enum):
    FIRST = "FIRST"
    SECOND = "SECOND"

    @property
    def order(self) -> int:
        return 0 if self is Semester.FIRST else 1


class Level(str, Enum):
    LEVEL_100 = "LEVEL_100"
    LEVEL_200 = "LEVEL_200"
    LEVEL_300 = "LEVEL_300"
    LEVEL_400 = "LEVEL_400"
    LEVEL_500 = "LEVEL_500"

    @property
    def number(self) -> int:
        return int(self.value.split("_")[1])

    def next_level(self) -> Optional["Level"]:
        members = list(Level)
        index = members.index(self)
        if index == len(members) - 1:
            return None
        return members[index + 1]

    @classmethod
    def parse(cls, value: Union[str, int, "Level"]) -> "Level":
        """Accept ``LEVEL_200``, ``"200"`` or ``200``."""
        if isinstance(value, Level):
            return value
        text = str(value).strip().upper()
        if not text.startswith("LEVEL_"):
            text = f"LEVEL_{text}"
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(f"Unsupported level: {value!r}") from exc


GRADUATION = "GRADUATION"


@dataclass(frozen=True)
class GradeInfo:
    grade: Grade
    points: float
    is_pass: bool
    description: str


@dataclass(frozen=True)
class CourseResult:
    id: str
    grade: str
    credit_unit: int
    academic_year: str
    semester: Semester
    level: Level
    course_code: str
    status: str

    def __post_init__(self) -> None:
        # Callers may hand in plain strings for the enum fields.
        semester = self.semester
        if not isinstance(semester, Semester):
            semester = Semester(str(semester).strip().upper())
        object.__setattr__(self, "semester", semester)
        object.__setattr__(self, "level", Level.parse(self.level))
        if not isinstance(self.credit_unit, int) or self.credit_unit < 1:
            raise ValueError(f"credit_unit must be a positive integer, got {self.credit_unit!r}")

    @property
    def session_key(self) -> str:
        return session_key(self.academic_year, self.semester)


def session_key(academic_year: str, semester: Semester) -> str:
    return f"{academic_year}-{semester.value}"


@dataclass(frozen=True)
class SessionGPA:
    academic_year: str
    semester: Semester
    gpa: float
    total_credits: int
    total_grade_points: float
    courses: Tuple[CourseResult, ...] = ()

    @property
    def key(self) -> str:
        return session_key(self.academic_year, self.semester)


@dataclass(frozen=True)
class LevelGPA:
    level: Level
    gpa: float
    total_credits: int
    total_grade_points: float
    sessions: Tuple[str, ...] = ()
    courses: Tuple[CourseResult, ...] = ()


@dataclass(frozen=True)
class GraduationRequirements:
    total_credits: int
    required_credits: int
    remaining_credits: int
    min_cgpa_required: float


@dataclass(frozen=True)
class Progression:
    current_level: Level
    # None once the student is at the terminal level.
    next_level: Optional[Level]
    credits_to_next_level: int
    can_graduate: bool
    graduation_requirements: GraduationRequirements


@dataclass(frozen=True)
class GradeStatistics:
    total_courses: int = 0
    passed_courses: int = 0
    weak_pass_courses: int = 0
    failed_courses: int = 0
    unrecognized_courses: int = 0
    total_credits: int = 0
    pass_rate: int = 0
    grade_distribution: Dict[str, int] = field(
        default_factory=lambda: {grade.value: 0 for grade in Grade}
    )


@dataclass(frozen=True)
class ComprehensiveGPA:
    cgpa: float
    total_credits: int
    total_grade_points: float
    session_gpas: Tuple[SessionGPA, ...]
    level_gpas: Tuple[LevelGPA, ...]
    progression: Progression
    statistics: GradeStatistics


@dataclass(frozen=True)
class GPATrend:
    trend: str
    change: float
    sessions: int


@dataclass(frozen=True)
class AcademicStanding:
    standing: str
    description: str
    color: str
    cgpa_range: str
