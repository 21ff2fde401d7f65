import csv
import io
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gradetrack.config.settings import Settings, settings
from gradetrack.core.entities import (
    GRADUATION,
    ComprehensiveGPA,
    CourseResult,
    Level,
    LevelGPA,
    Semester,
    SessionGPA,
)
from gradetrack.core.gpa import approved_results, calculate_comprehensive_gpa
from gradetrack.core.grades import grade_info

logger = logging.getLogger(__name__)


EXPORT_FORMATS = ("csv", "sessions", "json")


class TranscriptServiceError(Exception):
    pass


class CourseResultPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    grade: Optional[str] = ""
    credit_unit: int = Field(alias="creditUnit", ge=1)
    academic_year: str = Field(alias="academicYear", min_length=1)
    semester: Semester
    level: Level
    course_code: str = Field(default="", alias="courseCode")
    status: str

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("grade", mode="before")
    @classmethod
    def _coerce_grade(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("semester", mode="before")
    @classmethod
    def _normalize_semester(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Level:
        return Level.parse(value)

    def to_course_result(self) -> CourseResult:
        return CourseResult(
            id=self.id,
            grade=self.grade or "",
            credit_unit=self.credit_unit,
            academic_year=self.academic_year,
            semester=self.semester,
            level=self.level,
            course_code=self.course_code,
            status=self.status,
        )


def parse_course_results(rows: Iterable[Mapping[str, Any]]) -> List[CourseResult]:
    results: List[CourseResult] = []
    for index, row in enumerate(rows):
        try:
            payload = CourseResultPayload.model_validate(row)
        except ValidationError as exc:
            logger.warning("Skipping invalid result row %d: %s", index, exc.errors())
            continue
        results.append(payload.to_course_result())
    return results


def _course_to_dict(course: CourseResult) -> Dict[str, Any]:
    return {
        "id": course.id,
        "grade": course.grade,
        "creditUnit": course.credit_unit,
        "academicYear": course.academic_year,
        "semester": course.semester.value,
        "level": course.level.value,
        "courseCode": course.course_code,
        "status": course.status,
    }


def _session_to_dict(session: SessionGPA) -> Dict[str, Any]:
    return {
        "academicYear": session.academic_year,
        "semester": session.semester.value,
        "gpa": session.gpa,
        "totalCredits": session.total_credits,
        "totalGradePoints": session.total_grade_points,
        "courses": [_course_to_dict(c) for c in session.courses],
    }


def _level_to_dict(level: LevelGPA) -> Dict[str, Any]:
    return {
        "level": level.level.value,
        "gpa": level.gpa,
        "totalCredits": level.total_credits,
        "totalGradePoints": level.total_grade_points,
        "sessions": list(level.sessions),
        "courses": [_course_to_dict(c) for c in level.courses],
    }


def report_to_dict(report: ComprehensiveGPA) -> Dict[str, Any]:
    progression = report.progression
    requirements = progression.graduation_requirements
    stats = report.statistics
    return {
        "cgpa": report.cgpa,
        "totalCredits": report.total_credits,
        "totalGradePoints": report.total_grade_points,
        "sessionGPAs": [_session_to_dict(s) for s in report.session_gpas],
        "levelGPAs": [_level_to_dict(lg) for lg in report.level_gpas],
        "progression": {
            "currentLevel": progression.current_level.value,
            "nextLevel": progression.next_level.value if progression.next_level else GRADUATION,
            "creditsToNextLevel": progression.credits_to_next_level,
            "canGraduate": progression.can_graduate,
            "graduationRequirements": {
                "totalCredits": requirements.total_credits,
                "requiredCredits": requirements.required_credits,
                "remainingCredits": requirements.remaining_credits,
                "minCGPARequired": requirements.min_cgpa_required,
            },
        },
        "statistics": {
            "totalCourses": stats.total_courses,
            "passedCourses": stats.passed_courses,
            "failedCourses": stats.failed_courses,
            "weakPassCourses": stats.weak_pass_courses,
            "unrecognizedCourses": stats.unrecognized_courses,
            "passRate": stats.pass_rate,
            "gradeDistribution": dict(stats.grade_distribution),
        },
    }


def _write_csv(header: List[str], rows: List[List[Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


class TranscriptService:
    def __init__(self, config: Settings) -> None:
        self.settings = config

    @classmethod
    def from_settings(cls) -> "TranscriptService":
        return cls(settings)

    def build_report(self, rows: Iterable[Mapping[str, Any]]) -> ComprehensiveGPA:
        return calculate_comprehensive_gpa(parse_course_results(rows), self.settings)

    def export(self, rows: Iterable[Mapping[str, Any]], fmt: str = "csv") -> str:
        fmt = (fmt or "").strip().lower()
        if fmt not in EXPORT_FORMATS:
            raise TranscriptServiceError(
                f"Invalid format {fmt!r}. Use one of: {', '.join(EXPORT_FORMATS)}"
            )

        results = parse_course_results(rows)
        report = calculate_comprehensive_gpa(results, self.settings)

        if fmt == "json":
            return json.dumps(report_to_dict(report), indent=2)
        if fmt == "sessions":
            return self._sessions_csv(report)
        return self._courses_csv(report, approved_results(results, self.settings))

    @staticmethod
    def _sessions_csv(report: ComprehensiveGPA) -> str:
        header = [
            "Academic Year",
            "Semester",
            "Total Credits",
            "Total Grade Points",
            "GPA",
            "Course Count",
        ]
        rows = [
            [
                s.academic_year,
                s.semester.value,
                s.total_credits,
                s.total_grade_points,
                f"{s.gpa:.2f}",
                len(s.courses),
            ]
            for s in report.session_gpas
        ]
        return _write_csv(header, rows)

    @staticmethod
    def _courses_csv(report: ComprehensiveGPA, courses: List[CourseResult]) -> str:
        header = [
            "Current Level",
            "CGPA",
            "Total Credits",
            "Course Code",
            "Credit Unit",
            "Level",
            "Academic Year",
            "Semester",
            "Grade",
            "Grade Point",
            "Status",
        ]
        rows = []
        for course in courses:
            info = grade_info(course.grade)
            rows.append(
                [
                    report.progression.current_level.value,
                    f"{report.cgpa:.2f}",
                    report.total_credits,
                    course.course_code,
                    course.credit_unit,
                    course.level.value,
                    course.academic_year,
                    course.semester.value,
                    course.grade or "N/A",
                    info.points if info else "N/A",
                    course.status,
                ]
            )
        return _write_csv(header, rows)
