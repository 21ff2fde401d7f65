from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    # Only results carrying this status take part in GPA computation.
    approved_status: str = os.getenv("GRADETRACK_APPROVED_STATUS", "SENATE_APPROVED")

    min_level_credits: int = _env_int("GRADETRACK_MIN_LEVEL_CREDITS", 20)
    credits_per_level: int = _env_int("GRADETRACK_CREDITS_PER_LEVEL", 24)

    graduation_required_credits: int = _env_int("GRADETRACK_GRADUATION_CREDITS", 120)
    graduation_min_cgpa: float = _env_float("GRADETRACK_GRADUATION_MIN_CGPA", 1.0)

    proceed_min_gpa: float = _env_float("GRADETRACK_PROCEED_MIN_GPA", 1.5)
    trend_threshold: float = _env_float("GRADETRACK_TREND_THRESHOLD", 0.1)


settings = Settings()
