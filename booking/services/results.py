"""
results.py
----------
Values returned by the booking engine. Rule violations are always returned
as data, never raised.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ValidationError:
    """A blocking problem: the booking must not be committed."""

    code: str
    message: str

    def __str__(self):
        return self.message


@dataclass(frozen=True)
class ValidationWarning:
    """An advisory note: the booking may still be committed."""

    code: str
    message: str

    def __str__(self):
        return self.message


@dataclass
class ValidationResult:
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    conflicts: list = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, code: str, message: str) -> None:
        self.errors.append(ValidationError(code, message))

    def warn(self, code: str, message: str) -> None:
        self.warnings.append(ValidationWarning(code, message))

    @property
    def error_messages(self) -> list:
        return [e.message for e in self.errors]

    @property
    def warning_messages(self) -> list:
        return [w.message for w in self.warnings]

    def as_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": [{"code": e.code, "message": e.message} for e in self.errors],
            "warnings": [{"code": w.code, "message": w.message} for w in self.warnings],
            "conflicts": [
                {
                    "id": r.id,
                    "room_id": r.room_id,
                    "staff_id": r.staff_id,
                    "date": r.date.isoformat(),
                    "start": r.start,
                    "duration": r.duration,
                }
                for r in self.conflicts
            ],
        }


@dataclass(frozen=True)
class CapabilityCheck:
    ok: bool
    reasons: tuple = ()


@dataclass(frozen=True)
class ScheduleCheck:
    ok: bool
    reasons: tuple = ()
    day_name: str = ""


@dataclass(frozen=True)
class RoomAssignment:
    room: Optional[object]
    reason: str
    errors: tuple = ()


@dataclass(frozen=True)
class LegResult:
    """Per-leg outcome reported by a couples commit."""

    booking_id: object
    room_id: object
    success: bool
    error_message: Optional[str] = None


@dataclass(frozen=True)
class AdvisoryResult:
    """Answer of the non-authoritative pre-commit availability check."""

    is_available: bool
    error_message: Optional[str] = None
