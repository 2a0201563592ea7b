# horarios/model.py
from dataclasses import dataclass
from typing import Any, Dict

DayIdx = int
PeriodIdx = int

WEEK_TYPES = ("Every", "Odd", "Even")


@dataclass(frozen=True)
class TimeSlot:
    day: DayIdx
    period: PeriodIdx

    def to_dict(self) -> Dict[str, int]:
        return {"day": self.day, "period": self.period}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TimeSlot":
        return cls(day=int(d["day"]), period=int(d["period"]))


@dataclass(frozen=True)
class ScheduleEntry:
    # Una clase de una asignatura con su docente en un slot
    class_id: int
    subject_id: str
    teacher_id: int
    time_slot: TimeSlot
    is_fixed: bool = False
    week_type: str = "Every"  # "Every", "Odd", "Even"

    def __post_init__(self):
        if self.week_type not in WEEK_TYPES:
            raise ValueError(f"weekType inválido: {self.week_type!r}")

    @property
    def key(self):
        return (self.class_id, self.subject_id, self.teacher_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classId": self.class_id,
            "subjectId": self.subject_id,
            "teacherId": self.teacher_id,
            "timeSlot": self.time_slot.to_dict(),
            "isFixed": self.is_fixed,
            "weekType": self.week_type,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScheduleEntry":
        return cls(
            class_id=int(d["classId"]),
            subject_id=str(d["subjectId"]),
            teacher_id=int(d["teacherId"]),
            time_slot=TimeSlot.from_dict(d["timeSlot"]),
            is_fixed=bool(d.get("isFixed", False)),
            week_type=str(d.get("weekType", "Every")),
        )
