"""
Preferencias de horario por docente.

``TimeSlotMask`` guarda dos conjuntos disjuntos de slots (preferidos y
bloqueados). Es inmutable: cada operación devuelve un objeto nuevo, de modo
que la UI puede comparar estados por identidad.

Invariante: ``preferred & blocked == 0``.
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from .config import ScheduleConfig
from .encoding import bit_position, check_width, is_set, mask_from_str, mask_to_str, set_bit, slots_in_mask
from .errors import ConfigError, InvalidMask, InvalidSlot
from .model import TimeSlot

PREFERRED = "preferred"
BLOCKED = "blocked"
FREE = "free"

# 0=sin preferencia, 1=evita primeras horas, 2=evita últimas horas
TIME_BIAS_VALUES = (0, 1, 2)


@dataclass(frozen=True)
class TimeSlotMask:
    cycle_days: int
    periods_per_day: int
    preferred: int = 0
    blocked: int = 0

    def __post_init__(self):
        if self.cycle_days <= 0 or self.periods_per_day <= 0:
            raise ConfigError(
                f"Dimensiones de ciclo inválidas: {self.cycle_days} días x {self.periods_per_day} periodos"
            )
        check_width(self.preferred, self.total_slots)
        check_width(self.blocked, self.total_slots)
        if self.preferred & self.blocked:
            raise InvalidMask("Un slot no puede ser preferido y bloqueado a la vez")

    @classmethod
    def from_config(cls, cfg: ScheduleConfig, preferred: int = 0, blocked: int = 0) -> "TimeSlotMask":
        return cls(cfg.cycle_days, cfg.periods_per_day, preferred, blocked)

    @property
    def total_slots(self) -> int:
        return self.cycle_days * self.periods_per_day

    def _index(self, day: int, period: int) -> int:
        return bit_position(day, period, self.periods_per_day, self.cycle_days)

    def set_preferred(self, day: int, period: int, on: bool = True) -> "TimeSlotMask":
        idx = self._index(day, period)
        blocked = set_bit(self.blocked, idx, False) if on else self.blocked
        return replace(self, preferred=set_bit(self.preferred, idx, on), blocked=blocked)

    def set_blocked(self, day: int, period: int, on: bool = True) -> "TimeSlotMask":
        idx = self._index(day, period)
        preferred = set_bit(self.preferred, idx, False) if on else self.preferred
        return replace(self, preferred=preferred, blocked=set_bit(self.blocked, idx, on))

    def toggle(self, day: int, period: int, target: str) -> "TimeSlotMask":
        """Pone el slot en ``target``; si ya estaba ahí, lo deja libre."""
        if target == PREFERRED:
            return self.set_preferred(day, period, not self.is_preferred(day, period))
        if target == BLOCKED:
            return self.set_blocked(day, period, not self.is_blocked(day, period))
        raise ValueError(f"Destino desconocido: {target!r}")

    def set_state(self, day: int, period: int, state: str) -> "TimeSlotMask":
        if state == PREFERRED:
            return self.set_preferred(day, period, True)
        if state == BLOCKED:
            return self.set_blocked(day, period, True)
        if state == FREE:
            return self.set_preferred(day, period, False).set_blocked(day, period, False)
        raise ValueError(f"Estado desconocido: {state!r}")

    def clear_all(self) -> "TimeSlotMask":
        return replace(self, preferred=0, blocked=0)

    def is_preferred(self, day: int, period: int) -> bool:
        return is_set(self.preferred, self._index(day, period))

    def is_blocked(self, day: int, period: int) -> bool:
        return is_set(self.blocked, self._index(day, period))

    def state_of(self, day: int, period: int) -> str:
        if self.is_preferred(day, period):
            return PREFERRED
        if self.is_blocked(day, period):
            return BLOCKED
        return FREE

    def has_any_preferred(self) -> bool:
        return self.preferred != 0

    def has_any_blocked(self) -> bool:
        return self.blocked != 0

    def preferred_slots(self) -> List[TimeSlot]:
        return slots_in_mask(self.preferred, self.periods_per_day)

    def blocked_slots(self) -> List[TimeSlot]:
        return slots_in_mask(self.blocked, self.periods_per_day)

    def to_payload(self) -> Dict[str, str]:
        return {
            "preferredSlots": mask_to_str(self.preferred),
            "blockedSlots": mask_to_str(self.blocked),
        }

    @classmethod
    def from_payload(cls, data: Dict[str, Any], cycle_days: int, periods_per_day: int) -> "TimeSlotMask":
        return cls(
            cycle_days,
            periods_per_day,
            preferred=mask_from_str(data.get("preferredSlots")),
            blocked=mask_from_str(data.get("blockedSlots")),
        )


# Alias funcionales (estado -> estado nuevo)
def set_preferred(state: TimeSlotMask, day: int, period: int, on: bool = True) -> TimeSlotMask:
    return state.set_preferred(day, period, on)


def set_blocked(state: TimeSlotMask, day: int, period: int, on: bool = True) -> TimeSlotMask:
    return state.set_blocked(day, period, on)


def clear_all(state: TimeSlotMask) -> TimeSlotMask:
    return state.clear_all()


def has_any_preferred(state: TimeSlotMask) -> bool:
    return state.has_any_preferred()


def has_any_blocked(state: TimeSlotMask) -> bool:
    return state.has_any_blocked()


@dataclass(frozen=True)
class TeacherPreference:
    teacher_id: int
    slots: TimeSlotMask
    time_bias: int = 0
    weight: int = 1

    def __post_init__(self):
        if self.time_bias not in TIME_BIAS_VALUES:
            raise ValueError(f"time_bias inválido para docente {self.teacher_id}: {self.time_bias}")
        if self.weight < 0:
            raise ValueError(f"weight negativo para docente {self.teacher_id}: {self.weight}")

    def with_slots(self, slots: TimeSlotMask) -> "TeacherPreference":
        return replace(self, slots=slots)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"teacherId": self.teacher_id}
        payload.update(self.slots.to_payload())
        payload["timeBias"] = self.time_bias
        payload["weight"] = self.weight
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any], cfg: ScheduleConfig) -> "TeacherPreference":
        return cls(
            teacher_id=int(data["teacherId"]),
            slots=TimeSlotMask.from_payload(data, cfg.cycle_days, cfg.periods_per_day),
            time_bias=int(data.get("timeBias", 0)),
            weight=int(data.get("weight", 1)),
        )


@dataclass(frozen=True)
class SubjectConstraint:
    """Slots donde una asignatura no se puede dictar (``forbiddenSlots``)."""
    subject_id: str
    cycle_days: int
    periods_per_day: int
    forbidden_slots: int = 0

    def __post_init__(self):
        if self.cycle_days <= 0 or self.periods_per_day <= 0:
            raise ConfigError("Dimensiones de ciclo inválidas")
        check_width(self.forbidden_slots, self.cycle_days * self.periods_per_day)

    def forbids(self, day: int, period: int) -> bool:
        return is_set(self.forbidden_slots, bit_position(day, period, self.periods_per_day, self.cycle_days))

    def with_forbidden(self, day: int, period: int, on: bool = True) -> "SubjectConstraint":
        idx = bit_position(day, period, self.periods_per_day, self.cycle_days)
        return replace(self, forbidden_slots=set_bit(self.forbidden_slots, idx, on))

    def to_payload(self) -> Dict[str, str]:
        return {"subjectId": self.subject_id, "forbiddenSlots": mask_to_str(self.forbidden_slots)}

    @classmethod
    def from_payload(cls, data: Dict[str, Any], cfg: ScheduleConfig) -> "SubjectConstraint":
        return cls(
            subject_id=str(data["subjectId"]),
            cycle_days=cfg.cycle_days,
            periods_per_day=cfg.periods_per_day,
            forbidden_slots=mask_from_str(data.get("forbiddenSlots")),
        )


__all__ = [
    "TimeSlotMask",
    "TeacherPreference",
    "SubjectConstraint",
    "InvalidSlot",
    "set_preferred",
    "set_blocked",
    "clear_all",
    "has_any_preferred",
    "has_any_blocked",
    "PREFERRED",
    "BLOCKED",
    "FREE",
]
