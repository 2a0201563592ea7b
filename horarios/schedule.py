"""
Colaborador de persistencia del horario.

``OperationHistory`` no sabe mover clases: delega cada efecto (mover,
intercambiar, fijar, restaurar) en un ``ScheduleBackend``. Aquí están el
protocolo, un backend nulo, un horario en memoria que sirve de referencia y
``ScheduleEditor``, que aplica una edición y la registra en el historial.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from .errors import HistoryBusy
from .model import ScheduleEntry, TimeSlot
from .operations import BatchData, FixedData, GenerateData, MoveData, OperationRecord, OperationType, SwapData

logger = logging.getLogger(__name__)


class ScheduleBackend(Protocol):
    def move_entry(self, entry: ScheduleEntry, source: TimeSlot, target: TimeSlot) -> None: ...

    def swap_entries(self, entry1: ScheduleEntry, entry2: ScheduleEntry) -> None: ...

    def set_fixed(self, entry: ScheduleEntry) -> None: ...

    def unset_fixed(self, entry: ScheduleEntry) -> None: ...

    def restore_schedule(self, entries: Sequence[ScheduleEntry]) -> None: ...


class NullBackend:
    """No persiste nada; solo deja rastro en el log."""

    def move_entry(self, entry, source, target):
        logger.debug("move_entry %s: %s -> %s", entry.key, source, target)

    def swap_entries(self, entry1, entry2):
        logger.debug("swap_entries %s <-> %s", entry1.key, entry2.key)

    def set_fixed(self, entry):
        logger.debug("set_fixed %s", entry.key)

    def unset_fixed(self, entry):
        logger.debug("unset_fixed %s", entry.key)

    def restore_schedule(self, entries):
        logger.debug("restore_schedule (%d entradas)", len(entries))


SlotKey = Tuple[int, str, int, TimeSlot]


def _slot_key(entry: ScheduleEntry, slot: Optional[TimeSlot] = None) -> SlotKey:
    return (entry.class_id, entry.subject_id, entry.teacher_id, slot or entry.time_slot)


class InMemorySchedule:
    """
    Horario en memoria indexado por (clase, asignatura, docente, slot).

    Una misma asignatura puede tener varias sesiones a la semana, por eso el
    slot forma parte de la clave. Las entradas desconocidas lanzan KeyError.
    """

    def __init__(self, entries: Iterable[ScheduleEntry] = ()):
        self._entries: Dict[SlotKey, ScheduleEntry] = {}
        for e in entries:
            self.add(e)

    def add(self, entry: ScheduleEntry) -> None:
        key = _slot_key(entry)
        if key in self._entries:
            raise ValueError(f"Entrada duplicada: {key}")
        self._entries[key] = entry

    def entries(self) -> List[ScheduleEntry]:
        return sorted(
            self._entries.values(),
            key=lambda e: (e.time_slot.day, e.time_slot.period, e.class_id, e.subject_id),
        )

    def snapshot(self) -> Tuple[ScheduleEntry, ...]:
        return tuple(self.entries())

    def entry_at(self, class_id: int, slot: TimeSlot) -> Optional[ScheduleEntry]:
        for e in self._entries.values():
            if e.class_id == class_id and e.time_slot == slot:
                return e
        return None

    def find(self, entry: ScheduleEntry, slot: Optional[TimeSlot] = None) -> ScheduleEntry:
        key = _slot_key(entry, slot)
        if key not in self._entries:
            raise KeyError(f"Entrada no encontrada en el horario: {key}")
        return self._entries[key]

    def _replace(self, old: ScheduleEntry, new: ScheduleEntry) -> None:
        del self._entries[_slot_key(old)]
        self._entries[_slot_key(new)] = new

    def move_entry(self, entry: ScheduleEntry, source: TimeSlot, target: TimeSlot) -> None:
        current = self.find(entry, source)
        if target == current.time_slot:
            return
        occupant = self.entry_at(current.class_id, target)
        if occupant is not None:
            raise ValueError(
                f"El slot destino {target} ya está ocupado por {occupant.subject_id} en la clase {current.class_id}"
            )
        self._replace(current, _with_slot(current, target))

    def swap_entries(self, entry1: ScheduleEntry, entry2: ScheduleEntry) -> None:
        # Simétrico: sirve tanto para aplicar como para revertir el intercambio
        if entry1.key == entry2.key:
            return
        slots = (entry1.time_slot, entry2.time_slot)
        e1 = self._find_in(entry1, slots)
        e2 = self._find_in(entry2, slots)
        del self._entries[_slot_key(e1)]
        del self._entries[_slot_key(e2)]
        moved1 = _with_slot(e1, e2.time_slot)
        moved2 = _with_slot(e2, e1.time_slot)
        self._entries[_slot_key(moved1)] = moved1
        self._entries[_slot_key(moved2)] = moved2

    def _find_in(self, entry: ScheduleEntry, slots: Tuple[TimeSlot, TimeSlot]) -> ScheduleEntry:
        for slot in slots:
            key = _slot_key(entry, slot)
            if key in self._entries:
                return self._entries[key]
        raise KeyError(f"Entrada no encontrada en el horario: {entry.key}")

    def set_fixed(self, entry: ScheduleEntry) -> None:
        current = self.find(entry)
        self._replace(current, _with_fixed(current, True))

    def unset_fixed(self, entry: ScheduleEntry) -> None:
        current = self.find(entry)
        self._replace(current, _with_fixed(current, False))

    def restore_schedule(self, entries: Sequence[ScheduleEntry]) -> None:
        # Se arma aparte: ante un duplicado el horario actual queda intacto
        restored: Dict[SlotKey, ScheduleEntry] = {}
        for e in entries:
            key = _slot_key(e)
            if key in restored:
                raise ValueError(f"Entrada duplicada: {key}")
            restored[key] = e
        self._entries = restored

    def __len__(self) -> int:
        return len(self._entries)


def _with_slot(entry: ScheduleEntry, slot: TimeSlot) -> ScheduleEntry:
    return ScheduleEntry(entry.class_id, entry.subject_id, entry.teacher_id, slot, entry.is_fixed, entry.week_type)


def _with_fixed(entry: ScheduleEntry, fixed: bool) -> ScheduleEntry:
    return ScheduleEntry(entry.class_id, entry.subject_id, entry.teacher_id, entry.time_slot, fixed, entry.week_type)


class ScheduleEditor:
    """Aplica ediciones del usuario sobre ``schedule`` y las registra en ``history``."""

    def __init__(self, schedule: InMemorySchedule, history):
        self.schedule = schedule
        self.history = history
        self._pending: Optional[List[OperationRecord]] = None

    def _record(self, op_type: OperationType, description: str, data) -> Optional[str]:
        if self._pending is not None:
            self._pending.append(OperationRecord.create(op_type, description, data))
            return None
        return self.history.push(op_type, description, data)

    def _check_idle(self) -> None:
        if self.history.is_executing:
            raise HistoryBusy("Hay un deshacer/rehacer en curso")

    def move(self, entry: ScheduleEntry, to_slot: TimeSlot, description: str = "") -> Optional[str]:
        self._check_idle()
        current = self.schedule.find(entry)
        if to_slot == current.time_slot:
            return None
        self.schedule.move_entry(current, current.time_slot, to_slot)
        data = MoveData(entry=current, from_slot=current.time_slot, to_slot=to_slot)
        return self._record(OperationType.MOVE, description or f"Mover {current.subject_id}", data)

    def swap(self, entry1: ScheduleEntry, entry2: ScheduleEntry, description: str = "") -> Optional[str]:
        self._check_idle()
        e1 = self.schedule.find(entry1)
        e2 = self.schedule.find(entry2)
        self.schedule.swap_entries(e1, e2)
        text = description or f"Intercambiar {e1.subject_id} y {e2.subject_id}"
        return self._record(OperationType.SWAP, text, SwapData(e1, e2))

    def set_fixed(self, entry: ScheduleEntry, description: str = "") -> Optional[str]:
        self._check_idle()
        current = self.schedule.find(entry)
        self.schedule.set_fixed(current)
        return self._record(OperationType.SET_FIXED, description or f"Fijar {current.subject_id}",
                            FixedData(current))

    def unset_fixed(self, entry: ScheduleEntry, description: str = "") -> Optional[str]:
        self._check_idle()
        current = self.schedule.find(entry)
        self.schedule.unset_fixed(current)
        return self._record(OperationType.UNSET_FIXED, description or f"Liberar {current.subject_id}",
                            FixedData(current))

    def replace_all(self, entries: Sequence[ScheduleEntry], description: str = "Generar horario") -> Optional[str]:
        self._check_idle()
        old = self.schedule.snapshot()
        self.schedule.restore_schedule(entries)
        data = GenerateData(old_schedule=old, new_schedule=self.schedule.snapshot())
        return self._record(OperationType.GENERATE, description, data)

    @contextmanager
    def batch(self, description: str):
        """
        Agrupa las ediciones del bloque en un único registro BATCH.

        Si el bloque falla, lo ya aplicado se registra igual (marcado como
        incompleto) para que se pueda deshacer, y la excepción se propaga.
        """
        if self._pending is not None:
            raise RuntimeError("No se pueden anidar lotes en el editor")
        self._pending = []
        failed = False
        try:
            yield self
        except BaseException:
            failed = True
            raise
        finally:
            children, self._pending = self._pending, None
            if children:
                text = f"{description} (incompleto)" if failed else description
                self.history.push(OperationType.BATCH, text, BatchData(tuple(children)))
