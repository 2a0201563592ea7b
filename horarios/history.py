"""
Historial de operaciones con deshacer/rehacer.

Pila lineal acotada de ``OperationRecord`` más un cursor:

- ``cursor`` apunta al último registro aplicado (-1 = nada aplicado).
- ``stack[:cursor + 1]`` es lo que se puede deshacer y ``stack[cursor + 1:]``
  lo que se puede rehacer.
- ``len(stack) <= max_size``; al excederlo se descartan los más antiguos y el
  cursor baja en la misma cantidad.

Mientras se aplica un undo/redo (``is_executing``) se rechazan otros
undo/redo (devuelven False) y también ``push`` (lanza ``HistoryBusy``).
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from .errors import BatchApplyFailed, ExternalApplyFailed, HistoryBusy, HistoryFormatError
from .operations import (
    BatchData,
    FixedData,
    GenerateData,
    MoveData,
    OperationData,
    OperationRecord,
    OperationType,
    SwapData,
)
from .schedule import NullBackend, ScheduleBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 50

Listener = Callable[["OperationHistory"], None]


class OperationHistory:
    def __init__(self, backend: Optional[ScheduleBackend] = None, max_size: int = DEFAULT_MAX_SIZE,
                 autosave_path: Optional[str] = None):
        if max_size < 1:
            raise ValueError(f"max_size debe ser >= 1: {max_size}")
        self.backend = backend if backend is not None else NullBackend()
        self.max_size = max_size
        self.autosave_path = autosave_path
        self._stack: List[OperationRecord] = []
        self._cursor = -1
        self._executing = False
        self._listeners: List[Listener] = []

        if autosave_path and Path(autosave_path).exists():
            self.load(autosave_path)

    # --- Estado ---

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def size(self) -> int:
        return len(self._stack)

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def is_executing(self) -> bool:
        return self._executing

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 0 and not self._executing

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._stack) - 1 and not self._executing

    @property
    def current_operation(self) -> Optional[OperationRecord]:
        if 0 <= self._cursor < len(self._stack):
            return self._stack[self._cursor]
        return None

    @property
    def undo_list(self) -> Tuple[OperationRecord, ...]:
        """Registros deshacibles, el más reciente primero."""
        return tuple(reversed(self._stack[: self._cursor + 1]))

    @property
    def redo_list(self) -> Tuple[OperationRecord, ...]:
        return tuple(self._stack[self._cursor + 1:])

    def get_operation(self, op_id: str) -> Optional[OperationRecord]:
        for op in self._stack:
            if op.id == op_id:
                return op
        return None

    def get_history(self) -> Tuple[OperationRecord, ...]:
        return tuple(self._stack)

    # --- Observadores ---

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._listeners):
            cb(self)

    # --- Mutaciones ---

    def push(self, op_type: OperationType, description: str, data: OperationData,
             reversible: bool = True) -> str:
        if self._executing:
            raise HistoryBusy("No se puede registrar una operación durante un deshacer/rehacer")
        record = OperationRecord.create(op_type, description, data, reversible)
        logger.info("Registrar operación type=%s description=%r reversible=%s",
                    record.type.value, description, reversible)

        # Una edición nueva invalida la cola de rehacer
        if self._cursor < len(self._stack) - 1:
            removed = len(self._stack) - self._cursor - 1
            self._stack = self._stack[: self._cursor + 1]
            logger.debug("Descartar historial de rehacer: %d registros", removed)

        self._stack.append(record)
        self._cursor = len(self._stack) - 1

        if len(self._stack) > self.max_size:
            evicted = len(self._stack) - self.max_size
            self._stack = self._stack[evicted:]
            self._cursor -= evicted
            logger.debug("Recortar historial: max_size=%d descartados=%d", self.max_size, evicted)

        self._autosave()
        self._notify()
        return record.id

    def undo(self) -> bool:
        if not self.can_undo:
            logger.warning("No hay operación para deshacer")
            return False
        record = self._stack[self._cursor]
        if not record.reversible:
            logger.warning("La operación no se puede deshacer: %s", record.description)
            return False

        logger.info("Deshacer type=%s description=%r", record.type.value, record.description)
        self._executing = True
        try:
            self._apply(record, undo=True)
        finally:
            self._executing = False

        self._cursor -= 1
        logger.info("Deshacer OK cursor=%d", self._cursor)
        self._autosave()
        self._notify()
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            logger.warning("No hay operación para rehacer")
            return False
        record = self._stack[self._cursor + 1]

        logger.info("Rehacer type=%s description=%r", record.type.value, record.description)
        self._executing = True
        try:
            self._apply(record, undo=False)
        finally:
            self._executing = False

        self._cursor += 1
        logger.info("Rehacer OK cursor=%d", self._cursor)
        self._autosave()
        self._notify()
        return True

    def clear(self) -> None:
        if self._executing:
            raise HistoryBusy("No se puede limpiar el historial durante un deshacer/rehacer")
        logger.info("Limpiar historial (%d registros)", len(self._stack))
        self._stack = []
        self._cursor = -1
        self._autosave()
        self._notify()

    # --- Aplicación de efectos ---

    def _leaves(self, record: OperationRecord, undo: bool) -> Iterator[OperationRecord]:
        # Un lote se deshace en orden inverso y se rehace en el orden original
        if isinstance(record.data, BatchData):
            children = reversed(record.data.operations) if undo else record.data.operations
            for child in children:
                yield from self._leaves(child, undo)
        else:
            yield record

    def _apply(self, record: OperationRecord, undo: bool) -> None:
        action = "deshacer" if undo else "rehacer"
        applied = 0
        try:
            for leaf in self._leaves(record, undo):
                self._apply_leaf(leaf, undo)
                applied += 1
        except Exception as exc:
            logger.error("Fallo al %s %r (aplicados=%d)", action, record.description, applied, exc_info=True)
            if record.type == OperationType.BATCH:
                raise BatchApplyFailed(
                    f"Fallo al {action} el lote {record.description!r} tras {applied} sub-operaciones",
                    record=record,
                    applied=applied,
                ) from exc
            raise ExternalApplyFailed(f"Fallo al {action} {record.description!r}", record=record) from exc

    def _apply_leaf(self, record: OperationRecord, undo: bool) -> None:
        data = record.data
        if isinstance(data, MoveData):
            if undo:
                self.backend.move_entry(data.entry, data.to_slot, data.from_slot)
            else:
                self.backend.move_entry(data.entry, data.from_slot, data.to_slot)
        elif isinstance(data, SwapData):
            self.backend.swap_entries(data.entry1, data.entry2)
        elif isinstance(data, FixedData):
            # Deshacer "fijar" libera; deshacer "liberar" vuelve a fijar
            fix = (record.type == OperationType.SET_FIXED) != undo
            if fix:
                self.backend.set_fixed(data.entry)
            else:
                self.backend.unset_fixed(data.entry)
        elif isinstance(data, GenerateData):
            self.backend.restore_schedule(data.old_schedule if undo else data.new_schedule)
        else:
            raise TypeError(f"Payload desconocido: {type(data).__name__}")

    # --- Exportación / persistencia ---

    def export_history(self) -> str:
        data = {
            "historyStack": [op.to_dict() for op in self._stack],
            "currentIndex": self._cursor,
            "exportedAt": datetime.now().isoformat(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_history(self, text: str, strict: bool = False) -> bool:
        """
        Reemplaza el historial con el contenido exportado.

        Con ``strict=False`` un formato inválido se registra en el log y
        devuelve False sin tocar el estado; con ``strict=True`` se lanza
        ``HistoryFormatError``.
        """
        if self._executing:
            raise HistoryBusy("No se puede importar durante un deshacer/rehacer")
        try:
            stack, cursor = _parse_export(text)
        except HistoryFormatError:
            logger.error("Importación de historial inválida", exc_info=True)
            if strict:
                raise
            return False

        if len(stack) > self.max_size:
            evicted = len(stack) - self.max_size
            stack = stack[evicted:]
            cursor -= evicted
        self._stack = stack
        self._cursor = max(-1, min(cursor, len(stack) - 1))
        logger.info("Historial importado: %d registros cursor=%d", len(stack), self._cursor)
        self._autosave()
        self._notify()
        return True

    def save(self, path: str) -> None:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            f.write(self.export_history())
        logger.debug("Historial guardado en %s", out)

    def load(self, path: str) -> bool:
        src = Path(path)
        if not src.exists():
            logger.debug("No hay historial guardado en %s", src)
            return False
        with open(src, "r", encoding="utf-8") as f:
            text = f.read()
        # Evita que la importación reescriba el mismo archivo
        autosave, self.autosave_path = self.autosave_path, None
        try:
            return self.import_history(text)
        finally:
            self.autosave_path = autosave

    def _autosave(self) -> None:
        if not self.autosave_path:
            return
        try:
            self.save(self.autosave_path)
        except OSError:
            logger.error("No se pudo guardar el historial en %s", self.autosave_path, exc_info=True)


def _parse_export(text: str) -> Tuple[List[OperationRecord], int]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise HistoryFormatError("El historial no es JSON válido") from exc
    if not isinstance(data, dict) or not isinstance(data.get("historyStack"), list):
        raise HistoryFormatError("Formato de historial inválido: falta historyStack")
    try:
        stack = [OperationRecord.from_dict(op) for op in data["historyStack"]]
        cursor = data.get("currentIndex")
        cursor = -1 if cursor is None else int(cursor)
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise HistoryFormatError(f"Registro de historial inválido: {exc}") from exc
    return stack, cursor
