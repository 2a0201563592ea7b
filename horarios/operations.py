"""
Registros de operaciones sobre el horario.

Cada tipo de operación tiene su propio payload con lo mínimo necesario para
invertirla: un movimiento guarda origen y destino, un lote guarda sus
sub-operaciones en orden. El tipo del registro y la clase del payload deben
coincidir; cualquier otra combinación se rechaza al construir el registro.
"""
import random
import string
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple, Union

from .model import ScheduleEntry, TimeSlot


class OperationType(str, Enum):
    MOVE = "move"
    SWAP = "swap"
    SET_FIXED = "set_fixed"
    UNSET_FIXED = "unset_fixed"
    GENERATE = "generate"
    BATCH = "batch"


@dataclass(frozen=True)
class MoveData:
    entry: ScheduleEntry
    from_slot: TimeSlot
    to_slot: TimeSlot


@dataclass(frozen=True)
class SwapData:
    entry1: ScheduleEntry
    entry2: ScheduleEntry


@dataclass(frozen=True)
class FixedData:
    entry: ScheduleEntry


@dataclass(frozen=True)
class GenerateData:
    # Horario completo antes y después de generar
    old_schedule: Tuple[ScheduleEntry, ...]
    new_schedule: Tuple[ScheduleEntry, ...] = ()


@dataclass(frozen=True)
class BatchData:
    operations: Tuple["OperationRecord", ...]


OperationData = Union[MoveData, SwapData, FixedData, GenerateData, BatchData]

PAYLOAD_BY_TYPE = {
    OperationType.MOVE: MoveData,
    OperationType.SWAP: SwapData,
    OperationType.SET_FIXED: FixedData,
    OperationType.UNSET_FIXED: FixedData,
    OperationType.GENERATE: GenerateData,
    OperationType.BATCH: BatchData,
}

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_operation_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"op-{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class OperationRecord:
    id: str
    type: OperationType
    description: str
    timestamp: int
    data: OperationData
    reversible: bool = True

    def __post_init__(self):
        expected = PAYLOAD_BY_TYPE.get(self.type)
        if expected is None or not isinstance(self.data, expected):
            raise TypeError(
                f"Payload {type(self.data).__name__} no corresponde al tipo {self.type!r}"
            )

    @classmethod
    def create(cls, op_type: OperationType, description: str, data: OperationData,
               reversible: bool = True) -> "OperationRecord":
        return cls(
            id=generate_operation_id(),
            type=OperationType(op_type),
            description=description,
            timestamp=int(time.time() * 1000),
            data=data,
            reversible=reversible,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "description": self.description,
            "timestamp": self.timestamp,
            "data": _data_to_dict(self.data),
            "canUndo": self.reversible,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OperationRecord":
        op_type = OperationType(d["type"])
        return cls(
            id=str(d["id"]),
            type=op_type,
            description=str(d.get("description", "")),
            timestamp=int(d.get("timestamp", 0)),
            data=_data_from_dict(op_type, d["data"]),
            reversible=bool(d.get("canUndo", True)),
        )


def _data_to_dict(data: OperationData) -> Dict[str, Any]:
    if isinstance(data, MoveData):
        return {"move": {
            "entry": data.entry.to_dict(),
            "fromSlot": data.from_slot.to_dict(),
            "toSlot": data.to_slot.to_dict(),
        }}
    if isinstance(data, SwapData):
        return {"swap": {"entry1": data.entry1.to_dict(), "entry2": data.entry2.to_dict()}}
    if isinstance(data, FixedData):
        return {"fixed": {"entry": data.entry.to_dict()}}
    if isinstance(data, GenerateData):
        return {"generate": {
            "oldSchedule": [e.to_dict() for e in data.old_schedule],
            "newSchedule": [e.to_dict() for e in data.new_schedule],
        }}
    if isinstance(data, BatchData):
        return {"batch": {"operations": [op.to_dict() for op in data.operations]}}
    raise TypeError(f"Payload desconocido: {type(data).__name__}")


def _data_from_dict(op_type: OperationType, d: Dict[str, Any]) -> OperationData:
    if op_type == OperationType.MOVE:
        m = d["move"]
        return MoveData(
            entry=ScheduleEntry.from_dict(m["entry"]),
            from_slot=TimeSlot.from_dict(m["fromSlot"]),
            to_slot=TimeSlot.from_dict(m["toSlot"]),
        )
    if op_type == OperationType.SWAP:
        s = d["swap"]
        return SwapData(ScheduleEntry.from_dict(s["entry1"]), ScheduleEntry.from_dict(s["entry2"]))
    if op_type in (OperationType.SET_FIXED, OperationType.UNSET_FIXED):
        return FixedData(ScheduleEntry.from_dict(d["fixed"]["entry"]))
    if op_type == OperationType.GENERATE:
        g = d["generate"]
        return GenerateData(
            old_schedule=tuple(ScheduleEntry.from_dict(e) for e in g.get("oldSchedule", [])),
            new_schedule=tuple(ScheduleEntry.from_dict(e) for e in g.get("newSchedule", [])),
        )
    return BatchData(tuple(OperationRecord.from_dict(op) for op in d["batch"]["operations"]))
