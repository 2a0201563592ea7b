# horarios/report.py
from typing import List

import pandas as pd

from .config import ScheduleConfig
from .encoding import mask_to_grid
from .history import OperationHistory
from .preferences import TeacherPreference, TimeSlotMask

CELL_SYMBOLS = {"preferred": "+", "blocked": "x", "free": "."}


def _period_columns(cfg: ScheduleConfig) -> List[str]:
    return [f"P{p + 1}" for p in range(cfg.periods_per_day)]


def grid_frame(mask: int, cfg: ScheduleConfig) -> pd.DataFrame:
    """Matriz 0/1 de una máscara: filas = días, columnas = periodos."""
    grid = mask_to_grid(mask, cfg.cycle_days, cfg.periods_per_day)
    return pd.DataFrame(grid, index=cfg.labels(), columns=_period_columns(cfg))


def preference_frame(state: TimeSlotMask, cfg: ScheduleConfig) -> pd.DataFrame:
    rows = [
        [CELL_SYMBOLS[state.state_of(d, p)] for p in range(cfg.periods_per_day)]
        for d in range(cfg.cycle_days)
    ]
    return pd.DataFrame(rows, index=cfg.labels(), columns=_period_columns(cfg))


def payload_frame(preferences: List[TeacherPreference]) -> pd.DataFrame:
    columns = ["teacherId", "preferredSlots", "blockedSlots", "timeBias", "weight"]
    return pd.DataFrame([p.to_payload() for p in preferences], columns=columns)


def history_frame(history: OperationHistory) -> pd.DataFrame:
    data = []
    for idx, op in enumerate(history.get_history()):
        data.append(
            {
                "index": idx,
                "id": op.id,
                "type": op.type.value,
                "description": op.description,
                "timestamp": pd.to_datetime(op.timestamp, unit="ms"),
                "reversible": op.reversible,
                "applied": idx <= history.cursor,
            }
        )
    return pd.DataFrame(data, columns=["index", "id", "type", "description", "timestamp", "reversible", "applied"])
