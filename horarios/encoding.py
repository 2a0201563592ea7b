"""
Codifica y decodifica máscaras de slots semanales.

Una máscara es un ``int`` de Python (precisión arbitraria) donde el bit
``day * periods_per_day + period`` representa el slot (día, periodo).
Con 30 días x 12 periodos se llega a 360 bits, así que nunca se pasa por
``float``. Hacia la API externa la máscara viaja como cadena decimal.
"""
from typing import List, Optional

import numpy as np

from .errors import InvalidMask, InvalidSlot
from .model import TimeSlot


def bit_position(day: int, period: int, periods_per_day: int, cycle_days: Optional[int] = None) -> int:
    if not 0 <= period < periods_per_day:
        raise InvalidSlot(
            f"Periodo {period} fuera de rango [0, {periods_per_day})", day=day, period=period
        )
    if day < 0 or (cycle_days is not None and day >= cycle_days):
        raise InvalidSlot(f"Día {day} fuera de rango [0, {cycle_days})", day=day, period=period)
    return day * periods_per_day + period


def slot_from_position(index: int, periods_per_day: int) -> TimeSlot:
    if index < 0:
        raise InvalidSlot(f"Índice de bit negativo: {index}", index=index)
    return TimeSlot(day=index // periods_per_day, period=index % periods_per_day)


def _check_index(index: int) -> None:
    if index < 0:
        raise InvalidSlot(f"Índice de bit negativo: {index}", index=index)


def is_set(mask: int, index: int) -> bool:
    _check_index(index)
    return (mask >> index) & 1 == 1


def set_bit(mask: int, index: int, value: bool) -> int:
    """Devuelve una máscara nueva; ``mask`` no se modifica (los int son inmutables)."""
    _check_index(index)
    if value:
        return mask | (1 << index)
    return mask & ~(1 << index)


def mask_to_str(mask: int) -> str:
    if mask < 0:
        raise InvalidMask(f"La máscara no puede ser negativa: {mask}")
    return str(mask)


def mask_from_str(text: Optional[str]) -> int:
    """Decodifica la cadena decimal de la API. Vacío/None equivale a "0"."""
    if text is None:
        return 0
    clean = str(text).strip()
    if clean == "":
        return 0
    if not (clean.isascii() and clean.isdigit()):
        raise InvalidMask(f"Máscara no decimal: {text!r}")
    return int(clean)


def check_width(mask: int, total_slots: int) -> int:
    if mask < 0:
        raise InvalidMask(f"La máscara no puede ser negativa: {mask}")
    if mask >> total_slots:
        raise InvalidMask(f"La máscara tiene bits fuera de los {total_slots} slots del ciclo")
    return mask


def slots_in_mask(mask: int, periods_per_day: int) -> List[TimeSlot]:
    out = []
    idx = 0
    rest = mask
    while rest:
        if rest & 1:
            out.append(slot_from_position(idx, periods_per_day))
        rest >>= 1
        idx += 1
    return out


def mask_to_grid(mask: int, cycle_days: int, periods_per_day: int) -> np.ndarray:
    # Matriz [día][periodo]
    grid = np.zeros((cycle_days, periods_per_day), dtype=np.uint8)
    for slot in slots_in_mask(check_width(mask, cycle_days * periods_per_day), periods_per_day):
        grid[slot.day, slot.period] = 1
    return grid


def grid_to_mask(grid: np.ndarray) -> int:
    arr = np.asarray(grid)
    if arr.ndim != 2:
        raise InvalidMask("La grilla debe ser 2D (días x periodos)")
    periods_per_day = arr.shape[1]
    mask = 0
    for day, period in zip(*np.nonzero(arr)):
        mask |= 1 << bit_position(int(day), int(period), periods_per_day)
    return mask
