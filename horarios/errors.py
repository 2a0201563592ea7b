"""
Errores del paquete.

Los errores de validación (slots, máscaras, configuración) se lanzan de
inmediato al llamador. "No hay nada que deshacer/rehacer" NO es un error:
``undo()``/``redo()`` devuelven ``False``.
"""
from typing import Optional


class HorariosError(Exception):
    """Base de todos los errores propios."""


class ConfigError(HorariosError):
    pass


class InvalidSlot(HorariosError, ValueError):
    """Día/periodo (o índice de bit) fuera del rango configurado."""

    def __init__(self, message: str, day: Optional[int] = None,
                 period: Optional[int] = None, index: Optional[int] = None):
        super().__init__(message)
        self.day = day
        self.period = period
        self.index = index


class InvalidMask(HorariosError, ValueError):
    """Cadena decimal inválida o máscara con bits fuera de la grilla."""


class ExternalApplyFailed(HorariosError):
    """El backend falló al aplicar el efecto de un undo/redo."""

    def __init__(self, message: str, record=None):
        super().__init__(message)
        self.record = record


class BatchApplyFailed(ExternalApplyFailed):
    """Fallo a mitad de un lote: ``applied`` sub-efectos ya quedaron aplicados."""

    def __init__(self, message: str, record=None, applied: int = 0):
        super().__init__(message, record)
        self.applied = applied


class HistoryBusy(HorariosError):
    """Se intentó registrar una operación mientras corre un undo/redo."""


class HistoryFormatError(HorariosError, ValueError):
    pass
