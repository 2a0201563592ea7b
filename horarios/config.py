"""
Configuración del ciclo de horarios y del historial de operaciones.

Se carga desde YAML para dejar los parámetros reproducibles; los valores
ausentes toman los defaults de ``ScheduleConfig``.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Any

import yaml

from .errors import ConfigError


DEFAULT_DAY_LABELS: List[str] = ["Lun", "Mar", "Mie", "Jue", "Vie", "Sab", "Dom"]

# Límites del ciclo (1-30 días x 1-12 periodos)
MAX_CYCLE_DAYS = 30
MAX_PERIODS_PER_DAY = 12


@dataclass
class ScheduleConfig:
    # Grilla
    cycle_days: int = 5
    periods_per_day: int = 8
    day_labels: List[str] = field(default_factory=lambda: DEFAULT_DAY_LABELS.copy())

    # Historial de operaciones
    history_max_size: int = 50
    history_autosave: bool = False
    history_path: str = "outputs/history.json"

    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    @property
    def total_slots(self) -> int:
        return self.cycle_days * self.periods_per_day

    def label_for_day(self, day: int) -> str:
        if 0 <= day < len(self.day_labels):
            return str(self.day_labels[day])
        return f"D{day + 1}"

    def labels(self) -> List[str]:
        return [self.label_for_day(d) for d in range(self.cycle_days)]


def validate_cycle_config(cfg: ScheduleConfig) -> ScheduleConfig:
    """Rechaza ciclos fuera de 1-30 días / 1-12 periodos (incluye el caso 0)."""
    if not 1 <= int(cfg.cycle_days) <= MAX_CYCLE_DAYS:
        raise ConfigError(f"cycle_days debe estar entre 1 y {MAX_CYCLE_DAYS}: {cfg.cycle_days}")
    if not 1 <= int(cfg.periods_per_day) <= MAX_PERIODS_PER_DAY:
        raise ConfigError(
            f"periods_per_day debe estar entre 1 y {MAX_PERIODS_PER_DAY}: {cfg.periods_per_day}"
        )
    if int(cfg.history_max_size) < 1:
        raise ConfigError(f"history_max_size debe ser >= 1: {cfg.history_max_size}")
    return cfg


def load_config(path: str = "config.yaml") -> ScheduleConfig:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return ScheduleConfig()
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} debe contener un objeto mapeo")
    return validate_cycle_config(ScheduleConfig.from_dict(data))
