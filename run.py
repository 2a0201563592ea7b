import argparse
import logging
from pathlib import Path
from typing import List

from horarios.config import ScheduleConfig, load_config
from horarios.data_loader import load_preferences, load_subject_constraints
from horarios.errors import HorariosError
from horarios.logging_setup import configure_logging
from horarios.preferences import SubjectConstraint, TeacherPreference
from horarios.report import grid_frame, payload_frame, preference_frame

logger = logging.getLogger("horarios.run")


def print_preference_grid(pref: TeacherPreference, cfg: ScheduleConfig):
    print("\n" + "=" * 60)
    print(f"DOCENTE {pref.teacher_id} | timeBias={pref.time_bias} weight={pref.weight}")
    print("LEYENDA: + preferido | x bloqueado | . libre")
    print("=" * 60)
    print(preference_frame(pref.slots, cfg).to_string())
    payload = pref.slots.to_payload()
    print(f"preferredSlots={payload['preferredSlots']} blockedSlots={payload['blockedSlots']}")


def export_outputs(preferences: List[TeacherPreference], constraints: List[SubjectConstraint],
                   cfg: ScheduleConfig, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    payload_frame(preferences).to_csv(out_dir / "preferences.csv", index=False)
    for pref in preferences:
        grid_frame(pref.slots.preferred, cfg).to_csv(out_dir / f"docente_{pref.teacher_id}_preferidos.csv")
        grid_frame(pref.slots.blocked, cfg).to_csv(out_dir / f"docente_{pref.teacher_id}_bloqueados.csv")
    for c in constraints:
        grid_frame(c.forbidden_slots, cfg).to_csv(out_dir / f"asignatura_{c.subject_id}_prohibidos.csv")


def main():
    parser = argparse.ArgumentParser(description="Valida y exporta preferencias horarias de docentes")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--preferences", default="data/preferencias.csv", help="CSV de preferencias por docente")
    parser.add_argument("--subjects", default=None, help="CSV opcional de slots prohibidos por asignatura")
    parser.add_argument("--out", default="outputs", help="Directorio de salida")
    args = parser.parse_args()

    try:
        cfg = load_config(args.config)
        configure_logging(cfg.log_level)
        logger.info("Ciclo: %d días x %d periodos", cfg.cycle_days, cfg.periods_per_day)
        preferences = load_preferences(args.preferences, cfg)
        constraints = load_subject_constraints(args.subjects, cfg) if args.subjects else []
    except (HorariosError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 1

    for pref in preferences:
        print_preference_grid(pref, cfg)

    export_outputs(preferences, constraints, cfg, Path(args.out))
    print(f"Se guardaron {len(preferences)} preferencias en {args.out}/preferences.csv")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
