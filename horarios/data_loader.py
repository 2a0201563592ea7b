# horarios/data_loader.py
from typing import List

import pandas as pd

from .config import ScheduleConfig
from .preferences import SubjectConstraint, TeacherPreference, TimeSlotMask


def _read_as_text(path: str) -> pd.DataFrame:
    # Todo como texto: con float64 las máscaras pierden bits por encima de 2^53
    return pd.read_csv(path, dtype=str)


def _mask_cell(value) -> str:
    if pd.isna(value):
        return "0"
    return str(value)


def _int_cell(row, column: str, default: int) -> int:
    if column not in row.index or pd.isna(row[column]):
        return default
    return int(row[column])


def load_preferences(path: str, cfg: ScheduleConfig) -> List[TeacherPreference]:
    df = _read_as_text(path)
    missing = {"teacher_id", "preferred_slots", "blocked_slots"} - set(df.columns)
    if missing:
        raise ValueError(f"{path}: faltan columnas {sorted(missing)}")

    out: List[TeacherPreference] = []
    for _, r in df.iterrows():
        payload = {
            "teacherId": int(r["teacher_id"]),
            "preferredSlots": _mask_cell(r["preferred_slots"]),
            "blockedSlots": _mask_cell(r["blocked_slots"]),
            "timeBias": _int_cell(r, "time_bias", 0),
            "weight": _int_cell(r, "weight", 1),
        }
        out.append(TeacherPreference.from_payload(payload, cfg))
    return out


def load_subject_constraints(path: str, cfg: ScheduleConfig) -> List[SubjectConstraint]:
    df = _read_as_text(path)
    if "subject_id" not in df.columns:
        raise ValueError(f"{path}: falta la columna subject_id")
    return [
        SubjectConstraint.from_payload(
            {"subjectId": r["subject_id"], "forbiddenSlots": _mask_cell(r.get("forbidden_slots"))}, cfg
        )
        for _, r in df.iterrows()
    ]


def empty_preference(teacher_id: int, cfg: ScheduleConfig) -> TeacherPreference:
    return TeacherPreference(teacher_id=teacher_id, slots=TimeSlotMask.from_config(cfg))
