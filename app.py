# app.py
import streamlit as st
import pandas as pd

from horarios.config import load_config
from horarios.data_loader import empty_preference
from horarios.errors import ExternalApplyFailed, HorariosError
from horarios.history import OperationHistory
from horarios.logging_setup import configure_logging
from horarios.model import ScheduleEntry, TimeSlot
from horarios.preferences import BLOCKED, FREE, PREFERRED
from horarios.report import history_frame, preference_frame
from horarios.schedule import InMemorySchedule, ScheduleEditor

# --- CONFIGURACIÓN DE PÁGINA ---
st.set_page_config(page_title="Preferencias y Edición de Horarios", layout="wide", initial_sidebar_state="expanded")

STATE_LABELS = {FREE: "Libre", PREFERRED: "Preferido", BLOCKED: "Bloqueado"}

# Horario de ejemplo para la sección de edición
DEMO_ENTRIES = [
    ScheduleEntry(1, "MAT", 10, TimeSlot(0, 0)),
    ScheduleEntry(1, "FIS", 11, TimeSlot(0, 1)),
    ScheduleEntry(1, "QUI", 12, TimeSlot(1, 0)),
    ScheduleEntry(2, "MAT", 10, TimeSlot(1, 2)),
    ScheduleEntry(2, "LEN", 13, TimeSlot(2, 3)),
]


# --- FUNCIONES HELPERS ---
def entry_label(e: ScheduleEntry) -> str:
    fixed = " 📌" if e.is_fixed else ""
    return f"Clase {e.class_id} | {e.subject_id} | Doc {e.teacher_id} | D{e.time_slot.day + 1}-P{e.time_slot.period + 1}{fixed}"


def schedule_frame(schedule: InMemorySchedule) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Clase": e.class_id,
            "Asignatura": e.subject_id,
            "Docente": e.teacher_id,
            "Día": e.time_slot.day + 1,
            "Periodo": e.time_slot.period + 1,
            "Fijo": e.is_fixed,
        }
        for e in schedule.entries()
    ])


def run_history_action(action, label: str):
    try:
        if not action():
            st.info(f"No hay operación para {label}.")
    except ExternalApplyFailed as e:
        st.error(f"Falló {label}: {e}")


# --- MAIN APP ---
def main():
    if 'cfg' not in st.session_state:
        st.session_state.cfg = load_config("config.yaml")
        configure_logging(st.session_state.cfg.log_level)
    cfg = st.session_state.cfg

    # INICIALIZACIÓN DE ESTADO
    if 'preferences' not in st.session_state: st.session_state.preferences = {}
    if 'schedule' not in st.session_state:
        st.session_state.schedule = InMemorySchedule(DEMO_ENTRIES)
        st.session_state.history = OperationHistory(
            backend=st.session_state.schedule,
            max_size=cfg.history_max_size,
            autosave_path=cfg.history_path if cfg.history_autosave else None,
        )
        st.session_state.editor = ScheduleEditor(st.session_state.schedule, st.session_state.history)

    # --- BARRA LATERAL ---
    with st.sidebar:
        st.title("🗓️ Menú Principal")
        st.markdown("---")
        page = st.radio("Ir a la sección:", ["Preferencias de Docentes", "Edición de Horario"])
        st.markdown("---")
        st.info(f"Ciclo: {cfg.cycle_days} días x {cfg.periods_per_day} periodos")

    # 1. PREFERENCIAS
    if page == "Preferencias de Docentes":
        st.header("👩‍🏫 Preferencias Horarias por Docente")
        teacher_id = int(st.number_input("ID de docente", min_value=1, value=1, step=1))
        prefs = st.session_state.preferences
        if teacher_id not in prefs:
            prefs[teacher_id] = empty_preference(teacher_id, cfg)
        pref = prefs[teacher_id]

        c1, c2 = st.columns(2)
        with c1:
            day = st.selectbox("Día", options=list(range(cfg.cycle_days)), format_func=cfg.label_for_day)
        with c2:
            period = st.selectbox("Periodo", options=list(range(cfg.periods_per_day)), format_func=lambda p: f"P{p + 1}")

        current = pref.slots.state_of(day, period)
        states = [FREE, PREFERRED, BLOCKED]
        new_state = st.radio("Estado del slot", states, index=states.index(current),
                             format_func=lambda s: STATE_LABELS[s], horizontal=True)
        b1, b2 = st.columns(2)
        with b1:
            if st.button("Aplicar"):
                prefs[teacher_id] = pref.with_slots(pref.slots.set_state(day, period, new_state))
                st.rerun()
        with b2:
            if st.button("Limpiar todo"):
                prefs[teacher_id] = pref.with_slots(pref.slots.clear_all())
                st.rerun()

        st.subheader("Grilla (+ preferido, x bloqueado, . libre)")
        st.dataframe(preference_frame(prefs[teacher_id].slots, cfg), use_container_width=True)
        st.subheader("Payload para la API")
        st.json(prefs[teacher_id].to_payload())

    # 2. EDICIÓN DE HORARIO
    elif page == "Edición de Horario":
        st.header("✏️ Edición de Horario con Deshacer/Rehacer")
        schedule = st.session_state.schedule
        history = st.session_state.history
        editor = st.session_state.editor

        entries = schedule.entries()
        sel = st.selectbox("Entrada", options=list(range(len(entries))), format_func=lambda i: entry_label(entries[i]))
        entry = entries[sel]

        col_move, col_swap, col_fix = st.columns(3)
        with col_move:
            to_day = st.number_input("Día destino", min_value=1, max_value=cfg.cycle_days, value=1) - 1
            to_period = st.number_input("Periodo destino", min_value=1, max_value=cfg.periods_per_day, value=1) - 1
            if st.button("Mover"):
                try:
                    editor.move(entry, TimeSlot(int(to_day), int(to_period)))
                except (HorariosError, KeyError, ValueError) as e:
                    st.error(str(e))
        with col_swap:
            other = st.selectbox("Intercambiar con", options=list(range(len(entries))),
                                 format_func=lambda i: entry_label(entries[i]), key="swap_other")
            if st.button("Intercambiar"):
                try:
                    editor.swap(entry, entries[other])
                except (HorariosError, KeyError) as e:
                    st.error(str(e))
        with col_fix:
            if entry.is_fixed:
                if st.button("Liberar"):
                    editor.unset_fixed(entry)
            elif st.button("Fijar"):
                editor.set_fixed(entry)

        st.markdown("---")
        u, r, c = st.columns(3)
        with u:
            if st.button("↩️ Deshacer", disabled=not history.can_undo):
                run_history_action(history.undo, "deshacer")
        with r:
            if st.button("↪️ Rehacer", disabled=not history.can_redo):
                run_history_action(history.redo, "rehacer")
        with c:
            if st.button("🗑️ Limpiar historial"):
                history.clear()

        st.subheader("Horario actual")
        st.dataframe(schedule_frame(schedule), use_container_width=True)
        st.subheader(f"Historial ({history.size}/{history.max_size}, cursor={history.cursor})")
        st.dataframe(history_frame(history), use_container_width=True)
        st.download_button("📥 Exportar historial", data=history.export_history().encode("utf-8"),
                           file_name="historial.json", mime="application/json")


if __name__ == "__main__":
    main()
