import os
import tempfile
import unittest

from horarios.config import ScheduleConfig, load_config, validate_cycle_config
from horarios.data_loader import load_preferences, load_subject_constraints
from horarios.errors import ConfigError, InvalidMask
from horarios.history import OperationHistory
from horarios.model import ScheduleEntry, TimeSlot
from horarios.operations import MoveData, OperationType
from horarios.preferences import TeacherPreference, TimeSlotMask
from horarios.report import grid_frame, history_frame, payload_frame, preference_frame


class ConfigTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, text):
        path = os.path.join(self.tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_missing_file_gives_defaults(self):
        cfg = load_config(os.path.join(self.tmp.name, "no-existe.yaml"))
        self.assertEqual((cfg.cycle_days, cfg.periods_per_day), (5, 8))
        self.assertEqual(cfg.history_max_size, 50)
        self.assertEqual(cfg.total_slots, 40)

    def test_yaml_overrides_and_unknown_keys(self):
        path = self.write("c.yaml", "cycle_days: 30\nperiods_per_day: 12\nfoo: bar\n")
        cfg = load_config(path)
        self.assertEqual(cfg.total_slots, 360)
        self.assertFalse(hasattr(cfg, "foo"))

    def test_out_of_range_cycle(self):
        for text in ("cycle_days: 0\n", "cycle_days: 31\n", "periods_per_day: 13\n", "history_max_size: 0\n"):
            with self.assertRaises(ConfigError):
                load_config(self.write("bad.yaml", text))

    def test_non_mapping_document(self):
        with self.assertRaises(ConfigError):
            load_config(self.write("list.yaml", "- 1\n- 2\n"))

    def test_validate_returns_config(self):
        cfg = ScheduleConfig(cycle_days=1, periods_per_day=1)
        self.assertIs(validate_cycle_config(cfg), cfg)

    def test_day_labels(self):
        cfg = ScheduleConfig(cycle_days=9)
        self.assertEqual(cfg.labels()[0], "Lun")
        self.assertEqual(cfg.labels()[8], "D9")


class DataLoaderTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write(self, name, text):
        path = os.path.join(self.tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_large_masks_are_exact(self):
        cfg = ScheduleConfig(cycle_days=30, periods_per_day=10)
        big = (1 << 299) | 1
        path = self.write("p.csv", f"teacher_id,preferred_slots,blocked_slots,time_bias,weight\n4,{big},2,2,5\n")
        prefs = load_preferences(path, cfg)
        self.assertEqual(len(prefs), 1)
        self.assertEqual(prefs[0].slots.preferred, big)
        self.assertEqual(prefs[0].slots.blocked, 2)
        self.assertEqual((prefs[0].time_bias, prefs[0].weight), (2, 5))

    def test_optional_columns_and_empty_masks(self):
        cfg = ScheduleConfig()
        path = self.write("p.csv", "teacher_id,preferred_slots,blocked_slots\n1,,255\n")
        pref = load_preferences(path, cfg)[0]
        self.assertEqual(pref.slots.preferred, 0)
        self.assertEqual(pref.slots.blocked, 255)
        self.assertEqual((pref.time_bias, pref.weight), (0, 1))

    def test_overlapping_masks_rejected(self):
        path = self.write("p.csv", "teacher_id,preferred_slots,blocked_slots\n1,3,1\n")
        with self.assertRaises(InvalidMask):
            load_preferences(path, ScheduleConfig())

    def test_missing_columns(self):
        path = self.write("p.csv", "teacher_id,preferred_slots\n1,0\n")
        with self.assertRaises(ValueError):
            load_preferences(path, ScheduleConfig())

    def test_subject_constraints(self):
        path = self.write("s.csv", "subject_id,forbidden_slots\nEDF,1095216660480\n")
        constraint = load_subject_constraints(path, ScheduleConfig())[0]
        self.assertTrue(constraint.forbids(4, 0))
        self.assertFalse(constraint.forbids(3, 7))


class ReportTests(unittest.TestCase):
    def test_preference_frame_symbols(self):
        cfg = ScheduleConfig()
        state = TimeSlotMask.from_config(cfg).set_preferred(0, 0).set_blocked(4, 7)
        df = preference_frame(state, cfg)
        self.assertEqual(df.shape, (5, 8))
        self.assertEqual(df.loc["Lun", "P1"], "+")
        self.assertEqual(df.loc["Vie", "P8"], "x")
        self.assertEqual(df.loc["Mar", "P1"], ".")

    def test_grid_frame(self):
        cfg = ScheduleConfig()
        df = grid_frame(1 << 8, cfg)
        self.assertEqual(int(df.values.sum()), 1)
        self.assertEqual(df.loc["Mar", "P1"], 1)

    def test_payload_frame_keeps_strings(self):
        cfg = ScheduleConfig(cycle_days=30, periods_per_day=10)
        pref = TeacherPreference(1, TimeSlotMask.from_config(cfg).set_preferred(29, 9))
        df = payload_frame([pref])
        self.assertEqual(df.loc[0, "preferredSlots"], str(1 << 299))

    def test_history_frame(self):
        history = OperationHistory()
        entry = ScheduleEntry(1, "MAT", 1, TimeSlot(0, 0))
        for name in ("A", "B"):
            history.push(OperationType.MOVE, name, MoveData(entry, TimeSlot(0, 0), TimeSlot(0, 1)))
        history.undo()
        df = history_frame(history)
        self.assertEqual(list(df["description"]), ["A", "B"])
        self.assertEqual(list(df["applied"]), [True, False])
        self.assertEqual(list(history_frame(OperationHistory()).columns)[:3], ["index", "id", "type"])


if __name__ == "__main__":
    unittest.main()
