import unittest

import numpy as np

from horarios.config import ScheduleConfig
from horarios.encoding import (
    bit_position,
    grid_to_mask,
    is_set,
    mask_from_str,
    mask_to_grid,
    mask_to_str,
    set_bit,
    slot_from_position,
    slots_in_mask,
)
from horarios.errors import ConfigError, InvalidMask, InvalidSlot
from horarios.model import TimeSlot
from horarios.preferences import (
    BLOCKED,
    FREE,
    PREFERRED,
    SubjectConstraint,
    TeacherPreference,
    TimeSlotMask,
    clear_all,
    has_any_blocked,
    has_any_preferred,
    set_blocked,
    set_preferred,
)


class EncodingTests(unittest.TestCase):
    def test_bit_positions_standard_week(self):
        self.assertEqual(bit_position(0, 0, 8), 0)
        self.assertEqual(bit_position(1, 0, 8), 8)
        self.assertEqual(bit_position(4, 7, 8), 39)

    def test_bit_position_rejects_out_of_range(self):
        with self.assertRaises(InvalidSlot):
            bit_position(0, 8, 8)
        with self.assertRaises(InvalidSlot):
            bit_position(-1, 0, 8)
        with self.assertRaises(InvalidSlot):
            bit_position(5, 0, 8, cycle_days=5)

    def test_slot_from_position_inverts_bit_position(self):
        for idx in (0, 7, 8, 39, 359):
            slot = slot_from_position(idx, 12)
            self.assertEqual(bit_position(slot.day, slot.period, 12), idx)

    def test_set_bit_returns_new_mask(self):
        mask = 0b1010
        updated = set_bit(mask, 0, True)
        self.assertEqual(mask, 0b1010)
        self.assertEqual(updated, 0b1011)
        self.assertEqual(set_bit(updated, 3, False), 0b0011)

    def test_high_bits_beyond_native_range(self):
        mask = set_bit(0, 359, True)
        self.assertTrue(is_set(mask, 359))
        self.assertFalse(is_set(mask, 358))
        self.assertFalse(is_set(mask, 53))

    def test_decimal_roundtrip_300_bits(self):
        mask = 1 << 299
        text = mask_to_str(mask)
        self.assertEqual(mask_to_str(mask_from_str(text)), text)
        self.assertEqual(mask_from_str(text), mask)

    def test_mask_from_str_defaults_and_errors(self):
        self.assertEqual(mask_from_str("0"), 0)
        self.assertEqual(mask_from_str(""), 0)
        self.assertEqual(mask_from_str(None), 0)
        for bad in ("-1", "1e3", "0x10", "abc"):
            with self.assertRaises(InvalidMask):
                mask_from_str(bad)

    def test_grid_conversion(self):
        grid = mask_to_grid(1 << 39, 5, 8)
        self.assertEqual(grid.shape, (5, 8))
        self.assertEqual(int(grid.sum()), 1)
        self.assertEqual(grid[4, 7], 1)
        self.assertEqual(grid_to_mask(grid), 1 << 39)
        self.assertEqual(grid_to_mask(np.zeros((5, 8))), 0)

    def test_slots_in_mask_ascending(self):
        mask = (1 << 9) | (1 << 0) | (1 << 39)
        self.assertEqual(
            slots_in_mask(mask, 8),
            [TimeSlot(0, 0), TimeSlot(1, 1), TimeSlot(4, 7)],
        )


class TimeSlotMaskTests(unittest.TestCase):
    def setUp(self):
        self.state = TimeSlotMask(cycle_days=5, periods_per_day=8)

    def test_defaults_to_empty(self):
        self.assertEqual(self.state.to_payload(), {"preferredSlots": "0", "blockedSlots": "0"})
        self.assertFalse(has_any_preferred(self.state))
        self.assertFalse(has_any_blocked(self.state))

    def test_last_slot_serializes_to_two_pow_39(self):
        s = set_preferred(self.state, 4, 7, True)
        self.assertEqual(s.to_payload()["preferredSlots"], "549755813888")

    def test_preferred_set_and_not_blocked_for_every_slot(self):
        for d in range(5):
            for p in range(8):
                s = set_preferred(self.state.set_blocked(d, p), d, p, True)
                idx = bit_position(d, p, 8)
                self.assertTrue(is_set(s.preferred, idx))
                self.assertFalse(is_set(s.blocked, idx))

    def test_mutual_exclusion_either_order(self):
        for d in range(5):
            for p in range(8):
                s = set_blocked(set_preferred(self.state, d, p, True), d, p, True)
                self.assertEqual(s.state_of(d, p), BLOCKED)
                s = set_preferred(set_blocked(self.state, d, p, True), d, p, True)
                self.assertEqual(s.state_of(d, p), PREFERRED)
                self.assertEqual(s.preferred & s.blocked, 0)

    def test_set_preferred_is_idempotent(self):
        once = self.state.set_preferred(2, 3, True)
        twice = once.set_preferred(2, 3, True)
        self.assertEqual(once, twice)

    def test_turning_off_does_not_touch_other_set(self):
        s = self.state.set_blocked(0, 0)
        s = s.set_preferred(0, 0, False)
        self.assertTrue(s.is_blocked(0, 0))
        self.assertEqual(s.blocked, 1)

    def test_original_is_not_mutated(self):
        self.state.set_preferred(1, 1)
        self.assertEqual(self.state.preferred, 0)

    def test_toggle(self):
        s = self.state.toggle(1, 2, PREFERRED)
        self.assertEqual(s.state_of(1, 2), PREFERRED)
        s = s.toggle(1, 2, BLOCKED)
        self.assertEqual(s.state_of(1, 2), BLOCKED)
        s = s.toggle(1, 2, BLOCKED)
        self.assertEqual(s.state_of(1, 2), FREE)

    def test_set_state_free_clears_both(self):
        s = self.state.set_preferred(3, 3).set_state(3, 3, FREE)
        self.assertEqual(s.preferred, 0)
        self.assertEqual(s.blocked, 0)

    def test_clear_all(self):
        s = self.state.set_preferred(0, 1).set_blocked(4, 7)
        self.assertTrue(s.has_any_preferred())
        self.assertTrue(s.has_any_blocked())
        cleared = clear_all(s)
        self.assertEqual((cleared.preferred, cleared.blocked), (0, 0))

    def test_invalid_slot_raises(self):
        with self.assertRaises(InvalidSlot):
            self.state.set_preferred(5, 0)
        with self.assertRaises(InvalidSlot):
            self.state.set_blocked(0, 8)
        with self.assertRaises(InvalidSlot):
            self.state.is_preferred(-1, 0)

    def test_zero_dimensions_rejected(self):
        with self.assertRaises(ConfigError):
            TimeSlotMask(cycle_days=0, periods_per_day=8)
        with self.assertRaises(ConfigError):
            TimeSlotMask(cycle_days=5, periods_per_day=0)

    def test_constructor_checks_masks(self):
        with self.assertRaises(InvalidMask):
            TimeSlotMask(5, 8, preferred=1, blocked=1)
        with self.assertRaises(InvalidMask):
            TimeSlotMask(5, 8, preferred=1 << 40)

    def test_large_cycle_payload_roundtrip(self):
        s = TimeSlotMask(30, 10).set_blocked(29, 9)
        payload = s.to_payload()
        self.assertEqual(payload["blockedSlots"], str(1 << 299))
        restored = TimeSlotMask.from_payload(payload, 30, 10)
        self.assertEqual(restored, s)
        self.assertEqual(restored.blocked_slots(), [TimeSlot(29, 9)])

    def test_from_config(self):
        s = TimeSlotMask.from_config(ScheduleConfig(cycle_days=6, periods_per_day=10))
        self.assertEqual(s.total_slots, 60)


class TeacherPreferenceTests(unittest.TestCase):
    def test_payload_roundtrip(self):
        cfg = ScheduleConfig()
        slots = TimeSlotMask.from_config(cfg).set_preferred(0, 0).set_blocked(4, 7)
        pref = TeacherPreference(teacher_id=7, slots=slots, time_bias=1, weight=3)
        payload = pref.to_payload()
        self.assertEqual(payload, {
            "teacherId": 7,
            "preferredSlots": "1",
            "blockedSlots": "549755813888",
            "timeBias": 1,
            "weight": 3,
        })
        self.assertEqual(TeacherPreference.from_payload(payload, cfg), pref)

    def test_invalid_time_bias(self):
        with self.assertRaises(ValueError):
            TeacherPreference(1, TimeSlotMask(5, 8), time_bias=3)

    def test_subject_constraint(self):
        cfg = ScheduleConfig()
        c = SubjectConstraint("EDF", cfg.cycle_days, cfg.periods_per_day).with_forbidden(1, 0)
        self.assertTrue(c.forbids(1, 0))
        self.assertFalse(c.forbids(0, 0))
        self.assertEqual(c.to_payload(), {"subjectId": "EDF", "forbiddenSlots": "256"})
        self.assertEqual(SubjectConstraint.from_payload(c.to_payload(), cfg), c)


if __name__ == "__main__":
    unittest.main()
