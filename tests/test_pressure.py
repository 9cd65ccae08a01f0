"""Tests for the per-room pressure gate."""

import pytest

from dungeon_core.context import CoreContext
from dungeon_core.event_system import Event
from dungeon_core.pressure import PressureGate, PressureState


def make_gate(**pressure_overrides):
    context = CoreContext.create(seed=0)
    for key, value in pressure_overrides.items():
        setattr(context.config.pressure, key, value)
    stabilized = []
    fractions = []
    gate = PressureGate(
        context,
        room_id=7,
        on_stabilized=lambda: stabilized.append(True),
        on_pressure_changed=fractions.append,
    )
    return context, gate, stabilized, fractions


class TestPassiveIncrease:
    """Tests for PressureGate.update."""

    def test_inactive_gate_does_not_change(self):
        _, gate, _, _ = make_gate()
        gate.update(5.0, agent_idle=True)
        assert gate.current_pressure == 0.0

    def test_passive_rate_applies_per_second(self):
        _, gate, _, _ = make_gate()
        gate.activate()
        gate.update(2.5)
        assert gate.current_pressure == pytest.approx(10.0)

    def test_idle_for_ten_seconds_reaches_mid(self):
        """4/s with a 1.5x idle multiplier for 10s lands exactly on the mid threshold."""
        _, gate, _, _ = make_gate(passive_rate=4.0, idle_multiplier=1.5, mid_threshold=60.0)
        gate.activate()
        for _ in range(20):
            gate.update(0.5, agent_idle=True)

        assert gate.current_pressure == pytest.approx(60.0)
        assert gate.state == PressureState.MID

    def test_pressure_is_clamped_to_max(self):
        _, gate, _, _ = make_gate()
        gate.activate()
        gate.update(1000.0)
        assert gate.current_pressure == 100.0
        assert gate.state == PressureState.HIGH

    def test_pressure_changed_reports_fraction(self):
        _, gate, _, fractions = make_gate()
        gate.activate()
        gate.update(5.0)
        assert fractions == [pytest.approx(0.2)]


class TestStateChanges:

    def test_state_event_only_on_threshold_crossing(self):
        context, gate, _, _ = make_gate(minimum_survival_time=1000.0)
        states = []
        context.event_bus.subscribe(Event.PRESSURE_STATE_CHANGED, lambda e: states.append(e.kwargs["state"]))

        gate.activate()
        for _ in range(25):  # 4/s for 25s -> 100
            gate.update(1.0)

        assert states == [PressureState.MID, PressureState.HIGH]

    def test_adjustments_reevaluate_state(self):
        context, gate, _, _ = make_gate()
        gate.activate()
        gate.update(14.0)  # 56
        assert gate.state == PressureState.LOW

        gate.on_agent_damaged()  # +12 -> 68
        assert gate.state == PressureState.MID

        gate.on_occupant_removed()  # -8 -> 60
        gate.on_occupant_removed()  # -8 -> 52
        assert gate.state == PressureState.LOW

    def test_adjustments_are_clamped(self):
        _, gate, _, _ = make_gate()
        gate.activate()
        gate.on_occupant_removed()
        assert gate.current_pressure == 0.0
        gate.on_missed(500.0)
        assert gate.current_pressure == 100.0

    def test_is_calm_below_low_threshold(self):
        _, gate, _, _ = make_gate()
        gate.activate()
        assert gate.is_calm
        gate.on_missed(31.0)
        assert not gate.is_calm


class TestStabilization:

    def test_requires_minimum_survival_time(self):
        _, gate, stabilized, _ = make_gate(
            passive_rate=0.0, stabilization_time=5.0, minimum_survival_time=15.0
        )
        gate.activate()
        for _ in range(14):
            gate.update(1.0)
        assert stabilized == []

        gate.update(1.0)
        assert stabilized == [True]
        assert gate.stabilized
        assert not gate.active

    def test_high_pressure_resets_dwell_time(self):
        _, gate, stabilized, _ = make_gate(
            passive_rate=0.0, stabilization_time=5.0, minimum_survival_time=0.0
        )
        gate.activate()
        for _ in range(4):
            gate.update(1.0)
        gate.on_missed(70.0)
        gate.update(1.0)  # at 70, dwell resets
        assert gate.stable_time == 0.0

        gate.on_occupant_removed()
        gate.on_occupant_removed()  # 54, back below mid
        for _ in range(4):
            gate.update(1.0)
        assert stabilized == []
        gate.update(1.0)
        assert stabilized == [True]

    def test_fires_once_and_freezes_pressure(self):
        _, gate, stabilized, _ = make_gate(
            passive_rate=1.0, stabilization_time=1.0, minimum_survival_time=1.0
        )
        gate.activate()
        gate.update(2.0)
        assert stabilized == [True]

        frozen = gate.current_pressure
        gate.update(10.0)
        gate.on_agent_damaged()
        gate.on_missed(20.0)
        assert gate.current_pressure == frozen
        assert stabilized == [True]

    def test_activate_resets_counters(self):
        _, gate, _, _ = make_gate(minimum_survival_time=1000.0)
        gate.activate()
        gate.update(3.0)
        gate.activate()
        assert gate.current_pressure == 0.0
        assert gate.time_active == 0.0
        assert gate.stable_time == 0.0
