"""
System tests for ThermalControlLoop against an in-memory sysfs.

The sensor is pinned at a fixed temperature so every PID output can be
worked out by hand: with gains of -60 and 5 s ticks, a 4 °C overshoot gives
240 (P) and grows the integral by 1200 per tick, and the derivative term is
zero while the reading does not change. The integral is clamped into the
output range, so it starts at the 2000 RPM lower bound rather than at zero.
"""

from __future__ import annotations

import logging

import pytest

from macbookfan.config import ControllerConfig, HardwareLayout
from macbookfan.daemon.loop import ThermalControlLoop
from macbookfan.hw.sysnode import SysNodeParseError, SysNodeReadError, SysNodeWriteError


@pytest.fixture
def loop(layout, sysfs, clock) -> ThermalControlLoop:
    return ThermalControlLoop(
        ControllerConfig(),
        layout,
        sysfs,
        clock=clock.now,
        sleep=clock.sleep,
    )


def run_ticks(loop, clock, n):
    samples = []
    for _ in range(n):
        samples.append(loop.tick())
        clock.sleep(5.0)
    return samples


# ─────────────────────────────────────────────────────────────────────────────
# Startup
# ─────────────────────────────────────────────────────────────────────────────


class TestStartup:
    def test_not_started_until_start(self, loop, sysfs, layout):
        assert not loop.started
        assert loop.state is None
        assert sysfs.writes == []
        with pytest.raises(RuntimeError):
            loop.tick()

    def test_start_sets_manual_mode_and_bounds(self, loop, sysfs, layout):
        loop.start()

        assert sysfs.text(layout.smc_node("fan1_manual")) == "1\n"
        assert sysfs.text(layout.smc_node("fan2_manual")) == "1\n"
        assert [(f.identifier, f.min_speed, f.max_speed) for f in loop.fans] == [
            ("fan1", 2000, 6000),
            ("fan2", 2000, 5700),
        ]
        assert loop.controller.params.out_min == 2000
        assert loop.controller.params.out_max == 6000
        assert loop.controller.target == 41.0

        state = loop.state
        assert state.target_c == 41.0
        assert state.power_online is False
        assert state.iteration == 0
        assert state.last_sample_s == 0.0

    def test_bounds_are_union_of_fan_ranges(self, loop, sysfs, layout):
        sysfs.set(layout.smc_node("fan2_min"), 1800)
        loop.start()
        assert loop.controller.params.out_min == 1800
        assert loop.controller.params.out_max == 6000

    def test_start_twice_rejected(self, loop):
        loop.start()
        with pytest.raises(RuntimeError):
            loop.start()

    def test_manual_mode_failure_is_fatal(self, loop, sysfs, layout):
        sysfs.break_node(layout.smc_node("fan2_manual"))
        with pytest.raises(SysNodeWriteError):
            loop.start()

    def test_missing_bound_is_fatal(self, layout, sysfs, clock):
        bare = HardwareLayout(fans=("fan1", "fan3"))
        loop = ThermalControlLoop(ControllerConfig(), bare, sysfs, clock=clock.now)
        with pytest.raises(SysNodeReadError):
            loop.start()

    def test_no_fans_rejected(self, sysfs, clock):
        loop = ThermalControlLoop(ControllerConfig(), HardwareLayout(fans=()), sysfs)
        with pytest.raises(ValueError):
            loop.start()


# ─────────────────────────────────────────────────────────────────────────────
# Steady running
# ─────────────────────────────────────────────────────────────────────────────


class TestRunning:
    def test_hot_on_battery_spins_up(self, loop, clock):
        loop.start()
        samples = run_ticks(loop, clock, 7)

        assert [s.elapsed_s for s in samples] == [0.0, 5.0, 5.0, 5.0, 5.0, 5.0, 5.0]
        assert [s.speed for s in samples] == [2240, 3440, 4640, 5840, 6000, 6000, 6000]
        assert all(s.target_c == 41.0 for s in samples)

        # Tick 0 has no timestep, so it is P plus the lower-bound integral
        assert samples[0].writes == {"fan1": 2240, "fan2": 2240}
        assert samples[1].writes == {"fan1": 3440, "fan2": 3440}
        assert samples[2].writes == {"fan1": 4640, "fan2": 4640}
        # fan2 saturates at its own maximum first
        assert samples[3].writes == {"fan1": 5840, "fan2": 5700}
        assert samples[4].writes == {"fan1": 6000}
        assert samples[5].writes == {}
        assert samples[6].writes == {}

    def test_plugging_in_lowers_speed(self, loop, clock, sysfs, layout):
        loop.start()
        run_ticks(loop, clock, 7)

        sysfs.set(layout.power_online_node(), 1)
        on_ac = run_ticks(loop, clock, 2)

        assert on_ac[0].target_c == 47.0
        assert on_ac[0].power_online is True
        assert loop.controller.target == 47.0
        assert on_ac[0].speed == 5280
        assert on_ac[0].writes == {"fan1": 5280, "fan2": 5280}
        assert on_ac[1].speed == 4680

    def test_sustained_ac_does_not_readd_adjustment(self, loop, clock, sysfs, layout):
        sysfs.set(layout.power_online_node(), 1)
        loop.start()
        samples = run_ticks(loop, clock, 10)

        assert all(s.target_c == 47.0 for s in samples)
        assert loop.state.target_c == 47.0

        sysfs.set(layout.power_online_node(), 0)
        assert loop.tick().target_c == 41.0
        assert loop.controller.target == 41.0

    @pytest.mark.parametrize("value,online", [(1, True), (0, False), (2, False), (-1, False)])
    def test_only_one_means_on_ac(self, loop, sysfs, layout, value, online):
        sysfs.set(layout.power_online_node(), value)
        loop.start()
        assert loop.read_power_online() is online
        assert loop.tick().target_c == (47.0 if online else 41.0)

    def test_power_transitions_logged(self, loop, clock, sysfs, layout, caplog):
        loop.start()
        with caplog.at_level(logging.INFO, logger="macbookfan.daemon.loop"):
            sysfs.set(layout.power_online_node(), 1)
            run_ticks(loop, clock, 1)
            sysfs.set(layout.power_online_node(), 0)
            run_ticks(loop, clock, 1)

        assert "adjusting target temperature up by 6.0 degrees due to being on AC" in caplog.text
        assert "setting baseline target temperature due to being on battery" in caplog.text

    def test_no_writes_when_speed_stable(self, loop, clock, sysfs, layout):
        sysfs.set(layout.temperature_node(), 100000)
        loop.start()
        samples = run_ticks(loop, clock, 30)

        # Tick 0 is P (3540) on the 2000 integral floor, tick 1 saturates
        assert samples[0].writes == {"fan1": 5540, "fan2": 5540}
        assert samples[1].writes == {"fan1": 6000, "fan2": 5700}
        assert all(s.writes == {} for s in samples[2:])
        outputs = [p for p, _ in sysfs.writes if p.name.endswith("_output")]
        assert len(outputs) == 4
        assert sysfs.text(layout.smc_node("fan1_output")) == "6000\n"
        assert sysfs.text(layout.smc_node("fan2_output")) == "5700\n"

    def test_commanded_speeds_stay_in_fan_bounds(self, loop, clock, sysfs, layout):
        loop.start()
        for temp_mc in [45000, 90000, 20000, 41000, 120000, 0, 41500]:
            sysfs.set(layout.temperature_node(), temp_mc)
            run_ticks(loop, clock, 3)
            for fan in loop.fans:
                assert fan.min_speed <= fan.commanded_speed <= fan.max_speed

    def test_status_reported_every_twelve_ticks(self, loop, clock, caplog):
        loop.start()
        with caplog.at_level(logging.INFO, logger="macbookfan.daemon.loop"):
            samples = run_ticks(loop, clock, 25)

        assert [s.iteration for s in samples if s.reported] == [0, 12, 24]
        reports = [r.getMessage() for r in caplog.records
                   if r.getMessage().startswith("current temperature")]
        assert len(reports) == 3
        assert reports[0] == "current temperature: 45.0, target temperature: 41.0, fan speed: 2240"

    def test_write_failure_does_not_stop_loop(self, loop, clock, sysfs, layout, caplog):
        sysfs.break_node(layout.smc_node("fan1_output"))
        loop.start()
        with caplog.at_level(logging.WARNING):
            samples = run_ticks(loop, clock, 3)

        assert "Failed to set fan speed" in caplog.text
        assert all("fan1" not in s.writes for s in samples)
        assert samples[0].writes == {"fan2": 2240}
        assert loop.fans[0].commanded_speed is None

        # Once the node recovers the pending speed is written
        sysfs.repair_node(layout.smc_node("fan1_output"))
        assert "fan1" in loop.tick().writes

    def test_temperature_read_failure_is_fatal(self, loop, clock, sysfs, layout):
        loop.start()
        run_ticks(loop, clock, 2)
        sysfs.break_node(layout.temperature_node())
        with pytest.raises(SysNodeReadError):
            loop.tick()

    def test_bad_power_node_is_fatal(self, loop, sysfs, layout):
        sysfs.set(layout.power_online_node(), "unknown\n")
        loop.start()
        with pytest.raises(SysNodeParseError):
            loop.tick()

    def test_run_sleeps_fixed_interval(self, loop, clock):
        seen = []
        assert loop.run(max_ticks=3, on_tick=seen.append) == 3

        assert clock.sleeps == [5.0, 5.0, 5.0]
        assert [s.iteration for s in seen] == [0, 1, 2]
        assert loop.state.iteration == 3
        assert loop.started

    def test_elapsed_follows_clock(self, loop, clock):
        loop.start()
        clock.sleep(1.5)
        first = loop.tick()
        clock.sleep(7.25)
        second = loop.tick()
        assert first.elapsed_s == pytest.approx(1.5)
        assert second.elapsed_s == pytest.approx(7.25)
