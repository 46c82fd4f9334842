"""Tests for snapshot comparison."""

import itertools

import pytest

from node_problem_detector.diff import compare
from node_problem_detector.models import HealthCheck, Verdict


def hc(check_type: str, result: str, message: str = "") -> HealthCheck:
    return HealthCheck(check_type, result, message)


class TestAggregateVerdict:
    """A single failing check makes the whole node unhealthy."""

    def test_all_healthy(self):
        verdict = compare([], [hc("CPUUnderPressure", "false"), hc("docker", "Healthy")])
        assert verdict.healthy is True
        assert verdict.failing == frozenset()

    @pytest.mark.parametrize("bad", [hc("MemoryUnderPressure", "true"), hc("docker", "Unhealthy")])
    def test_one_bad_check_is_enough(self, bad):
        current = [hc("CPUUnderPressure", "false"), hc("DiskUsageHigh", "false"), bad]
        verdict = compare([], current)
        assert verdict.healthy is False
        assert verdict.failing == {bad.type}

    def test_empty_snapshot_is_healthy(self):
        assert compare([], []) == Verdict(healthy=True, state_changed=False)

    def test_unknown_result_values_are_healthy(self):
        assert compare([], [hc("custom", "degraded"), hc("other", "")]).healthy is True


class TestStateChanged:
    """State changes only on value transitions of known check types."""

    def test_first_observation_is_not_a_change(self):
        verdict = compare([], [hc("CPUUnderPressure", "false", "CPU usage 10%")])
        assert verdict == Verdict(healthy=True, state_changed=False)

    def test_value_transition(self):
        previous = [hc("MemoryUnderPressure", "false", "60% memory available out of 100%")]
        current = [hc("MemoryUnderPressure", "true", "5% memory available out of 100%")]
        verdict = compare(previous, current)
        assert verdict.state_changed is True
        assert verdict.healthy is False

    def test_recovery_is_a_change(self):
        verdict = compare([hc("docker", "Unhealthy")], [hc("docker", "Healthy")])
        assert verdict.state_changed is True
        assert verdict.healthy is True

    def test_same_values(self):
        previous = [hc("DiskUsageHigh", "false", "disk usage is 40.00%")]
        current = [hc("DiskUsageHigh", "false", "disk usage is 41.00%")]
        assert compare(previous, current).state_changed is False

    def test_message_change_alone_is_not_a_change(self):
        verdict = compare([hc("docker", "Unhealthy", "a")], [hc("docker", "Unhealthy", "b")])
        assert verdict.state_changed is False

    def test_new_check_type_is_not_a_change(self):
        previous = [hc("CPUUnderPressure", "false")]
        current = [hc("CPUUnderPressure", "false"), hc("docker", "Unhealthy")]
        verdict = compare(previous, current)
        assert verdict.state_changed is False
        assert verdict.healthy is False

    def test_removed_check_type_is_not_a_change(self):
        previous = [hc("CPUUnderPressure", "false"), hc("docker", "Healthy")]
        assert compare(previous, [hc("CPUUnderPressure", "false")]).state_changed is False


class TestProperties:
    """Purity properties of compare()."""

    previous = [hc("CPUUnderPressure", "false"), hc("docker", "Healthy"), hc("DiskUsageHigh", "false")]
    current = [hc("CPUUnderPressure", "true"), hc("docker", "Healthy"), hc("portworx", "Unhealthy")]

    def test_idempotent(self):
        assert compare(self.previous, self.current) == compare(self.previous, self.current)

    def test_order_independent(self):
        expected = compare(self.previous, self.current)
        for prev, curr in itertools.product(
            itertools.permutations(self.previous), itertools.permutations(self.current)
        ):
            assert compare(prev, curr) == expected

    def test_inputs_not_modified(self):
        previous = list(self.previous)
        current = list(self.current)
        compare(previous, current)
        assert previous == self.previous
        assert current == self.current
