"""Tests for the tick oracle ring."""

import pytest

from clmm.constants import I64_MAX, I64_MIN, OBSERVATION_NUM, OBSERVATION_UPDATE_DURATION
from clmm.state.observation import Observation, ObservationState, average_tick


@pytest.fixture
def anchored() -> ObservationState:
    state = ObservationState(pool_id="pool-1")
    state.update(1000, 5)
    return state


class TestUpdate:
    """Tests for ObservationState.update."""

    def test_first_update_anchors(self):
        state = ObservationState(pool_id="pool-1")
        assert not state.initialized
        assert state.update(1000, 42)
        assert state.initialized
        assert state.latest() == Observation(1000, 0)

    def test_accumulates_tick_times_elapsed(self, anchored):
        assert anchored.update(1100, -7)
        assert anchored.observation_index == 1
        assert anchored.latest() == Observation(1100, -700)

        anchored.update(1130, 20)
        assert anchored.latest() == Observation(1130, -700 + 600)

    def test_too_soon_is_ignored(self, anchored):
        assert not anchored.update(1000 + OBSERVATION_UPDATE_DURATION - 1, 9)
        assert anchored.latest() == Observation(1000, 0)
        assert anchored.update(1000 + OBSERVATION_UPDATE_DURATION, 9)

    def test_clock_going_backwards_is_ignored(self, anchored):
        assert not anchored.update(900, 9)
        assert len(anchored.observations) == 1

    def test_ring_wraps_over_oldest(self, anchored):
        for i in range(1, OBSERVATION_NUM + 1):
            anchored.update(1000 + i * OBSERVATION_UPDATE_DURATION, 1)

        assert len(anchored.observations) == OBSERVATION_NUM
        assert anchored.observation_index == 0
        newest = 1000 + OBSERVATION_NUM * OBSERVATION_UPDATE_DURATION
        assert anchored.latest().block_timestamp == newest
        assert anchored.oldest().block_timestamp == 1000 + OBSERVATION_UPDATE_DURATION

    def test_cumulative_wraps_as_i64(self):
        state = ObservationState(pool_id="pool-1", observations=[Observation(0, I64_MAX - 10)])
        state.update(100, 1)
        assert state.latest().tick_cumulative == I64_MIN + 89

    def test_empty_ring_has_no_bounds(self):
        state = ObservationState(pool_id="pool-1")
        assert state.latest() is None
        assert state.oldest() is None


class TestAverageTick:
    """Tests for average_tick."""

    def test_average_over_two_ticks(self, anchored):
        anchored.update(1100, 10)
        anchored.update(1400, 30)
        assert average_tick(anchored.oldest(), anchored.latest()) == (10 * 100 + 30 * 300) // 400

    def test_negative_average_rounds_down(self):
        assert average_tick(Observation(0, 0), Observation(20, -30)) == -2

    def test_average_across_wraparound(self):
        older = Observation(0, I64_MAX - 10)
        newer = Observation(100, I64_MIN + 89)
        assert average_tick(older, newer) == 1

    def test_zero_span_rejected(self):
        with pytest.raises(ValueError):
            average_tick(Observation(5, 0), Observation(5, 10))
