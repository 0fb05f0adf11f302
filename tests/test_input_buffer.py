"""Tests for the per-player input buffer."""

from fenceserver.models.inputs import NEUTRAL, InputIntent
from fenceserver.network.input_buffer import InputBuffer


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _make_buffer():
    clock = _Clock()
    return InputBuffer(stale_after=1.0, clock=clock), clock


class TestInputBuffer:
    def test_missing_players_are_neutral(self):
        buf, _ = _make_buffer()
        assert buf.snapshot() == {1: NEUTRAL, 2: NEUTRAL}

    def test_latest_input_wins(self):
        buf, clock = _make_buffer()
        buf.update(1, {"up": True})
        clock.now += 0.2
        buf.update(1, {"left": True})
        assert buf.snapshot()[1] == InputIntent(left=True)

    def test_stale_input_is_neutral(self):
        buf, clock = _make_buffer()
        buf.update(2, {"right": True})
        clock.now += 0.9
        assert buf.snapshot()[2] == InputIntent(right=True)
        clock.now += 0.6
        assert buf.snapshot()[2] == NEUTRAL

    def test_spectators_ignored(self):
        buf, _ = _make_buffer()
        buf.update(0, {"up": True})
        buf.update(3, {"up": True})
        assert set(buf.snapshot()) == {1, 2}
        assert buf.snapshot()[1] == NEUTRAL

    def test_only_true_counts_as_pressed(self):
        buf, _ = _make_buffer()
        buf.update(1, {"up": "yes", "down": 1, "left": True})
        assert buf.snapshot()[1] == InputIntent(left=True)

    def test_clear(self):
        buf, _ = _make_buffer()
        buf.update(1, {"up": True})
        buf.update(2, {"up": True})
        buf.clear(1)
        assert buf.snapshot()[1] == NEUTRAL
        assert buf.snapshot()[2] == InputIntent(up=True)
        buf.clear()
        assert buf.snapshot()[2] == NEUTRAL

    def test_intent_vector(self):
        assert InputIntent(up=True, right=True).vector == (1.0, -1.0)
        assert InputIntent(left=True, right=True).vector == (0.0, 0.0)
