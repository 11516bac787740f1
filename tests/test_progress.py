import threading

import pytest

from hyprdeck.orchestration.progress import (
    PIPELINE_PHASES,
    ProgressChannel,
    ProgressEstimator,
    ProgressUpdate,
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestProgressEstimator:
    """Tests for weighted progress estimation."""

    def test_starts_at_zero(self):
        assert ProgressEstimator().percent() == 0

    def test_weights_are_applied(self):
        estimator = ProgressEstimator([("a", 1), ("b", 3)])
        assert estimator.complete("a") == 25

    def test_stays_below_100_until_last_phase(self):
        estimator = ProgressEstimator([("a", 0.99), ("b", 0.01)])
        estimator.complete("a")
        assert estimator.percent() == 99
        estimator.complete("b")
        assert estimator.percent() == 100

    def test_finish_reaches_exactly_100(self):
        estimator = ProgressEstimator()
        assert estimator.finish() == 100

    def test_never_decreases(self):
        estimator = ProgressEstimator()
        seen = []
        estimator.advance("installing", 0.5)
        seen.append(estimator.percent())
        estimator.advance("installing", 0.2)
        seen.append(estimator.percent())
        estimator.complete("planning")
        seen.append(estimator.percent())
        estimator.advance("configuring", 0.1)
        seen.append(estimator.percent())

        assert seen == sorted(seen)
        assert all(0 <= p <= 100 for p in seen)

    def test_fraction_is_clamped(self):
        estimator = ProgressEstimator([("a", 1), ("b", 1)])
        assert estimator.advance("a", 7.0) == 50
        assert estimator.advance("b", -3.0) == 50

    def test_unknown_phase_rejected(self):
        with pytest.raises(KeyError):
            ProgressEstimator().advance("compiling", 0.5)

    @pytest.mark.parametrize(
        "phases",
        [[], [("a", 1), ("a", 2)], [("a", -1), ("b", 2)], [("a", 0), ("b", 0)]],
    )
    def test_invalid_phase_tables(self, phases):
        with pytest.raises(ValueError):
            ProgressEstimator(phases)

    def test_no_eta_before_a_phase_completes(self):
        clock = FakeClock()
        estimator = ProgressEstimator(clock=clock)
        estimator.start()
        clock.now = 10
        estimator.advance("planning", 0.5)
        assert estimator.estimate_remaining() is None

    def test_eta_extrapolates_elapsed_time(self):
        clock = FakeClock()
        estimator = ProgressEstimator([("a", 1), ("b", 1)], clock=clock)
        estimator.start()
        clock.now = 30
        estimator.complete("a")

        remaining = estimator.estimate_remaining()
        assert remaining is not None
        assert remaining.total_seconds() == pytest.approx(30)

    def test_phase_progress(self):
        assert ProgressEstimator.phase_progress(4, 1) == 25
        assert ProgressEstimator.phase_progress(3, 3) == 100
        assert ProgressEstimator.phase_progress(0, 0) == 100
        assert ProgressEstimator.phase_progress(2, 5) == 100

    def test_pipeline_phases_cover_every_working_state(self):
        names = [name for name, _ in PIPELINE_PHASES]
        assert names == [
            "planning",
            "preflight",
            "resolving",
            "installing",
            "configuring",
            "recording_history",
        ]


def _update(n: int) -> ProgressUpdate:
    return ProgressUpdate(phase="installing", percent=n, message=f"step {n}")


class TestProgressChannel:
    """Tests for the bounded, non-blocking progress buffer."""

    def test_drops_oldest_when_full(self):
        channel = ProgressChannel(capacity=2)
        for n in range(5):
            assert channel.publish(_update(n))

        assert [u.percent for u in channel.drain()] == [3, 4]
        assert channel.dropped == 3

    def test_publish_after_close_is_refused(self):
        channel = ProgressChannel()
        channel.close()
        assert channel.publish(_update(1)) is False
        assert channel.closed

    def test_iteration_ends_when_closed(self):
        channel = ProgressChannel()
        received = []

        def consume():
            received.extend(u.percent for u in channel)

        consumer = threading.Thread(target=consume)
        consumer.start()
        for n in (10, 20, 30):
            channel.publish(_update(n))
        channel.close()
        consumer.join(timeout=5)

        assert not consumer.is_alive()
        assert received == [10, 20, 30]

    def test_get_times_out(self):
        assert ProgressChannel().get(timeout=0.01) is None

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            ProgressChannel(capacity=0)

    def test_update_to_dict(self):
        data = _update(42).to_dict()
        assert data["percent"] == 42
        assert data["estimated_remaining_seconds"] is None
