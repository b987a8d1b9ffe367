import pytest

from gnss_ppp.filter.convergence import ConvergenceTracker, NotComputedError


def test_converges_when_window_full_of_true() -> None:
    tracker = ConvergenceTracker(window=3)

    flags = [tracker.push(t, True) for t in (0.0, 30.0, 60.0, 90.0)]

    assert flags == [False, False, True, True]
    assert tracker.ttfc == [60.0]


def test_false_flag_breaks_convergence_but_ttfc_recorded_once() -> None:
    tracker = ConvergenceTracker(window=2)

    for t, within in ((0.0, True), (10.0, True), (20.0, False), (30.0, True), (40.0, True)):
        tracker.push(t, within)

    assert tracker.converged()
    assert tracker.ttfc == [10.0]


def test_oldest_flag_evicted() -> None:
    tracker = ConvergenceTracker(window=2)
    tracker.push(0.0, False)
    tracker.push(1.0, True)
    assert not tracker.converged()

    assert tracker.push(2.0, True)
    assert tracker.flags == (True, True)


def test_start_time_is_first_marked_epoch() -> None:
    tracker = ConvergenceTracker(window=1)
    tracker.mark_start(5.0)

    tracker.push(20.0, True)

    assert tracker.start_t_s == 5.0
    assert tracker.ttfc == [15.0]


def test_query_before_any_epoch_raises() -> None:
    tracker = ConvergenceTracker(window=5)

    with pytest.raises(NotComputedError):
        tracker.converged()


def test_restart_opens_new_episode_and_keeps_history() -> None:
    tracker = ConvergenceTracker(window=1)
    tracker.push(0.0, True)

    tracker.restart()
    with pytest.raises(NotComputedError):
        tracker.converged()
    tracker.push(100.0, False)
    tracker.push(130.0, True)

    assert tracker.ttfc == [0.0, 30.0]


def test_window_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ConvergenceTracker(window=0)
