import threading

import pytest

from local_pv_cleaner.cleaner import PeriodicCleaner
from local_pv_cleaner.errors import InventoryError
from local_pv_cleaner.models import SweepResult


class FakeSweeper:
    """Sets ``stop`` after ``runs`` sweeps; raises the queued errors in order."""

    def __init__(self, stop, runs=1, errors=()):
        self.stop = stop
        self.runs = runs
        self.errors = list(errors)
        self.calls = 0

    def run_full_sweep(self):
        self.calls += 1
        if self.calls >= self.runs:
            self.stop.set()
        if self.errors:
            raise self.errors.pop(0)
        return SweepResult()


class TestPeriodicCleaner:
    @pytest.fixture
    def stop(self) -> threading.Event:
        return threading.Event()

    def test_sweeps_until_stopped(self, stop) -> None:
        sweeper = FakeSweeper(stop, runs=3)
        PeriodicCleaner(sweeper, interval=0.001).run(stop)
        assert sweeper.calls == 3

    def test_no_sweep_once_stopped(self, stop) -> None:
        """A stop signal before the first tick prevents any sweep."""
        stop.set()
        sweeper = FakeSweeper(stop)
        PeriodicCleaner(sweeper, interval=60).run(stop)
        assert sweeper.calls == 0

    def test_failure_ends_the_loop(self, stop) -> None:
        sweeper = FakeSweeper(stop, runs=5, errors=[InventoryError("list failed")])
        with pytest.raises(InventoryError):
            PeriodicCleaner(sweeper, interval=0.001).run(stop)
        assert sweeper.calls == 1
        assert not stop.is_set()

    def test_continue_on_error(self, stop) -> None:
        sweeper = FakeSweeper(stop, runs=2, errors=[InventoryError("list failed")])
        PeriodicCleaner(sweeper, interval=0.001, continue_on_error=True).run(stop)
        assert sweeper.calls == 2

    def test_stop_from_another_thread(self, stop) -> None:
        sweeper = FakeSweeper(stop, runs=10**9)
        cleaner = PeriodicCleaner(sweeper, interval=60)
        thread = threading.Thread(target=cleaner.run, args=(stop,))
        thread.start()
        stop.set()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert sweeper.calls == 0

    def test_fatal_failure_is_left_to_the_caller_to_log(self, stop, capsys) -> None:
        """Only the retrying path logs here; a fatal error is logged by whoever runs the loop."""
        sweeper = FakeSweeper(stop, runs=5, errors=[InventoryError("list failed")])
        with pytest.raises(InventoryError):
            PeriodicCleaner(sweeper, interval=0.001).run(stop)
        assert "periodic orphaned PV cleanup failed" not in capsys.readouterr().out

    def test_retried_failure_is_logged(self, stop, capsys) -> None:
        sweeper = FakeSweeper(stop, runs=2, errors=[InventoryError("list failed")])
        PeriodicCleaner(sweeper, interval=0.001, continue_on_error=True).run(stop)
        assert "retrying next tick" in capsys.readouterr().out
