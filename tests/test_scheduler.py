# tests/test_scheduler.py

import threading

import pytest

from relay_indexer.core.errors import ConfigurationError, EventProcessingError
from relay_indexer.pipeline.runner import JobRunner
from relay_indexer.pipeline.scheduler import Cadence, Scheduler
from relay_indexer.types.chain import RunStatus


class CountingJob(JobRunner):
    def __init__(self, name, error=None):
        super().__init__(name)
        self.calls = 0
        self.error = error
        self.triggered = threading.Event()

    def _execute(self, summary):
        self.calls += 1
        self.triggered.set()
        if self.error is not None:
            raise self.error
        summary.status = RunStatus.SUCCESS


class TestCadence:
    @pytest.mark.parametrize('expression, seconds', [
        ('30s', 30),
        ('5m', 300),
        ('1h', 3600),
        ('45', 45),
        (' 2m ', 120),
    ])
    def test_intervals(self, expression, seconds):
        cadence = Cadence.parse(expression)
        assert cadence.is_interval
        assert cadence.next_delay() == seconds

    def test_cron_expression(self):
        cadence = Cadence.parse('*/5 * * * *')
        assert not cadence.is_interval
        # one minute past a five minute boundary
        assert cadence.next_delay(now=1_699_999_860) == pytest.approx(240)

    def test_daily_cron(self):
        cadence = Cadence.parse('0 1 * * *')
        midnight = 1_699_920_000
        assert cadence.next_delay(now=midnight) == pytest.approx(3600)

    @pytest.mark.parametrize('expression', ['', '   ', '0s', 'every minute', '61 * * * *', '5d'])
    def test_invalid(self, expression):
        with pytest.raises(ConfigurationError):
            Cadence.parse(expression)


class TestScheduler:
    def test_register_rejects_duplicates(self):
        scheduler = Scheduler()
        scheduler.register(CountingJob('a'), '30s')
        with pytest.raises(ConfigurationError):
            scheduler.register(CountingJob('a'), '1m')

    def test_register_rejects_bad_cadence(self):
        scheduler = Scheduler()
        with pytest.raises(ConfigurationError):
            scheduler.register(CountingJob('a'), 'sometimes')
        assert scheduler.jobs == {}

    def test_run_once_and_run_all(self):
        scheduler = Scheduler()
        first, second = CountingJob('first'), CountingJob('second')
        scheduler.register(first, '30s')
        scheduler.register(second, '*/2 * * * *')

        assert scheduler.run_once('first').status == RunStatus.SUCCESS
        results = scheduler.run_all()

        assert set(results) == {'first', 'second'}
        assert first.calls == 2
        assert second.calls == 1
        assert scheduler.cadence_for('second').expression == '*/2 * * * *'

    def test_run_once_unknown_job(self):
        with pytest.raises(ConfigurationError):
            Scheduler().run_once('missing')

    def test_failed_run_is_summarized(self):
        job = CountingJob('broken', error=EventProcessingError("boom"))
        summary = job.run()
        assert summary.status == RunStatus.FAILED
        assert 'boom' in summary.error
        assert not job.is_running

    def test_unexpected_error_does_not_kill_the_loop(self):
        scheduler = Scheduler()
        job = CountingJob('crashy', error=RuntimeError("unexpected"))
        scheduler.register(job, '1h')

        scheduler.start()
        try:
            assert job.triggered.wait(5)
        finally:
            scheduler.stop(timeout=5)

        assert not job.is_running
        assert job.calls == 1

    def test_start_triggers_and_stops(self):
        scheduler = Scheduler()
        job = CountingJob('loop')
        scheduler.register(job, '1h')

        scheduler.start()
        try:
            assert job.triggered.wait(5)
            assert scheduler.running
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.running
        assert job.calls == 1

    def test_start_without_initial_run(self):
        scheduler = Scheduler()
        job = CountingJob('lazy')
        scheduler.register(job, '1h')

        scheduler.start(run_immediately=False)
        scheduler.stop(timeout=5)

        assert job.calls == 0
