import asyncio
from unittest.mock import Mock

from app.services.scheduler import PeriodicJob, default_jobs, start_jobs, stop_jobs


def run_for(jobs, seconds):
    async def main():
        await start_jobs(jobs)
        await asyncio.sleep(seconds)
        await stop_jobs(jobs)

    asyncio.run(main())


class TestPeriodicJob:
    """Test cases for the fixed-interval job runner"""

    def test_runs_repeatedly_with_a_session(self):
        func = Mock()
        job = PeriodicJob(name="test", interval_seconds=0.05, func=func)

        run_for([job], 0.3)

        assert func.call_count >= 2
        # every run gets a db session
        assert all(call.args[0] is not None for call in func.call_args_list)
        assert job.task is None

    def test_run_on_start(self):
        func = Mock()
        job = PeriodicJob(name="test", interval_seconds=60, func=func, run_on_start=True)

        run_for([job], 0.1)

        assert func.call_count == 1

    def test_failures_are_contained(self):
        func = Mock(side_effect=RuntimeError("boom"))
        job = PeriodicJob(name="test", interval_seconds=0.05, func=func)

        run_for([job], 0.2)

        assert func.call_count >= 2

    def test_stop_before_first_interval(self):
        func = Mock()
        job = PeriodicJob(name="test", interval_seconds=60, func=func)

        run_for([job], 0.05)

        func.assert_not_called()


def test_default_jobs():
    jobs = default_jobs()
    assert [job.name for job in jobs] == ["reconcile-holders", "sweep-pending-sessions"]
    assert [job.interval_seconds for job in jobs] == [6 * 60 * 60, 60 * 60]
