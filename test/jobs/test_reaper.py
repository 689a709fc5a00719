import time

from abicat.jobs.job import Job
from abicat.jobs.reaper import Reaper
from abicat.jobs.table import JobTable
from fixtures.general import FakeClock
from fixtures.jobs import JOB_TTL


def noop(_: Job):
    pass


def test_sweep_uses_age_only(reaper: Reaper, jobs: JobTable, clock: FakeClock):
    jobs.admit("eth-mainnet", "0xpending", noop)
    jobs.admit("eth-mainnet", "0xdone", noop)
    jobs.complete("eth-mainnet:0xdone", None)

    clock.advance(JOB_TTL - 1)
    assert reaper.sweep() == 0
    assert len(jobs) == 2

    clock.advance(2)
    assert reaper.sweep() == 2
    assert len(jobs) == 0


def test_sweep_keeps_young_jobs(reaper: Reaper, jobs: JobTable, clock: FakeClock):
    jobs.admit("eth-mainnet", "0xold", noop)
    clock.advance(JOB_TTL / 2)
    jobs.admit("eth-mainnet", "0xyoung", noop)
    clock.advance(JOB_TTL / 2 + 1)

    assert reaper.sweep() == 1
    assert "eth-mainnet:0xyoung" in jobs
    assert "eth-mainnet:0xold" not in jobs


def test_sweep_at_given_time(reaper: Reaper, jobs: JobTable, clock: FakeClock):
    jobs.admit("eth-mainnet", "0xaaa", noop)
    assert reaper.sweep(clock() + JOB_TTL + 1) == 1


def test_background_sweeps():
    jobs = JobTable(clock=lambda: 0.0)
    jobs.admit("eth-mainnet", "0xaaa", noop)
    reaper = Reaper(jobs, ttl=1, interval=0.01, clock=lambda: 10.0)
    reaper.start()
    try:
        deadline = time.time() + 5
        while len(jobs) > 0 and time.time() < deadline:
            time.sleep(0.01)
    finally:
        reaper.stop(timeout=5)
    assert len(jobs) == 0
