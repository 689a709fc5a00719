"""
Module for background fetch jobs.

A job is created for every contract that needs fetching and is
identified by ``"{chain}:{address}"``. :class:`FetchDispatcher`
processes jobs one by one within the metadata source rate limit,
:class:`Reaper` evicts jobs after a TTL.
"""

from abicat.jobs.job import FetchRequest, Job, JobStatus, job_id
from abicat.jobs.table import JobTable
from abicat.jobs.dispatcher import FetchDispatcher, call_gap
from abicat.jobs.reaper import Reaper
