import pytest

from cpu_scheduler import RejectedQueue, SchedulerConfig
from helpers import CheckingSink, LedgerPool


@pytest.fixture
def config():
    return SchedulerConfig()


@pytest.fixture
def pool():
    return LedgerPool(2048)


@pytest.fixture
def sink(pool):
    return CheckingSink(pool)


@pytest.fixture
def rejected():
    return RejectedQueue()
