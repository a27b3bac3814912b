import os

from cpu_scheduler import MemoryPool, ProcessRecord, TraceSink

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def rec(name, arrival=0, priority=0, burst=1, ram=100, cpu=0):
    return ProcessRecord.create(name, arrival, priority, burst, ram, cpu)


def lines_for(sink, name):
    prefix = f"Process {name} "
    return [line for line in sink.lines if line.startswith(prefix)]


def completion_lines(name, cpu_id, start, end):
    return [
        f"Process {name} is assigned to CPU-{cpu_id}.",
        f"Process {name} starts at time {start} on CPU-{cpu_id}.",
        f"Process {name} completes at time {end}.",
        f"Process {name} is completed and terminated.",
        f"Process {name} releases RAM.",
    ]


def rejection_lines(name):
    return [
        f"Process {name} could not be assigned due to insufficient RAM.",
        f"Process {name} is queued due to insufficient RAM.",
    ]


class LedgerPool(MemoryPool):
    """Memory pool that remembers who holds memory and refuses double releases."""

    def __init__(self, capacity):
        super().__init__(capacity)
        self.outstanding = {}
        self.admissions = []
        self.releases = []

    def try_admit(self, record):
        admitted = super().try_admit(record)
        if admitted:
            assert record.name not in self.outstanding, f"{record.name} admitted twice"
            self.outstanding[record.name] = record.ram_required
            self.admissions.append(record.name)
        return admitted

    def release(self, record):
        assert record.name in self.outstanding, f"{record.name} released without admission"
        super().release(record)
        del self.outstanding[record.name]
        self.releases.append(record.name)


class CheckingSink(TraceSink):
    """Trace sink that checks the pool bounds and conservation on every line."""

    def __init__(self, pool):
        super().__init__()
        self.pool = pool

    def emit(self, line):
        super().emit(line)
        assert 0 <= self.pool.available <= self.pool.capacity
        assert self.pool.capacity - self.pool.available == sum(self.pool.outstanding.values())
