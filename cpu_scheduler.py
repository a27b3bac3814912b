#!/usr/bin/env python3
# cpu_scheduler.py
#
# Dual-CPU job scheduler simulation under a shared, finite RAM budget.
# Reads a batch of process descriptors and writes a trace of admission,
# CPU assignment, start/completion and RAM release events.

import argparse
import logging
import os
import sys
from collections import deque, namedtuple

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
# --- Configuration
# --------------------------------------------------------------------------

TOTAL_RAM = 2048
CPU1_RAM = 512
SHORT_QUANTUM = 8
LONG_QUANTUM = 16
PROCESSOR_COUNT = 2

FCFS_PRIORITY = 0
SJF_PRIORITY = 1
SHORT_RR_PRIORITY = 2
LONG_RR_PRIORITY = 3

CONFIG_KEYS = ('total_ram', 'cpu1_budget', 'short_quantum', 'long_quantum',
               'processors', 'sort_by_arrival', 'drain_rejected')


class SchedulerError(Exception):
    """Base class for every error raised by the scheduler."""


class MalformedInputError(SchedulerError):
    """An input line could not be parsed into a process record."""

    def __init__(self, line_number, line, reason):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Malformed process line {line_number}: '{line}' ({reason})")


class AllocationFailure(SchedulerError):
    """A process record cannot be represented. Aborts the run."""


class ConfigError(SchedulerError):
    """Invalid scheduler configuration."""


class MemoryPoolError(SchedulerError):
    """The memory pool would leave its bounds."""


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


class SchedulerConfig:
    """
    Tunable constants of a simulation run.

    Attributes:
        total_ram (int): Capacity of the shared memory pool.
        cpu1_budget (int): RAM sub-budget of CPU-1 in the admission pass.
            The rest of total_ram is split between CPU-2..CPU-N.
        short_quantum (int): Round-Robin quantum for priority 2.
        long_quantum (int): Round-Robin quantum for priority 3.
        processors (int): Number of CPU timelines.
        sort_by_arrival (bool): Sort FCFS candidates by arrival time first.
        drain_rejected (bool): Retry the rejected queue once after all
            disciplines have run.
    """
    def __init__(self, total_ram=TOTAL_RAM, cpu1_budget=CPU1_RAM,
                 short_quantum=SHORT_QUANTUM, long_quantum=LONG_QUANTUM,
                 processors=PROCESSOR_COUNT, sort_by_arrival=False,
                 drain_rejected=False):
        self.total_ram = total_ram
        self.cpu1_budget = cpu1_budget
        self.short_quantum = short_quantum
        self.long_quantum = long_quantum
        self.processors = processors
        self.sort_by_arrival = sort_by_arrival
        self.drain_rejected = drain_rejected

    @classmethod
    def from_dict(cls, data):
        """Builds a config from a mapping such as a JSON request body."""
        unknown = sorted(set(data) - set(CONFIG_KEYS))
        if unknown:
            raise ConfigError(f"Unknown configuration key '{unknown[0]}'")
        config = cls(**data)
        config.validate()
        return config

    def validate(self):
        for key in ('total_ram', 'cpu1_budget', 'short_quantum', 'long_quantum'):
            value = getattr(self, key)
            if not _is_int(value) or value <= 0:
                raise ConfigError(f"{key} must be a positive integer, got {value!r}")
        if not _is_int(self.processors) or self.processors < 2:
            raise ConfigError(f"processors must be an integer >= 2, got {self.processors!r}")
        if self.cpu1_budget > self.total_ram:
            raise ConfigError(f"cpu1_budget ({self.cpu1_budget}) exceeds total_ram ({self.total_ram})")
        for key in ('sort_by_arrival', 'drain_rejected'):
            if not isinstance(getattr(self, key), bool):
                raise ConfigError(f"{key} must be a boolean")
        return self

    def cpu_budgets(self):
        """Returns {cpu_id: RAM sub-budget}; CPU-2 takes any rounding leftover."""
        share, leftover = divmod(self.total_ram - self.cpu1_budget, self.processors - 1)
        budgets = {1: self.cpu1_budget}
        for cpu_id in range(2, self.processors + 1):
            budgets[cpu_id] = share + (leftover if cpu_id == 2 else 0)
        return budgets

    def to_dict(self):
        return {key: getattr(self, key) for key in CONFIG_KEYS}

    def __repr__(self):
        return f"SchedulerConfig({self.to_dict()})"

# --------------------------------------------------------------------------
# --- Data Structures
# --------------------------------------------------------------------------

_ProcessRecordBase = namedtuple(
    '_ProcessRecordBase',
    'name arrival_time priority burst_time ram_required cpu_usage')


class ProcessRecord(_ProcessRecordBase):
    """
    Immutable description of one unit of work.

    Attributes:
        name (str): Identifier, unique within a run.
        arrival_time (int): Time tick at which the process becomes eligible.
        priority (int): Priority class 0-3, 0 is highest.
        burst_time (int): Total CPU time required.
        ram_required (int): Memory reserved while the process runs.
        cpu_usage (int): Carried from the input, unused by the scheduler.

    Remaining burst is tracked by the disciplines in their own side tables,
    so the same records are shared by every pass.
    """
    __slots__ = ()

    @classmethod
    def create(cls, name, arrival_time, priority, burst_time, ram_required, cpu_usage=0):
        """Validates the fields and builds a record, raising AllocationFailure."""
        if not isinstance(name, str) or not name or ',' in name:
            raise AllocationFailure(f"Invalid process name {name!r}")
        fields = {'arrival_time': arrival_time, 'priority': priority,
                  'burst_time': burst_time, 'ram_required': ram_required,
                  'cpu_usage': cpu_usage}
        for field, value in fields.items():
            if not _is_int(value):
                raise AllocationFailure(f"Process {name}: {field} must be an integer, got {value!r}")
        if arrival_time < 0:
            raise AllocationFailure(f"Process {name}: arrival_time cannot be negative")
        if priority not in (FCFS_PRIORITY, SJF_PRIORITY, SHORT_RR_PRIORITY, LONG_RR_PRIORITY):
            raise AllocationFailure(f"Process {name}: priority must be between 0 and 3")
        if burst_time <= 0:
            raise AllocationFailure(f"Process {name}: burst_time must be positive")
        if ram_required <= 0:
            raise AllocationFailure(f"Process {name}: ram_required must be positive")
        return cls(name, arrival_time, priority, burst_time, ram_required, cpu_usage)

    def __repr__(self):
        return (f"ProcessRecord(name='{self.name}', arrival={self.arrival_time}, "
                f"priority={self.priority}, burst={self.burst_time}, ram={self.ram_required})")


def sort_by_arrival(records):
    """Stable sort by arrival time. The input sequence is left untouched."""
    return sorted(records, key=lambda r: r.arrival_time)


def sort_by_burst(records):
    """Stable sort by burst time. The input sequence is left untouched."""
    return sorted(records, key=lambda r: r.burst_time)


class MemoryPool:
    """
    The shared RAM counter. Stays within [0, capacity] at all times.
    """
    def __init__(self, capacity=TOTAL_RAM):
        if not _is_int(capacity) or capacity <= 0:
            raise MemoryPoolError(f"Pool capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self.available = capacity

    @property
    def in_use(self):
        return self.capacity - self.available

    def can_admit(self, record):
        return record.ram_required <= self.available

    def try_admit(self, record):
        """Reserves the record's RAM. Returns False, leaving the pool alone, if it does not fit."""
        if not self.can_admit(record):
            return False
        self.available -= record.ram_required
        return True

    def release(self, record):
        if self.available + record.ram_required > self.capacity:
            raise MemoryPoolError(
                f"Releasing {record.ram_required} for process {record.name} "
                f"overflows the pool ({self.available}/{self.capacity})")
        self.available += record.ram_required

    def __repr__(self):
        return f"MemoryPool(available={self.available}, capacity={self.capacity})"


class _ProcessQueue:
    """FIFO of process records."""
    def __init__(self, records=()):
        self._items = deque(records)

    def enqueue(self, record):
        self._items.append(record)

    def dequeue(self):
        """Removes and returns the front record, or None when empty."""
        if self._items:
            return self._items.popleft()
        return None

    def names(self):
        return [record.name for record in self._items]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __repr__(self):
        return f"{type(self).__name__}({self.names()})"


class RejectedQueue(_ProcessQueue):
    """
    Holding area for records that failed admission, in order of rejection.
    Diagnostic only; no pass drains it unless drain_rejected is set.
    """


class ReadyQueue(_ProcessQueue):
    """Per-pass Round-Robin ready queue."""


class CpuTimeline:
    """A processor's simulated clock. Never moves backwards."""
    def __init__(self, cpu_id):
        self.cpu_id = cpu_id
        self.clock = 0

    def run(self, length):
        """Occupies the CPU for `length` ticks. Returns (start, completion)."""
        if length <= 0:
            raise ValueError(f"Run length must be positive, got {length}")
        start = self.clock
        self.clock += length
        return start, self.clock

    def advance_to(self, time):
        """Idles the CPU until `time`, if that lies in the future."""
        if time > self.clock:
            self.clock = time

    def __repr__(self):
        return f"CpuTimeline(cpu={self.cpu_id}, clock={self.clock})"

# --------------------------------------------------------------------------
# --- Trace Output
# --------------------------------------------------------------------------

class TraceSink:
    """
    Receives the ordered trace lines. Keeps them in `lines` and, when given
    a file object, writes each one through as it is emitted.
    """
    def __init__(self, out_file=None):
        self.out_file = out_file
        self.lines = []

    def emit(self, line):
        self.lines.append(line)
        if self.out_file is not None:
            self.out_file.write(f"{line}\n")

    def queued(self, name):
        self.emit(f"Process {name} is queued due to insufficient RAM.")

    def assigned(self, name, cpu_id):
        self.emit(f"Process {name} is assigned to CPU-{cpu_id}.")

    def starts(self, name, time, cpu_id):
        self.emit(f"Process {name} starts at time {time} on CPU-{cpu_id}.")

    def completes(self, name, time):
        self.emit(f"Process {name} completes at time {time}.")

    def terminated(self, name):
        self.emit(f"Process {name} is completed and terminated.")

    def releases(self, name):
        self.emit(f"Process {name} releases RAM.")

    def not_assigned(self, name):
        self.emit(f"Process {name} could not be assigned due to insufficient RAM.")

    def requeued(self, name):
        self.emit(f"Process {name} ran until the defined quantum time and is "
                  "queued again because the process is not completed.")

    def text(self):
        return "".join(f"{line}\n" for line in self.lines)

# --------------------------------------------------------------------------
# --- Admission and Dispatch Helpers
# --------------------------------------------------------------------------

def reject(record, rejected_queue, sink):
    """Logs the failed admission and parks the record in the rejected queue."""
    sink.not_assigned(record.name)
    rejected_queue.enqueue(record)
    sink.queued(record.name)


def release_ram(record, pool, sink):
    pool.release(record)
    sink.releases(record.name)


def dispatch(record, timeline, length, sink):
    """Runs `length` ticks of the record on the timeline and logs the start."""
    start, completion = timeline.run(length)
    sink.assigned(record.name, timeline.cpu_id)
    sink.starts(record.name, start, timeline.cpu_id)
    return start, completion


def complete_process(record, timeline, length, pool, sink):
    """Runs the record's last `length` ticks, then terminates it and frees its RAM."""
    start, completion = dispatch(record, timeline, length, sink)
    sink.completes(record.name, completion)
    sink.terminated(record.name)
    release_ram(record, pool, sink)
    return start, completion


class PassResult:
    """
    Outcome of one scheduling pass.

    Attributes:
        label (str): Queue description used in the run summary, or None for
            the initial admission pass.
        order (list): Names in the order they got the CPU, one entry per slice.
        remaining (dict): Side table of remaining burst per record name.
    """
    def __init__(self, label, records):
        self.label = label
        self.order = []
        self.remaining = {record.name: record.burst_time for record in records}

    @property
    def completed(self):
        return [name for name, left in self.remaining.items() if left == 0]

    @property
    def unfinished(self):
        return [name for name, left in self.remaining.items() if left > 0]

    def summary_line(self):
        return f"{self.label}:{'-'.join(self.order)}"

    def __repr__(self):
        return f"PassResult(label={self.label!r}, order={self.order})"

# --------------------------------------------------------------------------
# --- Scheduling Disciplines
# --------------------------------------------------------------------------

def choose_cpu(record, budgets):
    """
    Routing policy of the admission pass. Priority 0 takes the first CPU
    (CPU-1 first) whose remaining sub-budget covers it; everything else goes
    straight to CPU-2. Returns None when no CPU fits.
    """
    if record.priority != FCFS_PRIORITY:
        return 2
    for cpu_id in sorted(budgets):
        if budgets[cpu_id] >= record.ram_required:
            return cpu_id
    return None


def run_admission_pass(records, pool, rejected_queue, sink, config, label=None):
    """
    Bulk pass over every record in input order. Sub-budgets are consumed by
    each placement and not given back within the pass.
    """
    result = PassResult(label, records)
    budgets = config.cpu_budgets()
    timelines = {cpu_id: CpuTimeline(cpu_id) for cpu_id in budgets}

    for record in records:
        cpu_id = choose_cpu(record, budgets) if pool.can_admit(record) else None
        if cpu_id is None or not pool.try_admit(record):
            reject(record, rejected_queue, sink)
            continue
        budgets[cpu_id] -= record.ram_required
        logger.debug("Admission pass: %s placed on CPU-%d (budget left %d)",
                     record.name, cpu_id, budgets[cpu_id])
        complete_process(record, timelines[cpu_id], record.burst_time, pool, sink)
        result.remaining[record.name] = 0
        result.order.append(record.name)
    return result


def run_fcfs(records, pool, rejected_queue, sink, config):
    """Priority 0 on CPU-1, in the given order (or by arrival when configured)."""
    candidates = [r for r in records if r.priority == FCFS_PRIORITY]
    if config.sort_by_arrival:
        candidates = sort_by_arrival(candidates)
    result = PassResult("CPU-1 que1(priority-0)(FCFS)", candidates)
    timeline = CpuTimeline(1)

    for record in candidates:
        if not pool.try_admit(record):
            reject(record, rejected_queue, sink)
            continue
        complete_process(record, timeline, record.burst_time, pool, sink)
        result.remaining[record.name] = 0
        result.order.append(record.name)
    return result


def run_sjf(records, pool, rejected_queue, sink, config):
    """
    Non-preemptive shortest-job-first for priority 1 on CPU-2.

    Among the records that have arrived by the current time, the one with
    the smallest burst wins; ties go to the earliest in input order. When
    nothing has arrived yet the clock jumps to the next arrival.

    Every admitted record releases its RAM before the next selection, so a
    record rejected here can never fit during this pass. It is rejected once
    and withdrawn from selection.
    """
    candidates = [r for r in records if r.priority == SJF_PRIORITY]
    result = PassResult("CPU-2 que2(priority-1) (SJF)", candidates)
    timeline = CpuTimeline(2)
    pending = list(candidates)

    while pending:
        ready = [r for r in pending if r.arrival_time <= timeline.clock]
        if not ready:
            timeline.advance_to(min(r.arrival_time for r in pending))
            continue

        # min() keeps the first of equal bursts
        shortest = min(ready, key=lambda r: r.burst_time)
        pending.remove(shortest)
        if not pool.try_admit(shortest):
            reject(shortest, rejected_queue, sink)
            logger.debug("SJF: %s withdrawn, needs %d of %d available",
                         shortest.name, shortest.ram_required, pool.available)
            continue
        complete_process(shortest, timeline, result.remaining[shortest.name], pool, sink)
        result.remaining[shortest.name] = 0
        result.order.append(shortest.name)
    return result


def run_round_robin(records, pool, rejected_queue, sink, quantum, priority):
    """
    Round-Robin for one priority class on CPU-2.

    A record keeps its RAM reserved from its first slice until its final
    one, and releases it exactly once. A record that cannot be admitted
    waits in the ready queue while other records of the pass hold memory;
    if nothing is held, or it is larger than the whole pool, it can never
    fit and is withdrawn after that rejection.
    """
    candidates = [r for r in records if r.priority == priority]
    result = PassResult(f"CPU-2 que{priority + 1}(priority-{priority}) (RR-q{quantum})", candidates)
    timeline = CpuTimeline(2)
    ready_queue = ReadyQueue(candidates)
    resident = set()

    while ready_queue:
        record = ready_queue.dequeue()
        if record.name not in resident:
            if not pool.try_admit(record):
                reject(record, rejected_queue, sink)
                if not resident or record.ram_required > pool.capacity:
                    logger.debug("RR-q%d: %s withdrawn with %d ticks left",
                                 quantum, record.name, result.remaining[record.name])
                else:
                    ready_queue.enqueue(record)
                continue
            resident.add(record.name)

        left = result.remaining[record.name]
        if left <= quantum:
            complete_process(record, timeline, left, pool, sink)
            resident.discard(record.name)
            result.remaining[record.name] = 0
        else:
            dispatch(record, timeline, quantum, sink)
            sink.requeued(record.name)
            result.remaining[record.name] = left - quantum
            ready_queue.enqueue(record)
        result.order.append(record.name)
    return result


def run_drain_pass(pool, rejected_queue, sink, config):
    """
    Gives every rejected record one more admission attempt, using the
    admission-pass routing on fresh timelines. Empties the rejected queue
    first; records that still do not fit end up back in it.
    """
    backlog = []
    seen = set()
    record = rejected_queue.dequeue()
    while record is not None:
        if record.name not in seen:
            seen.add(record.name)
            backlog.append(record)
        record = rejected_queue.dequeue()
    logger.debug("Drain pass over %d rejected records", len(backlog))
    return run_admission_pass(backlog, pool, rejected_queue, sink, config,
                              label="CPU-* drain(rejected)")

# --------------------------------------------------------------------------
# --- Simulation Driver
# --------------------------------------------------------------------------

class SimulationResult:
    """Everything a run produced: per-pass results, leftovers and the trace."""
    def __init__(self, admission, passes, rejected_queue, pool, sink):
        self.admission = admission
        self.passes = passes
        self.rejected_queue = rejected_queue
        self.pool = pool
        self.sink = sink

    @property
    def trace(self):
        return self.sink.lines

    def summary_lines(self):
        return [p.summary_line() for p in self.passes]


def run_scheduler(records, config=None, sink=None, pool=None):
    """
    Runs the admission pass followed by FCFS, SJF and both Round-Robin
    passes, strictly one after another, against one shared memory pool.
    """
    config = (config or SchedulerConfig()).validate()
    names = set()
    for record in records:
        if record.name in names:
            raise AllocationFailure(f"Duplicate process name '{record.name}'")
        names.add(record.name)

    if pool is None:
        pool = MemoryPool(config.total_ram)
    sink = sink if sink is not None else TraceSink()
    rejected_queue = RejectedQueue()
    logger.debug("Running %d processes with %r", len(records), config)

    admission = run_admission_pass(records, pool, rejected_queue, sink, config)
    passes = [
        run_fcfs(records, pool, rejected_queue, sink, config),
        run_sjf(records, pool, rejected_queue, sink, config),
        run_round_robin(records, pool, rejected_queue, sink, config.short_quantum, SHORT_RR_PRIORITY),
        run_round_robin(records, pool, rejected_queue, sink, config.long_quantum, LONG_RR_PRIORITY),
    ]
    if config.drain_rejected:
        passes.append(run_drain_pass(pool, rejected_queue, sink, config))

    logger.debug("Run finished: %d trace lines, %d rejected entries",
                 len(sink.lines), len(rejected_queue))
    return SimulationResult(admission, passes, rejected_queue, pool, sink)

# --------------------------------------------------------------------------
# --- Input Parsing
# --------------------------------------------------------------------------

def parse_records(lines):
    """
    Parses `name,arrival,priority,burst,ram,cpu_usage` lines into records.
    Blank lines and lines starting with '#' are skipped.
    """
    records = []
    seen = set()
    for line_number, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        fields = [field.strip() for field in line.split(',')]
        if len(fields) != 6:
            raise MalformedInputError(line_number, line,
                                      f"expected 6 comma-separated fields, found {len(fields)}")
        name = fields[0]
        try:
            numbers = [int(field) for field in fields[1:]]
        except ValueError:
            raise MalformedInputError(line_number, line, "numeric fields must be integers")
        if name in seen:
            raise MalformedInputError(line_number, line, f"duplicate process name '{name}'")
        seen.add(name)
        try:
            records.append(ProcessRecord.create(name, *numbers))
        except AllocationFailure as e:
            raise MalformedInputError(line_number, line, str(e))
    return records


def parse_input_file(filename):
    with open(filename, 'r') as f:
        return parse_records(f.readlines())

# --------------------------------------------------------------------------
# --- Main Execution
# --------------------------------------------------------------------------

def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog='cpu-scheduler',
        description='Dual-CPU scheduler simulation under a shared RAM budget')
    parser.add_argument('input', help='Process file, one name,arrival,priority,burst,ram,cpu line per process')
    parser.add_argument('-o', '--output', help='Trace file (default: <input basename>.out)')
    parser.add_argument('--total-ram', type=int, default=TOTAL_RAM, help='Shared RAM capacity')
    parser.add_argument('--cpu1-ram', type=int, default=CPU1_RAM, help='CPU-1 RAM sub-budget')
    parser.add_argument('--short-quantum', type=int, default=SHORT_QUANTUM, help='Quantum for priority 2')
    parser.add_argument('--long-quantum', type=int, default=LONG_QUANTUM, help='Quantum for priority 3')
    parser.add_argument('--processors', type=int, default=PROCESSOR_COUNT, help='Number of CPUs')
    parser.add_argument('--sort-arrival', action='store_true', help='Sort FCFS processes by arrival time')
    parser.add_argument('--drain', action='store_true', help='Retry rejected processes once at the end')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log scheduling decisions to stderr')
    return parser


def main(argv=None):
    """
    Entry point: parses the process file, runs the simulation, writes the
    trace file and prints the per-queue run order.
    """
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='[%(levelname)s] %(message)s')

    config = SchedulerConfig(total_ram=args.total_ram, cpu1_budget=args.cpu1_ram,
                             short_quantum=args.short_quantum, long_quantum=args.long_quantum,
                             processors=args.processors, sort_by_arrival=args.sort_arrival,
                             drain_rejected=args.drain)
    try:
        config.validate()
        records = parse_input_file(args.input)
    except FileNotFoundError:
        print(f"Error: Input file '{args.input}' not found.")
        sys.exit(1)
    except SchedulerError as e:
        print(f"Error: {e}")
        sys.exit(1)

    # The trace lands in the current directory, named after the input file.
    output_filename = args.output
    if not output_filename:
        base_name = os.path.splitext(os.path.basename(args.input))[0]
        output_filename = f"{base_name}.out"

    # The trace file is only written once the run has succeeded.
    try:
        result = run_scheduler(records, config)
    except SchedulerError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        with open(output_filename, 'w') as out_file:
            out_file.write(result.sink.text())
    except IOError as e:
        print(f"Error: Could not write to output file '{output_filename}': {e}")
        sys.exit(1)

    for line in result.summary_lines():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
