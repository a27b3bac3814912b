import os
import subprocess
import sys

import pytest

import cpu_scheduler
from helpers import REPO_ROOT

SCRIPT = os.path.join(REPO_ROOT, 'cpu_scheduler.py')

JOBS = """A,0,0,5,100,0
B,0,1,4,100,0
C,0,2,10,100,0
D,0,3,20,100,0
"""


def run_cli(args, cwd):
    return subprocess.run(
        [sys.executable, SCRIPT] + args,
        capture_output=True,
        text=True,
        cwd=cwd,
        check=False,
    )


def test_summary_and_default_output_file(tmp_path):
    (tmp_path / 'jobs.txt').write_text(JOBS)
    result = run_cli(['jobs.txt'], tmp_path)

    assert result.returncode == 0, f"stderr: {result.stderr}"
    lines = [ln.strip() for ln in result.stdout.splitlines() if ln.strip()]
    assert lines == [
        "CPU-1 que1(priority-0)(FCFS):A",
        "CPU-2 que2(priority-1) (SJF):B",
        "CPU-2 que3(priority-2) (RR-q8):C-C",
        "CPU-2 que4(priority-3) (RR-q16):D-D",
    ]
    trace = (tmp_path / 'jobs.out').read_text().splitlines()
    assert trace[:5] == [
        "Process A is assigned to CPU-1.",
        "Process A starts at time 0 on CPU-1.",
        "Process A completes at time 5.",
        "Process A is completed and terminated.",
        "Process A releases RAM.",
    ]
    assert trace[-1] == "Process D releases RAM."


def test_explicit_output_and_quantum(tmp_path):
    (tmp_path / 'jobs.txt').write_text(JOBS)
    out = tmp_path / 'custom'
    out.mkdir()
    result = run_cli(['jobs.txt', '-o', str(out / 'trace.txt'), '--short-quantum', '4',
                      '--long-quantum', '32'], tmp_path)

    assert result.returncode == 0, f"stderr: {result.stderr}"
    assert "CPU-2 que3(priority-2) (RR-q4):C-C-C" in result.stdout
    assert "CPU-2 que4(priority-3) (RR-q32):D" in result.stdout
    assert (out / 'trace.txt').exists()
    assert not (tmp_path / 'jobs.out').exists()


def test_malformed_input(tmp_path):
    (tmp_path / 'bad.txt').write_text("A,0,0,5,100,0\nB,0,1\n")
    result = run_cli(['bad.txt'], tmp_path)
    assert result.returncode == 1
    assert "Error: Malformed process line 2" in result.stdout


def test_missing_input_file(tmp_path):
    result = run_cli(['nope.txt'], tmp_path)
    assert result.returncode == 1
    assert "Error: Input file 'nope.txt' not found." in result.stdout


def test_invalid_configuration(tmp_path):
    (tmp_path / 'jobs.txt').write_text(JOBS)
    result = run_cli(['jobs.txt', '--cpu1-ram', '4096'], tmp_path)
    assert result.returncode == 1
    assert "cpu1_budget" in result.stdout


def test_verbose_logs_to_stderr(tmp_path):
    (tmp_path / 'jobs.txt').write_text(JOBS)
    result = run_cli(['jobs.txt', '-v'], tmp_path)
    assert result.returncode == 0
    assert "[DEBUG]" in result.stderr


def test_invalid_field_value_names_the_line(tmp_path):
    (tmp_path / 'bad.txt').write_text("A,0,0,5,100,0\nB,-1,1,4,100,0\n")
    result = run_cli(['bad.txt'], tmp_path)
    assert result.returncode == 1
    assert "Error: Malformed process line 2" in result.stdout
    assert not (tmp_path / 'bad.out').exists()


def test_failed_run_leaves_no_trace_file(tmp_path, monkeypatch, capsys):
    (tmp_path / 'jobs.txt').write_text(JOBS)
    monkeypatch.chdir(tmp_path)

    def failing_run(records, config=None, sink=None, pool=None):
        raise cpu_scheduler.AllocationFailure("Duplicate process name 'A'")

    monkeypatch.setattr(cpu_scheduler, 'run_scheduler', failing_run)
    with pytest.raises(SystemExit) as excinfo:
        cpu_scheduler.main(['jobs.txt'])

    assert excinfo.value.code == 1
    assert "Error: Duplicate process name 'A'" in capsys.readouterr().out
    assert not (tmp_path / 'jobs.out').exists()
