import os

import pytest

from cpu_scheduler import AllocationFailure, MalformedInputError, parse_input_file, parse_records
from helpers import REPO_ROOT


def test_parse_records():
    records = parse_records(["P1,0,0,5,100,10\n", "P2, 1, 1, 4, 200, 20\n"])
    assert [r.name for r in records] == ["P1", "P2"]
    assert records[1].arrival_time == 1
    assert records[1].priority == 1
    assert records[1].burst_time == 4
    assert records[1].ram_required == 200
    assert records[1].cpu_usage == 20


def test_blank_and_comment_lines_skipped():
    records = parse_records(["# name,arrival,priority,burst,ram,cpu\n", "\n", "A,0,0,1,1,0\n", "   \n"])
    assert [r.name for r in records] == ["A"]


def test_wrong_field_count():
    with pytest.raises(MalformedInputError) as excinfo:
        parse_records(["A,0,0,1,1,0", "B,0,0,1,1"])
    assert excinfo.value.line_number == 2
    assert "expected 6" in str(excinfo.value)


def test_non_integer_field():
    with pytest.raises(MalformedInputError, match="Malformed process line 1"):
        parse_records(["A,zero,0,1,1,0"])


def test_duplicate_names():
    with pytest.raises(MalformedInputError, match="duplicate"):
        parse_records(["A,0,0,1,1,0", "A,1,1,2,2,0"])


def test_out_of_range_priority_reports_the_line():
    with pytest.raises(MalformedInputError, match="Malformed process line 1.*priority"):
        parse_records(["A,0,9,1,1,0"])


def test_invalid_field_value_reports_the_line():
    with pytest.raises(MalformedInputError) as excinfo:
        parse_records(["P1,0,0,5,100,0", "P2,-1,0,5,100,0"])
    assert excinfo.value.line_number == 2
    assert "arrival_time cannot be negative" in excinfo.value.reason
    assert not isinstance(excinfo.value, AllocationFailure)


def test_parse_sample_file():
    records = parse_input_file(os.path.join(REPO_ROOT, 'testfiles', 'processes.txt'))
    assert len(records) == 7
    assert records[-1].name == "P7"


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        parse_input_file("does-not-exist.txt")
