#!/usr/bin/env python3
"""
Flask server that provides a REST API for the CPU scheduler simulation.
Runs the scheduler in-process and returns the trace plus a parsed view of it.
"""

import logging
import sys

from flask import Flask, request, jsonify
from flask_cors import CORS

from cpu_scheduler import (
    AllocationFailure,
    ConfigError,
    FCFS_PRIORITY,
    ProcessRecord,
    SchedulerConfig,
    SchedulerError,
    parse_records,
    run_scheduler,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

RECORD_FIELDS = ('arrival_time', 'priority', 'burst_time', 'ram_required')


def build_config(data):
    """Reads the optional 'config' object of a request body."""
    overrides = data.get('config') or {}
    if not isinstance(overrides, dict):
        raise ConfigError("'config' must be an object")
    return SchedulerConfig.from_dict(overrides)


def parse_scheduler_output(result, records):
    """Parse the trace of a run into structured data for the frontend."""
    # Longest names first so "P1" never claims a line that belongs to "P10".
    names = sorted((r.name for r in records), key=len, reverse=True)
    events = {r.name: [] for r in records}
    completed = []

    for line in result.trace:
        for name in names:
            if line.startswith(f"Process {name} "):
                events[name].append(line)
                if line.endswith("is completed and terminated."):
                    completed.append(name)
                break

    return {
        'summary': result.summary_lines(),
        'rejected': result.rejected_queue.names(),
        'completed': completed,
        'events': events,
    }


@app.route('/api/test', methods=['GET'])
def test():
    """Test endpoint to verify the server is running."""
    return jsonify({
        'status': 'ok',
        'message': 'Server is running',
        'defaults': SchedulerConfig().to_dict(),
    })


@app.route('/api/simulate', methods=['POST'])
def simulate():
    """API endpoint to run the scheduler simulation."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({'error': 'No data provided'}), 400

    input_content = data.get('input_content')
    if not input_content:
        return jsonify({'error': 'No input content provided'}), 400
    if not isinstance(input_content, str):
        return jsonify({'error': 'input_content must be a string'}), 400

    try:
        config = build_config(data)
        records = parse_records(input_content.splitlines())
        result = run_scheduler(records, config)
    except SchedulerError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        logger.exception("Simulation failed")
        return jsonify({'error': f'Server error: {str(e)}'}), 500

    logger.info("Simulated %d processes, %d trace lines", len(records), len(result.trace))
    return jsonify({
        'success': True,
        'output': result.sink.text(),
        'parsed': parse_scheduler_output(result, records),
    })


@app.route('/api/validate-config', methods=['POST'])
def validate_config():
    """Validate a configuration without running the simulation."""
    data = request.get_json(silent=True)
    if not data or not isinstance(data, dict):
        return jsonify({'error': 'No data provided'}), 400

    errors = []
    warnings = []

    try:
        config = build_config(data)
    except ConfigError as e:
        errors.append(str(e))
        config = SchedulerConfig()

    processes = data.get('processes', [])
    if not isinstance(processes, list) or len(processes) == 0:
        errors.append('At least one process is required')
        processes = []

    seen = set()
    budgets = config.cpu_budgets()
    for i, process in enumerate(processes):
        if not isinstance(process, dict):
            errors.append(f'Process {i + 1} must be an object')
            continue
        name = process.get('name')
        label = name or i + 1
        if name and name in seen:
            errors.append(f'Process {label} appears more than once')
        seen.add(name)

        missing = [field for field in RECORD_FIELDS if field not in process]
        if missing:
            errors.append(f'Process {label} is missing {missing[0]}')
            continue
        try:
            record = ProcessRecord.create(
                name,
                *(process[field] for field in RECORD_FIELDS),
                cpu_usage=process.get('cpu_usage', 0))
        except AllocationFailure as e:
            errors.append(str(e))
            continue

        if record.ram_required > config.total_ram:
            warnings.append(f'Process {label} needs more RAM than the pool holds and will never run')
        elif record.priority == FCFS_PRIORITY and record.ram_required > max(budgets.values()):
            warnings.append(f'Process {label} fits no CPU sub-budget in the admission pass')

    return jsonify({
        'valid': len(errors) == 0,
        'errors': errors,
        'warnings': warnings,
    })


def main():
    logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    logger.info("Starting CPU scheduler server on http://localhost:5000")
    try:
        app.run(debug=False, host='localhost', port=5000, use_reloader=False)
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    return 0


if __name__ == '__main__':
    sys.exit(main())
