import os
import re
import subprocess
import sys


def run_cli(*args):
    repo_root = os.path.dirname(os.path.dirname(__file__))
    return subprocess.run(
        [sys.executable, os.path.join(repo_root, 'myscheduler.py'), *args],
        capture_output=True,
        text=True,
        cwd=repo_root,
        check=False,
    )


def test_cli_measurements_line():
    result = run_cli(os.path.join('examples', 'sysconfig.txt'), os.path.join('examples', 'commands.txt'))

    assert result.returncode == 0, f"Process exited with {result.returncode}, stderr: {result.stderr}"

    # Ensure the last non-empty line matches the expected format
    lines = [ln.strip() for ln in result.stdout.splitlines() if ln.strip()]
    assert lines, "No output produced"
    assert lines[:3] == ['found 4 devices', 'time quantum is 100', 'found 2 commands']
    last = lines[-1]
    assert re.match(r"^measurements\s+\d+\s+\d+$", last), f"Unexpected last line: {last}\nFull output:\n{result.stdout}"


def test_cli_verbose_traces_transitions():
    result = run_cli('-v', os.path.join('examples', 'sysconfig_disk.txt'), os.path.join('examples', 'commands_read.txt'))

    assert result.returncode == 0, result.stderr
    assert '[t=0] pid0.NEW->READY (spawn, command=shell)' in result.stdout
    assert '[t=16] pid0.RUNNING->BLOCKED (read, device=disk, nbytes=1000)' in result.stdout
    assert 'BUS disk acquired by pid0, reading 1000 bytes, will take 1020usecs (20+1000)' in result.stdout
    assert result.stdout.rstrip().endswith('measurements 1072 1')


def test_cli_dump():
    result = run_cli('--dump', os.path.join('examples', 'sysconfig_disk.txt'), os.path.join('examples', 'commands_read.txt'))

    assert result.returncode == 0, result.stderr
    assert 'disk\t1000000\t500000' in result.stdout
    assert '\t10\tread\tdisk\t1000' in result.stdout


def test_cli_reports_errors(tmp_path):
    commands = tmp_path / 'commands.txt'
    commands.write_text('shell\n\t10usecs\tread\tnowhere\t10B\n\t20usecs\texit\n')

    result = run_cli(os.path.join('examples', 'sysconfig_disk.txt'), str(commands))

    assert result.returncode == 1
    assert "ERROR - device 'nowhere' not found" in result.stderr


def test_cli_missing_file():
    result = run_cli('does-not-exist.txt', os.path.join('examples', 'commands.txt'))

    assert result.returncode == 1
    assert "cannot open 'does-not-exist.txt'" in result.stderr
