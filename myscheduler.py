"""
myscheduler.py


Discrete-time simulation of a single-CPU, preemptive, round-robin
scheduler with blocking I/O over one shared data-bus.


The simulator itself lives in the ``kernel`` package:
- Script / Catalog / SystemCall   (kernel/syscall.py)
- Process / ProcessTable          (kernel/process.py)
- ReadyQueue                      (kernel/scheduler.py)
- SleepingSet / WaitingSet        (kernel/blocking.py)
- Device / IOSubsystem / Bus      (kernel/device.py, kernel/io.py)
- System (the scheduler loop)     (kernel/system.py)

and everything that reads or writes text lives in ``simio``: the
sysconfig and command parsers, the trace writer and the reports.


Usage:
python myscheduler.py sysconfig.txt commands.txt


Set -v (or the VERBOSE environment variable) to trace every state
transition and bus event as it happens.
"""


import argparse
import logging
import os
import sys
from typing import List, Optional

from kernel.config import BUS_ACQUIRE_DELAY, CONTEXT_SWITCH_IN, CONTEXT_SWITCH_MOVES, Timings
from kernel.errors import SchedulerError
from kernel.system import System
from simio.parser import parse_commands, parse_sysconfig
from simio.report import dump_commands, dump_sysconfig, format_measurements
from simio.trace import TraceWriter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='myscheduler (single-CPU round-robin scheduler simulator)')
    parser.add_argument('sysconfig', help='Path to sysconfig file')
    parser.add_argument('commands', help='Path to commands file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Trace every transition and bus event')
    parser.add_argument('--dump', action='store_true', help='Print the parsed sysconfig and commands first')
    parser.add_argument('--context-switch', type=int, default=CONTEXT_SWITCH_IN, metavar='USECS',
                        help='Ready->Running cost (default %(default)s)')
    parser.add_argument('--state-transition', type=int, default=CONTEXT_SWITCH_MOVES, metavar='USECS',
                        help='cost of any other state transition (default %(default)s)')
    parser.add_argument('--bus-acquire', type=int, default=BUS_ACQUIRE_DELAY, metavar='USECS',
                        help='time to acquire the data-bus (default %(default)s)')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    verbose = args.verbose or os.environ.get('VERBOSE') is not None
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        timings = Timings(args.context_switch, args.state_transition, args.bus_acquire)
        devices, tq = parse_sysconfig(args.sysconfig)
        commands = parse_commands(args.commands, device_names=[d.name for d in devices])
        print(f"found {len(devices)} devices")
        print(f"time quantum is {tq}")
        print(f"found {len(commands)} commands")
        if args.dump:
            print(dump_sysconfig(devices, tq), end='')
            print(dump_commands(commands), end='')

        s = System(devices, commands, time_quantum=tq, timings=timings)
        if verbose:
            s.subscribe(TraceWriter(sys.stdout))
        result = s.run()
    except OSError as e:
        print(f"{sys.argv[0]}: cannot open '{e.filename}'", file=sys.stderr)
        return 1
    except SchedulerError as e:
        print(f"ERROR - {e}", file=sys.stderr)
        return 1

    print(format_measurements(result))
    return 0


# ------------------------------- CLI ---------------------------------
if __name__ == '__main__':
    sys.exit(main())
