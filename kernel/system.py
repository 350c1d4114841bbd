"""
The scheduler loop.

A System owns one simulation context and every structure hanging off it:
the process table, the ready queue, the sleeping and waiting sets and the
I/O subsystem. ``run()`` spawns the first command and then advances the
clock one microsecond at a time until the last process has exited.

Each tick:

1. if a process is on the CPU and has reached the CPU-time offset of its
   next syscall, the syscall is dispatched and the process leaves the CPU;
   otherwise it consumes one microsecond of CPU time and is preempted if
   its time quantum has expired;
2. if the CPU is idle, sleepers that are due are woken, waiters whose
   children have all exited are released, a finished transfer is completed,
   a pending transfer is started, and the head of the ready queue is
   dispatched.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from kernel.blocking import SleepingSet, WaitingSet
from kernel.config import DEFAULT_TIME_QUANTUM, Limits, Timings
from kernel.context import Listener, SimContext
from kernel.device import DeviceSpec
from kernel.errors import ConfigError, InvariantViolation
from kernel.io import IOSubsystem
from kernel.process import Process, ProcessState, ProcessTable
from kernel.scheduler import ReadyQueue
from kernel.syscall import Catalog, Operation, SystemCall

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Measurements:
    total_time: int
    total_cpu_time: int

    @property
    def utilisation(self) -> int:
        # integer percentage, truncated
        if self.total_time <= 0:
            return 0
        return 100 * self.total_cpu_time // self.total_time

    def __str__(self):
        return f"measurements {self.total_time} {self.utilisation}"


class System:
    def __init__(self, devices: Iterable[DeviceSpec], commands: Catalog,
                 time_quantum: int = DEFAULT_TIME_QUANTUM,
                 timings: Optional[Timings] = None, limits: Optional[Limits] = None):
        if time_quantum < 0:
            raise ConfigError(f"time quantum must not be negative, got {time_quantum}")
        self.commands = commands
        self.time_quantum = time_quantum
        self.limits = limits or Limits()

        self.ctx = SimContext(timings)
        self.ready = ReadyQueue(self.ctx)
        self.processes = ProcessTable(self.ctx, self.ready, capacity=self.limits.max_processes)
        self.sleeping = SleepingSet(self.ctx, self.ready)
        self.waiting = WaitingSet(self.ctx, self.ready)
        self.io = IOSubsystem(self.ctx, self.ready, devices, max_devices=self.limits.max_devices)

        self.running: Optional[Process] = None
        self.quantum_expires: Optional[int] = None

    @property
    def timings(self) -> Timings:
        return self.ctx.timings

    def subscribe(self, listener: Listener) -> None:
        self.ctx.subscribe(listener)

    # main loop
    def run(self) -> Measurements:
        entry = self.commands.entry
        log.debug("rebooting with timequantum=%d, first command '%s'", self.time_quantum, entry.name)
        self.processes.spawn(entry, parent_pid=None)

        while True:
            self._tick()
            if self.processes.live == 0:
                break
            self.ctx.advance(1)

        result = Measurements(self.ctx.now, self.processes.total_cpu_time)
        log.debug("nprocesses=0, shutdown: %dusecs total, %dusecs on CPU",
                  result.total_time, result.total_cpu_time)
        return result

    def _tick(self) -> None:
        p = self.running
        if p is not None:
            sc = p.current_syscall()
            if sc is None:
                raise InvariantViolation(
                    f"pid{p.pid} ran past the end of '{p.command_name}' without calling exit")
            # the running process issues a syscall and loses the CPU
            if p.cpu_time == sc.when:
                p.advance_pc()
                self._dispatch(p, sc)
                self.running = None
            else:
                p.cpu_time += 1
                if self.ctx.now >= self.quantum_expires:
                    self.ready.enqueue(p, reason='timequantum expired')
                    self.ctx.advance(self.timings.state_transition)
                    self.running = None

        if self.running is None and self.processes.live > 0:
            self.sleeping.drain_due(self.ctx.now)
            self.waiting.drain_ready()
            self.io.complete_if_due(self.ctx.now)
            self.io.start_pending(self.ctx.now)

            nxt = self.ready.dequeue()
            if nxt is not None:
                self.ctx.transition(nxt, ProcessState.RUNNING, reason='dispatch')
                self.ctx.advance(self.timings.context_switch)
                self.running = nxt
                self.quantum_expires = self.ctx.now + self.time_quantum

    def _dispatch(self, p: Process, sc: SystemCall) -> None:
        op = sc.op
        if op is Operation.SPAWN:
            script = self.commands.get(sc.command)
            self.processes.spawn(script, parent_pid=p.pid)
            self.ready.enqueue(p, reason='spawn', child=script.name)
            self.ctx.advance(self.timings.state_transition)
        elif op in (Operation.READ, Operation.WRITE):
            self.io.enqueue(sc.device, p, op, sc.nbytes)
        elif op is Operation.SLEEP:
            self.sleeping.insert(p, sc.duration)
            self.ctx.advance(self.timings.state_transition)
        elif op is Operation.WAIT:
            if p.nchildren == 0:
                self.ready.enqueue(p, reason='wait (but no child processes)')
            else:
                self.waiting.insert(p)
            self.ctx.advance(self.timings.state_transition)
        elif op is Operation.EXIT:
            self.processes.exit(p)
        else:
            raise InvariantViolation(f"unknown syscall {op!r}")
