"""
The two non-I/O blocked structures: processes asleep until a wake time,
and processes waiting for all of their children to exit.

Both are drained only while the CPU is idle, and every process moved back
to READY costs one core-state transition on the clock.
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque, List

from kernel.context import SimContext
from kernel.process import Process, ProcessState
from kernel.scheduler import ReadyQueue


@dataclass
class Sleeper:
    process: Process
    wake_at: int


class SleepingSet:
    def __init__(self, ctx: SimContext, ready: ReadyQueue):
        self._ctx = ctx
        self._ready = ready
        self._sleepers: Deque[Sleeper] = deque()

    def insert(self, process: Process, duration: int) -> int:
        # the process wakes strictly after the full duration has elapsed
        wake_at = self._ctx.now + duration + 1
        self._ctx.transition(process, ProcessState.SLEEPING, reason='sleep',
                             duration=duration, wake_at=wake_at)
        self._sleepers.append(Sleeper(process, wake_at))
        return wake_at

    def drain_due(self, now: int) -> List[Process]:
        """Wake every sleeper due at ``now``, in the order they fell asleep.

        ``now`` is fixed for the whole drain: the transition charges made
        while waking one sleeper do not make a later sleeper due.
        """
        woken: List[Process] = []
        still_asleep: Deque[Sleeper] = deque()
        while self._sleepers:
            sleeper = self._sleepers.popleft()
            if sleeper.wake_at <= now:
                self._ready.enqueue(sleeper.process, reason='wake')
                self._ctx.advance(self._ctx.timings.state_transition)
                woken.append(sleeper.process)
            else:
                still_asleep.append(sleeper)
        self._sleepers = still_asleep
        return woken

    def wake_time(self, pid: int):
        for sleeper in self._sleepers:
            if sleeper.process.pid == pid:
                return sleeper.wake_at
        return None

    def __len__(self):
        return len(self._sleepers)


class WaitingSet:
    def __init__(self, ctx: SimContext, ready: ReadyQueue):
        self._ctx = ctx
        self._ready = ready
        self._waiting: Deque[Process] = deque()

    def insert(self, process: Process) -> None:
        self._ctx.transition(process, ProcessState.WAITING, reason='wait',
                             nchildren=process.nchildren)
        self._waiting.append(process)

    def drain_ready(self) -> List[Process]:
        released: List[Process] = []
        remaining: Deque[Process] = deque()
        while self._waiting:
            p = self._waiting.popleft()
            if p.state is ProcessState.WAITING and p.nchildren == 0:
                self._ready.enqueue(p, reason='children exited')
                self._ctx.advance(self._ctx.timings.state_transition)
                released.append(p)
            else:
                remaining.append(p)
        self._waiting = remaining
        return released

    def __contains__(self, process) -> bool:
        return process in self._waiting

    def __len__(self):
        return len(self._waiting)
