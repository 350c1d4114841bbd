"""
The simulation context: the clock, the timing constants and the event
listeners shared by every structure of one simulated system.

There are no module-level globals; each System owns exactly one context
and hands it by reference to its process table, queues and I/O subsystem.
"""

from typing import Callable, List, Optional

from kernel.config import Timings
from kernel.event import Event, EventType
from kernel.process import Process, ProcessState

Listener = Callable[[Event], None]


class Clock:
    def __init__(self, start: int = 0):
        self.now = start

    def advance(self, usecs: int = 1) -> int:
        if usecs < 0:
            raise ValueError(f"clock cannot move backwards ({usecs}us)")
        self.now += usecs
        return self.now

    def __repr__(self):
        return f"Clock(now={self.now})"


class SimContext:
    def __init__(self, timings: Optional[Timings] = None, clock_start: int = 0):
        self.timings = timings or Timings()
        self.clock = Clock(clock_start)
        self._listeners: List[Listener] = []

    @property
    def now(self) -> int:
        return self.clock.now

    def advance(self, usecs: int) -> None:
        self.clock.advance(usecs)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: Event) -> None:
        # listeners run synchronously, inside the current iteration
        for listener in self._listeners:
            listener(event)

    def transition(self, process: Process, new_state: ProcessState, **payload) -> None:
        old_state = process.move_to(new_state)
        self.emit(Event(time=self.now, type=EventType.TRANSITION, pid=process.pid,
                        old_state=old_state, new_state=new_state, payload=payload))
