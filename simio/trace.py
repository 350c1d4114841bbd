"""
Human-readable rendering of the engine's structured events.

A TraceWriter is subscribed to a System and prints one line per event,
in the order the engine emits them, e.g.::

    [t=16] pid0.RUNNING->BLOCKED (read, device=disk, nbytes=1000)
    [t=26] BUS disk acquired by pid0, reading 1000 bytes, will take 1020usecs (20+1000)
"""

import sys
from typing import Callable, Optional, TextIO

from kernel.event import Event, EventType


def _state(state) -> str:
    return state.value if state is not None else 'NEW'


def format_event(ev: Event) -> str:
    if ev.type is EventType.TRANSITION:
        payload = dict(ev.payload)
        reason = payload.pop('reason', None)
        details = ', '.join(f"{k}={v}" for k, v in payload.items())
        suffix = ', '.join(s for s in (reason, details) if s)
        text = f"pid{ev.pid}.{_state(ev.old_state)}->{_state(ev.new_state)}"
        return f"[t={ev.time}] {text} ({suffix})" if suffix else f"[t={ev.time}] {text}"
    if ev.type is EventType.BUS_ACQUIRED:
        p = ev.payload
        doing = 'reading' if p['direction'] == 'read' else 'writing'
        return (f"[t={ev.time}] BUS {p['device']} acquired by pid{ev.pid}, {doing} {p['nbytes']} bytes, "
                f"will take {p['acquire'] + p['transfer']}usecs ({p['acquire']}+{p['transfer']})")
    if ev.type is EventType.BUS_RELEASED:
        return f"[t={ev.time}] BUS {ev.payload['device']} completes {ev.payload['direction']} for pid{ev.pid}, bus is now idle"
    return f"[t={ev.time}] {ev!r}"


class TraceWriter:
    def __init__(self, stream: Optional[TextIO] = None, fmt: Callable[[Event], str] = format_event):
        self.stream = stream
        self.fmt = fmt
        self.lines = 0

    def __call__(self, ev: Event) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        print(self.fmt(ev), file=stream)
        self.lines += 1
