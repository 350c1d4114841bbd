from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from kernel.process import ProcessState


class EventType(Enum):
    TRANSITION = auto()     # a process changed state (spawn has no old state)
    BUS_ACQUIRED = auto()
    BUS_RELEASED = auto()


@dataclass(frozen=True)
class Event:
    time: int
    type: EventType
    pid: Optional[int] = None
    old_state: Optional[ProcessState] = None
    new_state: Optional[ProcessState] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self):
        return f"Event(time={self.time}, type={self.type.name}, pid={self.pid}, payload={self.payload})"
