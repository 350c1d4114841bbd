# Device classes
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from kernel.errors import ConfigError
from kernel.process import Process
from kernel.syscall import Operation


@dataclass(frozen=True)
class DeviceSpec:
    name: str
    read_speed: int   # bytes/sec
    write_speed: int

    def __post_init__(self):
        if self.read_speed < 0 or self.write_speed < 0:
            raise ConfigError(f"device '{self.name}' has a negative speed")


@dataclass(frozen=True)
class IORequest:
    process: Process
    direction: Operation   # READ or WRITE
    nbytes: int

    @property
    def pid(self) -> int:
        return self.process.pid


class Device:
    def __init__(self, spec: DeviceSpec):
        self.spec = spec
        self.queue: Deque[IORequest] = deque()

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def read_speed(self) -> int:
        return self.spec.read_speed

    @property
    def write_speed(self) -> int:
        return self.spec.write_speed

    def speed_for(self, direction: Operation) -> int:
        return self.read_speed if direction is Operation.READ else self.write_speed

    def enqueue(self, request: IORequest) -> None:
        self.queue.append(request)

    def head(self) -> Optional[IORequest]:
        return self.queue[0] if self.queue else None

    def pop_oldest(self) -> Optional[IORequest]:
        if not self.queue:
            return None
        return self.queue.popleft()

    def __repr__(self):
        return f"Device({self.name}, r={self.read_speed}, w={self.write_speed}, queued={len(self.queue)})"
