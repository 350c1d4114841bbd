"""
I/O subsystem: one blocked-request FIFO per device and a single data-bus.

Only one device can own the bus at a time, so every transfer in the
system is serialised. A free bus is handed to the device with the fastest
*read* speed among those with queued requests, whatever the direction of
that device's head request; ties go to the device registered first.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from kernel.config import MAX_DEVICES
from kernel.context import SimContext
from kernel.device import Device, DeviceSpec, IORequest
from kernel.errors import ConfigError, InvariantViolation, ResourceExhausted, UnknownReference
from kernel.event import Event, EventType
from kernel.process import Process, ProcessState
from kernel.scheduler import ReadyQueue
from kernel.syscall import Operation


@dataclass
class Bus:
    owner: Optional[Device] = None
    busy_until: Optional[int] = None

    @property
    def free(self) -> bool:
        return self.owner is None

    def release(self) -> None:
        self.owner = None
        self.busy_until = None


def transfer_time(nbytes: int, speed: int) -> int:
    """Microseconds needed to move ``nbytes`` at ``speed`` bytes/sec, rounded up."""
    if speed <= 0:
        raise ConfigError(f"cannot transfer {nbytes} bytes at {speed}Bps")
    return math.ceil(1_000_000 * nbytes / speed)


class IOSubsystem:
    def __init__(self, ctx: SimContext, ready: ReadyQueue, specs: Iterable[DeviceSpec],
                 max_devices: int = MAX_DEVICES):
        self._ctx = ctx
        self._ready = ready
        self._devices: Dict[str, Device] = {}   # registration order
        for spec in specs:
            if spec.name in self._devices:
                raise ConfigError(f"device '{spec.name}' defined twice")
            if len(self._devices) >= max_devices:
                raise ResourceExhausted(f"device limit of {max_devices} exceeded")
            self._devices[spec.name] = Device(spec)
        self.bus = Bus()
        self.nblocked = 0   # blocked requests across all device queues

    def device(self, name: str) -> Device:
        try:
            return self._devices[name]
        except KeyError:
            raise UnknownReference(f"device '{name}' not found") from None

    def queued(self) -> int:
        return sum(len(d.queue) for d in self._devices.values())

    def enqueue(self, device_name: str, process: Process, direction: Operation, nbytes: int) -> None:
        device = self.device(device_name)
        device.enqueue(IORequest(process, direction, nbytes))
        self.nblocked += 1
        self._ctx.transition(process, ProcessState.IO_BLOCKED, reason=direction.value,
                             device=device.name, nbytes=nbytes)
        self._ctx.advance(self._ctx.timings.state_transition)

    def complete_if_due(self, now: int) -> Optional[Process]:
        # as only one device owns the bus, at most one process is unblocked
        if self.bus.free or self.bus.busy_until > now:
            return None
        device = self.bus.owner
        request = device.pop_oldest()
        if request is None:
            raise InvariantViolation(f"device '{device.name}' owns the bus with an empty queue")
        self.nblocked -= 1
        self.bus.release()
        self._ctx.emit(Event(time=self._ctx.now, type=EventType.BUS_RELEASED, pid=request.pid,
                             payload={'device': device.name, 'direction': request.direction.value}))
        self._ready.enqueue(request.process, reason='io complete', device=device.name)
        self._ctx.advance(self._ctx.timings.state_transition)
        return request.process

    def fastest_ready_device(self) -> Optional[Device]:
        fastest = None
        for device in self._devices.values():
            # strict '>' keeps the first-registered device on a tie
            if device.queue and (fastest is None or device.read_speed > fastest.read_speed):
                fastest = device
        return fastest

    def start_pending(self, now: int) -> Optional[Device]:
        if not self.bus.free or self.nblocked == 0:
            return None
        device = self.fastest_ready_device()
        request = device.head()
        usecs = transfer_time(request.nbytes, device.speed_for(request.direction))
        acquire = self._ctx.timings.bus_acquire
        self.bus.owner = device
        self.bus.busy_until = now + acquire + usecs
        self._ctx.emit(Event(time=self._ctx.now, type=EventType.BUS_ACQUIRED, pid=request.pid,
                             payload={'device': device.name,
                                      'direction': request.direction.value,
                                      'nbytes': request.nbytes,
                                      'acquire': acquire,
                                      'transfer': usecs,
                                      'busy_until': self.bus.busy_until}))
        return device
