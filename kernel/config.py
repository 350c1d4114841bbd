# Timing constants and capacity limits
from dataclasses import dataclass

from kernel.errors import ConfigError


# ----------------------------- Constants -----------------------------
DEFAULT_TIME_QUANTUM = 100
CONTEXT_SWITCH_IN = 5       # Ready -> Running (microseconds)
CONTEXT_SWITCH_MOVES = 10   # Running->Blocked, Running->Ready, Blocked->Ready
BUS_ACQUIRE_DELAY = 20      # time to first acquire data-bus (microseconds)

MAX_DEVICES = 4
MAX_DEVICE_NAME = 20
MAX_COMMANDS = 10
MAX_COMMAND_NAME = 20
MAX_SYSCALLS_PER_PROCESS = 40
MAX_RUNNING_PROCESSES = 50


@dataclass(frozen=True)
class Timings:
    context_switch: int = CONTEXT_SWITCH_IN
    state_transition: int = CONTEXT_SWITCH_MOVES
    bus_acquire: int = BUS_ACQUIRE_DELAY

    def __post_init__(self):
        for name in ('context_switch', 'state_transition', 'bus_acquire'):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True)
class Limits:
    max_processes: int = MAX_RUNNING_PROCESSES
    max_devices: int = MAX_DEVICES
    max_commands: int = MAX_COMMANDS
    max_syscalls: int = MAX_SYSCALLS_PER_PROCESS
