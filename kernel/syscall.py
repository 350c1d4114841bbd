from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

from kernel.config import MAX_COMMANDS, MAX_SYSCALLS_PER_PROCESS
from kernel.errors import ConfigError, ResourceExhausted, UnknownReference


class Operation(Enum):
    SPAWN = 'spawn'
    READ = 'read'
    WRITE = 'write'
    SLEEP = 'sleep'
    WAIT = 'wait'
    EXIT = 'exit'


@dataclass(frozen=True)
class SystemCall:
    when: int   # CPU-time offset (microseconds) at which the syscall occurs
    op: Operation
    command: Optional[str] = None   # spawn
    device: Optional[str] = None    # read/write
    nbytes: int = 0                 # read/write
    duration: int = 0               # sleep

    @classmethod
    def spawn(cls, when: int, command: str) -> 'SystemCall':
        return cls(when, Operation.SPAWN, command=command)

    @classmethod
    def read(cls, when: int, device: str, nbytes: int) -> 'SystemCall':
        return cls(when, Operation.READ, device=device, nbytes=nbytes)

    @classmethod
    def write(cls, when: int, device: str, nbytes: int) -> 'SystemCall':
        return cls(when, Operation.WRITE, device=device, nbytes=nbytes)

    @classmethod
    def sleep(cls, when: int, duration: int) -> 'SystemCall':
        return cls(when, Operation.SLEEP, duration=duration)

    @classmethod
    def wait(cls, when: int) -> 'SystemCall':
        return cls(when, Operation.WAIT)

    @classmethod
    def exit(cls, when: int) -> 'SystemCall':
        return cls(when, Operation.EXIT)

    def __repr__(self):
        name = getattr(self.op, 'value', self.op)
        if self.op is Operation.SPAWN:
            args = [self.command]
        elif self.op in (Operation.READ, Operation.WRITE):
            args = [self.device, f"{self.nbytes}B"]
        elif self.op is Operation.SLEEP:
            args = [f"{self.duration}usecs"]
        else:
            args = []
        return f"Syscall({self.when}us {name} {args})"


class Script:
    """An immutable, named sequence of timed system calls.

    Processes share a Script by reference; nothing ever copies or mutates
    the syscall tuple once it is built.
    """

    def __init__(self, name: str, syscalls: Iterable[SystemCall],
                 max_syscalls: int = MAX_SYSCALLS_PER_PROCESS):
        syscalls = tuple(syscalls)
        if len(syscalls) > max_syscalls:
            raise ResourceExhausted(
                f"command '{name}' has {len(syscalls)} syscalls, limit is {max_syscalls}")
        for prev, cur in zip(syscalls, syscalls[1:]):
            if cur.when < prev.when:
                raise ConfigError(
                    f"command '{name}': syscall at {cur.when}usecs follows one at {prev.when}usecs")
        self._name = name
        self._syscalls = syscalls

    @property
    def name(self) -> str:
        return self._name

    @property
    def syscalls(self) -> Tuple[SystemCall, ...]:
        return self._syscalls

    def calls_exit(self) -> bool:
        return any(sc.op is Operation.EXIT for sc in self._syscalls)

    def __len__(self):
        return len(self._syscalls)

    def __repr__(self):
        return f"Script({self._name}, nsyscalls={len(self._syscalls)})"


class Catalog:
    """Ordered, read-only collection of scripts; the first one is the entry."""

    def __init__(self, scripts: Iterable[Script], max_commands: int = MAX_COMMANDS):
        self._scripts: 'OrderedDict[str, Script]' = OrderedDict()
        for script in scripts:
            if script.name in self._scripts:
                raise ConfigError(f"command '{script.name}' defined twice")
            if len(self._scripts) >= max_commands:
                raise ResourceExhausted(f"command limit of {max_commands} exceeded")
            self._scripts[script.name] = script

    @property
    def entry(self) -> Script:
        if not self._scripts:
            raise UnknownReference("no commands to run")
        return next(iter(self._scripts.values()))

    def get(self, name: str) -> Script:
        try:
            return self._scripts[name]
        except KeyError:
            raise UnknownReference(f"command '{name}' not found") from None

    def __contains__(self, name) -> bool:
        return name in self._scripts

    def __iter__(self) -> Iterator[Script]:
        return iter(self._scripts.values())

    def __len__(self):
        return len(self._scripts)
