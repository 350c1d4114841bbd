from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterator, Optional

from kernel.config import MAX_RUNNING_PROCESSES
from kernel.errors import InvariantViolation, ResourceExhausted
from kernel.syscall import Script, SystemCall

if TYPE_CHECKING:
    from kernel.context import SimContext
    from kernel.scheduler import ReadyQueue


class ProcessState(Enum):
    READY = 'READY'
    RUNNING = 'RUNNING'
    SLEEPING = 'SLEEPING'
    WAITING = 'WAITING'
    IO_BLOCKED = 'BLOCKED'
    TERMINATED = 'EXIT'


# None is a freshly spawned process that has not been admitted yet
LEGAL_TRANSITIONS = {
    None: {ProcessState.READY},
    ProcessState.READY: {ProcessState.RUNNING},
    ProcessState.RUNNING: {
        ProcessState.READY,
        ProcessState.SLEEPING,
        ProcessState.WAITING,
        ProcessState.IO_BLOCKED,
        ProcessState.TERMINATED,
    },
    ProcessState.SLEEPING: {ProcessState.READY},
    ProcessState.WAITING: {ProcessState.READY},
    ProcessState.IO_BLOCKED: {ProcessState.READY},
    ProcessState.TERMINATED: set(),
}


class Process:
    def __init__(self, pid: int, script: Script, ppid: Optional[int] = None):
        self.pid = pid
        self.ppid = ppid
        self.script = script
        self.pc = 0
        self.state: Optional[ProcessState] = None
        self.cpu_time = 0
        self.nchildren = 0

    @property
    def command_name(self) -> str:
        return self.script.name

    def current_syscall(self) -> Optional[SystemCall]:
        if self.pc < len(self.script.syscalls):
            return self.script.syscalls[self.pc]
        return None

    def advance_pc(self) -> None:
        self.pc += 1

    def move_to(self, new_state: ProcessState) -> Optional[ProcessState]:
        """Change state, returning the old one; illegal edges are fatal."""
        old_state = self.state
        if new_state not in LEGAL_TRANSITIONS[old_state]:
            old_name = old_state.name if old_state else 'NEW'
            raise InvariantViolation(
                f"pid{self.pid} cannot move from {old_name} to {new_state.name}")
        self.state = new_state
        return old_state

    def __repr__(self) -> str:
        state = self.state.name if self.state else 'NEW'
        return f"Process(pid={self.pid}, cmd={self.command_name}, state={state}, cpu_exec={self.cpu_time}, pc={self.pc})"


class ProcessTable:
    """The live processes, keyed by pid.

    Spawning admits the new process straight onto the ready queue. Exiting
    folds its CPU time into ``total_cpu_time`` and releases its slot.
    """

    def __init__(self, ctx: 'SimContext', ready_queue: 'ReadyQueue',
                 capacity: int = MAX_RUNNING_PROCESSES):
        self._ctx = ctx
        self._ready = ready_queue
        self._capacity = capacity
        self._procs: Dict[int, Process] = {}
        self._next_pid = 0
        self.total_cpu_time = 0

    @property
    def live(self) -> int:
        return len(self._procs)

    def get(self, pid: int) -> Optional[Process]:
        return self._procs.get(pid)

    def spawn(self, script: Script, parent_pid: Optional[int] = None) -> Process:
        if len(self._procs) >= self._capacity:
            raise ResourceExhausted(f"process limit of {self._capacity} exceeded")
        p = Process(self._next_pid, script, parent_pid)
        self._next_pid += 1
        self._procs[p.pid] = p
        if parent_pid is not None:
            parent = self._procs.get(parent_pid)
            if parent is not None:
                parent.nchildren += 1
        self._ready.enqueue(p, reason='spawn', command=script.name)
        return p

    def exit(self, p: Process) -> None:
        self.total_cpu_time += p.cpu_time
        parent = self._procs.get(p.ppid) if p.ppid is not None else None
        if parent is not None:
            parent.nchildren -= 1
        self._ctx.transition(p, ProcessState.TERMINATED, reason='exit', cpu_time=p.cpu_time)
        del self._procs[p.pid]

    def __iter__(self) -> Iterator[Process]:
        return iter(list(self._procs.values()))

    def __len__(self):
        return len(self._procs)
