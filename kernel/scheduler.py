# Ready queue
from collections import deque
from typing import Deque, List, Optional

from kernel.context import SimContext
from kernel.process import Process, ProcessState


class ReadyQueue:
    def __init__(self, ctx: SimContext):
        self._ctx = ctx
        self._queue: Deque[Process] = deque()

    def enqueue(self, process: Process, **reason) -> None:
        self._ctx.transition(process, ProcessState.READY, **reason)
        self._queue.append(process)

    def has_ready(self) -> bool:
        return bool(self._queue)

    def dequeue(self) -> Optional[Process]:
        # an empty queue just means the CPU stays idle
        if self._queue:
            return self._queue.popleft()
        return None

    def pids(self) -> List[int]:
        return [p.pid for p in self._queue]

    def __len__(self):
        return len(self._queue)
