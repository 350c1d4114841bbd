import pytest

from kernel.config import Timings
from kernel.context import SimContext
from kernel.device import DeviceSpec
from kernel.process import Process, ProcessState
from kernel.scheduler import ReadyQueue
from kernel.syscall import Catalog, Script, SystemCall
from kernel.system import System

SCENARIO_TIMINGS = Timings(context_switch=5, state_transition=10, bus_acquire=20)


def catalog(**scripts):
    """catalog(shell=[...], child=[...]) -> Catalog, first keyword is the entry."""
    return Catalog(Script(name, syscalls) for name, syscalls in scripts.items())


def make_system(scripts, devices=(), time_quantum=100, **kwargs):
    return System(list(devices), Catalog(scripts), time_quantum=time_quantum,
                  timings=kwargs.pop('timings', SCENARIO_TIMINGS), **kwargs)


@pytest.fixture
def ctx():
    return SimContext(SCENARIO_TIMINGS)


@pytest.fixture
def ready(ctx):
    return ReadyQueue(ctx)


@pytest.fixture
def events(ctx):
    seen = []
    ctx.subscribe(seen.append)
    return seen


@pytest.fixture
def running():
    """Factory for processes already on the CPU."""
    script = Script('job', [SystemCall.exit(0)])

    def factory(pid, nchildren=0):
        p = Process(pid, script)
        p.state = ProcessState.RUNNING
        p.nchildren = nchildren
        return p
    return factory


@pytest.fixture
def disk():
    return DeviceSpec('disk', 1_000_000, 500_000)
