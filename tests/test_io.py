import pytest

from kernel.device import DeviceSpec
from kernel.errors import ConfigError, ResourceExhausted, UnknownReference
from kernel.event import EventType
from kernel.io import IOSubsystem, transfer_time
from kernel.process import ProcessState
from kernel.syscall import Operation

FAST = DeviceSpec('fast', 2_000_000, 1_000_000)
SLOW = DeviceSpec('slow', 500_000, 4_000_000)


def test_enqueue_blocks_and_charges(ctx, ready, running, disk):
    io = IOSubsystem(ctx, ready, [disk])
    p = running(1)

    io.enqueue('disk', p, Operation.READ, 100)

    assert p.state is ProcessState.IO_BLOCKED
    assert ctx.now == 10
    assert io.nblocked == 1 == io.queued()
    assert io.device('disk').head().pid == 1


def test_fastest_reader_wins_even_for_writes(ctx, ready, running, events):
    # slow is registered first and has the faster write speed
    io = IOSubsystem(ctx, ready, [SLOW, FAST])
    io.enqueue('slow', running(1), Operation.WRITE, 1000)
    io.enqueue('fast', running(2), Operation.WRITE, 1000)

    chosen = io.start_pending(ctx.now)

    assert chosen.name == 'fast'
    assert io.bus.owner is chosen
    # write speed of the chosen device sets the rate
    assert io.bus.busy_until == ctx.now + 20 + 1000
    acquired = [e for e in events if e.type is EventType.BUS_ACQUIRED]
    assert acquired[0].pid == 2 and acquired[0].payload['direction'] == 'write'


def test_tie_goes_to_first_registered(ctx, ready, running):
    io = IOSubsystem(ctx, ready, [DeviceSpec('a', 100, 100), DeviceSpec('b', 100, 100)])
    io.enqueue('b', running(1), Operation.READ, 10)
    io.enqueue('a', running(2), Operation.READ, 10)

    assert io.start_pending(ctx.now).name == 'a'


def test_bus_serialises_transfers(ctx, ready, running):
    io = IOSubsystem(ctx, ready, [SLOW, FAST])
    io.enqueue('fast', running(1), Operation.READ, 2000)
    io.enqueue('slow', running(2), Operation.READ, 500)
    io.start_pending(ctx.now)
    busy_until = io.bus.busy_until

    # a second start while the bus is owned does nothing
    assert io.start_pending(ctx.now) is None
    assert len(io.device('slow').queue) == 1
    # nor does completion before the transfer is done
    assert io.complete_if_due(busy_until - 1) is None

    done = io.complete_if_due(busy_until)
    assert done.pid == 1 and done.state is ProcessState.READY
    assert ready.pids() == [1]
    assert io.bus.free
    assert io.nblocked == 1 == io.queued()

    assert io.start_pending(ctx.now).name == 'slow'


def test_one_completion_per_call(ctx, ready, running, disk):
    io = IOSubsystem(ctx, ready, [disk])
    io.enqueue('disk', running(1), Operation.READ, 1)
    io.enqueue('disk', running(2), Operation.READ, 1)
    io.start_pending(ctx.now)

    assert io.complete_if_due(10_000).pid == 1
    assert io.complete_if_due(10_000) is None
    assert ready.pids() == [1]


def test_start_pending_with_nothing_queued(ctx, ready, disk):
    io = IOSubsystem(ctx, ready, [disk])
    assert io.start_pending(0) is None
    assert io.complete_if_due(0) is None


@pytest.mark.parametrize('nbytes,speed,expected', [
    (1000, 1_000_000, 1000),
    (1, 3, 333334),
    (48, 40_000_000, 2),
    (0, 10, 0),
])
def test_transfer_time_rounds_up(nbytes, speed, expected):
    assert transfer_time(nbytes, speed) == expected


def test_transfer_at_zero_speed():
    with pytest.raises(ConfigError):
        transfer_time(10, 0)


def test_unknown_device(ctx, ready, running, disk):
    io = IOSubsystem(ctx, ready, [disk])
    with pytest.raises(UnknownReference):
        io.enqueue('tape', running(1), Operation.READ, 10)


def test_device_limit(ctx, ready):
    with pytest.raises(ResourceExhausted):
        IOSubsystem(ctx, ready, [FAST, SLOW], max_devices=1)


def test_duplicate_device(ctx, ready):
    with pytest.raises(ConfigError):
        IOSubsystem(ctx, ready, [FAST, FAST])
