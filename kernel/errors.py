"""
Errors raised by the simulator.

Every error is fatal: the run is aborted and the offending condition is
reported. An idle CPU or empty queue is never an error.
"""


class SchedulerError(Exception):
    """Base class for every error the simulator raises."""


class ResourceExhausted(SchedulerError):
    """A fixed capacity (processes, syscalls, devices, commands) was exceeded."""


class UnknownReference(SchedulerError):
    """A spawn named an unknown command, or a read/write an unknown device."""


class InvariantViolation(SchedulerError):
    """The engine reached a state that a validated catalog cannot produce."""


class ConfigError(SchedulerError):
    """Malformed sysconfig/command input or invalid timing values."""
