# Config + command file parser
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from kernel.config import (DEFAULT_TIME_QUANTUM, MAX_COMMAND_NAME, MAX_COMMANDS, MAX_DEVICE_NAME,
                           MAX_DEVICES, MAX_SYSCALLS_PER_PROCESS)
from kernel.device import DeviceSpec
from kernel.errors import ConfigError, ResourceExhausted, UnknownReference
from kernel.syscall import Catalog, Operation, Script, SystemCall

log = logging.getLogger(__name__)

CHAR_COMMENT = '#'
_LEADING_INT = re.compile(r'^\d+')


def _number(word: str, path: str, lc: int) -> int:
    # '200000Bps', '100usec', '1000B' -> leading digits only
    m = _LEADING_INT.match(word)
    if not m:
        raise ConfigError(f"line {lc} of '{path}': expected a number, found '{word}'")
    return int(m.group(0))


def parse_sysconfig(path: str, max_devices: int = MAX_DEVICES) -> Tuple[List[DeviceSpec], int]:
    devices: List[DeviceSpec] = []
    time_quantum = DEFAULT_TIME_QUANTUM
    with open(path, 'r') as fh:
        for lc, line in enumerate(fh, start=1):
            if line.startswith(CHAR_COMMENT) or not line.strip():
                continue
            parts = re.split(r'\s+', line.strip())
            if parts[0] == 'device' and len(parts) == 4:
                # device name readspeed writespeed
                name = parts[1]
                if len(name) > MAX_DEVICE_NAME:
                    raise ConfigError(f"line {lc} of '{path}': device name '{name}' is too long")
                if len(devices) >= max_devices:
                    raise ResourceExhausted(f"device limit of {max_devices} exceeded")
                devices.append(DeviceSpec(name, _number(parts[2], path, lc), _number(parts[3], path, lc)))
            elif parts[0] == 'timequantum' and len(parts) == 2:
                time_quantum = _number(parts[1], path, lc)
            else:
                raise ConfigError(f"line {lc} of '{path}' is not recognized")
    log.debug("sysconfig '%s': %d devices, timequantum %d", path, len(devices), time_quantum)
    return devices, time_quantum


def _parse_syscall(parts: List[str], device_names: Optional[Iterable[str]],
                   path: str, lc: int) -> SystemCall:
    if len(parts) < 2:
        raise ConfigError(f"line {lc} of '{path}' is not recognized")
    when = _number(parts[0], path, lc)
    try:
        op = Operation(parts[1])
    except ValueError:
        raise ConfigError(f"syscall '{parts[1]}' not found") from None
    args = parts[2:]
    expected = {Operation.SPAWN: 1, Operation.READ: 2, Operation.WRITE: 2, Operation.SLEEP: 1}.get(op, 0)
    if len(args) < expected:
        raise ConfigError(f"line {lc} of '{path}': '{op.value}' needs {expected} argument(s)")

    if op is Operation.SPAWN:
        return SystemCall.spawn(when, args[0])
    if op in (Operation.READ, Operation.WRITE):
        if device_names is not None and args[0] not in device_names:
            raise UnknownReference(f"device '{args[0]}' not found")
        return SystemCall(when, op, device=args[0], nbytes=_number(args[1], path, lc))
    if op is Operation.SLEEP:
        return SystemCall.sleep(when, _number(args[0], path, lc))
    return SystemCall(when, op)


def parse_commands(path: str, device_names: Optional[Iterable[str]] = None,
                   max_commands: int = MAX_COMMANDS,
                   max_syscalls: int = MAX_SYSCALLS_PER_PROCESS) -> Catalog:
    """Read a command file into a Catalog.

    A line starting with an alphanumeric character names a new command;
    each following tab-indented line is one of its syscalls. If
    ``device_names`` is given, read/write syscalls are checked against it.
    Spawn targets are resolved once the whole file has been read.
    """
    if device_names is not None:
        device_names = set(device_names)
    commands: Dict[str, List[SystemCall]] = {}
    current_cmd = None
    with open(path, 'r') as fh:
        for lc, raw in enumerate(fh, start=1):
            line = raw.rstrip('\n')
            if line.startswith(CHAR_COMMENT) or not line.strip():
                continue
            if line[0].isalnum():
                # command header
                current_cmd = line.split()[0]
                if len(current_cmd) > MAX_COMMAND_NAME:
                    raise ConfigError(f"line {lc} of '{path}': command name '{current_cmd}' is too long")
                if current_cmd in commands:
                    raise ConfigError(f"command '{current_cmd}' defined twice")
                if len(commands) >= max_commands:
                    raise ResourceExhausted(f"command limit of {max_commands} exceeded")
                commands[current_cmd] = []
            elif line[0] == '\t' and current_cmd is not None:
                # syscall line: format: \t<time>usecs    syscall   args...
                parts = re.split(r'\s+', line.strip())
                commands[current_cmd].append(_parse_syscall(parts, device_names, path, lc))
            else:
                raise ConfigError(f"line {lc} of '{path}' is not recognized")

    catalog = Catalog((Script(name, syscalls, max_syscalls=max_syscalls)
                       for name, syscalls in commands.items()), max_commands=max_commands)
    # find command-names for spawn, warn about commands that never exit
    for script in catalog:
        for sc in script.syscalls:
            if sc.op is Operation.SPAWN and sc.command not in catalog:
                raise UnknownReference(f"command '{sc.command}' not found")
        if not script.calls_exit():
            log.warning("command '%s' never calls 'exit'", script.name)
    return catalog
