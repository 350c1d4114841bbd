# Plain-text output: configuration dumps and the final measurements line
from typing import Iterable

from kernel.device import DeviceSpec
from kernel.syscall import Catalog, Operation
from kernel.system import Measurements


def format_measurements(m: Measurements) -> str:
    return str(m)


def dump_sysconfig(devices: Iterable[DeviceSpec], time_quantum: int) -> str:
    lines = [f"{d.name}\t{d.read_speed}\t{d.write_speed}" for d in devices]
    lines += ['#', f"timequantum\t{time_quantum}", '#']
    return '\n'.join(lines) + '\n'


def dump_commands(catalog: Catalog) -> str:
    lines = []
    for script in catalog:
        lines.append(script.name)
        for sc in script.syscalls:
            if sc.op is Operation.SPAWN:
                lines.append(f"\t{sc.when}\t{sc.op.value}\t{sc.command}")
            elif sc.op in (Operation.READ, Operation.WRITE):
                lines.append(f"\t{sc.when}\t{sc.op.value}\t{sc.device}\t{sc.nbytes}")
            elif sc.op is Operation.SLEEP:
                lines.append(f"\t{sc.when}\t{sc.op.value}\t{sc.duration}")
            else:
                lines.append(f"\t{sc.when}\t{sc.op.value}")
    return '\n'.join(lines) + '\n'
