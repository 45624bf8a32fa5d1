from __future__ import annotations
from typing import Any, Callable, List, Optional
from ..resources.ledger import ResourceKey
from ..resources.quantity import Quantity

NO_DATA = '<none>'

NODE_RESOURCE_COLUMNS = (
    ResourceKey.CPU_CAPACITY, ResourceKey.CPU_REQUEST, ResourceKey.CPU_LIMIT,
    ResourceKey.MEMORY_CAPACITY, ResourceKey.MEMORY_REQUEST, ResourceKey.MEMORY_LIMIT,
)


def column_name(key: str) -> str:
    """``cpuCapacity`` -> ``CPU CAPACITY``, ``memUsage (%)`` -> ``MEM USAGE (%)``."""
    for i in range(1, len(key)):
        if key[i].isupper():
            return key[:i].upper() + ' ' + key[i:].upper()
    return key.upper()


class Column:
    """A report column: a header plus a pure projection of one record.

    Projecting the sentinel record yields the header, so the header row goes
    through the same path as every data row.
    """

    def __init__(self, header: str, getter: Callable[[Any], str]):
        self.header = header
        self.getter = getter

    def __call__(self, record: Any) -> str:
        if getattr(record, 'sentinel', False):
            return self.header
        return self.getter(record)

    def __repr__(self) -> str:
        return f'Column({self.header!r})'


def percentage(part: Quantity, whole: Optional[Quantity]) -> Optional[float]:
    """``100 * part / whole`` on integer-scaled values, or None for a zero whole."""
    if whole is None:
        return None
    denominator = whole.scaled_value()
    if denominator == 0:
        return None
    return part.scaled_value() * 100 / denominator


def ledger_column(key: ResourceKey) -> Column:
    def getter(record) -> str:
        quantity = record.ledger.get(key)
        return NO_DATA if quantity is None else str(quantity)
    return Column(column_name(key.key), getter)


def capacity_percentage_column(key: ResourceKey) -> Column:
    capacity_key = ResourceKey.for_resource(key.resource, 'capacity')

    def getter(record) -> str:
        quantity = record.ledger.get(key)
        if quantity is None:
            return NO_DATA
        pct = percentage(quantity, record.ledger.get(capacity_key))
        if pct is None:
            return str(quantity)
        return f'{quantity} ({pct:.2f}%)'
    return Column(column_name(key.key), getter)


def usage_percentage_column(resource: str, short: str) -> Column:
    request_key = ResourceKey.for_resource(resource, 'request')

    def getter(record) -> str:
        usage = record.usage(resource)
        if usage is None:
            return NO_DATA
        request = record.ledger.get(request_key)
        pct = None if request is None or request.is_zero() else percentage(usage, request)
        if pct is None:
            return str(usage)
        return f'{usage} ({pct:.0f}%)'
    return Column(column_name(f'{short}Usage (%)'), getter)


def _label_column(header: str, attr: str) -> Column:
    return Column(header, lambda record: getattr(record, attr) or NO_DATA)


def node_columns(verbose: bool = False) -> List[Column]:
    columns = [Column('NAME', lambda node: node.name)]
    for key in NODE_RESOURCE_COLUMNS:
        if key.variant == 'request':
            columns.append(capacity_percentage_column(key))
        else:
            columns.append(ledger_column(key))
    if verbose:
        columns.extend([
            _label_column('ARCH', 'arch'),
            _label_column('OS', 'os'),
            _label_column('TYPE', 'instance_type'),
            Column('PODS', lambda node: str(node.pod_count)),
        ])
    return columns


def workload_columns(verbose: bool = False) -> List[Column]:
    columns = [
        Column('NAMESPACE', lambda pod: pod.namespace),
        Column('NAME', lambda pod: pod.name),
        Column('STATUS', lambda pod: pod.phase or NO_DATA),
    ]
    if verbose:
        columns.append(_label_column('NODE', 'node_name'))
    columns.extend([
        ledger_column(ResourceKey.CPU_REQUEST),
        ledger_column(ResourceKey.CPU_LIMIT),
        usage_percentage_column('cpu', 'cpu'),
        ledger_column(ResourceKey.MEMORY_REQUEST),
        ledger_column(ResourceKey.MEMORY_LIMIT),
        usage_percentage_column('memory', 'mem'),
    ])
    return columns
