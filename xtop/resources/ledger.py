from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple
from .quantity import Quantity, UnitFamily, parse_quantity
from ..util import logging as log

FAMILY_BY_RESOURCE: Dict[str, UnitFamily] = {
    'cpu': UnitFamily.DECIMAL,
    'memory': UnitFamily.BINARY,
}


class ResourceKey(Enum):
    # (column key, resource kind, variant)
    CPU_REQUEST = ('cpuReq', 'cpu', 'request')
    CPU_LIMIT = ('cpuLimit', 'cpu', 'limit')
    CPU_CAPACITY = ('cpuCapacity', 'cpu', 'capacity')
    MEMORY_REQUEST = ('memReq', 'memory', 'request')
    MEMORY_LIMIT = ('memLimit', 'memory', 'limit')
    MEMORY_CAPACITY = ('memCapacity', 'memory', 'capacity')

    def __init__(self, key: str, resource: str, variant: str):
        self.key = key
        self.resource = resource
        self.variant = variant

    @property
    def family(self) -> UnitFamily:
        return FAMILY_BY_RESOURCE[self.resource]

    @classmethod
    def for_resource(cls, resource: str, variant: str) -> 'ResourceKey':
        for member in cls:
            if member.resource == resource and member.variant == variant:
                return member
        raise KeyError(f'{resource}/{variant}')


CAPACITY_KEYS: Tuple[ResourceKey, ...] = (ResourceKey.CPU_CAPACITY, ResourceKey.MEMORY_CAPACITY)
WORKLOAD_KEYS: Tuple[ResourceKey, ...] = (
    ResourceKey.CPU_REQUEST, ResourceKey.CPU_LIMIT,
    ResourceKey.MEMORY_REQUEST, ResourceKey.MEMORY_LIMIT,
)
NODE_KEYS: Tuple[ResourceKey, ...] = WORKLOAD_KEYS + CAPACITY_KEYS


class Ledger:
    """Per-entity mapping of resource key to accumulated quantity.

    Every key the ledger is created with starts at a family-correct zero, so
    lookups of those keys never fail. Keys outside that set are not held.
    """

    def __init__(self, keys: Iterable[ResourceKey] = ()):
        self._entries: Dict[ResourceKey, Quantity] = {k: Quantity.zero(k.family) for k in keys}

    def __getitem__(self, key: ResourceKey) -> Quantity:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[ResourceKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: ResourceKey) -> Optional[Quantity]:
        return self._entries.get(key)

    def items(self):
        return self._entries.items()

    def set(self, key: ResourceKey, quantity: Quantity) -> None:
        if key not in self._entries:
            raise KeyError(key)
        if quantity.family is not key.family:
            raise ValueError(f'{key.name} expects {key.family.value}, got {quantity.family.value}')
        self._entries[key] = quantity.copy()

    def add(self, key: ResourceKey, quantity: Quantity) -> None:
        self._entries[key].add(quantity)

    def __repr__(self) -> str:
        body = ', '.join(f'{k.key}={v}' for k, v in self._entries.items())
        return f'Ledger({body})'


def accumulate(ledger: Ledger, raw_resources: Optional[Mapping[str, str]], source_kind: str, target_key: ResourceKey) -> bool:
    """Add ``raw_resources[source_kind]`` into ``ledger[target_key]``.

    A missing map or a missing entry contributes nothing. Returns whether a
    value was added.
    """
    if not raw_resources or source_kind not in raw_resources:
        log.debug('no declared value', resource=source_kind, target=target_key.key)
        return False
    ledger.add(target_key, parse_quantity(raw_resources[source_kind], target_key.family))
    return True
