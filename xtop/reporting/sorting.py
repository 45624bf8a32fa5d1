from __future__ import annotations
from typing import Dict, Iterable, List, Optional, TypeVar
from ..resources.ledger import ResourceKey
from ..util import logging as log

DEFAULT_SORT_KEY = 'name'
SORT_KEYS: Dict[str, Optional[ResourceKey]] = {
    'name': None,
    'cpu-req': ResourceKey.CPU_REQUEST,
    'cpu-limit': ResourceKey.CPU_LIMIT,
    'mem-req': ResourceKey.MEMORY_REQUEST,
    'mem-limit': ResourceKey.MEMORY_LIMIT,
}

R = TypeVar('R')


def sort_key_help() -> str:
    return ', '.join(SORT_KEYS)


def sort_records(records: Iterable[R], sort_by: Optional[str] = DEFAULT_SORT_KEY) -> List[R]:
    """Return records ordered by name or by one ledger entry, ascending.

    ``sorted`` is stable, so equal keys keep discovery order. An unknown token
    orders by name.
    """
    token = sort_by or DEFAULT_SORT_KEY
    if token not in SORT_KEYS:
        log.warn('unknown sort key, ordering by name', sort_by=token, valid=sort_key_help())
    resource_key = SORT_KEYS.get(token)
    if resource_key is None:
        return sorted(records, key=lambda r: r.name)
    return sorted(records, key=lambda r: r.ledger[resource_key])
