"""Fold raw node, pod and pod-metrics records into per-entity ledgers.

The pass is tolerant: a raw item that cannot be read is logged and skipped,
and a missing resource declaration counts as zero. Only the callers that fetch
the base node and pod lists decide whether a missing list is fatal.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import DecimalException
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from ..resources.ledger import Ledger, ResourceKey, NODE_KEYS, WORKLOAD_KEYS, CAPACITY_KEYS, accumulate
from ..resources.quantity import Quantity, UnitFamily, parse_quantity
from ..util import logging as log
from .records import NodeRecord, WorkloadRecord

# Errors that mean "this raw item has the wrong shape or bad values".
MALFORMED_ITEM_ERRORS = (KeyError, TypeError, ValueError, AttributeError, DecimalException)


@dataclass(frozen=True)
class ExtractionRule:
    """Route ``container.resources.<section>.<resource>`` into a ledger key."""
    section: str
    resource: str
    target: ResourceKey

    def apply(self, ledger: Ledger, container: Dict[str, Any]) -> bool:
        resources = container.get('resources') or {}
        return accumulate(ledger, resources.get(self.section), self.resource, self.target)


DEFAULT_EXTRACTION_RULES: Tuple[ExtractionRule, ...] = (
    ExtractionRule('requests', 'cpu', ResourceKey.CPU_REQUEST),
    ExtractionRule('requests', 'memory', ResourceKey.MEMORY_REQUEST),
    ExtractionRule('limits', 'cpu', ResourceKey.CPU_LIMIT),
    ExtractionRule('limits', 'memory', ResourceKey.MEMORY_LIMIT),
)


def node_owner(workload: WorkloadRecord) -> Optional[str]:
    return workload.node_name or None


def filter_namespace(workloads: Iterable[WorkloadRecord], namespace: str = '') -> List[WorkloadRecord]:
    if not namespace:
        return list(workloads)
    return [w for w in workloads if w.namespace == namespace]


def _item_name(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        meta = item.get('metadata')
        if isinstance(meta, dict):
            return meta.get('name')
    return None


def _require_name(meta: Dict[str, Any]) -> str:
    name = meta['name']
    if not name or not isinstance(name, str):
        raise ValueError('item has no name')
    return name


@dataclass
class Aggregation:
    nodes: List[NodeRecord] = field(default_factory=list)
    workloads: List[WorkloadRecord] = field(default_factory=list)


class Aggregator:
    def __init__(self, extraction_rules: Optional[Sequence[ExtractionRule]] = None,
                 owner_of: Optional[Callable[[WorkloadRecord], Optional[str]]] = None):
        rules = tuple(extraction_rules) if extraction_rules is not None else DEFAULT_EXTRACTION_RULES
        for rule in rules:
            if rule.target not in WORKLOAD_KEYS:
                raise ValueError(f'extraction rule target {rule.target.name} is not a workload ledger key')
        self.extraction_rules = rules
        self.owner_of = owner_of or node_owner

    # nodes

    def build_nodes(self, raw_nodes: Optional[Iterable[Dict[str, Any]]]) -> List[NodeRecord]:
        nodes: List[NodeRecord] = []
        for item in raw_nodes or []:
            try:
                nodes.append(self._build_node(item))
            except MALFORMED_ITEM_ERRORS as e:
                log.warn('skipping malformed node', name=_item_name(item), error=str(e))
        return nodes

    def _build_node(self, item: Dict[str, Any]) -> NodeRecord:
        meta = item['metadata']
        name = _require_name(meta)
        ledger = Ledger(NODE_KEYS)
        capacity = (item.get('status') or {}).get('capacity') or {}
        for key in CAPACITY_KEYS:
            if key.resource in capacity:
                ledger.set(key, parse_quantity(capacity[key.resource], key.family))
            else:
                log.debug('node reports no capacity', node=name, resource=key.resource)
        return NodeRecord(name=name, ledger=ledger, labels=dict(meta.get('labels') or {}))

    # workloads

    def build_workloads(self, raw_pods: Optional[Iterable[Dict[str, Any]]]) -> List[WorkloadRecord]:
        workloads: List[WorkloadRecord] = []
        for item in raw_pods or []:
            try:
                workloads.append(self._build_workload(item))
            except MALFORMED_ITEM_ERRORS as e:
                log.warn('skipping malformed pod', name=_item_name(item), error=str(e))
        return workloads

    def _build_workload(self, item: Dict[str, Any]) -> WorkloadRecord:
        meta = item['metadata']
        spec = item.get('spec') or {}
        status = item.get('status') or {}
        record = WorkloadRecord(
            name=_require_name(meta),
            namespace=meta.get('namespace') or '',
            node_name=spec.get('nodeName') or None,
            phase=status.get('phase') or '',
            ledger=Ledger(WORKLOAD_KEYS),
        )
        for container in spec.get('containers') or []:
            self._fold_container(record, container)
        return record

    def _fold_container(self, record: WorkloadRecord, container: Dict[str, Any]):
        if log.is_enabled('debug'):
            resources = container.get('resources') or {}
            for section in dict.fromkeys(r.section for r in self.extraction_rules):
                if resources.get(section) is None:
                    log.debug('container declares no ' + section, pod=record.name,
                              namespace=record.namespace, container=container.get('name'))
        for rule in self.extraction_rules:
            rule.apply(record.ledger, container)

    # node attribution

    def attribute(self, nodes: Iterable[NodeRecord], workloads: Iterable[WorkloadRecord]) -> int:
        """Add each workload's requests and limits to its owning node.

        Returns the number of workloads attributed. Workloads without a known
        owner stay reportable on their own.
        """
        by_name = {n.name: n for n in nodes}
        attributed = 0
        for workload in workloads:
            owner = self.owner_of(workload)
            node = by_name.get(owner) if owner else None
            if node is None:
                log.debug('pod not attributed to a known node', pod=workload.name,
                          namespace=workload.namespace, node=owner)
                continue
            for key in WORKLOAD_KEYS:
                node.ledger.add(key, workload.ledger[key])
            node.pod_count += 1
            attributed += 1
        return attributed

    # observed usage

    def apply_usage(self, workloads: Iterable[WorkloadRecord], raw_usage: Optional[Iterable[Dict[str, Any]]]):
        if raw_usage is None:
            log.debug('usage metrics unavailable; usage columns left empty')
            return
        lookup: Dict[Tuple[str, str], Tuple[Quantity, Quantity]] = {}
        for item in raw_usage:
            try:
                key, usage = self._sum_usage(item)
            except MALFORMED_ITEM_ERRORS as e:
                log.warn('skipping malformed pod metrics', name=_item_name(item), error=str(e))
                continue
            lookup[key] = usage
        for workload in workloads:
            usage = lookup.get(workload.key)
            if usage is None:
                # metrics are available but carry nothing for this pod
                workload.cpu_usage = Quantity.zero(UnitFamily.DECIMAL)
                workload.memory_usage = Quantity.zero(UnitFamily.BINARY)
            else:
                workload.cpu_usage, workload.memory_usage = usage

    def _sum_usage(self, item: Dict[str, Any]) -> Tuple[Tuple[str, str], Tuple[Quantity, Quantity]]:
        meta = item['metadata']
        key = (meta.get('namespace') or '', _require_name(meta))
        cpu = Quantity.zero(UnitFamily.DECIMAL)
        memory = Quantity.zero(UnitFamily.BINARY)
        for container in item.get('containers') or []:
            usage = container.get('usage') or {}
            if 'cpu' in usage:
                cpu.add(parse_quantity(usage['cpu'], cpu.family))
            if 'memory' in usage:
                memory.add(parse_quantity(usage['memory'], memory.family))
        return key, (cpu, memory)

    def aggregate(self, raw_nodes: Optional[Iterable[Dict[str, Any]]], raw_pods: Optional[Iterable[Dict[str, Any]]],
                  raw_usage: Optional[Iterable[Dict[str, Any]]] = None, namespace: str = '') -> Aggregation:
        """Run the full pass.

        Node totals include every pod; the namespace filter only narrows the
        returned workloads.
        """
        nodes = self.build_nodes(raw_nodes)
        workloads = self.build_workloads(raw_pods)
        attributed = self.attribute(nodes, workloads)
        workloads = filter_namespace(workloads, namespace)
        self.apply_usage(workloads, raw_usage)
        log.debug('aggregation complete', nodes=len(nodes), pods=len(workloads), attributed=attributed)
        return Aggregation(nodes=nodes, workloads=workloads)
