from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from ..resources.ledger import Ledger
from ..resources.quantity import Quantity

ARCH_LABEL = 'kubernetes.io/arch'
OS_LABEL = 'kubernetes.io/os'
INSTANCE_TYPE_LABEL = 'node.kubernetes.io/instance-type'


@dataclass
class NodeRecord:
    name: str
    ledger: Ledger = field(default_factory=Ledger)
    labels: Dict[str, str] = field(default_factory=dict)
    pod_count: int = 0
    # marks the empty record used to render the header row
    sentinel: bool = field(default=False, repr=False)

    @classmethod
    def sentinel_record(cls) -> 'NodeRecord':
        return cls(name='', sentinel=True)

    @property
    def arch(self) -> Optional[str]:
        return self.labels.get(ARCH_LABEL)

    @property
    def os(self) -> Optional[str]:
        return self.labels.get(OS_LABEL)

    @property
    def instance_type(self) -> Optional[str]:
        return self.labels.get(INSTANCE_TYPE_LABEL)


@dataclass
class WorkloadRecord:
    name: str
    namespace: str = ''
    node_name: Optional[str] = None
    phase: str = ''
    ledger: Ledger = field(default_factory=Ledger)
    # None means usage data is unavailable, which is not the same as zero
    cpu_usage: Optional[Quantity] = None
    memory_usage: Optional[Quantity] = None
    sentinel: bool = field(default=False, repr=False)

    @classmethod
    def sentinel_record(cls) -> 'WorkloadRecord':
        return cls(name='', sentinel=True)

    @property
    def key(self) -> Tuple[str, str]:
        return self.namespace, self.name

    def usage(self, resource: str) -> Optional[Quantity]:
        if resource == 'cpu':
            return self.cpu_usage
        if resource == 'memory':
            return self.memory_usage
        return None
