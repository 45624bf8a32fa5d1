from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Type
from .sorting import DEFAULT_SORT_KEY


@dataclass(frozen=True)
class ReportOptions:
    """Per-run display settings passed explicitly into every report call."""
    sort_by: str = DEFAULT_SORT_KEY
    namespace: str = ''
    verbose: bool = False


class ReportGenerator(ABC):
    """Abstract base for report generators.

    Implementations fetch what they need through the cluster client and return
    the rendered report text.
    """

    # A short unique type name (e.g. 'nodes', 'pods')
    type_name: str
    description: str = ''

    @abstractmethod
    def generate(self, client, options: ReportOptions) -> str:  # pragma: no cover - interface
        pass


_generators: Dict[str, Type[ReportGenerator]] = {}


def register(generator_cls: Type[ReportGenerator]):
    name = getattr(generator_cls, 'type_name', None)
    if not name:
        raise ValueError('ReportGenerator subclass must define type_name')
    existing = _generators.get(name)
    if existing is not None and existing is not generator_cls:
        raise ValueError(f'report type {name!r} is already registered by {existing.__name__}')
    _generators[name] = generator_cls
    return generator_cls


def get_report_types() -> List[str]:
    return sorted(_generators)


def describe_reports() -> Dict[str, str]:
    """Map each registered report type to its one-line description."""
    return {name: _generators[name].description for name in get_report_types()}


def get_generator(type_name: str) -> ReportGenerator:
    try:
        cls = _generators[type_name]
    except KeyError:
        raise ValueError(f'unknown report type {type_name!r} (known: {", ".join(get_report_types())})') from None
    return cls()
