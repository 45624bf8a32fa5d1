from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
from .base import ReportGenerator, ReportOptions, register
from .aggregate import Aggregator, filter_namespace
from .columns import workload_columns
from .records import WorkloadRecord
from .sorting import DEFAULT_SORT_KEY, sort_records
from .table import render_records
from ..util import logging as log


def build_workload_report(raw_workloads: Iterable[Dict[str, Any]], raw_usage: Optional[Iterable[Dict[str, Any]]],
                          namespace: str = '', sort_by: str = DEFAULT_SORT_KEY, verbose: bool = False) -> str:
    """Render one row per pod with its requests, limits and observed usage.

    ``raw_usage=None`` means the metrics API could not be read; the usage
    columns then show ``<none>``.
    """
    aggregator = Aggregator()
    workloads = filter_namespace(aggregator.build_workloads(raw_workloads), namespace)
    aggregator.apply_usage(workloads, raw_usage)
    workloads = sort_records(workloads, sort_by)
    return render_records(workloads, workload_columns(verbose), WorkloadRecord.sentinel_record())


@register
class PodsReport(ReportGenerator):
    type_name = 'pods'
    description = 'Pod requests, limits and observed usage'

    def generate(self, client, options: ReportOptions) -> str:
        raw_pods = client.list_workload_instances(options.namespace)
        raw_usage = client.list_observed_usage(options.namespace)
        log.info('fetched pod inventory', namespace=options.namespace or '*', pods=len(raw_pods),
                 metrics='unavailable' if raw_usage is None else len(raw_usage))
        return build_workload_report(raw_pods, raw_usage, options.namespace, options.sort_by, options.verbose)
