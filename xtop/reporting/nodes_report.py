from __future__ import annotations
from typing import Any, Dict, Iterable, Optional
from .base import ReportGenerator, ReportOptions, register
from .aggregate import Aggregator
from .columns import node_columns
from .records import NodeRecord
from .sorting import sort_records
from .table import render_records
from ..util import logging as log


def build_node_report(raw_nodes: Iterable[Dict[str, Any]], raw_workloads: Iterable[Dict[str, Any]],
                      options: Optional[ReportOptions] = None) -> str:
    """Render one row per node with capacity and the requests/limits of its pods."""
    options = options or ReportOptions()
    aggregation = Aggregator().aggregate(raw_nodes, raw_workloads)
    nodes = sort_records(aggregation.nodes, options.sort_by)
    return render_records(nodes, node_columns(options.verbose), NodeRecord.sentinel_record())


@register
class NodesReport(ReportGenerator):
    type_name = 'nodes'
    description = 'Node capacity with the requests and limits of resident pods'

    def generate(self, client, options: ReportOptions) -> str:
        raw_nodes = client.list_nodes()
        raw_pods = client.list_workload_instances()
        log.info('fetched node inventory', nodes=len(raw_nodes), pods=len(raw_pods))
        return build_node_report(raw_nodes, raw_pods, options)
