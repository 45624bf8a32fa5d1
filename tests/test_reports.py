import re
import pytest
from xtop.reporting.base import ReportGenerator, ReportOptions, describe_reports, get_generator, get_report_types, register
from xtop.reporting.nodes_report import build_node_report
from xtop.reporting.pods_report import build_workload_report
from xtop.reporting.columns import NO_DATA


def _rows(text):
    return [re.split(r'\s{2,}', line) for line in text.splitlines()]


def _by_name(rows, name_index):
    return {row[name_index]: row for row in rows[1:]}


def test_two_nodes_one_workload(make_node, make_pod, container):
    nodes = [make_node('node-a', cpu='4', memory='16Gi'), make_node('node-b', cpu='2', memory='8Gi')]
    pods = [make_pod('web', node='node-a', containers=[container(requests={'cpu': '1'}, limits={'cpu': '2'})])]
    rows = _rows(build_node_report(nodes, pods))
    assert rows[0] == ['NAME', 'CPU CAPACITY', 'CPU REQ', 'CPU LIMIT', 'MEM CAPACITY', 'MEM REQ', 'MEM LIMIT']
    by_name = _by_name(rows, 0)
    assert by_name['node-a'][1:4] == ['4', '1 (25.00%)', '2']
    assert by_name['node-b'][1:4] == ['2', '0 (0.00%)', '0']
    assert by_name['node-a'][4:] == ['16Gi', '0 (0.00%)', '0']


def test_header_and_rows_have_same_width(make_node, make_pod, container):
    nodes = [make_node('n1', cpu='8', memory='32Gi'), make_node('n2')]
    pods = [make_pod('p', node='n1', containers=[container(requests={'cpu': '1500m', 'memory': '3Gi'})])]
    for text in (build_node_report(nodes, pods), build_node_report(nodes, pods, ReportOptions(verbose=True)),
                 build_workload_report(pods, None), build_workload_report(pods, [], verbose=True)):
        rows = _rows(text)
        assert len(rows) >= 2
        assert len({len(row) for row in rows}) == 1
        assert text.endswith('\n')


def test_node_report_sort(make_node, make_pod, container):
    nodes = [make_node('a', cpu='4'), make_node('b', cpu='4'), make_node('c', cpu='4')]
    pods = [
        make_pod('p1', node='a', containers=[container(requests={'cpu': '3'})]),
        make_pod('p2', node='c', containers=[container(requests={'cpu': '1'})]),
    ]
    text = build_node_report(nodes, pods, ReportOptions(sort_by='cpu-req'))
    assert [row[0] for row in _rows(text)[1:]] == ['b', 'c', 'a']
    unknown = build_node_report(nodes, pods, ReportOptions(sort_by='nope'))
    assert [row[0] for row in _rows(unknown)[1:]] == ['a', 'b', 'c']


def test_node_report_zero_capacity(make_node, make_pod, container):
    nodes = [make_node('virtual')]
    pods = [make_pod('p', node='virtual', containers=[container(requests={'cpu': '1', 'memory': '1Gi'})])]
    row = _rows(build_node_report(nodes, pods))[1]
    assert row == ['virtual', '0', '1', '0', '0', '1Gi', '0']


def test_workload_without_declarations_shows_raw_usage(make_pod, container, make_metrics):
    pods = [make_pod('bare', containers=[container()])]
    usage = [make_metrics('bare', usages=[{'cpu': '250m', 'memory': '64Mi'}])]
    rows = _rows(build_workload_report(pods, usage))
    assert rows[1] == ['default', 'bare', 'Running', '0', '0', '250m', '0', '0', '64Mi']


def test_metrics_unavailable_only_affects_usage(make_pod, container):
    pods = [
        make_pod('api', containers=[container(requests={'cpu': '500m', 'memory': '256Mi'}, limits={'cpu': '1'})]),
        make_pod('worker', containers=[container(requests={'cpu': '100m'})]),
    ]
    rows = _rows(build_workload_report(pods, None))
    header = rows[0]
    cpu_usage, mem_usage = header.index('CPU USAGE (%)'), header.index('MEM USAGE (%)')
    for row in rows[1:]:
        assert row[cpu_usage] == NO_DATA
        assert row[mem_usage] == NO_DATA
    api = _by_name(rows, 1)['api']
    assert api[3:5] == ['500m', '1']
    assert api[6:8] == ['256Mi', '0']


def test_usage_percentages(make_pod, container, make_metrics):
    pods = [make_pod('api', containers=[container(requests={'cpu': '500m', 'memory': '256Mi'})])]
    usage = [make_metrics('api', usages=[{'cpu': '125m', 'memory': '192Mi'}])]
    row = _rows(build_workload_report(pods, usage))[1]
    assert row[5] == '125m (25%)'
    assert row[8] == '192Mi (75%)'


def test_workload_report_namespace_and_verbose(make_pod, container):
    pods = [
        make_pod('a', namespace='prod', node='n1', containers=[container(requests={'cpu': '1'})]),
        make_pod('b', namespace='dev', node='n2'),
        make_pod('c', namespace='prod', phase='Pending'),
    ]
    rows = _rows(build_workload_report(pods, None, namespace='prod', verbose=True))
    assert rows[0][3] == 'NODE'
    assert [(r[0], r[1], r[2], r[3]) for r in rows[1:]] == [
        ('prod', 'a', 'Running', 'n1'),
        ('prod', 'c', 'Pending', NO_DATA),
    ]


def test_workload_report_sort_by_request(make_pod, container):
    pods = [
        make_pod('big', containers=[container(requests={'memory': '2Gi'})]),
        make_pod('small', containers=[container(requests={'memory': '128Mi'})]),
        make_pod('none'),
    ]
    rows = _rows(build_workload_report(pods, None, sort_by='mem-req'))
    assert [r[1] for r in rows[1:]] == ['none', 'small', 'big']


def test_empty_inputs_render_header_only():
    assert _rows(build_node_report([], []))[0][0] == 'NAME'
    assert len(build_workload_report([], None).splitlines()) == 1


class FakeClient:
    def __init__(self, nodes=(), pods=(), usage=None):
        self.nodes = list(nodes)
        self.pods = list(pods)
        self.usage = usage
        self.calls = []

    def list_nodes(self):
        self.calls.append(('nodes',))
        return self.nodes

    def list_workload_instances(self, namespace=''):
        self.calls.append(('pods', namespace))
        return [p for p in self.pods if not namespace or p['metadata']['namespace'] == namespace]

    def list_observed_usage(self, namespace=''):
        self.calls.append(('usage', namespace))
        return self.usage


def test_registry_lists_both_reports():
    assert {'nodes', 'pods'} <= set(get_report_types())


def test_generators_fetch_through_client(make_node, make_pod, container):
    client = FakeClient(
        nodes=[make_node('n1', cpu='2')],
        pods=[make_pod('p', namespace='team', node='n1', containers=[container(requests={'cpu': '1'})])],
    )
    nodes_text = get_generator('nodes').generate(client, ReportOptions())
    assert '1 (50.00%)' in nodes_text
    pods_text = get_generator('pods').generate(client, ReportOptions(namespace='team'))
    assert 'team' in pods_text and NO_DATA in pods_text
    assert ('pods', 'team') in client.calls and ('usage', 'team') in client.calls


def test_reports_skip_items_with_unusable_quantities(make_node, make_pod, container, make_metrics):
    pods = [
        make_pod('bad', containers=[container(requests={'cpu': '1e60'})]),
        make_pod('good', containers=[container(requests={'cpu': '1'})]),
    ]
    usage = [make_metrics('good', usages=[{'cpu': '1e99999999'}])]
    rows = _rows(build_workload_report(pods, usage))
    assert [r[1] for r in rows[1:]] == ['good']
    assert rows[1][5] == '0 (0%)'
    node_rows = _rows(build_node_report([make_node('huge', cpu='1e60'), make_node('ok', cpu='2')], []))
    assert [r[0] for r in node_rows[1:]] == ['ok']


def test_report_descriptions_and_lookup_errors():
    descriptions = describe_reports()
    assert descriptions['nodes'] and descriptions['pods']
    with pytest.raises(ValueError, match='unknown report type'):
        get_generator('html')


def test_register_rejects_a_clashing_type_name():
    class Impostor(ReportGenerator):
        type_name = 'nodes'

        def generate(self, client, options):
            return ''

    with pytest.raises(ValueError, match='already registered'):
        register(Impostor)
    assert type(get_generator('nodes')).__name__ == 'NodesReport'
