import sys, os
import pytest

# Ensure project root (parent of tests directory) is on sys.path for imports when
# test execution occurs in environments that don't automatically include it.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from xtop.util import logging as log


@pytest.fixture(autouse=True)
def reset_logging():
    log.configure_logging('WARN', 'text')
    yield
    log.configure_logging('WARN', 'text')


@pytest.fixture
def make_node():
    def _make(name, cpu=None, memory=None, labels=None):
        capacity = {}
        if cpu is not None:
            capacity['cpu'] = cpu
        if memory is not None:
            capacity['memory'] = memory
        return {
            'metadata': {'name': name, 'labels': labels or {}},
            'status': {'capacity': capacity},
        }
    return _make


@pytest.fixture
def make_pod():
    def _make(name, namespace='default', node=None, phase='Running', containers=None):
        return {
            'metadata': {'name': name, 'namespace': namespace},
            'spec': {'nodeName': node, 'containers': containers if containers is not None else []},
            'status': {'phase': phase},
        }
    return _make


@pytest.fixture
def container():
    def _make(name='app', requests=None, limits=None):
        resources = {}
        if requests is not None:
            resources['requests'] = requests
        if limits is not None:
            resources['limits'] = limits
        return {'name': name, 'resources': resources}
    return _make


@pytest.fixture
def make_metrics():
    def _make(name, namespace='default', usages=()):
        return {
            'metadata': {'name': name, 'namespace': namespace},
            'containers': [{'name': f'c{i}', 'usage': usage} for i, usage in enumerate(usages)],
        }
    return _make
