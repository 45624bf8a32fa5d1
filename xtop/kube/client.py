from __future__ import annotations
import base64
import json
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote
import urllib3
from kubernetes import config as k8s_config, client as k8s_client
from kubernetes.client.exceptions import ApiException
from ..util import logging as log

METRICS_API_VERSION = 'metrics.k8s.io/v1beta1'
RETRYABLE_STATUSES = (429, 500, 502, 503, 504)
PAGE_SIZE = 500


class FetchError(Exception):
    """A listing could not be completed."""

    def __init__(self, resource: str, reason: str, status: Optional[int] = None):
        self.resource = resource
        self.reason = reason
        self.status = status
        detail = f' (status {status})' if status else ''
        super().__init__(f'failed to list {resource}{detail}: {reason}')


def load_kubeconfig(kubeconfig: str | None = None, context: str | None = None) -> k8s_client.ApiClient:
    return k8s_config.new_client_from_config(config_file=kubeconfig, context=context)


def configure_from_credentials(credentials) -> k8s_client.Configuration:
    cfg = k8s_client.Configuration()
    cfg.host = credentials.host
    if credentials.token:
        cfg.api_key = {"authorization": credentials.token}
        cfg.api_key_prefix = {"authorization": "Bearer"}
        log.debug('using bearer token', host=credentials.host)
    elif credentials.username and credentials.password:
        basic_auth = base64.b64encode(f"{credentials.username}:{credentials.password}".encode()).decode()
        cfg.api_key = {"authorization": f"Basic {basic_auth}"}
    if credentials.cert_file: cfg.cert_file = credentials.cert_file
    if credentials.key_file: cfg.key_file = credentials.key_file
    if credentials.ca_file: cfg.ssl_ca_cert = credentials.ca_file
    cfg.verify_ssl = credentials.verify_ssl
    if not credentials.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warn('ssl_verification_disabled', host=credentials.host)
    return cfg


def _split_api_version(api_version: str) -> Tuple[str | None, str]:
    if '/' in api_version:
        group, version = api_version.split('/', 1)
        return group, version
    return None, api_version


def resource_path(api_version: str, plural: str, namespace: str = '') -> str:
    group, version = _split_api_version(api_version)
    prefix = f"/api/{version}" if group is None else f"/apis/{group}/{version}"
    if namespace:
        return f"{prefix}/namespaces/{namespace}/{plural}"
    return f"{prefix}/{plural}"


def list_resources(api_client: k8s_client.ApiClient, api_version: str, plural: str, namespace: str = '',
                   max_retries: int = 4, backoff_base: float = 0.5) -> Iterable[Dict[str, Any]]:
    """Yield every item of a collection, following ``continue`` tokens.

    Transient failures are retried with exponential backoff; anything else, or
    running out of retries, raises :class:`FetchError`.
    """
    base = resource_path(api_version, plural, namespace)
    resource = f'{api_version}/{plural}'
    cont = None
    while True:
        query = f"?limit={PAGE_SIZE}" + (f"&continue={quote(cont, safe='')}" if cont else '')
        url = base + query
        attempt = 0
        while True:
            try:
                resp = api_client.call_api(url, 'GET', response_type='object', _preload_content=False, auth_settings=['BearerToken'])
                payload = json.loads(resp[0].data)
                break
            except ApiException as e:
                status = getattr(e, 'status', None)
                if status in RETRYABLE_STATUSES and attempt < max_retries:
                    sleep_for = backoff_base * (2 ** attempt)
                    log.warn('transient error, retrying', resource=resource, namespace=namespace, status=status, attempt=attempt+1, sleep=sleep_for)
                    time.sleep(sleep_for); attempt += 1; continue
                log.error('failed listing resources', resource=resource, namespace=namespace, status=status, reason=getattr(e, 'reason', str(e)))
                raise FetchError(resource, str(getattr(e, 'reason', None) or e), status) from e
            except (urllib3.exceptions.HTTPError, OSError, ValueError) as e:
                if attempt < max_retries:
                    sleep_for = backoff_base * (2 ** attempt)
                    log.warn('connection error, retrying', resource=resource, namespace=namespace, attempt=attempt+1, sleep=sleep_for, error=str(e))
                    time.sleep(sleep_for); attempt += 1; continue
                log.error('unhandled error listing resources', resource=resource, namespace=namespace, error=str(e))
                raise FetchError(resource, str(e)) from e
        for item in payload.get('items') or []:
            yield item
        cont = (payload.get('metadata') or {}).get('continue')
        if not cont:
            break


class ClusterClient:
    """Read-only access to the node, pod and pod-metrics collections."""

    def __init__(self, api_client: k8s_client.ApiClient, max_retries: int = 4, backoff_base: float = 0.5):
        self.api_client = api_client
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    @classmethod
    def from_config(cls, cluster_cfg) -> 'ClusterClient':
        if cluster_cfg.credentials:
            api_client = k8s_client.ApiClient(configuration=configure_from_credentials(cluster_cfg.credentials))
        else:
            api_client = load_kubeconfig(cluster_cfg.kubeconfig, cluster_cfg.context)
        return cls(api_client, cluster_cfg.max_retries, cluster_cfg.backoff_base)

    def _list(self, api_version: str, plural: str, namespace: str = '') -> List[Dict[str, Any]]:
        items = list(list_resources(self.api_client, api_version, plural, namespace,
                                    max_retries=self.max_retries, backoff_base=self.backoff_base))
        log.debug('listed resources', api_version=api_version, plural=plural, namespace=namespace or '*', count=len(items))
        return items

    def list_nodes(self) -> List[Dict[str, Any]]:
        return self._list('v1', 'nodes')

    def list_workload_instances(self, namespace: str = '') -> List[Dict[str, Any]]:
        return self._list('v1', 'pods', namespace)

    def list_observed_usage(self, namespace: str = '') -> Optional[List[Dict[str, Any]]]:
        """Pod metrics, or None when the metrics API cannot be read."""
        try:
            return self._list(METRICS_API_VERSION, 'pods', namespace)
        except FetchError as e:
            log.warn('could not fetch metrics', error=str(e))
            return None
