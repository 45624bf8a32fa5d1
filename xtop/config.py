from __future__ import annotations
import os
import yaml
from dataclasses import dataclass, field
from typing import Optional
from .reporting.sorting import DEFAULT_SORT_KEY

DEFAULT_CONFIG_FILE = 'config/config.yaml'


@dataclass
class ClusterCredentials:
    host: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    verify_ssl: bool = True


@dataclass
class ClusterConfig:
    # with neither kubeconfig nor credentials the default kubeconfig loading rules apply
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    credentials: Optional[ClusterCredentials] = None
    max_retries: int = 4
    backoff_base: float = 0.5


@dataclass
class ReportDefaults:
    sort_by: str = DEFAULT_SORT_KEY
    namespace: str = ''
    verbose: bool = False


@dataclass
class LoggingConfig:
    level: str = 'WARN'
    format: str = 'text'


@dataclass
class AppConfig:
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    defaults: ReportDefaults = field(default_factory=ReportDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_cluster(raw: dict) -> ClusterConfig:
    credentials = None
    creds_data = raw.get('credentials')
    if creds_data:
        credentials = ClusterCredentials(
            host=creds_data.get('host'),
            token=creds_data.get('token'),
            username=creds_data.get('username'),
            password=creds_data.get('password'),
            cert_file=creds_data.get('cert_file'),
            key_file=creds_data.get('key_file'),
            ca_file=creds_data.get('ca_file'),
            verify_ssl=creds_data.get('verify_ssl', True)
        )
    kubeconfig = raw.get('kubeconfig')
    cluster = ClusterConfig(
        kubeconfig=os.path.expanduser(kubeconfig) if kubeconfig else None,
        context=raw.get('context'),
        credentials=credentials,
        max_retries=int(raw.get('max_retries', 4)),
        backoff_base=float(raw.get('backoff_base', 0.5)),
    )
    if cluster.kubeconfig and cluster.credentials:
        raise ValueError('Cluster cannot specify both kubeconfig and credentials')
    if cluster.credentials and not cluster.credentials.host:
        raise ValueError('Cluster credentials must include host')
    if cluster.max_retries < 0:
        raise ValueError('Cluster max_retries must not be negative')
    return cluster


def load_config(path: str = DEFAULT_CONFIG_FILE) -> AppConfig:
    if not os.path.exists(path):
        raise FileNotFoundError(f'Config file not found: {path}')
    with open(path, 'r', encoding='utf-8') as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f'Config file {path} must contain a mapping')
    cluster = _parse_cluster(raw.get('cluster', {}) or {})
    defaults_raw = raw.get('defaults', {}) or {}
    defaults = ReportDefaults(
        sort_by=defaults_raw.get('sort_by', DEFAULT_SORT_KEY),
        namespace=defaults_raw.get('namespace', '') or '',
        verbose=bool(defaults_raw.get('verbose', False))
    )
    logging_raw = raw.get('logging', {}) or {}
    logging_cfg = LoggingConfig(
        level=logging_raw.get('level', 'WARN'),
        format=logging_raw.get('format', 'text')
    )
    return AppConfig(cluster=cluster, defaults=defaults, logging=logging_cfg)
