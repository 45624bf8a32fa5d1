from __future__ import annotations
import click
import os
from kubernetes.config import ConfigException
from .config import AppConfig, DEFAULT_CONFIG_FILE, load_config
from .kube.client import ClusterClient, FetchError
from .reporting.base import ReportOptions, describe_reports, get_generator
from .reporting.sorting import sort_key_help
from .util import logging as log


def _load_app_config(ctx) -> AppConfig:
    """Explicit --config must exist; the default path is used only if present."""
    opts = ctx.obj
    path = opts.get('config')
    try:
        if path:
            cfg = load_config(path)
        elif os.path.exists(DEFAULT_CONFIG_FILE):
            cfg = load_config(DEFAULT_CONFIG_FILE)
        else:
            cfg = AppConfig()
        level = 'DEBUG' if opts.get('debug') else cfg.logging.level
        log.configure_logging(level, cfg.logging.format)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))
    if opts.get('kubeconfig') or opts.get('context'):
        if opts.get('kubeconfig'):
            cfg.cluster.kubeconfig = opts['kubeconfig']
        if opts.get('context'):
            cfg.cluster.context = opts['context']
        cfg.cluster.credentials = None
    return cfg


def _load_reports():
    from .reporting import nodes_report  # noqa: F401 registers 'nodes'
    from .reporting import pods_report  # noqa: F401 registers 'pods'


def _run_report(type_name: str, options: ReportOptions, cfg: AppConfig):
    _load_reports()
    generator = get_generator(type_name)
    log.debug('running report', type=type_name, sort_by=options.sort_by, namespace=options.namespace or '*', verbose=options.verbose)
    try:
        client = ClusterClient.from_config(cfg.cluster)
        text = generator.generate(client, options)
    except ConfigException as e:
        raise click.ClickException(f'Could not load cluster configuration: {e}')
    except FetchError as e:
        raise click.ClickException(str(e))
    click.echo(text, nl=False)


@click.group(add_help_option=False)
@click.option('--config', default=None, help=f'Config file path (default: {DEFAULT_CONFIG_FILE} if present)')
@click.option('--kubeconfig', default=None, help='Path to the kubeconfig file to use')
@click.option('--context', default=None, help='Kubeconfig context to use')
@click.option('--debug', is_flag=True, help='Log debug details to stderr')
@click.pass_context
def cli(ctx, config, kubeconfig, context, debug):
    """Cluster resource inspector"""
    ctx.ensure_object(dict)
    ctx.obj.update(config=config, kubeconfig=kubeconfig, context=context, debug=debug)


@cli.command(add_help_option=False)
@click.option('--sort-by', default=None, help=f'Sort nodes by: {sort_key_help()}')
@click.option('-v', '--verbose', is_flag=True, help='Show additional columns like ARCH, OS, TYPE and PODS')
@click.pass_context
def nodes(ctx, sort_by, verbose):
    """Top nodes: capacity and the requests/limits of their pods."""
    cfg = _load_app_config(ctx)
    options = ReportOptions(
        sort_by=sort_by or cfg.defaults.sort_by,
        verbose=verbose or cfg.defaults.verbose,
    )
    _run_report('nodes', options, cfg)


@cli.command(add_help_option=False)
@click.option('--sort-by', default=None, help=f'Sort pods by: {sort_key_help()}')
@click.option('-n', '--namespace', default=None, help='If present, show pods in the specified namespace only')
@click.option('-v', '--verbose', is_flag=True, help='Show additional columns like NODE')
@click.pass_context
def pods(ctx, sort_by, namespace, verbose):
    """Top pods: requests, limits and observed usage."""
    cfg = _load_app_config(ctx)
    options = ReportOptions(
        sort_by=sort_by or cfg.defaults.sort_by,
        namespace=namespace if namespace is not None else cfg.defaults.namespace,
        verbose=verbose or cfg.defaults.verbose,
    )
    _run_report('pods', options, cfg)


@cli.command('help', add_help_option=False)
@click.argument('command', required=False)
@click.pass_context
def help_cmd(ctx, command):
    """List commands, or show the options of one command."""
    group = ctx.parent.command
    if command is None:
        _load_reports()
        reports = describe_reports()
        width = max(len(name) for name in group.commands)
        click.echo('Usage: xtop [OPTIONS] COMMAND [ARGS]...\n\nCommands:')
        for name, cmd in group.commands.items():
            click.echo(f'  {name.ljust(width)}  {reports.get(name) or cmd.get_short_help_str()}')
        click.echo("\nRun 'xtop help <command>' for the options of a command.")
        return
    cmd = group.get_command(ctx, command)
    if cmd is None:
        raise click.UsageError(f"unknown command {command!r}; run 'xtop help' to list commands", ctx=ctx)
    with click.Context(cmd, info_name=command, parent=ctx.parent) as cmd_ctx:
        click.echo(cmd.get_help(cmd_ctx))


if __name__ == '__main__':
    cli()
