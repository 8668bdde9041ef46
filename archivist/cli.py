"""Command line entry point: continuous monitoring and one-shot activity queries."""

from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from datetime import datetime
from pathlib import Path

import typer

from archivist.constants.timeouts import CACHE_SYNC_TIMEOUT, CLUSTER_CHECK_TIMEOUT
from archivist.controllers.clustermonitor import ClusterMonitor, LoggingArchiver
from archivist.exceptions import ConfigError, NamespaceNotFoundError
from archivist.models.config import ArchivistConfig, ClusterConfig, default_config, load_config
from archivist.sources.kubectl import check_cluster_connection
from archivist.utils.log import configure_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="Monitor OpenShift cluster capacity and select dormant namespaces for archival.")

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to the archivist YAML configuration. Built-in defaults are used when omitted.",
)
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Override the configured log level (debug, info, warning, error).",
)
KUBECTL_OPTION = typer.Option("kubectl", help="kubectl binary used to talk to the cluster.")


@app.command()
def monitor(
    config_path: Path | None = CONFIG_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
    kubectl: str = KUBECTL_OPTION,
) -> None:
    """Monitor namespace capacity and request archival of dormant namespaces."""
    config = _load_config(config_path, log_level)
    cluster = _first_cluster(config)
    asyncio.run(_run_monitor(config, cluster, kubectl))


@app.command("last-activity")
def last_activity(
    namespace: str = typer.Argument(..., help="Namespace to inspect."),
    config_path: Path | None = CONFIG_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
    kubectl: str = KUBECTL_OPTION,
) -> None:
    """Print the last activity time of one namespace."""
    config = _load_config(config_path, log_level or "warning")
    cluster = _first_cluster(config)
    try:
        result = asyncio.run(_query_last_activity(config, cluster, namespace, kubectl))
    except NamespaceNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(result.isoformat() if result else "none")


def _load_config(config_path: Path | None, log_level: str | None) -> ArchivistConfig:
    try:
        config = load_config(config_path) if config_path else default_config()
        configure_logging(log_level or config.log_level)
    except ConfigError as exc:
        typer.echo(f"invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    logger.info("using configuration: %s", config.model_dump(by_alias=True))
    return config


def _first_cluster(config: ArchivistConfig) -> ClusterConfig:
    if len(config.clusters) > 1:
        logger.warning(
            "%d clusters configured, only the first (%s) is monitored",
            len(config.clusters),
            config.clusters[0].name,
        )
    return config.clusters[0]


async def _ensure_connection(cluster: ClusterConfig, kubectl: str) -> None:
    connected = await check_cluster_connection(
        context=cluster.context, kubectl=kubectl, timeout=CLUSTER_CHECK_TIMEOUT
    )
    if not connected:
        typer.echo(f"cannot reach cluster {cluster.name}", err=True)
        raise typer.Exit(code=1)


async def _run_monitor(config: ArchivistConfig, cluster: ClusterConfig, kubectl: str) -> None:
    await _ensure_connection(cluster, kubectl)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    cluster_monitor = ClusterMonitor.for_cluster(
        config, cluster, archiver=LoggingArchiver(), kubectl=kubectl
    )
    await cluster_monitor.run(stop)


async def _query_last_activity(
    config: ArchivistConfig, cluster: ClusterConfig, namespace: str, kubectl: str
) -> datetime | None:
    await _ensure_connection(cluster, kubectl)

    cluster_monitor = ClusterMonitor.for_cluster(config, cluster, kubectl=kubectl)
    stop = asyncio.Event()
    runner = asyncio.create_task(cluster_monitor.run_informers(stop))
    try:
        if not await cluster_monitor.wait_for_sync(CACHE_SYNC_TIMEOUT):
            typer.echo("timed out waiting for the cluster cache to sync", err=True)
            raise typer.Exit(code=1)
        return cluster_monitor.get_last_activity(namespace)
    finally:
        stop.set()
        await runner


if __name__ == "__main__":
    app()
