"""Tests for the archivist command line."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from archivist.cli import app
from archivist.controllers.clustermonitor import LoggingArchiver
from archivist.exceptions import NamespaceNotFoundError

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging():
    # configure_logging detaches the archivist logger from the root handlers.
    with patch("archivist.cli.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def connected():
    with patch(
        "archivist.cli.check_cluster_connection", new=AsyncMock(return_value=True)
    ) as mock_check:
        yield mock_check


def _fake_monitor(last_activity=None, synced: bool = True) -> MagicMock:
    monitor = MagicMock()
    monitor.run = AsyncMock()
    monitor.run_informers = AsyncMock()
    monitor.wait_for_sync = AsyncMock(return_value=synced)
    monitor.get_last_activity.return_value = last_activity
    return monitor


class TestConfigHandling:
    """Tests for configuration loading in commands."""

    def test_invalid_config_exits_2(self, tmp_path: Path) -> None:
        config = tmp_path / "archivist.yaml"
        config.write_text("checkIntervalSeconds: -1\n", encoding="utf-8")

        result = runner.invoke(app, ["monitor", "--config", str(config)])

        assert result.exit_code == 2
        assert "invalid configuration" in result.output

    def test_missing_config_exits_2(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["monitor", "-c", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 2
        assert "cannot read configuration" in result.output

    def test_log_level_override(self, quiet_logging: MagicMock, connected: AsyncMock) -> None:
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = _fake_monitor()
            result = runner.invoke(app, ["monitor", "--log-level", "debug"])

        assert result.exit_code == 0
        quiet_logging.assert_called_once_with("debug")


class TestMonitorCommand:
    """Tests for `archivist monitor`."""

    def test_runs_monitor_with_logging_archiver(self, connected: AsyncMock) -> None:
        monitor = _fake_monitor()
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = monitor
            result = runner.invoke(app, ["monitor", "--kubectl", "oc"])

        assert result.exit_code == 0
        _, kwargs = mock_cls.for_cluster.call_args
        assert isinstance(kwargs["archiver"], LoggingArchiver)
        assert kwargs["kubectl"] == "oc"
        monitor.run.assert_awaited_once()
        assert connected.await_args.kwargs["kubectl"] == "oc"

    def test_unreachable_cluster_exits_1(self) -> None:
        unreachable = AsyncMock(return_value=False)
        with patch("archivist.cli.check_cluster_connection", new=unreachable), patch(
            "archivist.cli.ClusterMonitor"
        ) as mock_cls:
            result = runner.invoke(app, ["monitor"])

        assert result.exit_code == 1
        assert "cannot reach cluster default" in result.output
        mock_cls.for_cluster.assert_not_called()


class TestLastActivityCommand:
    """Tests for `archivist last-activity`."""

    def test_prints_iso_time(self, connected: AsyncMock) -> None:
        moment = datetime(2017, 5, 1, 12, 0, tzinfo=timezone.utc)
        monitor = _fake_monitor(last_activity=moment)
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = monitor
            result = runner.invoke(app, ["last-activity", "team-a"])

        assert result.exit_code == 0
        assert result.output.strip() == "2017-05-01T12:00:00+00:00"
        monitor.get_last_activity.assert_called_once_with("team-a")
        monitor.run_informers.assert_awaited_once()

    def test_prints_none_without_activity(self, connected: AsyncMock) -> None:
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = _fake_monitor()
            result = runner.invoke(app, ["last-activity", "quiet"])

        assert result.exit_code == 0
        assert result.output.strip() == "none"

    def test_missing_namespace_exits_1(self, connected: AsyncMock) -> None:
        monitor = _fake_monitor()
        monitor.get_last_activity.side_effect = NamespaceNotFoundError("ghost")
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = monitor
            result = runner.invoke(app, ["last-activity", "ghost"])

        assert result.exit_code == 1
        assert "namespace does not exist in cache: ghost" in result.output

    def test_sync_timeout_exits_1(self, connected: AsyncMock) -> None:
        with patch("archivist.cli.ClusterMonitor") as mock_cls:
            mock_cls.for_cluster.return_value = _fake_monitor(synced=False)
            result = runner.invoke(app, ["last-activity", "team-a"])

        assert result.exit_code == 1
        assert "timed out waiting for the cluster cache to sync" in result.output
