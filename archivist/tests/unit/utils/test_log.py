"""Tests for logging helpers."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import pytest

from archivist.exceptions import ConfigValidationError
from archivist.utils.log import ContextLogger, bind_logger, configure_logging, parse_level


@pytest.fixture
def restore_archivist_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger("archivist")
    saved = (root.level, list(root.handlers), root.propagate)
    yield root
    root.setLevel(saved[0])
    root.handlers[:] = saved[1]
    root.propagate = saved[2]


class TestBindLogger:
    """Tests for bind_logger()."""

    def test_appends_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        log = bind_logger(logging.getLogger("archivist.test"), component="activity", namespace="a")

        with caplog.at_level(logging.INFO, logger="archivist"):
            log.info("computed %d", 3)

        assert caplog.records[-1].getMessage() == "computed 3 [component=activity namespace=a]"

    def test_rebinding_merges_fields(self) -> None:
        base = bind_logger(logging.getLogger("archivist.test"), component="activity", namespace="a")

        bound = bind_logger(base, namespace="b")

        assert isinstance(bound, ContextLogger)
        assert bound.logger is base.logger
        assert bound.extra == {"component": "activity", "namespace": "b"}
        assert base.extra == {"component": "activity", "namespace": "a"}

    def test_wraps_plain_adapter(self) -> None:
        adapter = logging.LoggerAdapter(logging.getLogger("archivist.test"), {"cluster": "prod"})

        bound = bind_logger(adapter, component="capacitycheck")

        assert bound.extra == {"cluster": "prod", "component": "capacitycheck"}

    def test_no_fields_leaves_message(self) -> None:
        log = bind_logger(logging.getLogger("archivist.test"))

        assert log.process("plain", {}) == ("plain", {})


class TestParseLevel:
    """Tests for parse_level()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            (" warning ", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_known_levels(self, name: str, expected: int) -> None:
        assert parse_level(name) == expected

    def test_unknown_level(self) -> None:
        with pytest.raises(ConfigValidationError, match="verbose"):
            parse_level("verbose")


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_installs_single_handler(self, restore_archivist_logger: logging.Logger) -> None:
        stream = io.StringIO()

        configure_logging("debug", stream=io.StringIO())
        root = configure_logging("warning", stream=stream)
        logging.getLogger("archivist.controllers").warning("over capacity")
        logging.getLogger("archivist.controllers").info("hidden")

        assert root is restore_archivist_logger
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert root.propagate is False
        output = stream.getvalue()
        assert "WARNING archivist.controllers: over capacity" in output
        assert "hidden" not in output
