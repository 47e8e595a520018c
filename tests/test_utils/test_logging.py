import sys
import warnings
from collections.abc import Generator
from io import StringIO

import pytest
from loguru import logger
from rich.console import Console

from posthog_bridge.utils.logging import BRIDGE_THEME, setup_logging


@pytest.fixture
def output(monkeypatch: pytest.MonkeyPatch) -> Generator[StringIO, None, None]:
    monkeypatch.setattr(warnings, "showwarning", warnings.showwarning)
    yield StringIO()
    logger.remove()
    logger.add(sys.stderr)


def _console(output: StringIO) -> Console:
    return Console(file=output, theme=BRIDGE_THEME, width=500)


def test_debug_record_reaches_rich_sink(output: StringIO):
    setup_logging(level="DEBUG", console=_console(output))
    logger.debug("Identified as 'user-1'.")
    text = output.getvalue()
    assert "DEBUG" in text
    assert "Identified as 'user-1'." in text


def test_warnings_routed_through_loguru(output: StringIO):
    setup_logging(level="DEBUG", console=_console(output))
    with warnings.catch_warnings():
        warnings.simplefilter("always")
        warnings.warn("queue almost full", UserWarning, stacklevel=1)
    text = output.getvalue()
    assert "WARNING" in text
    assert "UserWarning: queue almost full" in text


def test_level_filters_records(output: StringIO):
    setup_logging(level="WARNING", console=_console(output))
    logger.info("hidden")
    logger.error("shown")
    text = output.getvalue()
    assert "hidden" not in text
    assert "shown" in text


def test_level_from_environ(
    output: StringIO, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    setup_logging(console=_console(output))
    logger.warning("hidden")
    logger.error("shown")
    text = output.getvalue()
    assert "hidden" not in text
    assert "shown" in text


def test_invalid_level(output: StringIO):
    with pytest.raises(ValueError, match="Invalid logging level"):
        setup_logging(level="VERBOSE", console=_console(output))  # type: ignore
