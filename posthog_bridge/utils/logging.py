import warnings
from typing import Literal, Optional, Type

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from .environ import environ

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

BRIDGE_THEME = Theme(
    {
        "logging.level.debug": "magenta",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold white on red",
    },
    inherit=True,
)


def setup_logging(
    *, level: Optional[LogLevel] = None, console: Optional[Console] = None
) -> None:
    """Routes the bridge logs and Python warnings to a rich sink.

    Replaces every previously installed loguru sink, so calling it
    again reconfigures the level instead of duplicating the output.

    @type level: Optional[str]
    @param level: Minimum level to log. Defaults to C{LOG_LEVEL} from
        the environment.
    @type console: Optional[Console]
    @param console: Console to render to. Defaults to a themed
        console on standard error, leaving standard output to the CLI.
    @raise ValueError: If the level is not a known logging level.
    """
    level = level or environ.LOG_LEVEL
    if level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid logging level: {level}. "
            f"Use one of {', '.join(LOG_LEVELS)}."
        )

    logger.remove()
    logger.add(
        RichHandler(
            console=console or Console(theme=BRIDGE_THEME, stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=False,
        ),
        level=level,
        # Must stay a constant function, otherwise loguru logs
        # exceptions twice (Delgan/loguru#1172).
        format=lambda _: "{message}",
        backtrace=False,
    )
    warnings.showwarning = _log_warning


def _log_warning(
    message: str,
    category: Type[Warning],
    filename: str,
    lineno: int,
    _file: Optional[str] = None,
    line: Optional[str] = None,
) -> None:
    logger.warning(
        warnings.formatwarning(message, category, filename, lineno, line)
    )
