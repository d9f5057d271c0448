from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable, Mapping
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypeAlias, cast

from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.logging import RichHandler
import structlog
from structlog.processors import CallsiteParameter
from structlog.stdlib import BoundLogger

from gemini_tool_routing.settings import Settings, settings

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor

BindableLogger = BoundLogger
LogValue: TypeAlias = (
    "str"
    " | bytes"
    " | int"
    " | float"
    " | bool"
    " | None"
    " | Mapping[str, LogValue]"
    " | list[LogValue]"
    " | tuple[LogValue, ...]"
    " | set[LogValue]"
)
LogPayload: TypeAlias = "Mapping[str, LogValue]"
LogSanitizer = Callable[[LogPayload, bool], dict[str, LogValue]]

_LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_RESERVED_KEYS = {"timestamp", "level", "component", "event", "direction", "rule"}


class LoggingConfigState(BaseModel):
    """State container for logger configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    configured: bool = False
    structlog_configured: bool = False
    active_settings: Settings = settings


_CONFIG_STATE = LoggingConfigState()

_LEVEL_STYLES: dict[str, str] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bright_red",
}


def _log_level(level_name: str) -> int:
    return _LEVELS.get(level_name.upper(), logging.INFO)


def _event_markup(event: object, event_dict: EventDict) -> str:
    if event == "io":
        direction = event_dict.get("direction")
        if direction == "input":
            return "[cyan]⬅ input[/]"
        if direction == "output":
            return "[magenta]➡ output[/]"
    if event == "decision":
        rule = event_dict.get("rule")
        if isinstance(rule, str):
            return f"[yellow]◆ {rule}[/]"
    return ""


def _console_renderer(_logger: logging.Logger, _name: str, event_dict: EventDict) -> str:
    timestamp = event_dict.get("timestamp")
    level = str(event_dict.get("level", "")).upper()
    component = event_dict.get("component")
    event = event_dict.get("event")

    details = {k: v for k, v in event_dict.items() if k not in _RESERVED_KEYS}

    level_style = _LEVEL_STYLES.get(level, "white")
    parts = [
        f"[dim]{timestamp}[/]" if timestamp else "",
        f"[{level_style}]{level:>8}[/]" if level else "",
        f"[bold]{component}[/]" if component else "",
        f"[italic]{event}[/]" if event else "",
        _event_markup(event, event_dict),
    ]

    if details:
        parts.append(" ".join(f"[blue]{key}[/]=[white]{value}[/]" for key, value in sorted(details.items())))

    rendered = " ".join(part for part in parts if part)
    return rendered or str(event)


def _shared_pre_chain(app_settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if app_settings.log_verbose:
        processors.append(
            structlog.processors.CallsiteParameterAdder(  # type: ignore[arg-type]
                parameters=(CallsiteParameter.FUNC_NAME, CallsiteParameter.LINENO),
            ),
        )

    return processors


def _build_handlers(app_settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    pre_chain = _shared_pre_chain(app_settings)

    if app_settings.log_destination in {"stdout", "both"}:
        console_handler = RichHandler(
            console=Console(file=sys.stdout, force_terminal=True, width=200),
            rich_tracebacks=True,
            show_time=False,
            markup=True,
        )
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(  # type: ignore[arg-type]
                processor=_console_renderer,
                foreign_pre_chain=pre_chain,
            ),
        )
        handlers.append(console_handler)

    if app_settings.log_destination in {"file", "both"}:
        log_path = Path(app_settings.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(  # type: ignore[arg-type]
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            ),
        )
        handlers.append(file_handler)

    return handlers


def _configure_structlog(processors: list[Processor]) -> None:
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    _CONFIG_STATE.structlog_configured = True


def configure_logging(app_settings: Settings | None = None, *, force: bool = False) -> None:
    """Install console/file handlers and structlog rendering based on :class:`Settings`.

    This replaces the root logger's handlers, so only entry points call it.
    """
    if force:
        structlog.reset_defaults()
        _CONFIG_STATE.configured = False
        _CONFIG_STATE.structlog_configured = False

    if app_settings is not None:
        _CONFIG_STATE.active_settings = app_settings
    active_settings = _CONFIG_STATE.active_settings

    if _CONFIG_STATE.configured:
        return

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    for handler in _build_handlers(active_settings):
        root_logger.addHandler(handler)
    root_logger.setLevel(_log_level(active_settings.log_level))

    processors: list[Processor] = _shared_pre_chain(active_settings)
    processors.extend(
        [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
    )
    _configure_structlog(processors)

    _CONFIG_STATE.configured = True


def get_logger(*, component: str | None = None) -> BindableLogger:
    """Return a structlog logger bound to the optional component name.

    Handlers are only installed by :func:`configure_logging`; until then events
    are forwarded to whatever stdlib logging setup the host process has.
    """
    if not _CONFIG_STATE.structlog_configured:
        _configure_structlog(
            [structlog.contextvars.merge_contextvars, structlog.stdlib.render_to_log_kwargs],
        )
    logger = structlog.get_logger()
    if component:
        return logger.bind(component=component)
    return logger


class BaseComponent:
    """Mixin providing a pre-configured structlog logger and helpers."""

    @cached_property
    def logger(self) -> BindableLogger:
        """Return a logger bound with the current class name."""
        return get_logger(component=self.__class__.__name__)

    def log_decision(self, rule: str, **kwargs: LogValue) -> None:
        """Emit a debug event describing which resolution rule fired."""
        self.logger.debug("decision", rule=rule, **kwargs)

    def log_io(
        self,
        direction: Literal["input", "output"],
        *,
        mask_sensitive: bool | None = None,
        sanitizer: LogSanitizer | None = None,
        **kwargs: LogValue,
    ) -> None:
        """Emit structured input/output payloads with optional masking."""
        sanitizer_fn: LogSanitizer = sanitize_log_payload if sanitizer is None else sanitizer
        allow_sensitive_logging = _CONFIG_STATE.active_settings.allow_sensitive_logging
        should_mask = mask_sensitive if mask_sensitive is not None else not allow_sensitive_logging
        payload: dict[str, LogValue] = sanitizer_fn(dict(kwargs), not should_mask)
        self.logger.debug("io", direction=direction, **payload)


def sanitize_log_payload(payload: LogPayload, allow_sensitive: bool) -> dict[str, LogValue]:
    """Mask or summarize sensitive log payloads."""
    if allow_sensitive:
        return dict(payload)

    return {key: _sanitize_value(value) for key, value in payload.items()}


def _sanitize_value(value: LogValue) -> LogValue:
    if isinstance(value, str):
        return f"<redacted text length={len(value)}>"
    if isinstance(value, bytes):
        return f"<bytes length={len(value)}>"
    if isinstance(value, Mapping):
        typed_mapping = cast("Mapping[str, LogValue]", value)
        return {str(key): _sanitize_value(nested) for key, nested in typed_mapping.items()}
    if isinstance(value, (list, tuple, set)):
        sequence_items: list[LogValue] = list(cast("Iterable[LogValue]", value))
        sanitized_items: list[LogValue] = [_sanitize_value(item) for item in sequence_items]
        return sanitized_items if isinstance(value, list) else tuple(sanitized_items)

    return value
