"""Logging and profiling for the console, backed by telelog.

Call sites use four functions: ``configure`` picks the active settings,
``get_logger`` hands out cached loggers, ``record_event`` writes one
structured ``event::<name>`` line and ``span`` profiles a block while
attaching metadata as logger context.

Settings come from ``PORTAL_TUI_*`` environment variables unless a preset
or explicit :class:`TelemetrySettings` is passed to :func:`configure`.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "PORTAL_TUI_"
DEFAULT_LOGGER_NAME = "portal_tui"
DEFAULT_LOG_FILE = "portal_tui.log"

_TRUTHY = {"1", "true", "yes", "on"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}")


def _env_flag(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class TelemetrySettings:
    """Everything needed to build a ``telelog.Config``.

    The console draws to the terminal, so the default level is WARNING and
    the production preset logs to a file only.
    """

    level: str = "WARNING"
    console: bool = True
    colored: bool = True
    json: bool = False
    log_file: Optional[str] = None
    buffered: bool = False
    buffer_size: int = 2048
    logger_name: str = DEFAULT_LOGGER_NAME

    @classmethod
    def from_env(cls) -> "TelemetrySettings":
        buffer_size = _env("LOG_BUFFER_SIZE")
        return cls(
            level=(_env("LOG_LEVEL") or cls.level).upper(),
            console=not _env_flag("DISABLE_CONSOLE"),
            colored=not _env_flag("NO_COLOR"),
            json=_env_flag("LOG_JSON"),
            log_file=_env("LOG_FILE") or None,
            buffered=_env_flag("LOG_BUFFERED"),
            buffer_size=int(buffer_size) if buffer_size else cls.buffer_size,
            logger_name=_env("LOGGER") or DEFAULT_LOGGER_NAME,
        )

    def to_config(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.colored)
        config.with_json_format(self.json)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        config.with_profiling(True)
        return config


def _preset(name: str, base: TelemetrySettings) -> TelemetrySettings:
    key = name.strip().lower()
    if key == "development":
        return replace(base, level="DEBUG", console=True, colored=True, json=False)
    if key == "production":
        return replace(
            base,
            level="INFO",
            console=False,
            log_file=base.log_file or DEFAULT_LOG_FILE,
            buffered=True,
        )
    if key == "quiet":
        return replace(base, level="ERROR", console=False)
    raise ValueError(f"Unknown telemetry preset '{name}'.")


_LOGGERS: MutableMapping[str, Any] = {}
_settings: TelemetrySettings = TelemetrySettings()
_config: Optional[Any] = None


def configure(
    *,
    config: Optional[Any] = None,
    preset: Optional[str] = None,
    settings: Optional[TelemetrySettings] = None,
) -> TelemetrySettings:
    """Select the active telemetry configuration and drop cached loggers.

    Parameters
    ----------
    config:
        A ready ``telelog.Config``; used as is.
    preset:
        ``"development"``, ``"production"`` or ``"quiet"``, applied on top of
        the environment settings.
    settings:
        Explicit :class:`TelemetrySettings`.

    At most one of the three may be given; with none, settings are read from
    the environment.
    """

    global _settings, _config
    if sum(option is not None for option in (config, preset, settings)) > 1:
        raise ValueError("Pass only one of `config`, `preset` or `settings`.")

    if settings is None:
        settings = TelemetrySettings.from_env()
    if preset is not None:
        settings = _preset(preset, settings)

    _settings = settings
    _config = config if config is not None else settings.to_config()
    _LOGGERS.clear()
    return settings


def current_settings() -> TelemetrySettings:
    return _settings


def get_logger(name: Optional[str] = None) -> Any:
    """Return the cached ``telelog.Logger`` called ``name``."""

    global _config
    if _config is None:
        _config = _settings.to_config()
    logger_name = name or _settings.logger_name
    logger = _LOGGERS.get(logger_name)
    if logger is None:
        logger = tl.Logger.with_config(logger_name, _config)
        _LOGGERS[logger_name] = logger
    return logger


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list, tuple, set, frozenset)):
        return repr(value)
    return str(value)


def _emit(logger: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    """Write ``message`` with ``data`` through ``<level>_with`` when telelog has it."""

    name = str(level).lower()
    structured: Optional[Callable[..., None]] = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, [(str(key), _text(value)) for key, value in data.items()])
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {data}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Write a single ``event::<name>`` line carrying ``data``."""

    _emit(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by :func:`span`; collects metadata reported if the block fails."""

    logger: Any
    name: str
    component: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.name, **self.metadata, "reason": reason}
        if self.component:
            payload["component"] = self.component
        _emit(self.logger, "error", "span::fail", payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile the block as ``name``.

    ``component=True`` also tracks it as a component of the same name; a
    string tracks it under that name. ``metadata`` is set as logger context
    for the duration of the block and removed afterwards. An exception
    escaping the block is logged as ``span::fail`` and re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    handle = SpanHandle(logger=log, name=name, component=component_name)

    with ExitStack() as stack:
        for key, value in (metadata or {}).items():
            handle.add_metadata(key, value)
            log.add_context(key, handle.metadata[key])
            stack.callback(log.remove_context, key)
        if component_name:
            stack.enter_context(log.track_component(component_name))
        stack.enter_context(log.profile(name))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc) or type(exc).__name__)
            raise


configure()
logger = get_logger()

__all__ = [
    "ENV_PREFIX",
    "SpanHandle",
    "TelemetrySettings",
    "configure",
    "current_settings",
    "get_logger",
    "logger",
    "record_event",
    "span",
]
