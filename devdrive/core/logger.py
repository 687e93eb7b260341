# SPDX-License-Identifier: LGPL-3.0-or-later
# devdrive/core/logger.py
"""
Console and file logging for devdrive.

Every record may carry a ``ctx`` mapping (see ``Log.bind``); both formatters
render it, so a run bound to an image path tags each step line with
``path=...``.
"""
from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Optional: colors
try:
    from termcolor import colored as _colored  # type: ignore
except Exception:  # pragma: no cover
    _colored = None

# -vvv shows PowerShell script bodies and probe details at this level.
TRACE = 5
if logging.getLevelName(TRACE) != "TRACE":
    logging.addLevelName(TRACE, "TRACE")

_LEVEL_EMOJI = {
    "TRACE": "🧬",
    "DEBUG": "🔍",
    "INFO": "✅",
    "WARNING": "⚠️",
    "ERROR": "💥",
    "CRITICAL": "🧨",
}
_LEVEL_COLOR = {
    "TRACE": "cyan",
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red",
}


def _is_tty(stream: Any = None) -> bool:
    isatty = getattr(stream if stream is not None else sys.stderr, "isatty", None)
    return bool(isatty and isatty())


def _supports_unicode() -> bool:
    # Legacy Windows code pages (cp437, cp1252) cannot encode the level emoji.
    enc = getattr(sys.stderr, "encoding", None) or "utf-8"
    try:
        "✅".encode(enc)
    except (LookupError, UnicodeEncodeError):
        return False
    return True


def c(
    text: str,
    color: Optional[str] = None,
    attrs: Optional[List[str]] = None,
    *,
    enable: bool = True,
) -> str:
    """Colorize text if termcolor is available and enabled."""
    if not enable or _colored is None or not color:
        return text
    return _colored(text, color=color, attrs=attrs or [])


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

Ctx = Mapping[str, Any]


def _safe_str(v: Any, *, max_len: int = 240) -> str:
    s = str(v).replace("\r", "\\r").replace("\n", "\\n")
    return s if len(s) <= max_len else s[: max_len - 1] + "…"


def _format_ctx_kv(ctx: Optional[Ctx]) -> str:
    if not ctx:
        return ""
    return "".join(f" {_safe_str(k, max_len=80)}={_safe_str(ctx[k])}" for k in sorted(ctx, key=str))


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Logger that stamps a fixed context on every record it emits.

    Per-call context passed as ``extra={"ctx": {...}}`` (which is what the
    ``Log.*`` helpers do) is merged over the bound values:

      log = Log.bind(logger, path="C:/Users/me/.wsl/workspaces.vhdx")
      Log.ok(log, "Provisioned", drive="W")   # ctx: path=..., drive=W
    """

    def __init__(self, logger: logging.Logger, ctx: Optional[Ctx] = None):
        super().__init__(logger, extra={"ctx": dict(ctx or {})})

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["ctx"] = {**self.extra["ctx"], **(extra.get("ctx") or {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **ctx: Any) -> "ContextLoggerAdapter":
        return ContextLoggerAdapter(self.logger, {**self.extra["ctx"], **ctx})


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

LOGGER_NAME = "devdrive"


@dataclass(frozen=True)
class LogStyle:
    color: bool = True
    show_ms: bool = False
    show_src: bool = False  # module:line
    show_pid: bool = False
    unicode: bool = True


class EmojiFormatter(logging.Formatter):
    """
    ``HH:MM:SS <emoji> LEVEL    message key=value ...``

    Context from ``Log.bind`` or ``extra={"ctx": ...}`` is appended sorted
    by key. Tracebacks are indented two spaces under the line.
    """

    def __init__(self, style: LogStyle):
        super().__init__()
        self._style = style

    def _clock(self, created: float) -> str:
        t = _dt.datetime.fromtimestamp(created)
        return t.strftime("%H:%M:%S.%f")[:-3] if self._style.show_ms else t.strftime("%H:%M:%S")

    def _where(self, record: logging.LogRecord) -> str:
        bits: List[str] = []
        if self._style.show_pid:
            bits.append(f"pid={os.getpid()}")
        if self._style.show_src:
            bits.append(f"{record.module}:{record.lineno}")
        return f" [{' '.join(bits)}]" if bits else ""

    def _traceback(self, record: logging.LogRecord, color_ok: bool) -> str:
        text = self.formatException(record.exc_info) if record.exc_info else ""
        if record.stack_info:
            text = "\n".join(p for p in (text, record.stack_info) if p)
        if not text:
            return ""
        block = "\n".join("  " + ln for ln in text.splitlines())
        return "\n" + (c(block, "red", enable=color_ok) if record.exc_info else block)

    def format(self, record: logging.LogRecord) -> str:
        color_ok = bool(self._style.color and _colored is not None and _is_tty())
        hue = _LEVEL_COLOR.get(record.levelname)
        emoji = _LEVEL_EMOJI.get(record.levelname, "•") if self._style.unicode else "·"

        msg = record.getMessage()
        if record.levelno >= logging.WARNING:
            msg = c(msg, hue, attrs=["bold"], enable=color_ok)
        level = c(f"{record.levelname:<8}", hue, enable=color_ok)

        line = f"{self._clock(record.created)} {emoji} {level}{self._where(record)} {msg}"
        line += _format_ctx_kv(getattr(record, "ctx", None))
        return line + self._traceback(record, color_ok)


class JsonFormatter(logging.Formatter):
    """NDJSON, one object per record, UTC timestamps. Used by --json-logs."""

    def __init__(self, *, include_src: bool = True):
        super().__init__()
        self._include_src = bool(include_src)

    def format(self, record: logging.LogRecord) -> str:
        obj: Dict[str, Any] = {
            "ts": _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": os.getpid(),
        }
        if self._include_src:
            obj["module"] = record.module
            obj["lineno"] = record.lineno

        ctx = getattr(record, "ctx", None)
        if ctx:
            obj["ctx"] = {str(k): _safe_str(v) for k, v in dict(ctx).items()}

        if record.exc_info:
            obj["exc_type"] = record.exc_info[0].__name__ if record.exc_info[0] else "Exception"
            obj["traceback"] = self.formatException(record.exc_info)

        try:
            return json.dumps(obj, ensure_ascii=False)
        except (TypeError, ValueError):
            return json.dumps({k: _safe_str(v) for k, v in obj.items()}, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class Log:
    @staticmethod
    def _level_from_flags(verbose: int, quiet: int) -> int:
        """
        CLI mapping:
          default: INFO
          -q: WARNING
          -qq: ERROR
          -vv: DEBUG
          -vvv: TRACE
        Quiet wins over verbose if both are set.
        """
        if quiet >= 2:
            return logging.ERROR
        if quiet == 1:
            return logging.WARNING
        if verbose >= 3:
            return TRACE
        if verbose >= 2:
            return logging.DEBUG
        return logging.INFO

    @staticmethod
    def bind(logger: logging.Logger, **ctx: Any) -> ContextLoggerAdapter:
        """Return a LoggerAdapter that carries a persistent context dict."""
        return ContextLoggerAdapter(logger, ctx)

    @staticmethod
    def step(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.info("➡️  %s", msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def ok(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.info("✅ %s", msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def warn(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.warning("⚠️  %s", msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def fail(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.error("💥 %s", msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def trace(logger: logging.Logger, msg: str, *args: Any, **ctx: Any) -> None:
        if not logger.isEnabledFor(TRACE):
            return
        logger.log(TRACE, msg, *args, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def setup(
        verbose: int = 0,
        log_file: Optional[str] = None,
        *,
        quiet: int = 0,
        json_logs: bool = False,
    ) -> logging.Logger:
        """
        Configure and return the ``devdrive`` logger.

        stderr gets the emoji console format (or NDJSON with json_logs).
        log_file, when given, gets every record with pid and source location
        and never any colour. Calling setup again replaces earlier handlers.
        """
        logger = logging.getLogger(LOGGER_NAME)
        logger.propagate = False

        level = Log._level_from_flags(verbose, quiet)
        logger.setLevel(level)

        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()

        unicode_ok = _supports_unicode()
        console = LogStyle(show_ms=verbose >= 3, show_src=verbose >= 3, show_pid=verbose >= 2, unicode=unicode_ok)

        sh = logging.StreamHandler(stream=sys.stderr)
        sh.setLevel(level)
        sh.setFormatter(JsonFormatter() if json_logs else EmojiFormatter(console))
        logger.addHandler(sh)

        if log_file:
            fp = Path(log_file).expanduser().resolve()
            fp.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(fp, encoding="utf-8")
            fh.setLevel(level)
            if json_logs:
                fh.setFormatter(JsonFormatter())
            else:
                fh.setFormatter(
                    EmojiFormatter(LogStyle(color=False, show_ms=True, show_src=True, show_pid=True, unicode=unicode_ok))
                )
            logger.addHandler(fh)

        logger.debug("Logger initialized (level=%s, pid=%s)", logging.getLevelName(level), os.getpid())
        Log.trace(logger, "TRACE enabled (verbose >= 3)")
        return logger
