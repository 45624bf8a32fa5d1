from __future__ import annotations
import json, sys, time
from typing import Any, IO, Optional

LEVELS = {'DEBUG': 0, 'INFO': 1, 'WARN': 2, 'ERROR': 3}
FORMATS = ('text', 'json')
_ALIASES = {'WARNING': 'WARN'}

_LOG_LEVEL = 'WARN'
_LOG_FORMAT = 'text'
_STREAM: Optional[IO[str]] = None


def _normalize_level(level: str) -> str:
    lvl = level.upper()
    return _ALIASES.get(lvl, lvl)


def configure_logging(level: str = 'WARN', format: str = 'text', stream: Optional[IO[str]] = None):
    """Set the process-wide threshold and output format.

    Records always go to stderr unless a stream is given, so report output on
    stdout stays clean.
    """
    global _LOG_LEVEL, _LOG_FORMAT, _STREAM
    lvl = _normalize_level(level)
    if lvl not in LEVELS:
        raise ValueError(f'Unknown log level: {level}. Available: {", ".join(LEVELS)}')
    fmt = format.lower()
    if fmt not in FORMATS:
        raise ValueError(f'Unknown log format: {format}. Available: {", ".join(FORMATS)}')
    _LOG_LEVEL = lvl
    _LOG_FORMAT = fmt
    _STREAM = stream


def is_enabled(level: str) -> bool:
    return LEVELS.get(_normalize_level(level), 1) >= LEVELS[_LOG_LEVEL]


def log(level: str, message: str, **fields: Any):
    if not is_enabled(level):
        return
    ts = time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())
    lvl = _normalize_level(level)
    out = _STREAM or sys.stderr
    if _LOG_FORMAT == 'json':
        rec = {'ts': ts, 'level': lvl, 'msg': message}
        if fields: rec.update(fields)
        print(json.dumps(rec, sort_keys=True, default=str), file=out)
    else:
        extra = ' '.join(f'{k}={v}' for k, v in fields.items()) if fields else ''
        line = f"{ts} [{lvl}] {message}" + (f" {extra}" if extra else '')
        print(line, file=out)


def debug(message: str, **fields: Any): log('debug', message, **fields)

def info(message: str, **fields: Any): log('info', message, **fields)

def warn(message: str, **fields: Any): log('warn', message, **fields)

def error(message: str, **fields: Any): log('error', message, **fields)
