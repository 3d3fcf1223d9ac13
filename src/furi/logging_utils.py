from __future__ import annotations

from copy import copy, deepcopy
from typing import Any
from urllib.parse import unquote

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter as UvicornAccessFormatter

__all__ = ["Utf8AccessFormatter", "build_uvicorn_log_config", "decode_request_path"]


def decode_request_path(value: str) -> str:
    """Percent-decode a request path so titles in query strings stay readable."""
    path, sep, query = value.partition("?")
    decoded = unquote(path, encoding="utf-8", errors="replace")
    if sep:
        # form-encoded queries use + for spaces
        decoded += "?" + unquote(query.replace("+", " "), encoding="utf-8", errors="replace")
    return decoded


class Utf8AccessFormatter(UvicornAccessFormatter):
    """Uvicorn access formatter that prints ?title=好き instead of %E5%A5%BD%E3%81%8D."""

    def formatMessage(self, record):  # type: ignore[override]
        args = record.args
        if not isinstance(args, tuple) or len(args) != 5:
            return super().formatMessage(record)
        client_addr, method, full_path, http_version, status_code = args
        if not isinstance(full_path, str):
            return super().formatMessage(record)
        new_record = copy(record)
        new_record.args = (client_addr, method, decode_request_path(full_path), http_version, status_code)
        return super().formatMessage(new_record)


def build_uvicorn_log_config(*, debug: bool = False) -> dict[str, Any]:
    """Uvicorn's default logging config, with decoded access paths."""
    config = deepcopy(LOGGING_CONFIG)
    formatter = config.get("formatters", {}).get("access")
    if isinstance(formatter, dict):
        formatter["()"] = "furi.logging_utils.Utf8AccessFormatter"
    if debug:
        for logger in config.get("loggers", {}).values():
            if isinstance(logger, dict) and "level" in logger:
                logger["level"] = "DEBUG"
    return config
