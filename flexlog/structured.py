"""Shared options and behaviour for formatters that emit structured log records."""

from __future__ import annotations

import abc
import copy
import os
import socket
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from flexlog.message_pool import Message, SourceLocation

ISO8601_MICROSECONDS = "%FT%T.%fZ"


def _as_utc(timestamp: datetime) -> datetime:
    """Read a naive timestamp as UTC; convert an aware one to UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def _expand_shorthands(time_format: str) -> str:
    return time_format.replace("%F", "%Y-%m-%d").replace("%T", "%H:%M:%S")


@dataclass
class CommonFormatterOptions:
    """Settings shared by every structured formatter.

    The ``set_*`` and ``add_*`` methods change the options in place and
    return them, so calls can be chained.
    """

    application_name: str = "flex_log"
    environment: str = "production"
    hostname: str = ""
    service_name: str = ""
    service_version: str = "1.0.0"

    pretty_print: bool = False
    indent_size: int = 2
    include_null_values: bool = True
    sort_keys: bool = False
    time_format: str = ISO8601_MICROSECONDS

    include_timestamp: bool = True
    include_level: bool = True
    include_logger: bool = True
    include_message: bool = True
    include_source_location: bool = True
    include_process_info: bool = False
    include_thread_id: bool = False

    user_data: dict[str, str] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)

    def set_application(self, app: str, env: str = "production") -> "CommonFormatterOptions":
        self.application_name = app
        self.environment = env
        return self

    def set_service(self, name: str, version: str = "1.0.0") -> "CommonFormatterOptions":
        self.service_name = name
        self.service_version = version
        return self

    def set_host(self, host: str) -> "CommonFormatterOptions":
        self.hostname = host
        return self

    def set_pretty_print(self, enable: bool, indent: int = 2) -> "CommonFormatterOptions":
        self.pretty_print = enable
        self.indent_size = indent
        return self

    def set_time_format(self, time_format: str) -> "CommonFormatterOptions":
        self.time_format = time_format
        return self

    def set_field_inclusion(
        self, timestamp: bool, level: bool, logger: bool, message: bool, source_location: bool
    ) -> "CommonFormatterOptions":
        self.include_timestamp = timestamp
        self.include_level = level
        self.include_logger = logger
        self.include_message = message
        self.include_source_location = source_location
        return self

    def set_process_info(self, include: bool) -> "CommonFormatterOptions":
        self.include_process_info = include
        return self

    def set_thread_id(self, include: bool) -> "CommonFormatterOptions":
        self.include_thread_id = include
        return self

    def add_field(self, key: str, value: str) -> "CommonFormatterOptions":
        self.user_data[key] = value
        return self

    def add_tag(self, tag: str) -> "CommonFormatterOptions":
        self.tags.append(tag)
        return self


class BaseStructuredFormatter(abc.ABC):
    """Common ground for formatters that turn messages into structured text.

    The formatter keeps its own copy of the options; an empty hostname is
    filled in with the name of this machine.
    """

    def __init__(self, options: Optional[CommonFormatterOptions] = None) -> None:
        self._options = self._adopt(options if options is not None else CommonFormatterOptions())

    def _adopt(self, options: CommonFormatterOptions) -> CommonFormatterOptions:
        adopted = copy.deepcopy(options)
        if not adopted.hostname:
            adopted.hostname = self.hostname()
        return adopted

    @property
    def options(self) -> CommonFormatterOptions:
        return self._options

    def set_options(self, options: CommonFormatterOptions) -> None:
        self._options = self._adopt(options)

    def __call__(self, message: Message) -> str:
        return self.format_message(message)

    def format_message(self, message: Message) -> str:
        """Format a whole message."""
        return self._format_message_impl(message)

    def format_structured_data(self, data: dict[str, Any]) -> str:
        """Format only the structured fields of a message."""
        return self._format_structured_data_impl(data)

    @abc.abstractmethod
    def content_type(self) -> str:
        """The media type of the output, for HTTP headers."""

    @abc.abstractmethod
    def clone(self) -> "BaseStructuredFormatter":
        """A new formatter with the same settings."""

    @abc.abstractmethod
    def escape_string(self, text: str) -> str:
        """Escape ``text`` for inclusion in the output format."""

    @abc.abstractmethod
    def _format_message_impl(self, message: Message) -> str: ...

    @abc.abstractmethod
    def _format_structured_data_impl(self, data: dict[str, Any]) -> str: ...

    def format_timestamp(self, timestamp: datetime) -> str:
        """Render ``timestamp`` in UTC using the configured time format.

        The first ``%f`` becomes the six-digit microseconds; ``%F`` and ``%T``
        are accepted as shorthands for date and time.
        """
        moment = _as_utc(timestamp)
        micros = f"{moment.microsecond:06d}"
        time_format = self._options.time_format
        if time_format == ISO8601_MICROSECONDS:
            return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{micros}Z"
        return moment.strftime(_expand_shorthands(time_format.replace("%f", micros, 1)))

    def format_source_location(self, location: SourceLocation) -> str:
        return f"{os.path.basename(location.file_name)}:{location.line} [{location.function_name}]"

    def process_id(self) -> str:
        return str(os.getpid())

    def process_name(self) -> str:
        try:
            with open(f"/proc/{os.getpid()}/cmdline", "rb") as handle:
                raw = handle.read(1023)
        except OSError:
            raw = b""
        first = raw.split(b"\0", 1)[0].decode(errors="replace")
        if not first and sys.argv and sys.argv[0]:
            first = sys.argv[0]
        return os.path.basename(first) if first else "unknown"

    def thread_id(self) -> str:
        return str(threading.get_ident())

    def hostname(self) -> str:
        try:
            return socket.gethostname() or "unknown"
        except OSError:
            return "unknown"

    def _indent(self, level: int) -> str:
        if self._options.pretty_print:
            return " " * (level * self._options.indent_size)
        return ""