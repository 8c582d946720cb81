"""Formatting of log messages from patterns such as ``[{level}] {message}``."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from flexlog.message_pool import Level, Message

CustomFormatter = Callable[[Message], str]

DEFAULT_TIME_FORMAT = "%H:%M:%S"

DEFAULT_PATTERN = "[{timestamp}] [{level}] [{name} @ {function}] - {message}"
SIMPLE_PATTERN = "[{timestamp}] [{level}] [{name}] - {message}"
DETAILED_PATTERN = "[{timestamp}] [{level}] [{name} @ {function}] [{source}:{line}] - {message}"

_FAST_BUFFER_SIZE = 1024
_TIMESTAMP_BUFFER_SIZE = 64
_CUSTOM_PREFIX = "{custom:"


class TokenType(enum.Enum):
    """The kinds of piece a pattern is made of."""

    LITERAL = enum.auto()
    TIMESTAMP = enum.auto()
    LEVEL = enum.auto()
    NAME = enum.auto()
    MESSAGE = enum.auto()
    SOURCE = enum.auto()
    FUNCTION = enum.auto()
    LINE = enum.auto()
    CUSTOM = enum.auto()


_TOKENS = {
    "{timestamp}": TokenType.TIMESTAMP,
    "{level}": TokenType.LEVEL,
    "{name}": TokenType.NAME,
    "{message}": TokenType.MESSAGE,
    "{source}": TokenType.SOURCE,
    "{function}": TokenType.FUNCTION,
    "{line}": TokenType.LINE,
}


def token_type(token: str) -> TokenType:
    """Classify a braced token; anything unrecognised is a literal."""
    known = _TOKENS.get(token)
    if known is not None:
        return known
    if len(token) > 9 and token.startswith(_CUSTOM_PREFIX) and token.endswith("}"):
        return TokenType.CUSTOM
    return TokenType.LITERAL


@dataclass
class FormatInfo:
    """The pattern and time format a formatter works with."""

    pattern: str = ""
    time_format: str = DEFAULT_TIME_FORMAT
    fragment_capacity: int = 32


@dataclass
class Fragment:
    """One parsed piece of a pattern."""

    type: TokenType
    data: str = ""
    custom_formatter: Optional[CustomFormatter] = None


def _level_name(level: object) -> str:
    try:
        return Level(level).name
    except ValueError:
        return str(level)


def _local_time(timestamp: datetime) -> datetime:
    return timestamp.astimezone() if timestamp.tzinfo is not None else timestamp


def _format_time(timestamp: datetime, time_format: str, *, bounded: bool) -> str:
    text = _local_time(timestamp).strftime(time_format)
    if bounded and len(text) >= _TIMESTAMP_BUFFER_SIZE:
        return ""
    return text


def _source_file(message: Message) -> str:
    return os.path.basename(message.source_location.file_name)


def _fast_format(message: Message, time_format: str, *, function: bool, source: bool) -> str:
    parts = ["[", _format_time(message.timestamp, time_format, bounded=True), "] [",
             _level_name(message.level), "] [", message.name]
    if function:
        parts += [" @ ", message.source_location.function_name]
    if source:
        parts += ["] [", _source_file(message), ":", str(message.source_location.line)]
    parts += ["] - ", message.message]
    return "".join(parts)[:_FAST_BUFFER_SIZE]


def _format_default(message: Message, time_format: str) -> str:
    return _fast_format(message, time_format, function=True, source=False)


def _format_simple(message: Message, time_format: str) -> str:
    return _fast_format(message, time_format, function=False, source=False)


def _format_detailed(message: Message, time_format: str) -> str:
    return _fast_format(message, time_format, function=True, source=True)


_BUILTIN_FORMATS: dict[str, Callable[[Message, str], str]] = {
    DEFAULT_PATTERN: _format_default,
    SIMPLE_PATTERN: _format_simple,
    DETAILED_PATTERN: _format_detailed,
}


class PatternFormatter:
    """Turns messages into text following a pattern of braced tokens.

    The three built-in patterns use a fixed-size output of 1024 characters;
    other patterns, and any pattern once a custom formatter is registered,
    are parsed into fragments and have no such limit.
    """

    def __init__(self, pattern: str = DEFAULT_PATTERN) -> None:
        self._pattern = pattern
        self._format_info = FormatInfo(pattern=pattern)
        self._fragments: list[Fragment] = []
        self._custom_formatters: dict[str, CustomFormatter] = {}
        self._fast: Optional[Callable[[Message, str], str]] = None
        self._select(pattern)

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def format_info(self) -> FormatInfo:
        return self._format_info

    @property
    def fragments(self) -> tuple[Fragment, ...]:
        return tuple(self._fragments)

    def __call__(self, message: Message) -> str:
        return self.format(message)

    def _select(self, pattern: str) -> None:
        self._fast = _BUILTIN_FORMATS.get(pattern)
        if self._fast is None:
            self._parse()

    def format(self, message: Message) -> str:
        if self._fast is not None:
            return self._fast(message, self._format_info.time_format)
        out = []
        for fragment in self._fragments:
            if fragment.type is TokenType.LITERAL:
                out.append(fragment.data)
            elif fragment.type is TokenType.CUSTOM and fragment.custom_formatter:
                out.append(fragment.custom_formatter(message))
            else:
                out.append(self._format_token(fragment.type, fragment.data, message))
        return "".join(out)

    def set_pattern(self, pattern: str) -> None:
        self._pattern = pattern
        self._format_info.pattern = pattern
        self._select(pattern)

    def set_time_format(self, time_format: str) -> None:
        self._format_info.time_format = time_format

    def register_custom_formatter(self, token: str, formatter: Optional[CustomFormatter]) -> None:
        """Supply the text for ``{custom:<token>}``; a missing formatter is ignored."""
        if not formatter:
            return
        self._custom_formatters[token] = formatter
        self._fast = None
        self._parse()

    def _parse(self) -> None:
        pattern = self._pattern
        fragments: list[Fragment] = []
        last = 0
        while (start := pattern.find("{", last)) != -1:
            if start > last:
                fragments.append(Fragment(TokenType.LITERAL, pattern[last:start]))
            end = pattern.find("}", start)
            if end == -1:
                break
            token = pattern[start:end + 1]
            kind = token_type(token)
            fragment = Fragment(kind)
            if kind is TokenType.CUSTOM:
                name = token[len(_CUSTOM_PREFIX):-1]
                fragment.data = name
                fragment.custom_formatter = self._custom_formatters.get(name)
            elif kind is TokenType.LITERAL:
                fragment.data = token
            fragments.append(fragment)
            last = end + 1
        if last < len(pattern):
            fragments.append(Fragment(TokenType.LITERAL, pattern[last:]))
        self._fragments = fragments

    def _format_token(self, kind: TokenType, data: str, message: Message) -> str:
        location = message.source_location
        if kind is TokenType.TIMESTAMP:
            return _format_time(message.timestamp, self._format_info.time_format, bounded=False)
        if kind is TokenType.LEVEL:
            return _level_name(message.level)
        if kind is TokenType.NAME:
            return message.name
        if kind is TokenType.MESSAGE:
            return message.message
        if kind is TokenType.SOURCE:
            return _source_file(message)
        if kind is TokenType.FUNCTION:
            return location.function_name
        if kind is TokenType.LINE:
            return str(location.line)
        if kind is TokenType.CUSTOM:
            formatter = self._custom_formatters.get(data)
            if formatter:
                return formatter(message)
            return f"[unknown custom token: {data}]"
        return data


class DefaultFormatter:
    """Formats with the default pattern."""

    def format(self, message: Message, time_format: str = DEFAULT_TIME_FORMAT) -> str:
        return _format_default(message, time_format)


class SimpleFormatter:
    """Formats with the simple pattern."""

    def format(self, message: Message, time_format: str = DEFAULT_TIME_FORMAT) -> str:
        return _format_simple(message, time_format)


class DetailedFormatter:
    """Formats with the detailed pattern."""

    def format(self, message: Message, time_format: str = DEFAULT_TIME_FORMAT) -> str:
        return _format_detailed(message, time_format)