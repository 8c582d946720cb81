from datetime import datetime, timezone

import pytest

from flexlog.message_pool import Level, Message, SourceLocation
from flexlog.pattern_formatter import (
    DETAILED_PATTERN,
    SIMPLE_PATTERN,
    DefaultFormatter,
    DetailedFormatter,
    PatternFormatter,
    SimpleFormatter,
    TokenType,
    token_type,
)

LEVEL = Level.WARN.name


def make_message(text="hello", name="core"):
    return Message(
        message=text,
        name=name,
        level=Level.WARN,
        timestamp=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        source_location=SourceLocation("/src/app/main.cpp", 42, 0, "run"),
    )


@pytest.mark.parametrize(
    "token, expected",
    [
        ("{timestamp}", TokenType.TIMESTAMP),
        ("{level}", TokenType.LEVEL),
        ("{name}", TokenType.NAME),
        ("{message}", TokenType.MESSAGE),
        ("{source}", TokenType.SOURCE),
        ("{function}", TokenType.FUNCTION),
        ("{line}", TokenType.LINE),
        ("{custom:x}", TokenType.CUSTOM),
        ("{custom:}", TokenType.LITERAL),
        ("{unknown}", TokenType.LITERAL),
    ],
)
def test_token_type(token, expected):
    assert token_type(token) is expected


def test_default_pattern():
    formatter = PatternFormatter()
    formatter.set_time_format("TS")
    assert formatter.format(make_message()) == f"[TS] [{LEVEL}] [core @ run] - hello"


def test_simple_pattern():
    formatter = PatternFormatter(SIMPLE_PATTERN)
    formatter.set_time_format("TS")
    assert formatter.format(make_message()) == f"[TS] [{LEVEL}] [core] - hello"


def test_detailed_pattern():
    formatter = PatternFormatter(DETAILED_PATTERN)
    formatter.set_time_format("TS")
    assert formatter(make_message()) == f"[TS] [{LEVEL}] [core @ run] [main.cpp:42] - hello"


def test_runtime_pattern_tokens():
    formatter = PatternFormatter("{level}|{name}|{source}:{line}|{function}|{message}")
    assert formatter.format(make_message()) == f"{LEVEL}|core|main.cpp:42|run|hello"


def test_runtime_timestamp_uses_time_format():
    formatter = PatternFormatter("<{timestamp}>")
    formatter.set_time_format("stamp")
    assert formatter.format(make_message()) == "<stamp>"
    assert formatter.format_info.time_format == "stamp"


def test_unknown_braced_text_stays_literal():
    formatter = PatternFormatter("a {foo} b {message}")
    assert formatter.format(make_message()) == "a {foo} b hello"


def test_custom_token_registered():
    formatter = PatternFormatter("{custom:user} says {message}")
    formatter.register_custom_formatter("user", lambda msg: msg.name.upper())
    assert formatter.format(make_message()) == "CORE says hello"


def test_custom_token_unregistered():
    formatter = PatternFormatter("{custom:user}")
    assert formatter.format(make_message()) == "[unknown custom token: user]"


def test_register_none_is_ignored():
    formatter = PatternFormatter("{custom:user}")
    formatter.register_custom_formatter("user", None)
    assert formatter.format(make_message()) == "[unknown custom token: user]"


def test_registering_keeps_builtin_output():
    message = make_message()
    fast = PatternFormatter(DETAILED_PATTERN)
    slow = PatternFormatter(DETAILED_PATTERN)
    slow.register_custom_formatter("other", lambda msg: "x")
    for formatter in (fast, slow):
        formatter.set_time_format("TS")
    assert slow.format(message) == fast.format(message)


def test_builtin_output_truncated_to_buffer():
    message = make_message(text="m" * 2000)
    formatter = PatternFormatter()
    assert len(formatter.format(message)) == 1024


def test_runtime_output_not_truncated():
    message = make_message(text="m" * 2000)
    formatter = PatternFormatter("{message}")
    assert formatter.format(message) == "m" * 2000


def test_set_pattern_changes_output():
    formatter = PatternFormatter()
    formatter.set_pattern("{name}:{message}")
    assert formatter.pattern == "{name}:{message}"
    assert formatter.format_info.pattern == "{name}:{message}"
    assert formatter.format(make_message()) == "core:hello"


def test_parsed_fragments():
    formatter = PatternFormatter("x{level}{custom:abc}y")
    kinds = [fragment.type for fragment in formatter.fragments]
    assert kinds == [TokenType.LITERAL, TokenType.LEVEL, TokenType.CUSTOM, TokenType.LITERAL]
    assert formatter.fragments[2].data == "abc"


@pytest.mark.parametrize(
    "standalone, pattern",
    [
        (DefaultFormatter(), None),
        (SimpleFormatter(), SIMPLE_PATTERN),
        (DetailedFormatter(), DETAILED_PATTERN),
    ],
)
def test_standalone_formatters_match_patterns(standalone, pattern):
    message = make_message()
    formatter = PatternFormatter() if pattern is None else PatternFormatter(pattern)
    formatter.set_time_format("TS")
    assert standalone.format(message, "TS") == formatter.format(message)