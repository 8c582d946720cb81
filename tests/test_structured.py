import os
import socket
import threading
from datetime import datetime, timezone

import pytest

from flexlog.message_pool import Message, SourceLocation
from flexlog.structured import BaseStructuredFormatter, CommonFormatterOptions


class _Plain(BaseStructuredFormatter):
    def content_type(self):
        return "text/plain"

    def clone(self):
        return _Plain(self.options)

    def escape_string(self, text):
        return text.replace('"', '\\"')

    def _format_message_impl(self, message):
        return f"plain:{message.message}"

    def _format_structured_data_impl(self, data):
        return ",".join(f"{key}={value}" for key, value in data.items())


STAMP = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)


def test_builder_methods_chain_and_set_fields():
    options = CommonFormatterOptions()
    result = (
        options.set_application("shop", "staging")
        .set_service("cart", "2.1.0")
        .set_host("box")
        .set_pretty_print(True, 4)
        .set_time_format("%Y")
        .set_field_inclusion(False, True, False, True, False)
        .set_process_info(True)
        .set_thread_id(True)
        .add_field("team", "core")
        .add_tag("alpha")
    )
    assert result is options
    assert (options.application_name, options.environment) == ("shop", "staging")
    assert (options.service_name, options.service_version) == ("cart", "2.1.0")
    assert options.hostname == "box"
    assert (options.pretty_print, options.indent_size) == (True, 4)
    assert options.time_format == "%Y"
    assert options.include_timestamp is False and options.include_logger is False
    assert options.include_level is True and options.include_message is True
    assert options.include_source_location is False
    assert options.include_process_info and options.include_thread_id
    assert options.user_data == {"team": "core"}
    assert options.tags == ["alpha"]


def test_defaults_match_source():
    options = CommonFormatterOptions()
    assert options.application_name == "flex_log"
    assert options.environment == "production"
    assert options.service_version == "1.0.0"
    assert options.time_format == "%FT%T.%fZ"


def test_explicit_hostname_is_kept():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    assert formatter.options.hostname == "box"


def test_empty_hostname_is_filled_from_machine():
    formatter = _Plain(CommonFormatterOptions())
    machine = formatter.hostname()
    filled = formatter.options.hostname
    assert filled == machine
    assert filled in {socket.gethostname(), "unknown"}
    assert formatter.format_message(Message(message="x")) == "plain:x"


def test_options_are_copied():
    options = CommonFormatterOptions().set_host("box")
    formatter = _Plain(options)
    options.add_tag("later")
    options.set_host("other")
    assert formatter.options.tags == []
    assert formatter.options.hostname == "box"


def test_set_options_replaces_and_fills_hostname():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    formatter.set_options(CommonFormatterOptions().set_application("shop"))
    assert formatter.options.application_name == "shop"
    assert formatter.options.hostname == formatter.hostname()


def test_default_timestamp_has_microseconds():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    assert formatter.format_timestamp(STAMP) == "2024-01-02T03:04:05.678901Z"


def test_custom_time_format_replaces_f():
    options = CommonFormatterOptions().set_host("box").set_time_format("%Y/%m/%d %H:%M:%S.%f")
    formatter = _Plain(options)
    assert formatter.format_timestamp(STAMP) == "2024/01/02 03:04:05.678901"


def test_naive_timestamp_is_read_as_utc():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    naive = STAMP.replace(tzinfo=None)
    assert formatter.format_timestamp(naive) == formatter.format_timestamp(STAMP)


def test_format_source_location():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    location = SourceLocation("/src/app/main.cpp", 42, 0, "run")
    assert formatter.format_source_location(location) == "main.cpp:42 [run]"


def test_process_and_thread_ids():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    assert formatter.process_id() == str(os.getpid())
    assert formatter.thread_id() == str(threading.get_ident())
    assert formatter.process_name()


def test_format_message_and_data_delegate():
    formatter = _Plain(CommonFormatterOptions().set_host("box"))
    assert formatter.format_message(Message(message="hello")) == "plain:hello"
    assert formatter(Message(message="hi")) == "plain:hi"
    assert formatter.format_structured_data({"a": 1}) == "a=1"


def test_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        BaseStructuredFormatter()