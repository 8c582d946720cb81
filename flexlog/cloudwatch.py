"""A formatter producing records in the shape expected by AWS CloudWatch Logs."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from flexlog.message_pool import Level, Message
from flexlog.structured import BaseStructuredFormatter, CommonFormatterOptions, _as_utc

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


@dataclass
class CloudWatchOptions(CommonFormatterOptions):
    """Common options plus the CloudWatch log group and stream."""

    log_group_name: str = "application-logs"
    log_stream_name: str = ""
    include_plain_text_message: bool = True

    def set_log_group(self, group: str) -> "CloudWatchOptions":
        self.log_group_name = group
        return self

    def set_log_stream(self, stream: str) -> "CloudWatchOptions":
        self.log_stream_name = stream
        return self

    def set_include_plain_text(self, include: bool) -> "CloudWatchOptions":
        self.include_plain_text_message = include
        return self


def _level_name(level: Any) -> str:
    try:
        return Level(level).name
    except ValueError:
        return str(level)


class CloudWatchFormatter(BaseStructuredFormatter):
    """Formats messages as JSON objects for CloudWatch Logs Insights.

    An empty log stream name defaults to the host name.
    """

    def __init__(self, options: Optional[CloudWatchOptions] = None) -> None:
        cw_options = copy.deepcopy(options) if options is not None else CloudWatchOptions()
        super().__init__(cw_options)
        self._cw_options = cw_options
        if not self._cw_options.log_stream_name:
            self._cw_options.log_stream_name = self._options.hostname

    @property
    def cloudwatch_options(self) -> CloudWatchOptions:
        return self._cw_options

    def content_type(self) -> str:
        return "application/json"

    def clone(self) -> "CloudWatchFormatter":
        return CloudWatchFormatter(self._cw_options)

    def escape_string(self, text: str) -> str:
        out = []
        for char in text:
            escaped = _ESCAPES.get(char)
            if escaped is not None:
                out.append(escaped)
            elif ord(char) < 32:
                out.append(f"\\u{ord(char):04x}")
            else:
                out.append(char)
        return "".join(out)

    def iso_timestamp(self, timestamp: datetime) -> str:
        """UTC ISO 8601 timestamp with milliseconds."""
        moment = _as_utc(timestamp)
        return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{moment.microsecond // 1000:03d}Z"

    def _quoted(self, text: str) -> str:
        return f'"{self.escape_string(text)}"'

    def _scalar(self, value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return f"{value:.6f}"
        if isinstance(value, datetime):
            return f'"{self.iso_timestamp(value)}"'
        return self._quoted(str(value))

    def _element(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return f"{value:g}"
        return self._quoted(str(value))

    def _value(self, value: Any, nl: str) -> str:
        if not isinstance(value, (list, tuple)):
            return self._scalar(value)
        inner = self._indent(2)
        items = [f"{inner}{self._element(item)}" for item in value]
        body = "".join(f"{item}{',' if pos < len(items) - 1 else ''}{nl}" for pos, item in enumerate(items))
        return f"[{nl}{body}{self._indent(1)}]"

    def _format_structured_data_impl(self, data: dict[str, Any]) -> str:
        if not data:
            return "{}"
        options = self._options
        nl = "\n" if options.pretty_print else ""
        keys = sorted(data) if options.sort_keys else list(data)
        if not options.include_null_values:
            keys = [key for key in keys if data[key] is not None]
        indent = self._indent(1)
        entries = [f'{indent}"{key}": {self._value(data[key], nl)}' for key in keys]
        body = "".join(f"{entry}{',' if pos < len(entries) - 1 else ''}{nl}" for pos, entry in enumerate(entries))
        return f"{{{nl}{body}}}"

    def _format_message_impl(self, message: Message) -> str:
        options = self._options
        cw = self._cw_options
        nl = "\n" if options.pretty_print else ""
        one, two = self._indent(1), self._indent(2)
        out = ["{", nl]

        def line(indent: str, text: str) -> None:
            out.append(f"{indent}{text}{nl}")

        if options.include_timestamp:
            line(one, f'"timestamp": "{self.iso_timestamp(message.timestamp)}",')
        line(one, f'"logGroup": "{cw.log_group_name}",')
        line(one, f'"logStream": "{cw.log_stream_name}",')
        if cw.include_plain_text_message and options.include_message:
            line(one, f'"message": {self._quoted(message.message)},')
        line(one, f'"host": "{options.hostname}",')
        if options.include_level:
            line(one, f'"level": "{_level_name(message.level)}",')
            line(one, f'"levelValue": {int(message.level)},')
        if options.include_logger:
            line(one, f'"logger": {self._quoted(message.name)},')
        line(one, f'"app": "{options.application_name}",')
        line(one, f'"env": "{options.environment}",')

        if options.include_source_location:
            location = message.source_location
            line(one, '"location": {')
            line(two, f'"file": "{os.path.basename(location.file_name)}",')
            line(two, f'"line": {location.line},')
            line(two, f'"function": "{location.function_name}"')
            line(one, "},")

        if options.include_process_info:
            line(one, '"process": {')
            line(two, f'"id": "{self.process_id()}",')
            line(two, f'"name": "{self.process_name()}"')
            line(one, "},")

        if options.include_thread_id:
            line(one, f'"threadId": "{self.thread_id()}",')

        if options.tags:
            line(one, '"tags": [')
            for pos, tag in enumerate(options.tags):
                line(two, f'"{tag}"{"," if pos < len(options.tags) - 1 else ""}')
            line(one, "],")

        if message.structured_data:
            line(one, f'"data": {self._format_structured_data_impl(message.structured_data)},')

        for key, value in options.user_data.items():
            line(one, f'"{key}": "{value}",')

        line(one, '"@metadata": {')
        line(two, '"service": "flex_log-logger",')
        line(two, '"version": "1.0"')
        line(one, "}")
        out.append("}")
        return "".join(out)