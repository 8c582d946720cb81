"""A bounded string that can be stored and read from several threads."""

from __future__ import annotations

import threading


class AtomicString:
    """Thread-safe string with a fixed capacity.

    Stored text longer than ``MAX_LENGTH - 1`` characters is truncated.
    """

    MAX_LENGTH = 128

    __slots__ = ("_text", "_lock")

    def __init__(self, text: str = "") -> None:
        self._lock = threading.Lock()
        self._text = ""
        self.store(text)

    def store(self, text: str) -> None:
        truncated = text[: self.MAX_LENGTH - 1]
        with self._lock:
            self._text = truncated

    def load(self) -> str:
        with self._lock:
            return self._text

    def compare(self, text: str) -> bool:
        return self.load() == text

    def __str__(self) -> str:
        return self.load()

    def __repr__(self) -> str:
        return f"AtomicString({self.load()!r})"

    def __len__(self) -> int:
        return len(self.load())