"""Storage for log message text with a small inline capacity."""

from __future__ import annotations


class StringStorage:
    """Holds a string, noting whether it fits the inline capacity.

    Text shorter than ``INLINE_CAPACITY`` bytes (UTF-8) counts as stored
    inline; longer text counts as stored on the heap. A storage made with
    no text holds an empty view that belongs to neither.
    """

    INLINE_CAPACITY = 64

    __slots__ = ("_text", "_inline")

    def __init__(self) -> None:
        self._text = ""
        self._inline = False

    @classmethod
    def create(cls, text: str) -> "StringStorage":
        storage = cls()
        storage._store(text)
        return storage

    def _store(self, text: str) -> None:
        self._text = text
        self._inline = len(text.encode("utf-8")) < self.INLINE_CAPACITY

    def view(self) -> str:
        return self._text

    def is_inline(self) -> bool:
        return self._inline

    def __str__(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def __repr__(self) -> str:
        return f"StringStorage({self._text!r}, inline={self._inline})"