"""Log messages and a pool that recycles them instead of allocating anew."""

from __future__ import annotations

import enum
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from flexlog.string_storage import StringStorage


class Level(enum.IntEnum):
    """Severity of a log message."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5


class MessageState(enum.Enum):
    """Where a message is in its life within a pool."""

    POOLED = enum.auto()
    ACTIVE = enum.auto()
    RELEASING = enum.auto()


@dataclass(frozen=True)
class SourceLocation:
    """The place in the code where a message was logged."""

    file_name: str = ""
    line: int = 0
    column: int = 0
    function_name: str = ""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class Message:
    """A log record with a reference count and a pool state."""

    message: str = ""
    name: str = ""
    level: Level = Level.INFO
    logger: Any = None
    timestamp: datetime = field(default_factory=_now)
    source_location: SourceLocation = field(default_factory=SourceLocation)
    structured_data: dict[str, Any] = field(default_factory=dict)
    message_storage: StringStorage = field(default_factory=StringStorage)
    state: MessageState = MessageState.POOLED
    ref_count: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_ref(self) -> None:
        with self._lock:
            self.ref_count += 1

    def release_ref(self) -> bool:
        """Drop one reference; return True when none are left."""
        with self._lock:
            if self.ref_count == 0:
                return False
            self.ref_count -= 1
            return self.ref_count == 0

    def is_active(self) -> bool:
        return self.state is MessageState.ACTIVE

    def _activate(self) -> None:
        with self._lock:
            self.state = MessageState.ACTIVE
            self.ref_count = 1

    def _begin_release(self) -> bool:
        with self._lock:
            if self.state is not MessageState.ACTIVE:
                return False
            self.state = MessageState.RELEASING
            if self.ref_count == 1:
                self.ref_count = 0
                return True
            return False

    def _reset(self) -> None:
        with self._lock:
            self.message_storage = StringStorage()
            self.message = ""
            self.name = ""
            self.level = Level.INFO
            self.logger = None
            self.structured_data.clear()
            self.state = MessageState.POOLED
            self.ref_count = 0


@dataclass(eq=False)
class _Chunk:
    objects: list[Message]
    used: list[bool]

    @classmethod
    def of_size(cls, size: int) -> "_Chunk":
        return cls([Message() for _ in range(size)], [False] * size)

    @property
    def size(self) -> int:
        return len(self.objects)

    def is_empty(self) -> bool:
        return not any(self.used)


class _ThreadCache:
    def __init__(self, size: int) -> None:
        self.messages = [Message() for _ in range(size)]
        self.used = [False] * size
        self.index = {id(message): slot for slot, message in enumerate(self.messages)}
        self.used_count = 0

    def acquire(self) -> Optional[Message]:
        for slot, taken in enumerate(self.used):
            if not taken:
                self.used[slot] = True
                self.used_count += 1
                return self.messages[slot]
        return None

    def slot_of(self, message: Message) -> Optional[int]:
        slot = self.index.get(id(message))
        if slot is not None and self.messages[slot] is message:
            return slot
        return None


class MessagePool:
    """Hands out reusable messages, growing in chunks when it runs dry.

    Each thread first draws from a small cache of its own; messages taken from
    that cache are not counted in :meth:`size` or :meth:`capacity`.
    """

    INITIAL_CAPACITY = 1024
    GROWTH_FACTOR = 2
    CACHE_SIZE = 64
    SCAN_LIMIT = 16

    def __init__(
        self,
        *,
        initial_capacity: int = INITIAL_CAPACITY,
        cache_size: int = CACHE_SIZE,
    ) -> None:
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be at least 1")
        if cache_size < 0:
            raise ValueError("cache_size must not be negative")
        self._cache_size = cache_size
        self._local = threading.local()
        self._lock = threading.RLock()
        self._chunks: list[_Chunk] = []
        self._homes: dict[int, tuple[_Chunk, int]] = {}
        self._size = 0
        self._capacity = 0
        self._peak = 0
        self._next_chunk = 0
        self._add_chunk(initial_capacity)

    def _thread_cache(self) -> _ThreadCache:
        cache = getattr(self._local, "cache", None)
        if cache is None:
            cache = _ThreadCache(self._cache_size)
            self._local.cache = cache
        return cache

    def _add_chunk(self, size: int) -> _Chunk:
        chunk = _Chunk.of_size(size)
        self._chunks.append(chunk)
        self._homes.update((id(message), (chunk, slot)) for slot, message in enumerate(chunk.objects))
        self._capacity += size
        return chunk

    def _claim(self, chunk: _Chunk, slot: int, *, track_peak: bool) -> Message:
        chunk.used[slot] = True
        self._size += 1
        if track_peak and self._size > self._peak:
            self._peak = self._size
        return chunk.objects[slot]

    def _acquire_shared(self) -> Message:
        count = len(self._chunks)
        start = self._next_chunk % count
        self._next_chunk += 1
        rotated = itertools.islice(itertools.cycle(self._chunks), start, start + count)
        for chunk in rotated:
            limit = min(chunk.size, self.SCAN_LIMIT)
            for slot, taken in itertools.islice(enumerate(chunk.used), limit):
                if not taken:
                    return self._claim(chunk, slot, track_peak=True)

        for chunk in self._chunks:
            for slot, taken in enumerate(chunk.used):
                if not taken:
                    return self._claim(chunk, slot, track_peak=False)

        chunk = self._add_chunk(self._chunks[-1].size * self.GROWTH_FACTOR)
        return self._claim(chunk, 0, track_peak=True)

    def acquire(self) -> Message:
        """Take a message from the pool, active and holding one reference."""
        message = self._thread_cache().acquire()
        if message is None:
            with self._lock:
                message = self._acquire_shared()
        message._activate()
        return message

    def release(self, message: Optional[Message]) -> None:
        """Start returning ``message``; it is reclaimed once no reference is left."""
        if message is None:
            return
        if message._begin_release():
            self.finalize_release(message)

    def finalize_release(self, message: Optional[Message]) -> None:
        """Put a releasing message back into the pool."""
        if message is None or message.state is not MessageState.RELEASING:
            return

        cache = self._thread_cache()
        slot = cache.slot_of(message)
        if slot is not None:
            message._reset()
            cache.used[slot] = False
            cache.used_count -= 1
            return

        with self._lock:
            home = self._homes.get(id(message))
            if home is None:
                return
            chunk, slot = home
            if chunk.objects[slot] is not message:
                return
            message._reset()
            if chunk.used[slot]:
                chunk.used[slot] = False
                self._size -= 1

    def size(self) -> int:
        return self._size

    def capacity(self) -> int:
        return self._capacity

    def peak_usage(self) -> int:
        return self._peak

    def usage_percentage(self) -> float:
        capacity = self._capacity
        return self._size / capacity * 100.0 if capacity > 0 else 0.0

    def try_shrink(self, threshold: float = 0.3334) -> None:
        """Drop unused trailing chunks when usage is at or below ``threshold``."""
        with self._lock:
            if self.usage_percentage() > threshold * 100.0 or len(self._chunks) <= 1:
                return
            while len(self._chunks) > 1 and self._chunks[-1].is_empty():
                chunk = self._chunks.pop()
                for message in chunk.objects:
                    self._homes.pop(id(message), None)
                self._capacity -= chunk.size