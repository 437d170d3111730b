from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field

from mailview.services.assembly.types import AssembledMessage


@dataclass
class MessageCache:
    """In-memory map of message id to assembled message.

    ``max_entries`` of 0 means unbounded; otherwise the oldest entry is evicted.
    """

    max_entries: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _entries: OrderedDict[str, AssembledMessage] = field(default_factory=OrderedDict)

    def get(self, message_id: str) -> AssembledMessage | None:
        with self._lock:
            return self._entries.get(message_id)

    def set(self, message_id: str, message: AssembledMessage) -> None:
        with self._lock:
            self._entries[message_id] = message
            self._entries.move_to_end(message_id)
            if self.max_entries > 0:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def invalidate(self, message_id: str) -> bool:
        with self._lock:
            return self._entries.pop(message_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
