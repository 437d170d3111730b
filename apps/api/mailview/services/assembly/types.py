from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class MimeNode:
    mime_type: str
    headers: dict[str, str] = field(default_factory=dict)
    content: str | None = None
    parts: tuple[MimeNode, ...] = ()

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class EmailAddress:
    name: str
    email: str


@dataclass(frozen=True)
class RawMessageRecord:
    id: str
    raw: str | None
    thread_id: str | None = None
    internal_date: datetime | None = None
    label_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssembledMessage:
    id: str
    subject: str
    from_: list[EmailAddress]
    to: list[EmailAddress]
    date: str
    html: str
    plain: str
    snippet: str


RawMessageFetcher = Callable[[str], Awaitable[RawMessageRecord]]
