from __future__ import annotations

import asyncio
import json
import logging
import time

from mailview.core.metrics import observe_assembly, observe_cache_lookup
from mailview.services.assembly.assembler import assemble
from mailview.services.assembly.errors import MalformedMessage, MissingRawPayload
from mailview.services.assembly.types import AssembledMessage, RawMessageFetcher
from mailview.services.google.gmail import GmailApiError
from mailview.services.messages.cache import MessageCache

logger = logging.getLogger("mailview.assembly")


def _outcome_for(exc: BaseException) -> str:
    if isinstance(exc, MissingRawPayload):
        return "missing_raw"
    if isinstance(exc, MalformedMessage):
        return "malformed"
    if isinstance(exc, GmailApiError):
        return "fetch_error"
    return "error"


class MessageService:
    def __init__(
        self,
        *,
        cache: MessageCache | None = None,
        concurrency: int = 8,
        image_proxy_base: str | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.cache = cache
        self.concurrency = concurrency
        self.image_proxy_base = image_proxy_base or None

    async def get_message(self, message_id: str, *, fetch_raw: RawMessageFetcher) -> AssembledMessage:
        if self.cache is not None:
            cached = self.cache.get(message_id)
            observe_cache_lookup(hit=cached is not None)
            if cached is not None:
                return cached

        message = await self._assemble(message_id, fetch_raw=fetch_raw)
        if self.cache is not None:
            self.cache.set(message_id, message)
        return message

    async def get_messages(
        self,
        message_ids: list[str],
        *,
        fetch_raw: RawMessageFetcher,
    ) -> list[AssembledMessage]:
        """Resolve many ids concurrently; results keep input order.

        The first failure cancels the remaining assemblies and is re-raised as
        is, so callers see the same errors as for :meth:`get_message`.
        """
        if not message_ids:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(message_id: str) -> AssembledMessage:
            async with semaphore:
                return await self.get_message(message_id, fetch_raw=fetch_raw)

        try:
            async with asyncio.TaskGroup() as group:
                tasks = {
                    message_id: group.create_task(_one(message_id))
                    for message_id in dict.fromkeys(message_ids)
                }
        except ExceptionGroup as failures:
            raise failures.exceptions[0] from None
        return [tasks[message_id].result() for message_id in message_ids]

    def invalidate(self, message_id: str) -> bool:
        if self.cache is None:
            return False
        return self.cache.invalidate(message_id)

    async def _assemble(self, message_id: str, *, fetch_raw: RawMessageFetcher) -> AssembledMessage:
        started = time.perf_counter()
        try:
            message = await assemble(
                message_id,
                fetch_raw=fetch_raw,
                image_proxy_base=self.image_proxy_base,
            )
        except Exception as e:
            outcome = _outcome_for(e)
            observe_assembly(outcome=outcome, duration_seconds=time.perf_counter() - started)
            logger.warning(
                json.dumps(
                    {
                        "event": "message.assembly_failed",
                        "message_id": message_id,
                        "outcome": outcome,
                        "error": type(e).__name__,
                    },
                    separators=(",", ":"),
                    sort_keys=True,
                )
            )
            raise
        observe_assembly(outcome="ok", duration_seconds=time.perf_counter() - started)
        return message
