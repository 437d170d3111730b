from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from mailview.core.config import get_settings
from mailview.core.http import get_http_client
from mailview.schemas.messages import AssembledMessageOut
from mailview.services.assembly.errors import AssemblyError, MalformedMessage, MissingRawPayload
from mailview.services.google.gmail import GmailApiError, gmail_raw_fetcher
from mailview.services.messages.service import MessageService

router = APIRouter(prefix="/messages", tags=["messages"])


def get_message_service(request: Request) -> MessageService:
    return request.app.state.message_service


def get_gmail_access_token(request: Request) -> str:
    auth = (request.headers.get("authorization") or "").strip()
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    token = get_settings().GMAIL_ACCESS_TOKEN.strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Gmail access token missing",
        )
    return token


def _to_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, MissingRawPayload):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, MalformedMessage):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, GmailApiError) and exc.status_code == 404:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Gmail message fetch failed")


@router.get("", response_model=list[AssembledMessageOut])
async def messages_bulk(
    ids: str = Query(default=""),
    service: MessageService = Depends(get_message_service),
    access_token: str = Depends(get_gmail_access_token),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> list[AssembledMessageOut]:
    message_ids = [v.strip() for v in ids.split(",") if v.strip()]
    max_ids = get_settings().MAX_BULK_IDS
    if len(message_ids) > max_ids:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"At most {max_ids} message ids per request",
        )

    fetch_raw = gmail_raw_fetcher(client, access_token=access_token)
    try:
        messages = await service.get_messages(message_ids, fetch_raw=fetch_raw)
    except (AssemblyError, GmailApiError) as e:
        raise _to_http_error(e) from e
    return [AssembledMessageOut.from_message(m) for m in messages]


@router.get("/{message_id}", response_model=AssembledMessageOut)
async def message_get(
    message_id: str,
    service: MessageService = Depends(get_message_service),
    access_token: str = Depends(get_gmail_access_token),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> AssembledMessageOut:
    fetch_raw = gmail_raw_fetcher(client, access_token=access_token)
    try:
        message = await service.get_message(message_id, fetch_raw=fetch_raw)
    except (AssemblyError, GmailApiError) as e:
        raise _to_http_error(e) from e
    return AssembledMessageOut.from_message(message)


@router.delete("/{message_id}/cache", status_code=status.HTTP_204_NO_CONTENT)
def message_cache_invalidate(
    message_id: str,
    service: MessageService = Depends(get_message_service),
) -> Response:
    service.invalidate(message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
