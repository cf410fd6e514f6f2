from __future__ import annotations

from fastapi import APIRouter, Request

from ..models import AtBottomUpdate, IngestRequest, PermissionIdsUpdate
from ..services.window_store import MessageWindowStore

router = APIRouter()

_NOT_CONFIGURED = {"ok": False, "detail": "window store not configured"}


def _store(request: Request) -> MessageWindowStore | None:
    return getattr(request.app.state, "window_store", None)


def _result(store: MessageWindowStore, session_id: str) -> dict:
    return {"ok": True, "window": store.snapshot(session_id).model_dump(mode="json")}


@router.get("/sessions/{session_id}/window")
async def get_window(session_id: str, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    return _result(store, session_id)


@router.post("/sessions/{session_id}/window/messages")
async def ingest_messages(session_id: str, payload: IngestRequest, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    store.ingest(session_id, payload.messages)
    return _result(store, session_id)


@router.post("/sessions/{session_id}/window/flush")
async def flush_window(session_id: str, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    store.flush(session_id)
    return _result(store, session_id)


@router.put("/sessions/{session_id}/window/at-bottom")
async def update_at_bottom(session_id: str, payload: AtBottomUpdate, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    store.set_at_bottom(session_id, payload.at_bottom)
    return _result(store, session_id)


@router.put("/sessions/{session_id}/window/permissions")
async def update_permissions(session_id: str, payload: PermissionIdsUpdate, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    store.set_pending_permission_request_ids(session_id, payload.ids)
    return _result(store, session_id)


@router.delete("/sessions/{session_id}/window")
async def clear_window(session_id: str, request: Request):
    store = _store(request)
    if store is None:
        return _NOT_CONFIGURED
    store.clear(session_id)
    return {"ok": True}
