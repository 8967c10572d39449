import logging
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse
from models.schemas import ExportRequest, IntelligenceMode, SessionSummary, StudySession
from services import report_service
from services.auth_service import Owner, get_current_owner
from services.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)
router = APIRouter()


def _markdown_download(mode: IntelligenceMode, content: str) -> PlainTextResponse:
    filename = report_service.report_filename(mode)
    return PlainTextResponse(
        content,
        media_type="text/markdown",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _load_session(store: SessionStore, owner: Owner, session_id: str) -> StudySession:
    data = await store.get(owner.uid, session_id)
    if not data or not data.get("generatedContent"):
        raise HTTPException(status_code=404, detail="Session not found.")
    return StudySession.model_validate(data)


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(
    owner: Owner = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store),
):
    """The owner's 20 most recent sessions, newest first."""
    docs = await store.list_recent(owner.uid)
    return [SessionSummary.model_validate(d) for d in docs]


@router.get("/sessions/{session_id}", response_model=StudySession)
async def get_session(
    session_id: str,
    owner: Owner = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store),
):
    return await _load_session(store, owner, session_id)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    owner: Owner = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store),
):
    await store.delete(owner.uid, session_id)
    return Response(status_code=204)


@router.get("/sessions/{session_id}/export")
async def export_session(
    session_id: str,
    owner: Owner = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store),
):
    session = await _load_session(store, owner, session_id)
    content = report_service.build_report(session.intelligenceModeId, session.generatedContent)
    return _markdown_download(session.intelligenceModeId, content)


@router.post("/export")
async def export_result(payload: ExportRequest):
    """Markdown report for a result the client already holds."""
    try:
        content = report_service.build_report(payload.mode, payload.result)
    except (KeyError, TypeError) as e:
        logger.error(f"Export failed for {payload.mode.value}: {e}")
        raise HTTPException(status_code=422, detail="Result does not match the selected mode.")
    return _markdown_download(payload.mode, content)
