import logging
from fastapi import APIRouter, Depends, HTTPException
from models.schemas import IntelligenceRequestBody, IntelligenceResponse, ModeInfo
from services import intelligence_service, session_recorder
from services.auth_service import Owner, get_current_owner
from services.errors import InputMissingError
from services.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/modes", response_model=list[ModeInfo])
async def list_modes():
    return intelligence_service.list_modes()


@router.post("/intelligence", response_model=IntelligenceResponse)
async def generate_intelligence(
    payload: IntelligenceRequestBody,
    owner: Owner = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store),
):
    """
    Runs the selected mode over the text and attachments, then saves the
    session in the background. The result is returned without waiting for
    the write.
    """
    bundle = intelligence_service.InputBundle(raw_text=payload.text, files=payload.files)
    try:
        result = await intelligence_service.dispatch(payload.mode, bundle)
    except InputMissingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Intelligence generation failed ({payload.mode.value}): {e}")
        raise HTTPException(status_code=500, detail="Could not generate intelligence.")

    session = session_recorder.build_session(owner.uid, payload.mode, payload.text, payload.files, result)
    session_recorder.record_session(store, session)

    return IntelligenceResponse(
        mode=payload.mode,
        sessionId=session.id,
        title=session.title,
        result=result.model_dump(),
    )
