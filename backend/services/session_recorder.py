import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pydantic import BaseModel

from models.schemas import IntelligenceMode, StudySession, UploadedAsset
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

TITLE_LENGTH = 30
UNTITLED = "Untitled Session"

# Strong references to in-flight writes; the event loop only keeps weak ones.
_pending_writes: set[asyncio.Task] = set()


def derive_title(text: str, files: list[UploadedAsset]) -> str:
    if text:
        return text[:TITLE_LENGTH]
    if files:
        return files[0].name
    return UNTITLED


def build_session(
    owner_id: str,
    mode: IntelligenceMode,
    text: str,
    files: list[UploadedAsset],
    result: BaseModel,
) -> StudySession:
    combined = text + "\n".join(f.extractedText or "" for f in files)
    return StudySession(
        id=uuid.uuid4().hex,
        userId=owner_id,
        title=derive_title(text, files),
        contentType=files[0].mimeType if files else "TEXT",
        extractedText=combined,
        uploadDateTime=datetime.now(timezone.utc).isoformat(),
        generatedContent=result.model_dump(),
        intelligenceModeId=mode,
    )


async def _write(store, session: StudySession) -> None:
    try:
        await store.save(session)
        logger.info(f"Saved session {session.id} for {session.userId}")
    except Exception as e:
        # Persistence failures never reach the caller; this log is their only channel.
        logger.error(str(PersistenceError(session.id, e)))


def record_session(store, session: StudySession) -> asyncio.Task:
    """
    Starts the store write in the background and returns at once; the
    generation response does not wait for the acknowledgement.
    """
    task = asyncio.create_task(_write(store, session))
    _pending_writes.add(task)
    task.add_done_callback(_pending_writes.discard)
    return task


async def flush_pending_writes() -> None:
    """Awaits every write still in flight (used on shutdown)."""
    if _pending_writes:
        await asyncio.gather(*list(_pending_writes), return_exceptions=True)
