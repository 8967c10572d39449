import os
import logging
from functools import lru_cache
from google.cloud import firestore

from models.schemas import StudySession

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20


class SessionStore:
    """
    Per-user study sessions in Firestore, stored at
    users/{uid}/studyMaterials/{sessionId}.
    """

    def __init__(self, client: firestore.AsyncClient | None = None):
        self._client = client

    @property
    def client(self) -> firestore.AsyncClient:
        if self._client is None:
            self._client = firestore.AsyncClient(project=os.getenv("FIREBASE_PROJECT_ID") or None)
        return self._client

    def _collection(self, uid: str):
        return self.client.collection("users", uid, "studyMaterials")

    def history_query(self, uid: str, limit: int = HISTORY_LIMIT):
        """Read-only view of one owner's sessions, newest first."""
        return self._collection(uid).order_by(
            "uploadDateTime", direction=firestore.Query.DESCENDING
        ).limit(limit)

    async def save(self, session: StudySession) -> None:
        data = session.model_dump(mode="json")
        data["createdAt"] = firestore.SERVER_TIMESTAMP
        await self._collection(session.userId).document(session.id).set(data, merge=True)

    async def list_recent(self, uid: str, limit: int = HISTORY_LIMIT) -> list[dict]:
        return [snap.to_dict() async for snap in self.history_query(uid, limit).stream()]

    async def get(self, uid: str, session_id: str) -> dict | None:
        snap = await self._collection(uid).document(session_id).get()
        return snap.to_dict() if snap.exists else None

    async def delete(self, uid: str, session_id: str) -> None:
        await self._collection(uid).document(session_id).delete()


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()
