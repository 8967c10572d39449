import os
import asyncio
import json
import logging
from dataclasses import dataclass
import firebase_admin
from firebase_admin import auth, credentials
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Owner:
    uid: str
    is_anonymous: bool = False


def _ensure_firebase_app() -> None:
    """
    Initialise the default Firebase app once, from firebase-credentials.json,
    the FIREBASE_CREDENTIALS env var (service-account JSON), or application
    default credentials, in that order.
    """
    if firebase_admin._apps:
        return
    if os.path.exists("firebase-credentials.json"):
        cred = credentials.Certificate("firebase-credentials.json")
    else:
        raw = (os.getenv("FIREBASE_CREDENTIALS", "") or "").strip()
        cred = credentials.Certificate(json.loads(raw)) if raw else credentials.ApplicationDefault()
    options = {"projectId": os.getenv("FIREBASE_PROJECT_ID")} if os.getenv("FIREBASE_PROJECT_ID") else None
    firebase_admin.initialize_app(cred, options)


def verify_id_token(token: str) -> Owner:
    _ensure_firebase_app()
    decoded = auth.verify_id_token(token)
    provider = (decoded.get("firebase") or {}).get("sign_in_provider")
    return Owner(uid=decoded["uid"], is_anonymous=provider == "anonymous")


async def get_current_owner(request: Request) -> Owner:
    """
    FastAPI dependency: resolves the Firebase ID token in the Authorization
    header. Anonymous and registered users are both just owners.
    """
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    try:
        # Certificate fetches on a cache miss are blocking HTTP calls.
        return await asyncio.to_thread(verify_id_token, header[len("Bearer "):].strip())
    except Exception as e:
        logger.warning(f"Rejected ID token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
