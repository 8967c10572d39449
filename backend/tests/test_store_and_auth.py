import threading
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from google.cloud import firestore

from conftest import survival_payload
from models.schemas import IntelligenceMode, SurvivalResult
from services import auth_service
from services.session_recorder import build_session
from services.session_store import SessionStore


def _firestore_client():
    client = MagicMock()
    doc_ref = client.collection.return_value.document.return_value
    doc_ref.set = AsyncMock()
    doc_ref.delete = AsyncMock()
    return client, doc_ref


async def test_save_merges_under_owner_collection():
    client, doc_ref = _firestore_client()
    session = build_session("uid-7", IntelligenceMode.SURVIVAL, "abc", [], SurvivalResult.model_validate(survival_payload()))

    await SessionStore(client).save(session)

    client.collection.assert_called_with("users", "uid-7", "studyMaterials")
    client.collection.return_value.document.assert_called_with(session.id)
    data, = doc_ref.set.await_args.args
    assert doc_ref.set.await_args.kwargs == {"merge": True}
    assert data["createdAt"] is firestore.SERVER_TIMESTAMP
    assert data["title"] == "abc"


def test_history_query_is_newest_first_and_capped():
    client, _ = _firestore_client()

    SessionStore(client).history_query("uid-7")

    collection = client.collection.return_value
    collection.order_by.assert_called_once_with("uploadDateTime", direction=firestore.Query.DESCENDING)
    collection.order_by.return_value.limit.assert_called_once_with(20)


async def test_delete_by_id():
    client, doc_ref = _firestore_client()

    await SessionStore(client).delete("uid-7", "s1")

    client.collection.return_value.document.assert_called_with("s1")
    doc_ref.delete.assert_awaited_once()


@pytest.mark.parametrize("provider, anonymous", [("anonymous", True), ("password", False), ("google.com", False)])
def test_verify_id_token_flags_anonymous(monkeypatch, provider, anonymous):
    monkeypatch.setattr(auth_service, "_ensure_firebase_app", lambda: None)
    monkeypatch.setattr(
        auth_service.auth, "verify_id_token",
        lambda token: {"uid": "abc", "firebase": {"sign_in_provider": provider}},
    )

    owner = auth_service.verify_id_token("token")

    assert owner == auth_service.Owner(uid="abc", is_anonymous=anonymous)


async def test_invalid_token_is_401(monkeypatch):
    def reject(token):
        raise ValueError("expired")

    monkeypatch.setattr(auth_service, "verify_id_token", reject)
    request = MagicMock()
    request.headers = {"Authorization": "Bearer bad"}

    with pytest.raises(HTTPException) as exc:
        await auth_service.get_current_owner(request)
    assert exc.value.status_code == 401


async def test_token_is_verified_off_the_event_loop(monkeypatch):
    seen = []

    def accept(token):
        seen.append(threading.get_ident())
        return auth_service.Owner(uid="abc")

    monkeypatch.setattr(auth_service, "verify_id_token", accept)
    request = MagicMock()
    request.headers = {"Authorization": "Bearer good"}

    owner = await auth_service.get_current_owner(request)

    assert owner.uid == "abc"
    assert seen and seen[0] != threading.get_ident()
