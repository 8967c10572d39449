"""pytest configuration: sets env vars before any app module is imported."""

import os

os.environ.setdefault("GEMINI_API_KEY", "test-only-key")
os.environ.setdefault("FIREBASE_PROJECT_ID", "examforge-test")

import pytest
from httpx import AsyncClient, ASGITransport

from services.auth_service import Owner


def survival_payload():
    return {
        "revisionSummary": "Force equals mass times acceleration.",
        "keyFormulas": ["$F = ma$"],
        "importantDefinitions": ["Inertia: resistance to change in motion"],
        "criticalTheorems": [],
    }


def weaponizer_payload():
    return {
        "probableQuestions": [f"Question {i}?" for i in range(1, 11)],
        "predictedWeightage": "High",
        "importantDerivations": ["$$v^2 = u^2 + 2as$$"],
        "strategicStudySuggestions": ["Practise numericals daily"],
    }


def trap_payload():
    return {
        "commonMistakes": ["Mixing up mass and weight"],
        "misconceptions": ["Heavier objects fall faster"],
        "trickQuestions": ["What is the net force on a body at constant velocity?"],
        "frequentlyConfusedConcepts": ["Speed vs velocity"],
        "summary": "Watch vector quantities.",
    }


def mcq_payload(count: int = 10):
    return {
        "mcqs": [
            {
                "question": f"What is {i} + {i}?",
                "options": [str(2 * i), str(2 * i + 1), str(2 * i - 1)],
                "answer": str(2 * i),
                "explanation": f"{i} + {i} = {2 * i}",
            }
            for i in range(1, count + 1)
        ]
    }


class FakeSessionStore:
    """In-memory stand-in for the Firestore-backed SessionStore."""

    def __init__(self, fail: bool = False):
        self.docs: dict[str, dict[str, dict]] = {}
        self.fail = fail

    async def save(self, session):
        if self.fail:
            raise RuntimeError("firestore unavailable")
        self.docs.setdefault(session.userId, {})[session.id] = session.model_dump(mode="json")

    async def list_recent(self, uid, limit=20):
        docs = sorted(self.docs.get(uid, {}).values(), key=lambda d: d["uploadDateTime"], reverse=True)
        return docs[:limit]

    async def get(self, uid, session_id):
        return self.docs.get(uid, {}).get(session_id)

    async def delete(self, uid, session_id):
        self.docs.get(uid, {}).pop(session_id, None)


class FakeGemini:
    """Records every structured-generation call and replays a canned payload."""

    def __init__(self, payload=None):
        self.payload = payload
        self.calls: list[dict] = []

    async def __call__(self, prompt, output_model, image_data_uri=None, mode=""):
        self.calls.append({"prompt": prompt, "model": output_model, "image": image_data_uri, "mode": mode})
        if self.payload is None:
            return None
        return output_model.model_validate(self.payload)


@pytest.fixture
def fake_gemini(monkeypatch):
    from services import gemini_service

    fake = FakeGemini()
    monkeypatch.setattr(gemini_service, "generate_structured", fake)
    return fake


@pytest.fixture
def store():
    return FakeSessionStore()


@pytest.fixture
def owner():
    return Owner(uid="user-123", is_anonymous=True)


@pytest.fixture
async def client(store, owner):
    """AsyncClient wired to the FastAPI app with auth and storage faked out."""
    from main import app
    from services.auth_service import get_current_owner
    from services.session_store import get_session_store

    app.dependency_overrides[get_current_owner] = lambda: owner
    app.dependency_overrides[get_session_store] = lambda: store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
