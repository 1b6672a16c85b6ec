"""API tests — FastAPI TestClient against in-memory SQLite."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from career_chat.dependencies import get_completer, get_interviews, get_registry
from career_chat.engine.conversation import ConversationRegistry
from career_chat.engine.interview import InterviewRegistry
from career_chat.main import app
from career_chat.services import resume_store
from career_chat.services.ai_client import CompletionError
from conftest import FULL_FLOW


async def fake_complete(prompt):
    if "Gere uma pergunta" in prompt:
        return "**Pergunta** - Técnica\n\nExplique o event loop."
    return "Boa resposta.\n\n**Nota: 6/10**"


async def failing_complete(prompt):
    raise CompletionError("timeout")


@pytest.fixture
def registry():
    return ConversationRegistry(debounce_seconds=60)


@pytest.fixture
def interviews():
    return InterviewRegistry()


@pytest.fixture
def client(registry, interviews):
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_interviews] = lambda: interviews
    app.dependency_overrides[get_completer] = lambda: fake_complete
    with TestClient(app) as c:
        yield c
    registry.close_all()
    app.dependency_overrides.clear()


def _auth(client, email="ana@x.com"):
    client.post("/api/auth/register", json={"email": email, "password": "segredo123", "display_name": "Ana"})
    token = client.post("/api/auth/login", json={"email": email, "password": "segredo123"}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def _finish_flow(client, headers):
    for text in FULL_FLOW:
        res = client.post("/api/resume-builder/message", json={"message": text}, headers=headers)
        assert res.status_code == 200


class TestAuth:

    def test_register_login_me(self, client):
        headers = _auth(client)
        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["email"] == "ana@x.com"
        session = client.get("/api/auth/session", headers=headers).json()
        assert session["user"]["display_name"] == "Ana"
        assert session["expires_at"]

    def test_duplicate_email(self, client):
        _auth(client)
        res = client.post("/api/auth/register", json={"email": "ana@x.com", "password": "segredo123", "display_name": "Ana"})
        assert res.status_code == 409

    def test_bad_password(self, client):
        _auth(client)
        res = client.post("/api/auth/login", json={"email": "ana@x.com", "password": "errada"})
        assert res.status_code == 401

    def test_logout_revokes_token(self, client):
        headers = _auth(client)
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_requires_token(self, client):
        assert client.get("/api/resume-builder/session").status_code in (401, 403)


class TestResumeBuilder:

    def test_session_starts_with_welcome(self, client):
        headers = _auth(client)
        body = client.get("/api/resume-builder/session", headers=headers).json()
        assert body["step"] == "intro"
        assert body["progress"] == 0
        assert len(body["entries"]) == 1

    def test_end_to_end_scenario(self, client):
        headers = _auth(client)
        client.get("/api/resume-builder/session", headers=headers)
        body = client.post("/api/resume-builder/message", json={"message": "Ana Silva"}, headers=headers).json()
        assert (body["step"], body["sub_step"]) == ("personal", "email")

        body = client.post("/api/resume-builder/message", json={"message": "invalid"}, headers=headers).json()
        assert body["sub_step"] == "email"

        body = client.post("/api/resume-builder/message", json={"message": "ana@x.com"}, headers=headers).json()
        assert body["sub_step"] == "phone"

        preview = client.get("/api/resume-builder/preview", headers=headers).json()
        assert "ana@x.com" in preview["preview"]

    def test_empty_preview(self, client):
        headers = _auth(client)
        preview = client.get("/api/resume-builder/preview", headers=headers).json()
        assert "Seu currículo aparecerá aqui" in preview["preview"]

    def test_finalize_saves_resume(self, client, registry):
        headers = _auth(client)
        _finish_flow(client, headers)
        res = client.post("/api/resume-builder/finalize", json={"title": "Meu CV"}, headers=headers)
        assert res.status_code == 200
        body = res.json()
        assert body["is_complete"] is True
        assert body["progress"] == 100
        assert len(registry) == 0

        resumes = client.get("/api/resume-builder/resumes", headers=headers).json()
        assert [r["title"] for r in resumes] == ["Meu CV"]

        detail = client.get(f"/api/resume-builder/resumes/{body['saved_resume_id']}", headers=headers).json()
        assert detail["resume"]["skills"] == ["Go", "Rust", "Python"]

        stats = client.get("/api/resume-builder/draft/stats", headers=headers).json()
        assert stats["has_active_draft"] is False

    def test_finalize_incomplete_is_rejected(self, client):
        headers = _auth(client)
        client.post("/api/resume-builder/message", json={"message": "Ana Silva"}, headers=headers)
        res = client.post("/api/resume-builder/finalize", json={}, headers=headers)
        assert res.status_code == 400

    def test_finalize_backend_failure_keeps_draft(self, client, monkeypatch):
        headers = _auth(client)
        _finish_flow(client, headers)

        def broken_save(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("db down"))

        monkeypatch.setattr(resume_store, "save_resume", broken_save)
        res = client.post("/api/resume-builder/finalize", json={}, headers=headers)
        assert res.status_code == 502

        session = client.get("/api/resume-builder/session", headers=headers).json()
        assert session["step"] == "review"
        assert session["is_complete"] is False

    def test_saved_resume_management(self, client):
        headers = _auth(client)
        _finish_flow(client, headers)
        resume_id = client.post("/api/resume-builder/finalize", json={"title": "CV"}, headers=headers).json()["saved_resume_id"]

        patched = client.patch(f"/api/resume-builder/resumes/{resume_id}", json={"status": "archived"}, headers=headers)
        assert patched.json()["status"] == "archived"
        bad = client.patch(f"/api/resume-builder/resumes/{resume_id}", json={"status": "lost"}, headers=headers)
        assert bad.status_code == 400

        export = client.get(f"/api/resume-builder/resumes/{resume_id}/export", headers=headers)
        assert export.status_code == 200
        assert "<h1>Ana Silva</h1>" in export.text

        stats = client.get("/api/resume-builder/stats", headers=headers).json()
        assert stats["total_resumes"] == 1
        assert stats["archived_resumes"] == 1
        assert stats["total_downloads"] == 1

        assert client.delete(f"/api/resume-builder/resumes/{resume_id}", headers=headers).status_code == 204
        assert client.get(f"/api/resume-builder/resumes/{resume_id}", headers=headers).status_code == 404

    def test_other_users_resumes_hidden(self, client):
        headers = _auth(client)
        _finish_flow(client, headers)
        resume_id = client.post("/api/resume-builder/finalize", json={}, headers=headers).json()["saved_resume_id"]

        other = _auth(client, "bruno@x.com")
        assert client.get(f"/api/resume-builder/resumes/{resume_id}", headers=other).status_code == 404

    def test_draft_stats_include_pending_save(self, client):
        headers = _auth(client)
        client.post("/api/resume-builder/message", json={"message": "Ana Silva"}, headers=headers)
        stats = client.get("/api/resume-builder/draft/stats", headers=headers).json()
        assert stats["has_active_draft"] is True
        assert stats["current_step"] == "Informações Pessoais"

    def test_discard_draft(self, client):
        headers = _auth(client)
        client.post("/api/resume-builder/message", json={"message": "Ana Silva"}, headers=headers)
        assert client.delete("/api/resume-builder/draft", headers=headers).status_code == 200
        body = client.get("/api/resume-builder/session", headers=headers).json()
        assert body["step"] == "intro"


class TestInterview:

    def test_full_interview(self, client, interviews):
        headers = _auth(client)
        res = client.post("/api/interview/start", json={"total_questions": 1}, headers=headers)
        assert res.status_code == 200
        assert res.json()["phase"] == "interview"

        question = client.post("/api/interview/question", headers=headers).json()
        assert question["entries"][0]["is_question"] is True

        answer = client.post("/api/interview/answer", json={"answer": "É o laço de eventos."}, headers=headers).json()
        assert answer["phase"] == "complete"
        assert answer["average_score"] == 6
        assert "Entrevista Concluída" in answer["entries"][-1]["text"]
        assert len(interviews) == 0
        assert client.get("/api/interview/session", headers=headers).status_code == 404

    def test_answer_before_question(self, client):
        headers = _auth(client)
        client.post("/api/interview/start", json={}, headers=headers)
        res = client.post("/api/interview/answer", json={"answer": "oi"}, headers=headers)
        assert res.status_code == 400

    def test_remote_failure_is_502(self, client):
        headers = _auth(client)
        client.post("/api/interview/start", json={}, headers=headers)
        app.dependency_overrides[get_completer] = lambda: failing_complete
        res = client.post("/api/interview/question", headers=headers)
        assert res.status_code == 502
        session = client.get("/api/interview/session", headers=headers).json()
        assert session["current_question"] == 0
        assert len(session["entries"]) == 1

    def test_session_restored_from_draft(self, client, interviews):
        headers = _auth(client)
        client.post("/api/interview/start", json={}, headers=headers)
        client.post("/api/interview/question", headers=headers)
        interviews.pop(client.get("/api/auth/me", headers=headers).json()["id"])
        session = client.get("/api/interview/session", headers=headers).json()
        assert len(session["entries"]) == 2

        assert client.delete("/api/interview/session", headers=headers).status_code == 200
        assert client.get("/api/interview/session", headers=headers).status_code == 404


class TestPreferencesAndHealth:

    def test_onboarding_flag(self, client):
        headers = _auth(client)
        assert client.get("/api/preferences/onboarding", headers=headers).json() == {"seen": False}
        client.post("/api/preferences/onboarding/seen", headers=headers)
        assert client.get("/api/preferences/onboarding", headers=headers).json() == {"seen": True}

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"
        assert client.get("/api/health/ai").json()["status"] == "unconfigured"
