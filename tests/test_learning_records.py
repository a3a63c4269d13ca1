from datetime import datetime
from unittest.mock import MagicMock

import pytest

from conftest import bearer
from academy.application.use_cases.exercises import ExerciseSubmissions
from academy.application.use_cases.learning_state import LearningStateLog
from academy.domain.entities import SubmissionStatus
from academy.domain.errors import InvalidTransition
from academy.infrastructure.repositories import LearningStateRepository, SubmissionRepository


# --- notes

def test_note_replace_on_write(client, auth_headers):
    url = "/api/notes/01-introduction/01-what-is-agentcore"
    assert client.get(url, headers=auth_headers).status_code == 404

    response = client.put(url, json={"content": "first draft"}, headers=auth_headers)
    assert response.status_code == 200
    client.put(url, json={"content": "rewritten"}, headers=auth_headers)

    data = client.get(url, headers=auth_headers).json()
    assert data["content"] == "rewritten"
    assert len(client.get("/api/notes/01-introduction", headers=auth_headers).json()) == 1


def test_notes_listed_per_module(client, auth_headers):
    client.put("/api/notes/01-introduction/02-architecture-overview", json={"content": "b"}, headers=auth_headers)
    client.put("/api/notes/01-introduction/01-what-is-agentcore", json={"content": "a"}, headers=auth_headers)
    client.put("/api/notes/02-core-services/01-service-overview", json={"content": "c"}, headers=auth_headers)

    notes = client.get("/api/notes/01-introduction", headers=auth_headers).json()
    assert [n["lesson_id"] for n in notes] == ["01-what-is-agentcore", "02-architecture-overview"]


def test_notes_are_private(client, auth_headers):
    url = "/api/notes/01-introduction/01-what-is-agentcore"
    client.put(url, json={"content": "mine"}, headers=auth_headers)
    assert client.get(url, headers=bearer("user-7")).status_code == 404


def test_notes_unauthorized(client):
    assert client.get("/api/notes/01-introduction").status_code == 403


# --- learning state

def test_learning_state_defaults_empty(client, auth_headers):
    data = client.get("/api/learning-state/01-introduction", headers=auth_headers).json()
    assert data == {"module_id": "01-introduction", "last_context": None,
                    "topics_explained": [], "identified_gaps": []}


def test_learning_state_appends(client, auth_headers):
    url = "/api/learning-state/01-introduction"
    client.put(url, json={"last_context": "covered runtime", "topics_explained": ["runtime"],
                          "identified_gaps": ["iam"]}, headers=auth_headers)
    response = client.put(url, json={"topics_explained": ["runtime", "memory"],
                                     "identified_gaps": ["sessions"]}, headers=auth_headers)
    data = response.json()
    assert data["topics_explained"] == ["runtime", "memory"]
    assert data["identified_gaps"] == ["iam", "sessions"]
    assert data["last_context"] == "covered runtime"


def test_learning_state_log_unit(db):
    log = LearningStateLog(LearningStateRepository(db, "user-42"))
    log.record("m1", "ctx", topics=["a", "b"])
    state = log.record("m1", topics=["b", "c", ""], gaps=["x"])
    assert state.topics_explained == ["a", "b", "c"]
    assert state.identified_gaps == ["x"]
    assert state.last_context == "ctx"


# --- exercises

def test_get_exercise_definition(client):
    response = client.get("/api/exercises/01-introduction")
    assert response.status_code == 200
    assert response.json()["exerciseId"] == "design-an-agent"
    assert client.get("/api/exercises/99-missing").status_code == 404


def test_draft_then_submit(client, auth_headers):
    base = "/api/exercises/01-introduction/design-an-agent"
    draft = client.put(f"{base}/draft", json={"form_data": {"useCase": "orders"}}, headers=auth_headers)
    assert draft.status_code == 200
    assert draft.json()["status"] == "DRAFT"
    assert draft.json()["submitted_at"] is None

    submitted = client.post(f"{base}/submit", json={"form_data": {"useCase": "orders", "services": ["runtime"]}},
                            headers=auth_headers)
    assert submitted.status_code == 201
    data = submitted.json()
    assert data["status"] == "SUBMITTED"
    assert data["submitted_at"] is not None
    assert data["form_data"]["services"] == ["runtime"]

    stored = client.get(f"{base}/submission", headers=auth_headers).json()
    assert stored["status"] == "SUBMITTED"


def test_draft_after_submit_conflicts(client, auth_headers):
    base = "/api/exercises/01-introduction/design-an-agent"
    client.post(f"{base}/submit", json={"form_data": {}}, headers=auth_headers)
    response = client.put(f"{base}/draft", json={"form_data": {"useCase": "late"}}, headers=auth_headers)
    assert response.status_code == 409


def test_submission_not_found(client, auth_headers):
    response = client.get("/api/exercises/01-introduction/design-an-agent/submission", headers=auth_headers)
    assert response.status_code == 404


def test_submissions_refresh_updated_at(db):
    ticks = iter(range(1, 10))
    clock = lambda: datetime(2025, 12, 4, 12, next(ticks))
    submissions = ExerciseSubmissions(SubmissionRepository(db, "user-42"), clock=clock)

    first = submissions.save_draft("m1", "ex1", {"a": 1})
    second = submissions.save_draft("m1", "ex1", {"a": 2})
    assert second.updated_at > first.updated_at
    assert second.id == first.id

    done = submissions.submit("m1", "ex1", {"a": 3})
    resubmitted = submissions.submit("m1", "ex1", {"a": 4})
    assert done.status is SubmissionStatus.SUBMITTED
    assert resubmitted.submitted_at == done.submitted_at
    assert resubmitted.updated_at > done.updated_at

    with pytest.raises(InvalidTransition):
        submissions.save_draft("m1", "ex1", {"a": 5})


def test_submission_never_goes_back_to_draft():
    repo = MagicMock()
    repo.get.return_value = MagicMock(status=SubmissionStatus.SUBMITTED)
    with pytest.raises(InvalidTransition):
        ExerciseSubmissions(repo).save_draft("m1", "ex1", {})
    repo.put.assert_not_called()
