from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from academy.application.use_cases.track_progress import ProgressTracker
from academy.domain.entities import ModuleProgress, ModuleStatus
from academy.domain.errors import AuthenticationRequired, InvalidInput, ModuleLocked, RemoteWriteError
from academy.infrastructure.repositories import ProgressRepository


class FakeClock:
    def __init__(self):
        self.now = datetime(2025, 12, 4, 23, 30, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def tracker(db, content):
    return ProgressTracker(ProgressRepository(db, "user-42"), "user-42",
                           content.load_curriculum(), clock=FakeClock())


def test_mark_complete_creates_record(tracker):
    result = tracker.mark_module_complete("01-introduction")
    assert result.status is ModuleStatus.COMPLETED
    assert result.completed_at is not None
    assert result.started_at is not None
    assert result.user_id == "user-42"


def test_mark_complete_is_idempotent(tracker):
    first = tracker.mark_module_complete("01-introduction")
    second = tracker.mark_module_complete("01-introduction")
    assert second.status is ModuleStatus.COMPLETED
    assert second.completed_at == first.completed_at
    assert second.id == first.id


def test_mark_complete_does_not_write_when_already_completed():
    repo = MagicMock()
    repo.get.return_value = ModuleProgress(id="p1", user_id="u", module_id="m",
                                           status=ModuleStatus.COMPLETED,
                                           completed_at=datetime(2025, 1, 1))
    tracker = ProgressTracker(repo, "u")
    tracker.mark_module_complete("m")
    repo.create.assert_not_called()
    repo.update.assert_not_called()


def test_mark_complete_upgrades_in_progress(tracker):
    started = tracker.start_module("01-introduction", "01-what-is-agentcore")
    completed = tracker.mark_module_complete("01-introduction", score=85)
    assert completed.id == started.id
    assert completed.status is ModuleStatus.COMPLETED
    assert completed.started_at == started.started_at
    assert completed.comprehension_checks["final"]["score"] == 85


def test_mark_complete_requires_user(db):
    tracker = ProgressTracker(ProgressRepository(db, None), None)
    with pytest.raises(AuthenticationRequired):
        tracker.mark_module_complete("01-introduction")


def test_mark_complete_rejects_empty_module(tracker):
    with pytest.raises(InvalidInput):
        tracker.mark_module_complete("  ")


def test_mark_complete_surfaces_write_failure():
    repo = MagicMock()
    repo.get.return_value = None
    repo.create.side_effect = RemoteWriteError("backend unavailable")
    tracker = ProgressTracker(repo, "u")
    with pytest.raises(RemoteWriteError):
        tracker.mark_module_complete("m")


def test_refresh_replaces_cache(tracker):
    tracker.progress = {"stale": MagicMock()}
    tracker.mark_module_complete("01-introduction")
    assert "01-introduction" not in tracker.progress

    tracker.refresh_progress()
    assert set(tracker.progress) == {"01-introduction"}
    assert tracker.module_status("01-introduction") is ModuleStatus.COMPLETED


def test_refresh_without_user_empties_cache():
    repo = MagicMock()
    tracker = ProgressTracker(repo, None)
    tracker.progress = {"m": MagicMock()}
    assert tracker.refresh_progress() == {}
    repo.progress_by_user.assert_not_called()


def test_start_module_never_regresses_completed(tracker):
    tracker.mark_module_complete("01-introduction")
    again = tracker.start_module("01-introduction", "01-what-is-agentcore")
    assert again.status is ModuleStatus.COMPLETED
    assert again.current_lesson_id == "01-what-is-agentcore"


def test_start_module_keeps_started_at(tracker):
    first = tracker.start_module("02-core-services", "01-service-overview")
    second = tracker.start_module("02-core-services", "02-runtime-service")
    assert second.started_at == first.started_at
    assert second.current_lesson_id == "02-runtime-service"


def test_update_lesson_tracks_percent(tracker):
    tracker.update_lesson("02-core-services", "02-runtime-service")
    assert tracker.module_status("02-core-services") is ModuleStatus.IN_PROGRESS
    assert tracker.module_progress_percent("02-core-services") == 50


def test_update_lesson_last_lesson_completes_module(tracker):
    result = tracker.update_lesson("01-introduction", "03-key-concepts")
    assert result.status is ModuleStatus.COMPLETED
    assert tracker.module_progress_percent("01-introduction") == 100


def test_toggle_bookmark(tracker):
    tracker.toggle_bookmark("01-introduction", "02-architecture-overview")
    assert tracker.is_lesson_bookmarked("01-introduction", "02-architecture-overview")

    tracker.toggle_bookmark("01-introduction", "02-architecture-overview")
    assert not tracker.is_lesson_bookmarked("01-introduction", "02-architecture-overview")


def test_unknown_module_defaults(tracker):
    assert tracker.module_status("99-missing") is ModuleStatus.NOT_STARTED
    assert tracker.module_progress_percent("99-missing") == 0
    assert not tracker.is_lesson_bookmarked("99-missing", "x")


def test_summary(tracker):
    tracker.mark_module_complete("01-introduction")
    tracker.update_lesson("02-core-services", "01-service-overview")

    summary = tracker.summary()
    assert summary.completed_modules == 1
    assert summary.total_modules == 2
    # (100 + 25) / 2
    assert summary.overall_progress == 63
    assert summary.current_module.id == "02-core-services"
    assert summary.current_module.title == "Core Services"
    assert summary.current_module.progress == 25
    assert summary.unlocked_modules == ["01-introduction", "02-core-services"]


# --- module gating

def test_first_module_is_unlocked(tracker):
    assert tracker.is_module_unlocked("01-introduction")


def test_next_module_locked_until_previous_completed(tracker):
    tracker.start_module("01-introduction", "01-what-is-agentcore")
    tracker.refresh_progress()
    assert not tracker.is_module_unlocked("02-core-services")

    tracker.mark_module_complete("01-introduction")
    tracker.refresh_progress()
    assert tracker.is_module_unlocked("02-core-services")


def test_unknown_module_is_locked(tracker):
    assert not tracker.is_module_unlocked("99-missing")


def test_require_unlocked_refreshes_first(tracker):
    tracker.mark_module_complete("01-introduction")
    assert tracker.progress == {}
    tracker.require_unlocked("02-core-services")


def test_require_unlocked_raises_for_locked_module(tracker):
    with pytest.raises(ModuleLocked):
        tracker.require_unlocked("02-core-services")
    assert tracker.summary().unlocked_modules == ["01-introduction"]


# --- concurrent completion

class StaleFirstRead(ProgressRepository):
    """Answers the first lookup as if another request had not written yet"""
    stale = True

    def get(self, module_id):
        if self.stale:
            self.stale = False
            return None
        return super().get(module_id)


def test_mark_complete_after_losing_insert_race(db):
    winner = ProgressTracker(ProgressRepository(db, "user-42"), "user-42")
    loser = ProgressTracker(StaleFirstRead(db, "user-42"), "user-42")

    first = winner.mark_module_complete("01-introduction", score=90)
    second = loser.mark_module_complete("01-introduction", score=100)

    assert second.status is ModuleStatus.COMPLETED
    assert second.id == first.id
    assert second.completed_at == first.completed_at
    assert second.comprehension_checks["final"]["score"] == 90


def test_insert_race_on_started_module_completes_it(db):
    ProgressTracker(ProgressRepository(db, "user-42"), "user-42").start_module("01-introduction", "l1")
    loser = ProgressTracker(StaleFirstRead(db, "user-42"), "user-42")

    result = loser.mark_module_complete("01-introduction", score=85)
    assert result.status is ModuleStatus.COMPLETED
    assert result.current_lesson_id == "l1"
    assert result.comprehension_checks["final"]["score"] == 85
