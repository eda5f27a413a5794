# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Planning Service: service layer, schedule stores, HTTP API.
"""

import json
import logging
from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from telework_planner.core.config import settings
from telework_planner.core.dependencies import (
    get_announcement_repo,
    get_history_repo,
    get_schedule_repo,
)
from telework_planner.core.logging import JSONFormatter
from telework_planner.core.roster import DEFAULT_ROSTER, build_roster
from telework_planner.main import app
from telework_planner.middleware import normalize_path
from telework_planner.repositories.history_repository import HistoryRepository
from telework_planner.repositories.schedule_repository import (
    InMemoryScheduleRepository,
    ScheduleStoreError,
)
from telework_planner.repositories.sql_schedule_repository import SqlScheduleRepository
from telework_planner.services.calendar_math import WeekIdentity
from telework_planner.services.notification_client import NotificationClient
from telework_planner.services.planning_service import (
    NO_PERSON,
    PlanningService,
    build_week_schedule,
    next_timestamp,
    week_range,
)

client = TestClient(app)

WEDNESDAY_WEEK_10 = date(2024, 3, 6)


def _service(repo=None, today=WEDNESDAY_WEEK_10, notifications=None):
    return PlanningService(
        schedule_repo=repo if repo is not None else InMemoryScheduleRepository(),
        history_repo=HistoryRepository(),
        notification_client=notifications or NotificationClient(enabled=False),
        roster=build_roster(DEFAULT_ROSTER),
        today_provider=lambda: today,
    )


def _remote_names(schedule):
    return {d["personName"] for d in schedule["days"] if d["isRemote"]}


class FailingRepository(InMemoryScheduleRepository):
    """Store whose reads fail for the given keys (all keys when empty)."""

    def __init__(self, failing_keys=()):
        super().__init__()
        self._failing = set(failing_keys)

    def get(self, year, week_number):
        key = WeekIdentity(year, week_number).key
        if not self._failing or key in self._failing:
            raise ScheduleStoreError(f"cannot read {key}")
        return super().get(year, week_number)


class ReadOnlyRepository(InMemoryScheduleRepository):
    """Store that serves reads but rejects writes once locked."""

    def __init__(self):
        super().__init__()
        self.locked = False

    def put(self, schedule):
        if self.locked:
            raise ScheduleStoreError("store is read-only")
        super().put(schedule)


class UncountableRepository(InMemoryScheduleRepository):
    """Store that saves documents but cannot count them."""

    def count(self):
        raise ScheduleStoreError("count unavailable")


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Reset the application singletons before each test."""
    get_schedule_repo().clear_all()
    get_history_repo().clear()
    get_announcement_repo().clear()
    with patch("telework_planner.services.notification_client.httpx.Client") as mock_client:
        mock_client.return_value.__enter__.return_value.post.return_value = MagicMock(status_code=200)
        yield mock_client


# ============================================
# Read-through generation
# ============================================
class TestGetOrGenerate:
    def test_resolves_current_week(self):
        schedule = _service().get_or_generate_schedule(0)
        assert schedule["year"] == 2024
        assert schedule["weekNumber"] == 10
        assert schedule["weekType"] == "PAIR"

    def test_five_labelled_days(self):
        schedule = _service().get_or_generate_schedule(0)
        assert [d["dayName"] for d in schedule["days"]] == [
            "Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi",
        ]
        assert schedule["days"][0]["date"] == "2024-03-04T00:00:00"
        assert schedule["days"][4]["date"] == "2024-03-08T00:00:00"

    def test_monday_and_friday_never_remote(self):
        service = _service()
        for offset in range(-10, 30):
            schedule = service.get_or_generate_schedule(offset)
            assert schedule["days"][0]["isRemote"] is False
            assert schedule["days"][4]["isRemote"] is False
            assert schedule["days"][0]["personName"] == NO_PERSON

    def test_is_remote_matches_person(self):
        schedule = _service().get_or_generate_schedule(0)
        for day in schedule["days"]:
            assert day["isRemote"] == (day["personName"] != NO_PERSON)

    def test_week_10_has_three_remote_days(self):
        schedule = _service().get_or_generate_schedule(0)
        assert len(_remote_names(schedule)) == 3
        placeholders = {"Place réservée", "Place réservée 2"}
        assert len(_remote_names(schedule) & placeholders) <= 1

    def test_idempotent_read_through(self):
        service = _service()
        first = service.get_or_generate_schedule(0)
        second = service.get_or_generate_schedule(0)
        assert first == second

    def test_persisted_under_week_key(self):
        repo = InMemoryScheduleRepository()
        _service(repo).get_or_generate_schedule(0)
        assert repo.count() == 1
        assert repo.get(2024, 10)["weekNumber"] == 10

    def test_next_week_excludes_this_weeks_people(self):
        service = _service()
        this_week = service.get_or_generate_schedule(0)
        next_week = service.get_or_generate_schedule(1)
        assert next_week["weekNumber"] == 11
        assert not _remote_names(this_week) & _remote_names(next_week)

    def test_year_boundary(self):
        service = _service(today=date(2024, 12, 31))
        schedule = service.get_or_generate_schedule(0)
        assert (schedule["year"], schedule["weekNumber"]) == (2025, 1)
        assert schedule["days"][0]["date"].startswith("2024-12-30")
        assert schedule["weekType"] == "IMPAIR"

    def test_negative_offset(self):
        schedule = _service().get_or_generate_schedule(-10)
        assert (schedule["year"], schedule["weekNumber"]) == (2023, 52)

    def test_generation_recorded_in_history(self):
        service = _service()
        service.get_or_generate_schedule(0)
        service.get_or_generate_schedule(0)
        assert service.get_stats()["event_types"] == {"schedule_generated": 1}

    def test_store_failure_propagates(self):
        service = _service(FailingRepository())
        with pytest.raises(ScheduleStoreError):
            service.get_or_generate_schedule(0)

    def test_unreadable_previous_week_means_no_exclusions(self):
        repo = FailingRepository({"schedules/2024/week9"})
        schedule = _service(repo).get_or_generate_schedule(0)
        assert schedule["weekNumber"] == 10
        assert repo.count() == 1

    def test_generation_logged_with_week_key(self):
        with patch("telework_planner.services.planning_service.logger") as mock_logger:
            _service().get_or_generate_schedule(0)
        assert mock_logger.info.call_args.kwargs["extra"] == {"week_key": "schedules/2024/week10"}


class TestStoreWriteFailures:
    def test_generation_fails_when_store_rejects_write(self):
        repo = ReadOnlyRepository()
        repo.locked = True
        service = _service(repo)
        with pytest.raises(ScheduleStoreError):
            service.get_or_generate_schedule(0)
        assert repo.count() == 0
        assert service.get_stats()["event_types"] == {}

    def test_override_fails_without_side_effects(self):
        repo = ReadOnlyRepository()
        with patch("telework_planner.services.notification_client.httpx.Client") as mock_client:
            service = _service(repo, notifications=NotificationClient(enabled=True))
            schedule = service.get_or_generate_schedule(0)
            repo.locked = True
            with pytest.raises(ScheduleStoreError):
                service.update_day_person(schedule, 1, "Maurice")
            mock_client.assert_not_called()
        assert service.get_stats()["event_types"] == {"schedule_generated": 1}
        assert repo.get(2024, 10) == schedule

    def test_count_failure_after_save_is_not_fatal(self):
        repo = UncountableRepository()
        schedule = _service(repo).get_or_generate_schedule(0)
        assert repo.get(2024, 10) == schedule


class TestRosterFallback:
    def test_fallback_recorded(self):
        roster = build_roster([
            {"id": "a", "display_name": "Alice"},
            {"id": "b", "display_name": "Bob"},
            {"id": "c", "display_name": "Chloé"},
            {"id": "d", "display_name": "Denis"},
        ])
        history = HistoryRepository()
        service = PlanningService(
            schedule_repo=InMemoryScheduleRepository(),
            history_repo=history,
            notification_client=NotificationClient(enabled=False),
            roster=roster,
            today_provider=lambda: WEDNESDAY_WEEK_10,
        )
        service.get_or_generate_schedule(0)
        service.get_or_generate_schedule(1)
        events = history.get_all(event_type="roster_fallback")
        assert len(events) == 1
        assert events[0]["week_key"] == "schedules/2024/week11"
        assert len(events[0]["details"]["excluded"]) == 3


# ============================================
# Manual overrides
# ============================================
class TestUpdateDayPerson:
    def _empty_week(self, service):
        roster = build_roster(DEFAULT_ROSTER)
        schedule = build_week_schedule(WeekIdentity(2024, 10), {}, roster)
        service._schedules.put(schedule)
        return schedule

    def test_set_person_on_empty_tuesday(self):
        service = _service()
        schedule = self._empty_week(service)
        updated = service.update_day_person(schedule, 1, "Maurice")
        assert updated["days"][1]["personName"] == "Maurice"
        assert updated["days"][1]["isRemote"] is True
        assert datetime.fromisoformat(updated["lastUpdated"]) > datetime.fromisoformat(
            schedule["lastUpdated"]
        )

    def test_update_is_persisted(self):
        service = _service()
        schedule = self._empty_week(service)
        service.update_day_person(schedule, 2, "Vincent")
        stored = service.get_schedule(2024, 10)
        assert stored["days"][2]["personName"] == "Vincent"

    def test_input_not_mutated(self):
        service = _service()
        schedule = self._empty_week(service)
        service.update_day_person(schedule, 1, "Maurice")
        assert schedule["days"][1]["personName"] == NO_PERSON

    @pytest.mark.parametrize("value", [None, "", "   ", NO_PERSON])
    def test_clear_day(self, value):
        service = _service()
        schedule = service.get_or_generate_schedule(0)
        remote_index = next(i for i, d in enumerate(schedule["days"]) if d["isRemote"])
        updated = service.update_day_person(schedule, remote_index, value)
        assert updated["days"][remote_index]["personName"] == NO_PERSON
        assert updated["days"][remote_index]["isRemote"] is False

    @pytest.mark.parametrize("index", [-1, 5, 12])
    def test_bad_day_index(self, index):
        service = _service()
        schedule = self._empty_week(service)
        with pytest.raises(ValueError):
            service.update_day_person(schedule, index, "Maurice")

    def test_update_day_unknown_week(self):
        with pytest.raises(KeyError):
            _service().update_day(2030, 5, 1, "Maurice")

    def test_timestamp_strictly_increasing(self):
        future = "2999-01-01T00:00:00+00:00"
        assert next_timestamp(future) > future
        assert next_timestamp("2999-01-01T00:00:00Z") > "2999-01-01T00:00:00"
        assert next_timestamp("not a date")

    def test_override_recorded_and_notified(self):
        with patch("telework_planner.services.notification_client.httpx.Client") as mock_client:
            mock_client.return_value.__enter__.return_value.post.return_value = MagicMock(status_code=200)
            service = _service(notifications=NotificationClient(enabled=True))
            schedule = self._empty_week(service)
            service.update_day_person(schedule, 3, "Gilbert")
            post = mock_client.return_value.__enter__.return_value.post
            assert post.call_count == 1
            assert "Gilbert" in post.call_args.kwargs["json"]["message"]
        events = service._history.get_all(event_type="day_updated")
        assert events[-1]["details"] == {
            "day": "Jeudi", "old_person": NO_PERSON, "new_person": "Gilbert",
        }


# ============================================
# Reset
# ============================================
class TestReset:
    def test_reset_then_regenerate(self):
        service = _service()
        schedule = service.get_or_generate_schedule(0)
        service.update_day_person(schedule, 0, "Maurice")
        result = service.reset_all_schedules()
        assert result == {"status": "reset", "removed": 1}

        fresh = service.get_or_generate_schedule(0)
        assert fresh["days"][0]["isRemote"] is False
        assert service.get_stats()["event_types"]["schedule_generated"] == 2

    def test_reset_empties_store(self):
        repo = InMemoryScheduleRepository()
        service = _service(repo)
        for offset in range(3):
            service.get_or_generate_schedule(offset)
        service.reset_all_schedules()
        assert repo.count() == 0
        with pytest.raises(KeyError):
            service.get_schedule(2024, 10)


# ============================================
# View helpers
# ============================================
class TestWeekView:
    def test_week_range(self):
        schedule = build_week_schedule(WeekIdentity(2024, 10), {}, [])
        assert week_range(schedule) == "04/03/2024 - 08/03/2024"

    def test_holidays_annotated(self):
        view = _service(today=date(2024, 5, 8)).week_view(0)
        holidays = {h["dayName"]: h["holiday"] for h in view["holidays"]}
        assert holidays["Mercredi"]["name"] == "Victoire 1945"
        assert holidays["Jeudi"]["name"] == "Ascension"
        assert holidays["Lundi"] is None
        assert view["week_range"] == "06/05/2024 - 10/05/2024"


# ============================================
# Stores
# ============================================
class TestInMemoryStore:
    def test_get_missing(self):
        assert InMemoryScheduleRepository().get(2024, 1) is None

    def test_returns_copies(self):
        repo = InMemoryScheduleRepository()
        schedule = build_week_schedule(WeekIdentity(2024, 10), {}, [])
        repo.put(schedule)
        loaded = repo.get(2024, 10)
        loaded["days"][1]["personName"] = "changed"
        assert repo.get(2024, 10)["days"][1]["personName"] == NO_PERSON

    def test_subscribe_put_and_reset(self):
        repo = InMemoryScheduleRepository()
        received = []
        cancel = repo.subscribe(2024, 10, received.append)
        repo.put(build_week_schedule(WeekIdentity(2024, 10), {}, []))
        repo.put(build_week_schedule(WeekIdentity(2024, 11), {}, []))
        repo.clear_all()
        assert len(received) == 2
        assert received[0]["weekNumber"] == 10
        assert received[1] is None

        cancel()
        repo.put(build_week_schedule(WeekIdentity(2024, 10), {}, []))
        assert len(received) == 2
        assert repo.listener_count() == 0

    def test_failing_listener_does_not_break_put(self):
        repo = InMemoryScheduleRepository()

        def boom(_):
            raise RuntimeError("listener down")

        repo.subscribe(2024, 10, boom)
        repo.put(build_week_schedule(WeekIdentity(2024, 10), {}, []))
        assert repo.count() == 1


class TestSqlStore:
    @pytest.fixture
    def repo(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'planning.db'}")
        repo = SqlScheduleRepository(engine)
        repo.init_schema()
        return repo

    def test_roundtrip(self, repo):
        schedule = build_week_schedule(WeekIdentity(2024, 10), {"Mardi": "person4"}, build_roster(DEFAULT_ROSTER))
        repo.put(schedule)
        assert repo.get(2024, 10) == schedule
        assert repo.get(2024, 11) is None
        assert repo.count() == 1

    def test_last_write_wins(self, repo):
        schedule = build_week_schedule(WeekIdentity(2024, 10), {}, [])
        repo.put(schedule)
        schedule["days"][2]["personName"] = "Fabien"
        schedule["days"][2]["isRemote"] = True
        repo.put(schedule)
        assert repo.count() == 1
        assert repo.get(2024, 10)["days"][2]["personName"] == "Fabien"

    def test_clear_all_notifies(self, repo):
        received = []
        repo.subscribe(2024, 10, received.append)
        repo.put(build_week_schedule(WeekIdentity(2024, 10), {}, []))
        repo.clear_all()
        assert repo.count() == 0
        assert received[-1] is None

    def test_service_on_sql_store(self, repo):
        service = _service(repo)
        first = service.get_or_generate_schedule(0)
        assert service.get_or_generate_schedule(0) == first

    def test_unreachable_database(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'planning.db'}")
        repo = SqlScheduleRepository(engine)
        with pytest.raises(ScheduleStoreError):
            repo.get(2024, 10)
        with pytest.raises(ScheduleStoreError):
            repo.init_schema()


# ============================================
# Notification client
# ============================================
class TestNotificationClient:
    def test_disabled_client_sends_nothing(self):
        with patch("telework_planner.services.notification_client.httpx.Client") as mock_client:
            NotificationClient(enabled=False).send("hello")
            mock_client.assert_not_called()

    def test_failure_is_swallowed(self):
        with patch("telework_planner.services.notification_client.httpx.Client") as mock_client:
            mock_client.return_value.__enter__.return_value.post.side_effect = Exception("down")
            NotificationClient(enabled=True).send("hello")


# ============================================
# Logging
# ============================================
class TestJSONFormatter:
    def test_week_key_in_log_line(self):
        record = logging.LogRecord(
            "telework_planner.test", logging.INFO, __file__, 1, "Day updated: %s", ("Mardi",), None,
        )
        record.week_key = "schedules/2024/week10"
        line = json.loads(JSONFormatter().format(record))
        assert line["message"] == "Day updated: Mardi"
        assert line["week_key"] == "schedules/2024/week10"
        assert line["service"] == settings.SERVICE_NAME

    def test_week_key_absent_by_default(self):
        record = logging.LogRecord("telework_planner.test", logging.INFO, __file__, 1, "ready", (), None)
        assert "week_key" not in json.loads(JSONFormatter().format(record))


# ============================================
# HTTP API
# ============================================
class TestHealth:
    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["roster_size"] == 6

    def test_readiness(self):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_metrics(self):
        client.get("/api/v1/planning/week")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "planning_schedules_generated_total" in response.text
        assert "planning_requests_total" in response.text

    def test_path_normalization(self):
        assert normalize_path("/api/v1/schedules/2024/10/days/1") == (
            "/api/v1/schedules/{param}/{param}/days/{param}"
        )
        assert normalize_path("/") == "/"


class TestPlanningApi:
    def test_current_week(self):
        response = client.get("/api/v1/planning/week")
        assert response.status_code == 200
        data = response.json()
        assert len(data["days"]) == 5
        assert data["days"][0]["isRemote"] is False
        assert data["days"][4]["isRemote"] is False
        assert data["weekType"] == ("PAIR" if data["weekNumber"] % 2 == 0 else "IMPAIR")

    def test_current_week_is_stable(self):
        first = client.get("/api/v1/planning/week?offset=2").json()
        second = client.get("/api/v1/planning/week?offset=2").json()
        assert first == second

    def test_offset_out_of_range(self):
        assert client.get("/api/v1/planning/week?offset=9999").status_code == 422

    def test_view(self):
        response = client.get("/api/v1/planning/view?offset=1")
        assert response.status_code == 200
        data = response.json()
        assert " - " in data["week_range"]
        assert len(data["holidays"]) == 5

    def test_stored_week_and_404(self):
        week = client.get("/api/v1/planning/week").json()
        response = client.get(f"/api/v1/schedules/{week['year']}/{week['weekNumber']}")
        assert response.status_code == 200
        assert response.json() == week
        assert client.get("/api/v1/schedules/2099/1").status_code == 404

    def test_update_day(self):
        week = client.get("/api/v1/planning/week").json()
        url = f"/api/v1/schedules/{week['year']}/{week['weekNumber']}/days/1"
        response = client.put(url, json={"person_name": "Maurice"})
        assert response.status_code == 200
        data = response.json()
        assert data["days"][1] == {**week["days"][1], "personName": "Maurice", "isRemote": True}
        assert datetime.fromisoformat(data["lastUpdated"]) > datetime.fromisoformat(week["lastUpdated"])

    def test_clear_day(self):
        week = client.get("/api/v1/planning/week").json()
        url = f"/api/v1/schedules/{week['year']}/{week['weekNumber']}/days/2"
        data = client.put(url, json={"person_name": None}).json()
        assert data["days"][2]["personName"] == NO_PERSON
        assert data["days"][2]["isRemote"] is False

    def test_update_bad_index(self):
        week = client.get("/api/v1/planning/week").json()
        url = f"/api/v1/schedules/{week['year']}/{week['weekNumber']}/days/7"
        assert client.put(url, json={"person_name": "Maurice"}).status_code == 400

    def test_update_unknown_week(self):
        response = client.put("/api/v1/schedules/2099/3/days/1", json={"person_name": "Maurice"})
        assert response.status_code == 404

    def test_reset(self):
        week = client.get("/api/v1/planning/week").json()
        response = client.delete("/api/v1/schedules")
        assert response.status_code == 200
        assert response.json() == {"status": "reset", "removed": 1}
        assert client.get(f"/api/v1/schedules/{week['year']}/{week['weekNumber']}").status_code == 404

    def test_history(self):
        client.get("/api/v1/planning/week")
        client.delete("/api/v1/schedules")
        response = client.get("/api/v1/planning/history")
        assert [e["event_type"] for e in response.json()] == ["schedule_generated", "schedules_reset"]
        filtered = client.get("/api/v1/planning/history?event_type=schedules_reset").json()
        assert len(filtered) == 1

    def test_stats(self):
        client.get("/api/v1/planning/week")
        data = client.get("/api/v1/planning/stats").json()
        assert data["stored_schedules"] == 1
        assert data["active_placeholders"] == 2

    def test_roster(self):
        data = client.get("/api/v1/roster").json()
        assert len(data) == 6
        assert {m["kind"] for m in data} == {"person", "placeholder"}

    def test_holidays(self):
        data = client.get("/api/v1/holidays/2025").json()
        assert {"date": "2025-04-21", "name": "Lundi de Pâques", "emoji": "🐣", "is_fixed": False} in data

    def test_store_unavailable_returns_503(self):
        with patch.object(get_schedule_repo(), "get", side_effect=ScheduleStoreError("down")):
            response = client.get("/api/v1/planning/week")
        assert response.status_code == 503

    def test_update_day_store_unavailable_returns_503(self):
        week = client.get("/api/v1/planning/week").json()
        url = f"/api/v1/schedules/{week['year']}/{week['weekNumber']}/days/1"
        with patch.object(get_schedule_repo(), "put", side_effect=ScheduleStoreError("down")):
            response = client.put(url, json={"person_name": "Maurice"})
        assert response.status_code == 503
        assert response.json()["detail"] == "Schedule store unavailable, retry later"
        events = client.get("/api/v1/planning/history?event_type=day_updated").json()
        assert events == []


class TestAnnouncementsApi:
    def _create(self, **overrides):
        payload = {"content": "Réunion d'équipe", "author": "Loïc", "year": 2024}
        payload.update(overrides)
        return client.post("/api/v1/announcements", json=payload)

    def test_create_pinned(self):
        response = self._create()
        assert response.status_code == 201
        data = response.json()
        assert data["display_type"] == "pinned"
        assert data["id"]

    def test_week_filtering(self):
        self._create(content="always")
        self._create(content="week 10", display_type="specific-week", specific_week=10)
        self._create(content="weeks 8-12", display_type="week-range", start_week=8, end_week=12)
        self._create(content="other year", display_type="specific-week", specific_week=10, year=2025)

        week_10 = client.get("/api/v1/announcements?week=10&year=2024").json()
        assert {a["content"] for a in week_10} == {"always", "week 10", "weeks 8-12"}
        week_13 = client.get("/api/v1/announcements?week=13&year=2024").json()
        assert [a["content"] for a in week_13] == ["always"]
        assert len(client.get("/api/v1/announcements").json()) == 4

    def test_newest_first(self):
        self._create(content="first")
        self._create(content="second")
        data = client.get("/api/v1/announcements").json()
        assert data[0]["timestamp"] >= data[1]["timestamp"]

    def test_invalid_range(self):
        response = self._create(display_type="week-range", start_week=12, end_week=8)
        assert response.status_code == 400

    def test_specific_week_required(self):
        assert self._create(display_type="specific-week").status_code == 400

    def test_unknown_display_type(self):
        assert self._create(display_type="banner").status_code == 422

    def test_week_without_year(self):
        assert client.get("/api/v1/announcements?week=3").status_code == 400

    def test_delete(self):
        announcement_id = self._create().json()["id"]
        assert client.delete(f"/api/v1/announcements/{announcement_id}").status_code == 200
        assert client.delete(f"/api/v1/announcements/{announcement_id}").status_code == 404
