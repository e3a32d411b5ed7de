# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the enrollment window service."""

import logging
import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import Insert, Select, Update
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from src.domains.access.capability import Capability
from src.domains.access.mediator import AccessDecision
from src.domains.enrollment.service import (
    INSERT_CHUNK_SIZE,
    EnrollmentWindowService,
    resolve_window_status,
)
from src.domains.errors import (
    ConflictError,
    NoActiveWindowError,
    NotFoundError,
    TransientStorageError,
    UnauthorizedError,
    WindowValidationError,
)
from src.infrastructure.database.models import EnrollmentWindow
from src.models.enrollment import EnrollmentWindowCreateRequest, WindowStatus
from src.utils.datetime import utc_now

_MULTI_VALUE_KEY = re.compile(r"^(?P<column>.+)_m(?P<row>\d+)$")


def _rows(stmt) -> list[dict[str, Any]]:
    """Decode the rows of a multi-row INSERT from its compiled parameters."""
    params = stmt.compile(dialect=postgresql.dialect()).params
    rows: dict[int, dict[str, Any]] = defaultdict(dict)
    for key, value in params.items():
        match = _MULTI_VALUE_KEY.match(key)
        if match:
            rows[int(match["row"])][match["column"]] = value
        else:
            rows[0][key] = value
    return [rows[i] for i in sorted(rows)]


def _alerts(db) -> list[dict[str, Any]]:
    """Parameters of every notification INSERT the session executed."""
    return [
        call.args[0].compile(dialect=postgresql.dialect()).params
        for call in db.execute.call_args_list
        if isinstance(call.args[0], Insert) and call.args[0].table.name == "notifications"
    ]


def _window(status: str = "scheduled", opens_delta: int = -1, closes_delta: int = 1) -> EnrollmentWindow:
    now = utc_now()
    return EnrollmentWindow(
        id="win-1",
        class_id="class-1",
        academic_year_id="year-1",
        institution_id="550e8400-e29b-41d4-a716-446655440000",
        opens_at=now + timedelta(days=opens_delta),
        closes_at=now + timedelta(days=closes_delta),
        status=status,
    )


class FakeEnrollmentStore:
    """In-memory enrollment window and student_course_enrollments tables."""

    def __init__(self, window: EnrollmentWindow | None) -> None:
        self.window = window
        self.enrolled: set[tuple[str, str, str]] = set()
        self.inserts = 0

    async def execute(self, stmt, *args):
        result = MagicMock()
        if isinstance(stmt, Select):
            result.scalar_one_or_none.return_value = self.window
            return result
        if isinstance(stmt, Insert):
            self.inserts += 1
            inserted = []
            for row in _rows(stmt):
                key = (row["student_profile_id"], row["class_course_id"], row["window_id"])
                if key not in self.enrolled:
                    self.enrolled.add(key)
                    inserted.append(row["id"])
            result.scalars.return_value.all.return_value = inserted
            return result
        raise AssertionError(f"unexpected statement {stmt!r}")


@pytest.fixture
def roster() -> AsyncMock:
    """Roster provider with three students."""
    roster = AsyncMock()
    roster.list_students.return_value = ["s-1", "s-2", "s-3"]
    return roster


def _decision(actor, class_course_ids=("cc-1",), capability=Capability.OWNER) -> AccessDecision:
    return AccessDecision(
        actor=actor,
        capability=capability,
        resources={cc: capability for cc in class_course_ids},
    )


class TestResolveWindowStatus:
    """Tests for effective window status."""

    def test_before_opening_is_scheduled(self) -> None:
        assert resolve_window_status(_window(opens_delta=1, closes_delta=2)) is WindowStatus.SCHEDULED

    def test_within_bounds_is_open(self) -> None:
        assert resolve_window_status(_window()) is WindowStatus.OPEN

    def test_after_closing_is_closed(self) -> None:
        assert resolve_window_status(_window(opens_delta=-2, closes_delta=-1)) is WindowStatus.CLOSED

    def test_force_closed_stays_closed(self) -> None:
        assert resolve_window_status(_window(status="closed")) is WindowStatus.CLOSED

    def test_naive_reference_time_treated_as_utc(self) -> None:
        window = _window()
        naive_now = datetime.now(timezone.utc).replace(tzinfo=None)

        assert resolve_window_status(window, naive_now) is WindowStatus.OPEN


class TestAutoEnroll:
    """Tests for cohort auto-enrollment."""

    @pytest.mark.asyncio
    async def test_second_run_creates_nothing(self, teacher, roster) -> None:
        store = FakeEnrollmentStore(_window())
        db = AsyncMock()
        db.execute.side_effect = store.execute
        service = EnrollmentWindowService(db, roster=roster, timeout=1.0)
        decision = _decision(teacher)

        first = await service.auto_enroll("class-1", "year-1", decision)
        second = await service.auto_enroll("class-1", "year-1", decision)

        assert (first.created, first.skipped) == (3, 0)
        assert (second.created, second.skipped) == (0, 3)
        assert first.window_id == "win-1"
        assert db.commit.call_count == 2

    @pytest.mark.asyncio
    async def test_pairs_every_student_with_every_class_course(self, administrator, roster) -> None:
        store = FakeEnrollmentStore(_window())
        db = AsyncMock()
        db.execute.side_effect = store.execute
        service = EnrollmentWindowService(db, roster=roster)

        result = await service.auto_enroll(
            "class-1",
            "year-1",
            _decision(administrator, ("cc-1", "cc-2"), Capability.DELEGATE),
        )

        assert result.created == 6
        assert result.class_course_ids == ["cc-1", "cc-2"]
        assert ("s-2", "cc-2", "win-1") in store.enrolled

    @pytest.mark.asyncio
    async def test_new_student_only_adds_missing_pairs(self, teacher, roster) -> None:
        store = FakeEnrollmentStore(_window())
        db = AsyncMock()
        db.execute.side_effect = store.execute
        service = EnrollmentWindowService(db, roster=roster)
        await service.auto_enroll("class-1", "year-1", _decision(teacher))

        roster.list_students.return_value = ["s-1", "s-2", "s-3", "s-4"]
        result = await service.auto_enroll("class-1", "year-1", _decision(teacher))

        assert (result.created, result.skipped) == (1, 3)

    @pytest.mark.asyncio
    async def test_large_roster_is_chunked(self, teacher, roster) -> None:
        store = FakeEnrollmentStore(_window())
        db = AsyncMock()
        db.execute.side_effect = store.execute
        roster.list_students.return_value = [f"s-{i}" for i in range(INSERT_CHUNK_SIZE + 1)]
        service = EnrollmentWindowService(db, roster=roster)

        result = await service.auto_enroll("class-1", "year-1", _decision(teacher))

        assert result.created == INSERT_CHUNK_SIZE + 1
        assert store.inserts == 2
        db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_window(self, teacher, roster, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=None)]
        service = EnrollmentWindowService(mock_db, roster=roster)

        with pytest.raises(NoActiveWindowError):
            await service.auto_enroll("class-1", "year-1", _decision(teacher))

        roster.list_students.assert_not_called()

    @pytest.mark.parametrize(
        "window",
        [
            _window(status="closed"),
            _window(opens_delta=1, closes_delta=2),
            _window(opens_delta=-2, closes_delta=-1),
        ],
    )
    @pytest.mark.asyncio
    async def test_window_not_open(self, window, teacher, roster, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=window)]
        service = EnrollmentWindowService(mock_db, roster=roster)

        with pytest.raises(NoActiveWindowError) as exc_info:
            await service.auto_enroll("class-1", "year-1", _decision(teacher))

        assert exc_info.value.http_status == 409
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_roster_writes_nothing(self, teacher, roster, mock_db, make_result) -> None:
        roster.list_students.return_value = []
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=_window())]
        service = EnrollmentWindowService(mock_db, roster=roster)

        result = await service.auto_enroll("class-1", "year-1", _decision(teacher))

        assert (result.created, result.skipped) == (0, 0)
        assert mock_db.execute.call_count == 1

    @pytest.mark.asyncio
    async def test_storage_failure_commits_nothing(self, teacher, roster, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=_window()),
            OperationalError("INSERT", {}, Exception("down")),
        ]
        service = EnrollmentWindowService(mock_db, roster=roster)

        with pytest.raises(TransientStorageError):
            await service.auto_enroll("class-1", "year-1", _decision(teacher))

        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_called_once()


class TestWindowManagement:
    """Tests for scheduling and closing windows."""

    def _request(self, opens_in: int = 1, closes_in: int = 10) -> EnrollmentWindowCreateRequest:
        now = utc_now()
        return EnrollmentWindowCreateRequest(
            class_id="class-1",
            academic_year_id="year-1",
            opens_at=now + timedelta(days=opens_in),
            closes_at=now + timedelta(days=closes_in),
        )

    @pytest.mark.asyncio
    async def test_schedule_window(self, administrator, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none="win-1"), make_result()]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        window = await service.schedule_window(self._request(), administrator)

        assert window.status is WindowStatus.SCHEDULED
        assert window.institution_id == administrator.institution_id
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_schedule_queues_alert_before_commit(self, administrator, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none="win-1"), make_result()]
        executed_at_commit: list[int] = []
        mock_db.commit.side_effect = lambda: executed_at_commit.append(mock_db.execute.call_count)
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        await service.schedule_window(self._request(), administrator)

        alerts = _alerts(mock_db)
        assert [a["type"] for a in alerts] == ["enrollment_scheduled"]
        assert alerts[0]["payload"]["class_id"] == "class-1"
        assert alerts[0]["institution_id"] == administrator.institution_id
        assert executed_at_commit == [2]

    @pytest.mark.asyncio
    async def test_schedule_duplicate_conflicts(self, administrator, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=None)]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with pytest.raises(ConflictError):
            await service.schedule_window(self._request(), administrator)

        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_called_once()
        assert _alerts(mock_db) == []

    @pytest.mark.asyncio
    async def test_schedule_requires_admin(self, teacher, mock_db) -> None:
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with pytest.raises(UnauthorizedError):
            await service.schedule_window(self._request(), teacher)

        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_schedule_rejects_inverted_bounds(self, administrator, mock_db) -> None:
        request = self._request().model_copy(
            update={"closes_at": utc_now() - timedelta(days=1)}
        )
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with pytest.raises(WindowValidationError):
            await service.schedule_window(request, administrator)

    def test_request_model_rejects_inverted_bounds(self) -> None:
        with pytest.raises(ValueError):
            self._request(opens_in=5, closes_in=1)

    @pytest.mark.asyncio
    async def test_close_window(self, administrator, mock_db, make_result) -> None:
        window = _window()
        window.status = "closed"
        window.closed_by_profile_id = "a-1"
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=window), make_result()]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        result = await service.close_window("win-1", administrator)

        assert result.status is WindowStatus.CLOSED
        stmt = mock_db.execute.call_args_list[0][0][0]
        assert isinstance(stmt, Update)
        assert [a["type"] for a in _alerts(mock_db)] == ["enrollment_closed"]
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_logs_closing(self, administrator, mock_db, make_result, caplog) -> None:
        window = _window(status="closed")
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=window), make_result()]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with caplog.at_level(logging.DEBUG, logger="src.domains.enrollment.service"):
            await service.close_window("win-1", administrator)

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Closed enrollment window") for m in messages)
        assert not any("already closed" in m for m in messages)

    @pytest.mark.asyncio
    async def test_close_already_closed_is_idempotent(self, administrator, mock_db, make_result, caplog) -> None:
        window = _window(status="closed")
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=None),
            make_result(scalar_one_or_none=window),
        ]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with caplog.at_level(logging.DEBUG, logger="src.domains.enrollment.service"):
            result = await service.close_window("win-1", administrator)

        assert result.status is WindowStatus.CLOSED
        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_called_once()
        assert _alerts(mock_db) == []
        messages = [r.getMessage() for r in caplog.records]
        assert "Enrollment window already closed: id=win-1" in messages
        assert not any(m.startswith("Closed enrollment window") for m in messages)

    @pytest.mark.asyncio
    async def test_close_missing_window(self, administrator, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=None),
            make_result(scalar_one_or_none=None),
        ]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with pytest.raises(NotFoundError):
            await service.close_window("win-404", administrator)

    @pytest.mark.asyncio
    async def test_list_windows_reports_effective_status(self, administrator, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [
            make_result(scalars=[_window(), _window(opens_delta=3, closes_delta=4)])
        ]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        windows = await service.list_windows(administrator.institution_id)

        assert [w.status for w in windows] == [WindowStatus.OPEN, WindowStatus.SCHEDULED]

    @pytest.mark.asyncio
    async def test_get_missing_window(self, mock_db, make_result) -> None:
        mock_db.execute.side_effect = [make_result(scalar_one_or_none=None)]
        service = EnrollmentWindowService(mock_db, roster=AsyncMock())

        with pytest.raises(NotFoundError):
            await service.get_window("win-404", "inst-1")
