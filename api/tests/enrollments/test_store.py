"""Tests for the Cassandra student store (mocked session)."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from scsm.core.exceptions import StorageError
from scsm.enrollments.catalog import SOFT_SKILLS
from scsm.enrollments.models import StudentAccount
from scsm.enrollments.store import CassandraUserStore, emails_match


def result_with(row) -> Mock:
    result = Mock()
    result.one = Mock(return_value=row)
    return result


def student_row(student: StudentAccount) -> SimpleNamespace:
    return SimpleNamespace(
        id=student.id,
        name=student.name,
        email=student.email,
        mobile=student.mobile,
        center_name=student.center_name,
        session_token=student.session_token,
        courses=student.courses_json(),
        legacy=student.legacy_json(),
        created_at=student.created_at,
        updated_at=student.updated_at,
    )


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: Mock(name=cql.strip()[:40]))
    # Make aexecute awaitable (cassandra-asyncio-driver)
    session.aexecute = AsyncMock(return_value=result_with(None))
    return session


@pytest.fixture
def user_store(mock_session) -> CassandraUserStore:
    return CassandraUserStore(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def student() -> StudentAccount:
    now = datetime.now(UTC)
    account = StudentAccount(name="Asha", email="Asha@Example.com", mobile="9876543210")
    account.upsert_entitlement(
        SOFT_SKILLS, order_id="ORDER_1_a", now=now, expiry=now + timedelta(days=20)
    )
    return account


class TestEmailsMatch:
    def test_case_insensitive(self) -> None:
        assert emails_match("Asha@Example.com", " asha@example.com ") is True

    def test_different_email(self) -> None:
        assert emails_match("asha@example.com", "asha@example.org") is False


class TestCassandraUserStoreQueries:
    """Tests for lookups."""

    def test_prepares_statements_with_keyspace(self, user_store, mock_session) -> None:
        prepared = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert all("test_keyspace." in cql for cql in prepared)

    @pytest.mark.asyncio
    async def test_find_by_mobile_missing(self, user_store) -> None:
        assert await user_store.find_by_mobile("9876543210") is None

    @pytest.mark.asyncio
    async def test_find_by_mobile_loads_student(
        self, user_store, mock_session, student
    ) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result_with(SimpleNamespace(student_id=student.id)),
                result_with(student_row(student)),
            ]
        )

        found = await user_store.find_by_mobile(student.mobile)

        assert found is not None
        assert found.id == student.id
        assert found.courses[0].course_id == "fttp"

    @pytest.mark.asyncio
    async def test_find_by_mobile_and_email_checks_email(
        self, user_store, mock_session, student
    ) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result_with(SimpleNamespace(student_id=student.id)),
                result_with(student_row(student)),
            ]
        )

        found = await user_store.find_by_mobile_and_email(
            student.mobile, "someone@else.com"
        )

        assert found is None

    @pytest.mark.asyncio
    async def test_find_by_order_id_ignores_replaced_order(
        self, user_store, mock_session, student
    ) -> None:
        """A stale order lookup row must not resolve to the student."""
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result_with(SimpleNamespace(student_id=student.id)),
                result_with(student_row(student)),
            ]
        )

        assert await user_store.find_by_order_id("ORDER_0_old") is None

    @pytest.mark.asyncio
    async def test_find_by_order_id(self, user_store, mock_session, student) -> None:
        mock_session.aexecute = AsyncMock(
            side_effect=[
                result_with(SimpleNamespace(student_id=student.id)),
                result_with(student_row(student)),
            ]
        )

        found = await user_store.find_by_order_id("ORDER_1_a")

        assert found is not None
        assert found.id == student.id

    @pytest.mark.asyncio
    async def test_driver_error_becomes_storage_error(
        self, user_store, mock_session
    ) -> None:
        mock_session.aexecute = AsyncMock(side_effect=RuntimeError("timeout"))

        with pytest.raises(StorageError) as exc_info:
            await user_store.find_by_id(uuid4())

        assert isinstance(exc_info.value.original_error, RuntimeError)


class TestCassandraUserStoreWrites:
    """Tests for create and save."""

    @pytest.mark.asyncio
    async def test_create_writes_row_and_lookups(
        self, user_store, mock_session, student
    ) -> None:
        await user_store.create(student)

        # student row + mobile lookup + one order lookup
        assert mock_session.aexecute.await_count == 3
        params = [call.args[1] for call in mock_session.aexecute.await_args_list]
        assert params[0][0] == student.id
        assert params[1] == [student.mobile, student.id]
        assert params[2] == ["ORDER_1_a", student.id]

    @pytest.mark.asyncio
    async def test_save_skips_mobile_lookup_and_bumps_updated_at(
        self, user_store, mock_session, student
    ) -> None:
        before = student.updated_at

        await user_store.save(student)

        assert mock_session.aexecute.await_count == 2
        assert student.updated_at >= before

    @pytest.mark.asyncio
    async def test_write_failure_raises_storage_error(
        self, user_store, mock_session, student
    ) -> None:
        mock_session.aexecute = AsyncMock(side_effect=RuntimeError("unavailable"))

        with pytest.raises(StorageError):
            await user_store.save(student)
