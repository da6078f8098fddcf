"""Tests for engine initialization and the transactional session scope."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.models import Category


@pytest.fixture
def engine():
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


def _category_count() -> int:
    with session_scope() as session:
        return session.scalar(select(func.count()).select_from(Category))


class TestEngine:
    def test_uninitialized(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()

    def test_sqlite_uses_single_shared_connection(self, engine):
        assert get_engine() is engine
        assert isinstance(engine.pool, StaticPool)


class TestSessionScope:
    def test_commits_on_success(self, engine):
        with session_scope() as session:
            session.add(Category(name="Travel", type="expense", color="#123456"))
        assert _category_count() == 1

    def test_rolls_back_on_error(self, engine):
        with pytest.raises(ValueError):
            with session_scope() as session:
                session.add(Category(name="Travel", type="expense", color="#123456"))
                session.flush()
                raise ValueError("abort")
        assert _category_count() == 0
