"""
Pytest fixtures for Lyceum tests.

Each test gets its own temporary SQLite file so sessions opened by services,
by the API and by the test itself all see the same database.
"""

import os
import tempfile
import uuid
from types import SimpleNamespace
from typing import AsyncGenerator, Optional

# Point the app at SQLite before anything imports lyceum.database
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp.name}"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from lyceum.config import get_settings  # noqa: E402

get_settings.cache_clear()

from lyceum.kernel.models import (  # noqa: E402
    Base,
    Lecture,
    LecturePrerequisite,
    PhilosophicalEntity,
    PhilosophicalRelation,
    Progress,
    User,
    UserRole,
    WorkflowStatus,
)


@pytest_asyncio.fixture
async def db_engine():
    """Fresh SQLite file with all tables."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{path}",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()
    os.unlink(path)


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory: insert a learner, return its id."""

    async def _make(name: str = "Test Learner") -> uuid.UUID:
        user = User(
            id=uuid.uuid4(),
            email=f"{uuid.uuid4().hex[:10]}@example.com",
            full_name=name,
            role=UserRole.STUDENT,
        )
        db_session.add(user)
        await db_session.commit()
        return user.id

    return _make


@pytest.fixture
def make_lecture(db_session: AsyncSession):
    """Factory: insert a lecture, return its id."""

    async def _make(title: str, category: str = "Ancient", order: int = 0) -> uuid.UUID:
        lecture = Lecture(
            id=uuid.uuid4(),
            title=title,
            description="",
            lecturer_name="",
            content_url="",
            category=category,
            order=order,
        )
        db_session.add(lecture)
        await db_session.commit()
        return lecture.id

    return _make


@pytest.fixture
def make_edge(db_session: AsyncSession):
    """Factory: insert a prerequisite row directly, bypassing all checks."""

    async def _make(lecture_id: uuid.UUID, prerequisite_id: uuid.UUID, required: bool = True, importance: int = 3) -> uuid.UUID:
        row = LecturePrerequisite(
            id=uuid.uuid4(),
            lecture_id=lecture_id,
            prerequisite_lecture_id=prerequisite_id,
            is_required=required,
            importance_level=importance,
        )
        db_session.add(row)
        await db_session.commit()
        return row.id

    return _make


@pytest.fixture
def make_entity(db_session: AsyncSession):
    """Factory: insert a philosophical entity, return its id."""

    async def _make(name: str, entity_type: str = "PhilosophicalConcept", start_year: Optional[int] = None) -> uuid.UUID:
        entity = PhilosophicalEntity(
            id=uuid.uuid4(),
            type=entity_type,
            name=name,
            description="",
            start_year=start_year,
        )
        db_session.add(entity)
        await db_session.commit()
        return entity.id

    return _make


@pytest.fixture
def make_relation(db_session: AsyncSession):
    """Factory: insert a relation directly, bypassing the cycle check."""

    async def _make(source_id: uuid.UUID, target_id: uuid.UUID, types=("HIERARCHICAL",)) -> uuid.UUID:
        relation = PhilosophicalRelation(
            id=uuid.uuid4(),
            source_entity_id=source_id,
            target_entity_id=target_id,
            relation_types=list(types),
            importance=3,
        )
        db_session.add(relation)
        await db_session.commit()
        return relation.id

    return _make


@pytest.fixture
def set_status(db_session: AsyncSession):
    """Factory: put a learner's progress on a lecture at a given status."""

    async def _set(user_id: uuid.UUID, lecture_id: uuid.UUID, status: WorkflowStatus) -> None:
        db_session.add(
            Progress(
                id=uuid.uuid4(),
                user_id=user_id,
                lecture_id=lecture_id,
                status=status,
                last_viewed=None,
                completed_at=None,
                last_mastery_score=None,
            )
        )
        await db_session.commit()

    return _set


@pytest_asyncio.fixture
async def philosophy(make_user, make_lecture, make_edge) -> SimpleNamespace:
    """
    Plato (no prerequisites), Aristotle requires Plato, Augustine requires
    Aristotle. One learner with no progress yet.
    """
    plato = await make_lecture("Plato", "Ancient", 1)
    aristotle = await make_lecture("Aristotle", "Ancient", 2)
    augustine = await make_lecture("Augustine", "Medieval", 1)
    await make_edge(aristotle, plato)
    await make_edge(augustine, aristotle)
    learner = await make_user()
    return SimpleNamespace(plato=plato, aristotle=aristotle, augustine=augustine, learner=learner)


def pytest_sessionfinish(session, exitstatus):
    """Remove the placeholder database file."""
    try:
        os.unlink(_tmp.name)
    except OSError:
        pass
