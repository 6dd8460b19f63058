from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

import structlog
from sqlalchemy import JSON, Column, DateTime, String, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ..application.interview_session import (
    Answer,
    Evaluation,
    InterviewSession,
    Question,
    SessionStatus,
)
from ..core.exceptions import StorageError
from ..core.interfaces import SessionStore

logger = structlog.get_logger(__name__)

Base = declarative_base()


class InterviewSessionRecord(Base):
    __tablename__ = "interview_sessions"
    session_id = Column(String(64), primary_key=True)
    role = Column(String(255), nullable=False)
    questions = Column(JSON, nullable=False)
    answers = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default=SessionStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    evaluation = Column(JSON)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; stored values are always UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_domain(record: InterviewSessionRecord) -> InterviewSession:
    return InterviewSession(
        session_id=record.session_id,
        role=record.role,
        questions=[Question.from_dict(q) for q in record.questions],
        answers=[Answer.from_dict(a) for a in record.answers or []],
        status=SessionStatus(record.status),
        created_at=_aware(record.created_at),
        completed_at=_aware(record.completed_at),
        evaluation=Evaluation.from_dict(record.evaluation) if record.evaluation else None,
    )


class SQLSessionStore(SessionStore):
    """
    Durable session store over any SQLAlchemy async URL
    (e.g. sqlite+aiosqlite:///./sessions.db, postgresql+asyncpg://...).
    """
    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    async def connect(self) -> None:
        try:
            self.engine = create_async_engine(self.database_url, echo=self.echo)
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError, ImportError) as e:
            if self.engine is not None:
                await self.engine.dispose()
                self.engine = None
            raise StorageError(f"Could not connect to database: {e}") from e

        self._sessionmaker = async_sessionmaker(bind=self.engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("database_connected", dialect=self.engine.dialect.name)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise StorageError("Session store is not connected")
        try:
            async with self._sessionmaker() as db:
                async with db.begin():
                    yield db
        except SQLAlchemyError as e:
            raise StorageError(f"Database operation failed: {e}") from e

    async def get(self, session_id: str) -> Optional[InterviewSession]:
        async with self._transaction() as db:
            result = await db.execute(
                select(InterviewSessionRecord).where(InterviewSessionRecord.session_id == session_id)
            )
            record = result.scalar_one_or_none()
            return _to_domain(record) if record else None

    async def create(self, session: InterviewSession) -> None:
        async with self._transaction() as db:
            db.add(InterviewSessionRecord(
                session_id=session.session_id,
                role=session.role,
                questions=[q.to_dict() for q in session.questions],
                answers=[a.to_dict() for a in session.answers],
                status=session.status.value,
                created_at=session.created_at,
                completed_at=session.completed_at,
                evaluation=session.evaluation.to_dict() if session.evaluation else None,
            ))

    async def _update(self, session_id: str, **values) -> None:
        async with self._transaction() as db:
            result = await db.execute(
                update(InterviewSessionRecord)
                .where(InterviewSessionRecord.session_id == session_id)
                .values(**values)
            )
            if result.rowcount == 0:
                raise StorageError(f"Session {session_id} is not stored", {"session_id": session_id})

    async def update_answers(self, session_id: str, answers: List[Answer]) -> None:
        await self._update(session_id, answers=[a.to_dict() for a in answers])

    async def mark_completed(self,
                             session_id: str,
                             completed_at: datetime,
                             evaluation: Optional[Evaluation] = None) -> None:
        await self._update(
            session_id,
            status=SessionStatus.COMPLETED.value,
            completed_at=completed_at,
            evaluation=evaluation.to_dict() if evaluation else None,
        )
