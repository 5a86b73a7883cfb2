from collections.abc import AsyncGenerator
from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import learning.models  # noqa: F401 - register with Base
from learning.config import Settings
from learning.database import set_session_factory
from learning.dependencies import get_settings
from learning.main import app
from learning.models import (
    Assignment,
    Certificate,
    Cohort,
    Course,
    Enrollment,
    Lesson,
    LessonAccess,
    Module,
    Program,
    Submission,
    User,
)
from learning.models.enums import ProgramStatus, SubmissionStatus
from shared.auth.config import AuthSettings
from shared.auth.dependencies import create_access_token
from shared.constants import Role
from shared.database.postgres import Base, get_async_engine, session_factory_for
from shared.models.user import ActorContext


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINTs work and writers queue on the file lock."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = get_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'learning.db'}")
    _use_immediate_transactions(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return session_factory_for(engine)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        certificate_storage="none",
        certificate_local_dir=str(tmp_path / "certificates"),
    )


def actor_for(user: User) -> ActorContext:
    return ActorContext(actor_id=user.id, role=user.role, email=user.email)


class Factory:
    """Builds committed fixtures. Every method commits so HTTP requests see the rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, role: Role = Role.TRAINEE, name: str | None = None) -> User:
        suffix = uuid4().hex[:8]
        return await self._save(
            User(name=name or f"{role.value.title()} {suffix}", email=f"{suffix}@example.com", role=role)
        )

    async def program(self, code: str | None = None, status=ProgramStatus.ACTIVE) -> Program:
        code = code or f"P{uuid4().hex[:5].upper()}"
        return await self._save(Program(name=f"Program {code}", code=code, status=status))

    async def course(self, program: Program | None, sort_order: int = 0) -> Course:
        return await self._save(
            Course(program_id=program.id if program else None, title="Course", sort_order=sort_order)
        )

    async def module(self, course: Course, sort_order: int = 0, title: str | None = None) -> Module:
        return await self._save(
            Module(course_id=course.id, sort_order=sort_order, title=title or f"Module {sort_order}")
        )

    async def lesson(self, module: Module, sort_order: int, title: str | None = None) -> Lesson:
        return await self._save(
            Lesson(module_id=module.id, sort_order=sort_order, title=title or f"Lesson {sort_order}")
        )

    async def assignment(self, module: Module, mandatory: bool = True) -> Assignment:
        return await self._save(Assignment(module_id=module.id, title="Assignment", mandatory=mandatory))

    async def cohort(
        self,
        program: Program | None,
        *,
        mentor: User | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        is_active: bool = True,
    ) -> Cohort:
        return await self._save(
            Cohort(
                name="Cohort",
                program_id=program.id if program else None,
                mentor_id=mentor.id if mentor else None,
                start_date=start_date,
                end_date=end_date,
                is_active=is_active,
            )
        )

    async def enrollment(
        self,
        trainee: User,
        cohort: Cohort,
        extended_end_date: datetime | None = None,
    ) -> Enrollment:
        return await self._save(
            Enrollment(trainee_id=trainee.id, cohort_id=cohort.id, extended_end_date=extended_end_date)
        )

    async def access(self, trainee: User, lesson: Lesson) -> LessonAccess:
        """Record an access once; a lesson already accessed returns the existing row."""
        existing = await self.db.scalar(
            select(LessonAccess).where(
                LessonAccess.trainee_id == trainee.id, LessonAccess.lesson_id == lesson.id,
            )
        )
        if existing is not None:
            await self.db.commit()
            return existing
        return await self._save(LessonAccess(trainee_id=trainee.id, lesson_id=lesson.id))

    async def submission(
        self,
        trainee: User,
        assignment: Assignment,
        status: SubmissionStatus = SubmissionStatus.APPROVED,
    ) -> Submission:
        return await self._save(
            Submission(assignment_id=assignment.id, trainee_id=trainee.id, content="work", status=status)
        )

    async def certificate(self, trainee: User, program: Program, certificate_code: str) -> Certificate:
        return await self._save(
            Certificate(trainee_id=trainee.id, program_id=program.id, certificate_code=certificate_code)
        )

    async def complete_module(self, trainee: User, module_tree: SimpleNamespace) -> None:
        for lesson in module_tree.lessons:
            await self.access(trainee, lesson)
        if module_tree.assignment is not None:
            await self.submission(trainee, module_tree.assignment)

    async def program_tree(
        self,
        *,
        modules: int = 1,
        lessons: int = 3,
        mandatory: bool = True,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> SimpleNamespace:
        """Program → course → modules (lessons + mandatory assignment) with one cohort.

        The trainee is enrolled; the mentor mentors the cohort.
        """
        admin = await self.user(Role.ADMIN)
        mentor = await self.user(Role.MENTOR)
        trainee = await self.user(Role.TRAINEE)
        program = await self.program()
        course = await self.course(program)
        module_trees = []
        for m in range(modules):
            module = await self.module(course, sort_order=m)
            module_lessons = [await self.lesson(module, sort_order=i) for i in range(lessons)]
            assignment = await self.assignment(module) if mandatory else None
            module_trees.append(
                SimpleNamespace(module=module, lessons=module_lessons, assignment=assignment)
            )
        cohort = await self.cohort(program, mentor=mentor, start_date=start_date, end_date=end_date)
        enrollment = await self.enrollment(trainee, cohort)
        return SimpleNamespace(
            admin=admin,
            mentor=mentor,
            trainee=trainee,
            program=program,
            course=course,
            modules=module_trees,
            module=module_trees[0].module if module_trees else None,
            lessons=module_trees[0].lessons if module_trees else [],
            assignment=module_trees[0].assignment if module_trees else None,
            cohort=cohort,
            enrollment=enrollment,
        )


@pytest.fixture
def factory(db: AsyncSession) -> Factory:
    return Factory(db)


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(actor_for(user), AuthSettings())
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def async_client(session_factory, settings) -> AsyncGenerator[AsyncClient, None]:
    set_session_factory(session_factory)
    app.dependency_overrides[get_settings] = lambda: settings
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
