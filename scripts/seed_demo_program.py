#!/usr/bin/env python3
"""
Seed the learning database with a demo program.

Creates one admin, one mentor and one trainee, a program with a single course
of two modules (three lessons + one mandatory assignment each), a cohort that
activates the program, and enrolls the trainee. Prints a bearer token per user.

Reads LEARNING_DATABASE_URL from .env (or the environment).

Usage:
    cd unipod-learning
    python -m scripts.seed_demo_program
"""
from __future__ import annotations

import asyncio
import os
import sys
from datetime import timedelta
from pathlib import Path

# Add backend root to path so imports resolve
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "services" / "learning"))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "shared"))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from sqlalchemy import select

from learning.enrollments.service import enroll_trainees
from learning.models import Course, Module, Program, User
from learning.models.enums import ProgramStatus
from learning.structure.service import create_assignment, create_cohort, create_lesson
from shared.auth.config import AuthSettings
from shared.auth.dependencies import create_access_token
from shared.constants import Role
from shared.database.postgres import get_async_session_factory
from shared.database.types import utcnow
from shared.models.user import ActorContext

PROGRAM_CODE = "DEMO"


async def _user(session, email: str, name: str, role: Role) -> User:
    user = await session.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(email=email, name=name, role=role)
        session.add(user)
        await session.flush()
    return user


async def main() -> None:
    db_url = os.getenv("LEARNING_DATABASE_URL")
    if not db_url:
        print("Error: LEARNING_DATABASE_URL must be set in .env")
        sys.exit(1)

    session_factory = get_async_session_factory(db_url)
    async with session_factory() as session:
        if await session.scalar(select(Program).where(Program.code == PROGRAM_CODE)):
            print(f"Program {PROGRAM_CODE} already exists. Nothing to do.")
            return

        admin = await _user(session, "admin@unipod.local", "Demo Admin", Role.ADMIN)
        mentor = await _user(session, "mentor@unipod.local", "Demo Mentor", Role.MENTOR)
        trainee = await _user(session, "trainee@unipod.local", "Demo Trainee", Role.TRAINEE)
        admin_ctx = ActorContext(actor_id=admin.id, role=admin.role, email=admin.email)

        program = Program(name="Demo Program", code=PROGRAM_CODE, status=ProgramStatus.INACTIVE)
        session.add(program)
        await session.flush()
        course = Course(program_id=program.id, title="Foundations", sort_order=0)
        session.add(course)
        await session.flush()

        for m in range(2):
            module = Module(course_id=course.id, title=f"Module {m + 1}", sort_order=m)
            session.add(module)
            await session.flush()
            for i in range(3):
                await create_lesson(session, admin_ctx, module.id, f"Lesson {m + 1}.{i + 1}", i)
            await create_assignment(session, admin_ctx, module.id, f"Module {m + 1} project")

        now = utcnow()
        cohort = await create_cohort(
            session,
            admin_ctx,
            "Demo cohort",
            program_id=program.id,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=90),
            mentor_id=mentor.id,
        )
        if not cohort.ok:
            print(f"Error: {cohort.error}")
            sys.exit(1)
        await enroll_trainees(session, admin_ctx, cohort.cohort.id, [trainee.id])
        await session.commit()

        print(f"Program {PROGRAM_CODE} created (id={program.id}, status={cohort.program_status.value})")
        auth = AuthSettings()
        for user in (admin, mentor, trainee):
            ctx = ActorContext(actor_id=user.id, role=user.role, email=user.email)
            print(f"  {user.role.value:<8} {user.email}: {create_access_token(ctx, auth)}")


if __name__ == "__main__":
    asyncio.run(main())
