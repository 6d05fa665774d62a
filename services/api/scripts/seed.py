"""Seed script: populates dev DB with a teacher, an admin, and a few unsynced events.

Also prints a dev JWT for the teacher so the API can be exercised with curl.
"""

import asyncio
from datetime import date, timedelta

from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from teacher_portal.config import get_settings
from teacher_portal.models.event import Event, EventStatus
from teacher_portal.models.user import User

TEACHER_EMAIL = "teacher@bitspilani.ae"
ADMIN_EMAIL = "admin@bitspilani.ae"


async def seed():
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as db:
        result = await db.execute(select(User).where(User.email == TEACHER_EMAIL))
        teacher = result.scalar_one_or_none()
        if teacher is not None:
            print(f"Seed user {TEACHER_EMAIL} already exists, skipping.")
            await engine.dispose()
            return

        teacher = User(email=TEACHER_EMAIL, name="Test Teacher", role="teacher", campus="dubai")
        admin = User(email=ADMIN_EMAIL, name="Test Admin", role="admin", campus="dubai")
        db.add_all([teacher, admin])
        await db.flush()

        start = date.today() + timedelta(days=14)
        samples = [
            ("Hackathon", "competition", "Lab 3", EventStatus.PENDING),
            ("Guest Lecture: Distributed Systems", "seminar", "Auditorium", EventStatus.PENDING),
            ("Cultural Night", "cultural", "Main Lawn", EventStatus.DRAFT),
        ]
        for i, (title, event_type, location, status) in enumerate(samples):
            db.add(
                Event(
                    title=title,
                    description=f"{title} organised by the Computer Science department.",
                    event_type=event_type,
                    start_date=start + timedelta(days=i * 7),
                    start_time="10:00",
                    end_time="13:00",
                    location=location,
                    max_participants=100,
                    tags=[event_type, "dubai"],
                    created_by=teacher.id,
                    created_by_name=teacher.name,
                    created_by_email=teacher.email,
                    campus=teacher.campus,
                    status=status,
                )
            )

        await db.commit()
        print(f"Seeded: teacher={TEACHER_EMAIL}, admin={ADMIN_EMAIL}, {len(samples)} events (unsynced)")

    token = jwt.encode(
        {"sub": str(teacher.id), "name": teacher.name, "email": teacher.email, "role": "teacher", "campus": "dubai"},
        settings.jwt_secret.get_secret_value(),
        algorithm=settings.jwt_algorithm,
    )
    print(f"Teacher token: {token}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
