"""
Pytest configuration and shared fixtures

Every test gets a fresh in-memory SQLite database shared by the test and the
app (StaticPool keeps the single connection alive across threads).
"""

import os
from datetime import date, datetime, timedelta

# Must be set before villacare is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-minimum-32-chars-long-for-security")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")
for _name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_WHATSAPP_NUMBER", "CRON_SECRET"):
    os.environ.pop(_name, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from villacare import config  # noqa: E402
from villacare.auth import issue_session_token  # noqa: E402
from villacare.database import Base, get_db  # noqa: E402
from villacare.main import app  # noqa: E402
from villacare.models import (  # noqa: E402
    Booking,
    BookingResponseTracker,
    Cleaner,
    Owner,
    Property,
    Team,
    User,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        try:
            yield db
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Sign the test client in as the given user"""

    def _login(user, impersonating=None):
        client.cookies.set(config.SESSION_COOKIE_NAME, issue_session_token(user.id, impersonating))
        return client

    return _login


class Factory:
    """Builds committed rows with sensible defaults"""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, role="OWNER", name=None, phone=None, email=None) -> User:
        n = self._next()
        user = User(
            role=role,
            name=name or f"{role.title()} {n}",
            phone=phone,
            email=email or f"user{n}@example.com",
        )
        self.db.add(user)
        self.db.commit()
        return user

    def admin(self) -> User:
        return self.user(role="ADMIN", name="Admin")

    def cleaner(self, name=None, slug=None, status="ACTIVE", phone=None, hourly_rate=20.0, **kwargs) -> Cleaner:
        n = self._next()
        user = self.user(role="CLEANER", name=name or f"Clara {n}", phone=phone)
        cleaner = Cleaner(
            user_id=user.id,
            slug=slug or f"clara{n}",
            hourly_rate=hourly_rate,
            status=status,
            service_areas=["Jávea"],
            rating=5.0,
            **kwargs,
        )
        self.db.add(cleaner)
        self.db.commit()
        return cleaner

    def owner(self, name=None, phone=None) -> Owner:
        n = self._next()
        user = self.user(role="OWNER", name=name or f"Oliver {n}", phone=phone)
        owner = Owner(user_id=user.id, referral_code=f"OLIV{n:07d}")
        self.db.add(owner)
        self.db.commit()
        return owner

    def property(self, owner: Owner, name="Villa Sol", address="Calle Mayor 1, Jávea") -> Property:
        prop = Property(owner_id=owner.id, name=name, address=address, bedrooms=3, bathrooms=2)
        self.db.add(prop)
        self.db.commit()
        return prop

    def booking(
        self,
        cleaner: Cleaner,
        owner: Owner = None,
        status="PENDING",
        price=60.0,
        hours=3.0,
        on=None,
        created_at=None,
    ) -> Booking:
        owner = owner or self.owner()
        prop = self.property(owner)
        booking = Booking(
            cleaner_id=cleaner.id,
            owner_id=owner.id,
            property_id=prop.id,
            status=status,
            service="regular",
            price=price,
            hours=hours,
            date=on or date.today() + timedelta(days=3),
            time="10:00",
            created_at=created_at or datetime.utcnow(),
        )
        self.db.add(booking)
        self.db.commit()
        return booking

    def tracker(self, booking: Booking, age: timedelta = timedelta(0), **stamps) -> BookingResponseTracker:
        tracker = BookingResponseTracker(
            booking_id=booking.id,
            cleaner_id=booking.cleaner_id,
            created_at=datetime.utcnow() - age,
            **stamps,
        )
        self.db.add(tracker)
        self.db.commit()
        return tracker

    def team(self, leader: Cleaner, members=(), name="Costa Blanca Team") -> Team:
        leader.team_leader = True
        team = Team(name=name, leader_id=leader.id)
        self.db.add(team)
        self.db.flush()
        for member in members:
            member.team_id = team.id
        self.db.commit()
        return team


@pytest.fixture
def factory(db):
    return Factory(db)
