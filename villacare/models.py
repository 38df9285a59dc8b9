import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base

USER_ROLES = ("ADMIN", "CLEANER", "OWNER")
CLEANER_STATUSES = ("PENDING", "ACTIVE", "SUSPENDED")
BOOKING_STATUSES = ("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED")
ONBOARDING_STATUSES = ("PENDING", "COMPLETED", "EXPIRED")
FEEDBACK_STATUSES = ("NEW", "REVIEWED", "RESOLVED")
SUPPORT_STATUSES = ("OPEN", "ESCALATED", "RESOLVED")
JOIN_REQUEST_STATUSES = ("PENDING", "APPROVED", "REJECTED")


def generate_id():
    """Generate a string primary key"""
    return str(uuid.uuid4())


def _in(column: str, values: tuple) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint(_in("role", USER_ROLES), name="ck_users_role"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    phone = Column(String(50), unique=True, index=True, nullable=True)  # E.164
    image = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="OWNER")
    email_verified_at = Column(DateTime, nullable=True)
    phone_verified_at = Column(DateTime, nullable=True)
    preferred_language = Column(String(5), default="en")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cleaner = relationship("Cleaner", back_populates="user", uselist=False)
    owner = relationship("Owner", back_populates="user", uselist=False)
    notifications = relationship("Notification", back_populates="user")


class Cleaner(Base):
    __tablename__ = "cleaners"
    __table_args__ = (CheckConstraint(_in("status", CLEANER_STATUSES), name="ck_cleaners_status"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    bio = Column(Text, nullable=True)
    reviews_link = Column(String(500), nullable=True)
    service_areas = Column(JSON, default=list)  # e.g. ["Jávea", "Moraira"]
    hourly_rate = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    rating = Column(Float, nullable=True)
    review_count = Column(Integer, default=0, nullable=False)
    total_bookings = Column(Integer, default=0, nullable=False)
    team_leader = Column(Boolean, default=False, nullable=False)
    team_id = Column(
        String(36),
        ForeignKey("teams.id", use_alter=True, name="fk_cleaners_team_id"),
        nullable=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="cleaner")
    bookings = relationship("Booking", back_populates="cleaner")
    team = relationship("Team", foreign_keys=[team_id], back_populates="members")
    led_team = relationship(
        "Team", foreign_keys="Team.leader_id", back_populates="leader", uselist=False
    )

    @property
    def current_team(self):
        """Team the cleaner belongs to, as a member or as its leader"""
        return self.team or self.led_team


class Owner(Base):
    __tablename__ = "owners"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    referral_code = Column(String(20), unique=True, nullable=False)
    trusted = Column(Boolean, default=False, nullable=False)
    total_bookings = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="owner")
    properties = relationship("Property", back_populates="owner")
    bookings = relationship("Booking", back_populates="owner")


class Property(Base):
    __tablename__ = "properties"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_id = Column(String(36), ForeignKey("owners.id"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    bedrooms = Column(Integer, default=2, nullable=False)
    bathrooms = Column(Integer, default=1, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    owner = relationship("Owner", back_populates="properties")
    bookings = relationship("Booking", back_populates="property")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (CheckConstraint(_in("status", BOOKING_STATUSES), name="ck_bookings_status"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    cleaner_id = Column(String(36), ForeignKey("cleaners.id"), index=True, nullable=False)
    owner_id = Column(String(36), ForeignKey("owners.id"), index=True, nullable=False)
    property_id = Column(String(36), ForeignKey("properties.id"), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING", index=True)
    service = Column(String(100), nullable=False)  # regular, deep, arrival
    price = Column(Float, nullable=False)
    hours = Column(Float, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # "HH:MM"
    notes = Column(Text, nullable=True)
    created_by_ai = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cleaner = relationship("Cleaner", back_populates="bookings")
    owner = relationship("Owner", back_populates="bookings")
    property = relationship("Property", back_populates="bookings")
    review = relationship("Review", back_populates="booking", uselist=False)
    response_tracker = relationship("BookingResponseTracker", back_populates="booking", uselist=False)


class BookingResponseTracker(Base):
    """Tracks cleaner response to a booking request; one timestamp per notification kind"""

    __tablename__ = "booking_response_trackers"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    cleaner_id = Column(String(36), ForeignKey("cleaners.id"), nullable=False)
    reminder_sent_at = Column(DateTime, nullable=True)
    escalated_at = Column(DateTime, nullable=True)
    auto_declined_at = Column(DateTime, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    booking = relationship("Booking", back_populates="response_tracker")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    action_url = Column(String(500), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="notifications")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    cleaner_id = Column(String(36), ForeignKey("cleaners.id"), index=True, nullable=False)
    owner_id = Column(String(36), ForeignKey("owners.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)
    approved = Column(Boolean, default=False, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking", back_populates="review")


class Team(Base):
    __tablename__ = "teams"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    leader_id = Column(String(36), ForeignKey("cleaners.id"), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    leader = relationship("Cleaner", foreign_keys=[leader_id], back_populates="led_team")
    members = relationship("Cleaner", foreign_keys=[Cleaner.team_id], back_populates="team")
    join_requests = relationship("TeamJoinRequest", back_populates="team", cascade="all, delete-orphan")


class TeamJoinRequest(Base):
    """A cleaner asking a team leader to be let in; one row per team and cleaner"""

    __tablename__ = "team_join_requests"
    __table_args__ = (
        UniqueConstraint("team_id", "cleaner_id", name="uq_team_join_requests_team_cleaner"),
        CheckConstraint(_in("status", JOIN_REQUEST_STATUSES), name="ck_team_join_requests_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    team_id = Column(String(36), ForeignKey("teams.id"), nullable=False, index=True)
    cleaner_id = Column(String(36), ForeignKey("cleaners.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="PENDING")
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    responded_at = Column(DateTime, nullable=True)

    team = relationship("Team", back_populates="join_requests")
    cleaner = relationship("Cleaner")


class Feedback(Base):
    __tablename__ = "feedback"
    __table_args__ = (CheckConstraint(_in("status", FEEDBACK_STATUSES), name="ck_feedback_status"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    category = Column(String(50), nullable=False, default="general")  # idea, issue, praise, question
    mood = Column(String(20), nullable=True)
    message = Column(Text, nullable=False)
    page = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default="NEW")
    created_at = Column(DateTime, default=datetime.utcnow)


class SupportConversation(Base):
    __tablename__ = "support_conversations"
    __table_args__ = (CheckConstraint(_in("status", SUPPORT_STATUSES), name="ck_support_status"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    channel = Column(String(20), nullable=False, default="web")  # web, whatsapp
    status = Column(String(20), nullable=False, default="OPEN")
    summary = Column(Text, nullable=True)
    messages = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PageView(Base):
    __tablename__ = "page_views"

    id = Column(String(36), primary_key=True, default=generate_id)
    path = Column(String(500), nullable=False)
    cleaner_slug = Column(String(100), index=True, nullable=True)
    referrer = Column(String(500), nullable=True)
    user_agent = Column(String(500), nullable=True)
    country = Column(String(5), nullable=True)
    session_id = Column(String(100), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    action = Column(String(50), nullable=False, index=True)
    target = Column(String(36), nullable=True)
    target_type = Column(String(30), nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User")


class PendingOnboarding(Base):
    """Owner details collected before account creation; completed via magic link"""

    __tablename__ = "pending_onboardings"
    __table_args__ = (
        CheckConstraint(_in("status", ONBOARDING_STATUSES), name="ck_pending_onboardings_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    token = Column(String(64), unique=True, index=True, nullable=False)
    cleaner_id = Column(String(36), ForeignKey("cleaners.id"), nullable=False)
    visitor_name = Column(String(255), nullable=False)
    visitor_phone = Column(String(50), nullable=False)
    visitor_email = Column(String(255), nullable=True)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    outdoor_areas = Column(JSON, default=list)
    access_notes = Column(Text, nullable=True)
    address = Column(String(500), nullable=True)
    owner_type = Column(String(20), nullable=True)  # REMOTE, RESIDENT
    service_type = Column(String(20), nullable=False)
    service_price = Column(Float, nullable=False)
    service_hours = Column(Float, nullable=False)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(String(5), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    expires_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    user_id = Column(String(36), nullable=True)
    owner_id = Column(String(36), nullable=True)
    property_id = Column(String(36), nullable=True)
    booking_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    cleaner = relationship("Cleaner")


class RateLimitEntry(Base):
    __tablename__ = "rate_limit_entries"
    __table_args__ = (Index("ix_rate_limit_entries_key_created_at", "key", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PlatformSettings(Base):
    __tablename__ = "platform_settings"

    id = Column(String(20), primary_key=True, default="default")
    team_leader_hours_required = Column(Integer, default=50, nullable=False)
    team_leader_rating_required = Column(Float, default=5.0, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
