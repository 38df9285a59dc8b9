"""
Booking Notification System

Handles notifications, reminders, and escalation for booking requests:
- Creates a notification and response tracker when a new booking is created
- Sends a reminder after 1 hour if the cleaner has not responded
- Escalates to the cleaner's team after 2 hours
- Auto-declines after 6 hours so the owner can look for alternatives

Each step is stamped on the booking's response tracker, so a repeated or
overlapping run never sends the same kind of notification twice.
"""

import logging
from datetime import date as date_type
from datetime import datetime, timedelta
from typing import Awaitable, Optional

from sqlalchemy.orm import Session, joinedload

from .. import config
from ..models import Booking, BookingResponseTracker, Cleaner, Notification, Owner, Team
from . import whatsapp_service as whatsapp

logger = logging.getLogger(__name__)


def format_short_date(value: date_type) -> str:
    """e.g. "Sat, Jun 14" """
    return f"{value:%a}, {value:%b} {value.day}"


def format_long_date(value: date_type) -> str:
    """e.g. "Saturday, June 14" """
    return f"{value:%A}, {value:%B} {value.day}"


def format_price(price: float) -> str:
    return f"€{price:g}"


def _cleaner_action_url(booking_id: str, param: str = "booking") -> str:
    return f"/dashboard?tab=bookings&{param}={booking_id}"


def _notify(db: Session, user_id: str, kind: str, title: str, message: str, data: dict, action_url=None):
    db.add(
        Notification(
            user_id=user_id,
            type=kind,
            title=title,
            message=message,
            data=data,
            action_url=action_url,
        )
    )


async def _send_best_effort(send: Awaitable, description: str) -> bool:
    """Await a WhatsApp send; delivery problems are logged, never raised"""
    try:
        ok, info = await send
    except Exception as e:
        logger.error(f"❌ WhatsApp {description} failed: {e}")
        return False
    if not ok:
        logger.info(f"ℹ️ WhatsApp {description} not delivered: {info}")
    return ok


def _owner_name(booking: Booking) -> str:
    return booking.owner.user.name or "Villa Owner"


def _cleaner_name(cleaner: Cleaner) -> str:
    return cleaner.user.name or "Your cleaner"


async def on_booking_created(db: Session, booking: Booking) -> Optional[BookingResponseTracker]:
    """Notify the cleaner of a new request and start tracking their response"""
    cleaner = booking.cleaner
    if not cleaner:
        logger.warning(f"⚠️ Booking {booking.id} has no cleaner - skipping notification")
        return None

    existing = (
        db.query(BookingResponseTracker)
        .filter(BookingResponseTracker.booking_id == booking.id)
        .first()
    )
    if existing:
        return existing

    owner_name = _owner_name(booking)
    _notify(
        db,
        cleaner.user_id,
        "BOOKING_REQUEST",
        "New Booking Request",
        f"{owner_name} wants to book a {booking.service} for {format_short_date(booking.date)} "
        f"at {booking.time}. {format_price(booking.price)}",
        {
            "bookingId": booking.id,
            "ownerName": owner_name,
            "propertyName": booking.property.name,
            "service": booking.service,
            "date": booking.date.isoformat(),
            "time": booking.time,
            "price": booking.price,
        },
        _cleaner_action_url(booking.id),
    )

    tracker = BookingResponseTracker(booking_id=booking.id, cleaner_id=cleaner.id)
    db.add(tracker)
    db.commit()
    db.refresh(tracker)

    if cleaner.user.phone:
        await _send_best_effort(
            whatsapp.notify_cleaner_new_booking(
                cleaner.user.phone,
                owner_name=owner_name,
                date=format_long_date(booking.date),
                time=booking.time,
                address=booking.property.address,
                service=booking.service,
                price=format_price(booking.price),
            ),
            f"new booking {booking.id}",
        )

    logger.info(f"🔔 New booking request {booking.id} created for cleaner {cleaner.id}")
    return tracker


async def send_reminder(db: Session, tracker: BookingResponseTracker, now: datetime) -> None:
    booking = tracker.booking
    cleaner = booking.cleaner
    owner_name = _owner_name(booking)
    date_str = format_short_date(booking.date)

    _notify(
        db,
        cleaner.user_id,
        "BOOKING_REMINDER",
        "Booking Needs Response",
        f"Reminder: {owner_name}'s {booking.service} on {date_str} is waiting for your confirmation.",
        {"bookingId": booking.id},
        _cleaner_action_url(booking.id),
    )
    tracker.reminder_sent_at = now
    db.commit()

    if cleaner.user.phone:
        await _send_best_effort(
            whatsapp.send_response_reminder(cleaner.user.phone, owner_name, booking.service, date_str),
            f"reminder for booking {booking.id}",
        )
    logger.info(f"⏰ Reminder sent for booking {booking.id}")


def _team_recipients(cleaner: Cleaner) -> list[Cleaner]:
    team: Optional[Team] = cleaner.current_team
    if not team:
        return []
    everyone = [team.leader, *team.members]
    seen = set()
    recipients = []
    for member in everyone:
        if member is None or member.id == cleaner.id or member.id in seen:
            continue
        seen.add(member.id)
        recipients.append(member)
    return recipients


async def escalate_to_team(db: Session, tracker: BookingResponseTracker, now: datetime) -> int:
    """Tell the cleaner the booking went to their team and ask teammates to cover"""
    booking = tracker.booking
    cleaner = booking.cleaner
    owner_name = _owner_name(booking)
    date_str = format_short_date(booking.date)
    price = format_price(booking.price)

    _notify(
        db,
        cleaner.user_id,
        "BOOKING_ESCALATED",
        "Booking Escalated to Team",
        f"{owner_name}'s booking has been shared with your team due to no response. "
        "Please confirm soon or a team member may cover it.",
        {"bookingId": booking.id},
        _cleaner_action_url(booking.id),
    )

    teammates = _team_recipients(cleaner)
    for member in teammates:
        _notify(
            db,
            member.user_id,
            "BOOKING_ESCALATED",
            "Team Coverage Needed",
            f"{_cleaner_name(cleaner)} hasn't responded to a booking. Can you cover {booking.service} "
            f"at {booking.property.name} on {date_str} at {booking.time}? {price}",
            {"bookingId": booking.id, "originalCleanerId": cleaner.id, "canCover": True},
            _cleaner_action_url(booking.id, param="cover"),
        )

    tracker.escalated_at = now
    db.commit()

    if cleaner.user.phone:
        await _send_best_effort(
            whatsapp.send_escalation_notice(cleaner.user.phone, owner_name),
            f"escalation notice for booking {booking.id}",
        )
    for member in teammates:
        if member.user.phone:
            await _send_best_effort(
                whatsapp.send_team_coverage_request(
                    member.user.phone,
                    _cleaner_name(cleaner),
                    booking.service,
                    booking.property.name,
                    date_str,
                    booking.time,
                    price,
                ),
                f"coverage request for booking {booking.id}",
            )

    logger.info(f"📣 Booking {booking.id} escalated to {len(teammates)} team members")
    return len(teammates)


async def auto_decline_booking(db: Session, tracker: BookingResponseTracker, now: datetime) -> None:
    """Cancel an unanswered booking and tell both sides"""
    booking = tracker.booking
    cleaner = booking.cleaner
    owner_user = booking.owner.user

    booking.status = "CANCELLED"

    _notify(
        db,
        owner_user.id,
        "BOOKING_AUTO_DECLINED",
        "Booking Not Confirmed",
        f"Unfortunately, {_cleaner_name(cleaner)} wasn't able to confirm your booking in time. "
        "We're finding alternative cleaners for you.",
        {"bookingId": booking.id, "originalCleanerId": cleaner.id, "suggestAlternatives": True},
        f"/owner/dashboard?find-alternative={booking.id}",
    )
    _notify(
        db,
        cleaner.user_id,
        "BOOKING_AUTO_DECLINED",
        "Booking Auto-Declined",
        f"The booking from {_owner_name(booking)} was automatically declined due to no response. "
        f"Please respond to bookings within {config.AUTO_DECLINE_AFTER_HOURS:g} hours.",
        {"bookingId": booking.id},
    )
    tracker.auto_declined_at = now
    db.commit()

    if owner_user.phone:
        await _send_best_effort(
            whatsapp.send_auto_decline_notice(owner_user.phone, _cleaner_name(cleaner)),
            f"auto-decline notice for booking {booking.id}",
        )
    logger.info(f"🚫 Booking {booking.id} auto-declined after {config.AUTO_DECLINE_AFTER_HOURS:g} hours")


async def process_booking_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Process pending bookings and send reminders/escalations.
    Called periodically (every 10 minutes) by the cron endpoint or the worker.

    Returns:
        dict: counts of trackers processed and of each action taken
    """
    now = now or datetime.utcnow()
    remind_before = now - timedelta(hours=config.REMINDER_AFTER_HOURS)
    escalate_before = now - timedelta(hours=config.ESCALATE_AFTER_HOURS)
    decline_before = now - timedelta(hours=config.AUTO_DECLINE_AFTER_HOURS)

    summary = {
        "processed": 0,
        "reminders": 0,
        "escalations": 0,
        "auto_declined": 0,
        "closed": 0,
        "errors": 0,
    }

    trackers = (
        db.query(BookingResponseTracker)
        .filter(
            BookingResponseTracker.responded_at.is_(None),
            BookingResponseTracker.auto_declined_at.is_(None),
        )
        .options(
            joinedload(BookingResponseTracker.booking).joinedload(Booking.owner).joinedload(Owner.user),
            joinedload(BookingResponseTracker.booking).joinedload(Booking.property),
            joinedload(BookingResponseTracker.booking).joinedload(Booking.cleaner).joinedload(Cleaner.user),
        )
        .order_by(BookingResponseTracker.created_at.asc())
        .all()
    )
    summary["processed"] = len(trackers)

    for tracker in trackers:
        booking = tracker.booking
        created_at = tracker.created_at
        try:
            if booking.status != "PENDING":
                tracker.responded_at = now
                db.commit()
                summary["closed"] += 1
                continue

            if created_at < decline_before and not tracker.auto_declined_at:
                await auto_decline_booking(db, tracker, now)
                summary["auto_declined"] += 1
                continue

            if created_at < escalate_before and not tracker.escalated_at:
                await escalate_to_team(db, tracker, now)
                summary["escalations"] += 1
                continue

            if created_at < remind_before and not tracker.reminder_sent_at:
                await send_reminder(db, tracker, now)
                summary["reminders"] += 1
                continue
        except Exception as e:
            db.rollback()
            summary["errors"] += 1
            logger.error(f"❌ Failed to process reminders for booking {tracker.booking_id}: {str(e)}")

    if summary["processed"]:
        logger.info(f"📊 Booking reminder summary: {summary}")
    else:
        logger.debug("ℹ️ No pending booking requests to process")

    return summary


def mark_booking_responded(db: Session, booking_id: str, now: Optional[datetime] = None) -> None:
    """Mark a booking as responded (cleaner confirmed or declined)"""
    db.query(BookingResponseTracker).filter(
        BookingResponseTracker.booking_id == booking_id,
        BookingResponseTracker.responded_at.is_(None),
    ).update({"responded_at": now or datetime.utcnow()}, synchronize_session=False)
    db.commit()


def on_booking_confirmed(db: Session, booking: Booking) -> None:
    """Notify the owner that their booking was confirmed"""
    _notify(
        db,
        booking.owner.user_id,
        "BOOKING_CONFIRMED",
        "Booking Confirmed!",
        f"{_cleaner_name(booking.cleaner)} has confirmed your {booking.service} at "
        f"{booking.property.name} on {format_long_date(booking.date)} at {booking.time}.",
        {"bookingId": booking.id},
        f"/owner/dashboard?booking={booking.id}",
    )
    db.commit()
    mark_booking_responded(db, booking.id)
    logger.info(f"✅ Booking {booking.id} confirmed")
