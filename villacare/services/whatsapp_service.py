"""
Twilio WhatsApp Service
Sends WhatsApp messages for booking workflow events
"""

import logging
from typing import Optional

import httpx

from .. import config

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


def is_configured() -> bool:
    return bool(config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_WHATSAPP_NUMBER)


async def send_whatsapp_message(to_phone: str, body: str) -> tuple[bool, Optional[str]]:
    """
    Send a WhatsApp message via Twilio

    Args:
        to_phone: Recipient phone number in E.164 format (optionally "whatsapp:" prefixed)
        body: Message content

    Returns:
        Tuple of (success, message SID on success or error message on failure)
    """
    if not is_configured():
        logger.warning("Twilio not configured - missing WhatsApp credentials")
        return False, "WhatsApp not configured"

    if not to_phone:
        return False, "No phone number provided"

    formatted_to = to_phone if to_phone.startswith("whatsapp:") else f"whatsapp:{to_phone}"
    account_sid = config.TWILIO_ACCOUNT_SID

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json",
                auth=(account_sid, config.TWILIO_AUTH_TOKEN),
                data={"To": formatted_to, "From": config.TWILIO_WHATSAPP_NUMBER, "Body": body},
                timeout=10.0,
            )

        if response.status_code in (200, 201):
            message_sid = response.json().get("sid")
            logger.info(f"✅ WhatsApp message sent to {formatted_to} (SID: {message_sid})")
            return True, message_sid

        error_data = response.json()
        error_message = error_data.get("message", "Unknown error")
        error_code = error_data.get("code")
        logger.error(f"❌ Twilio API error [{error_code}]: {error_message}")
        return False, error_message

    except httpx.HTTPError as e:
        logger.error(f"❌ Twilio API error: {str(e)}")
        return False, str(e)
    except Exception as e:
        logger.error(f"❌ Failed to send WhatsApp message: {str(e)}")
        return False, str(e)


# WhatsApp template functions
async def notify_cleaner_new_booking(
    phone: str, owner_name: str, date: str, time: str, address: str, service: str, price: str
) -> tuple[bool, Optional[str]]:
    message = (
        "*New Booking Request!* 🎉\n\n"
        f"*Client:* {owner_name}\n"
        f"*Date:* {date}\n"
        f"*Time:* {time}\n"
        f"*Service:* {service}\n"
        f"*Price:* {price}\n\n"
        f"*Address:*\n{address}\n\n"
        "Reply ACCEPT or DECLINE"
    )
    return await send_whatsapp_message(phone, message)


async def send_booking_confirmation(
    phone: str, cleaner_name: str, date: str, time: str, address: str, service: str, price: str
) -> tuple[bool, Optional[str]]:
    message = (
        "*Booking Received!* ✅\n\n"
        "Your cleaning request has been sent:\n\n"
        f"*Cleaner:* {cleaner_name}\n"
        f"*Date:* {date}\n"
        f"*Time:* {time}\n"
        f"*Service:* {service}\n"
        f"*Price:* {price}\n\n"
        f"*Address:*\n{address}\n\n"
        "Your cleaner will confirm shortly.\n\n"
        "- VillaCare"
    )
    return await send_whatsapp_message(phone, message)


async def send_response_reminder(phone: str, owner_name: str, service: str, date: str) -> tuple[bool, Optional[str]]:
    message = (
        "*Booking Needs Response* ⏰\n\n"
        f"{owner_name}'s {service} on {date} is waiting for your confirmation.\n\n"
        "Reply ACCEPT or DECLINE"
    )
    return await send_whatsapp_message(phone, message)


async def send_escalation_notice(phone: str, owner_name: str) -> tuple[bool, Optional[str]]:
    message = (
        "*Booking Escalated to Team* ⚠️\n\n"
        f"{owner_name}'s booking has been shared with your team due to no response. "
        "Please confirm soon or a team member may cover it."
    )
    return await send_whatsapp_message(phone, message)


async def send_team_coverage_request(
    phone: str, cleaner_name: str, service: str, property_name: str, date: str, time: str, price: str
) -> tuple[bool, Optional[str]]:
    message = (
        "*Team Coverage Needed* 🤝\n\n"
        f"{cleaner_name} hasn't responded to a booking. Can you cover {service} "
        f"at {property_name} on {date} at {time}? {price}"
    )
    return await send_whatsapp_message(phone, message)


async def send_auto_decline_notice(phone: str, cleaner_name: str) -> tuple[bool, Optional[str]]:
    message = (
        "*Booking Not Confirmed*\n\n"
        f"Unfortunately, {cleaner_name} wasn't able to confirm your booking in time. "
        "We're finding alternative cleaners for you.\n\n"
        "- VillaCare"
    )
    return await send_whatsapp_message(phone, message)


async def send_onboarding_link(phone: str, visitor_name: str, cleaner_name: str, link: str) -> tuple[bool, Optional[str]]:
    message = (
        f"Hi {visitor_name}! 👋\n\n"
        f"Confirm your booking with {cleaner_name} here:\n{link}\n\n"
        "This link expires in 24 hours.\n\n"
        "- VillaCare"
    )
    return await send_whatsapp_message(phone, message)
