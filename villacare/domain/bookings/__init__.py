"""Booking domain - booking requests and their lifecycle"""

from .router import router

__all__ = ["router"]
