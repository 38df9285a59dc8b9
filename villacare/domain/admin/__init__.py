"""Admin domain - platform KPIs, moderation, settings and audit"""

from .router import feedback_router, router

__all__ = ["router", "feedback_router"]
