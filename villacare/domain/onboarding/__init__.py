"""Onboarding domain - magic link account creation for new owners"""

from .router import router

__all__ = ["router"]
