"""Cleaner domain - sign-up, public profiles and the cleaner dashboard"""

from .router import router

__all__ = ["router"]
