"""Account domain - Profile, settings, vehicles and data rights for signed-in users"""

from .router import router

__all__ = ["router"]
