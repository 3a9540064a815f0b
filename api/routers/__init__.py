"""
Router package for the Goal Progress API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- goals: Goal management, progress snapshots and lifecycle operations
"""

from api.routers.health import router as health_router
from api.routers.goals import router as goals_router

__all__ = [
    "health_router",
    "goals_router",
]
