"""
API package for the Goal Progress API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_supabase_client_required,
    get_goal_repo,
    get_session_repo,
    get_exercises_repo,
    get_milestone_notifier,
    get_goal_store,
    get_current_user,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_goal_repo",
    "get_session_repo",
    "get_exercises_repo",
    "get_milestone_notifier",
    # Goal store
    "get_goal_store",
    # Authentication
    "get_current_user",
]
