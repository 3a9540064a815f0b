"""
FastAPI Dependency Providers for the Goal Progress API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fake implementations.

Architecture:
- Settings and Supabase client are cached per-process (lru_cache)
- Repository providers create new instances per-request
- The goal store is built per-request for the authenticated owner

Usage in routers:
    from api.deps import get_goal_store
    from backend.services.goal_store import GoalStore

    @router.get("/goals")
    def list_goals(store: GoalStore = Depends(get_goal_store)):
        return store.goals

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_goal_repo] = lambda: FakeGoalRepository()
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException
from supabase import Client, create_client

# Protocol types (interfaces)
from application.exceptions import GoalPersistenceError
from application.ports import (
    ExercisesRepository,
    GoalRepository,
    MilestoneNotifier,
    SessionRepository,
)

# Concrete implementations
from infrastructure import (
    LoggingMilestoneNotifier,
    SupabaseExercisesRepository,
    SupabaseGoalRepository,
    SupabaseSessionRepository,
)

from backend.auth import get_current_user
from backend.services.goal_store import GoalStore
from backend.settings import Settings, get_settings as _get_settings


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Creates a Supabase client using credentials from settings.
    Returns None if credentials are not configured.

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Repository Providers
# =============================================================================


def get_goal_repo(
    client: Client = Depends(get_supabase_client_required),
) -> GoalRepository:
    """
    Get GoalRepository implementation.

    Returns a SupabaseGoalRepository instance with injected client.
    The return type is the Protocol to enable easy faking.
    """
    return SupabaseGoalRepository(client)


def get_session_repo(
    client: Client = Depends(get_supabase_client_required),
) -> SessionRepository:
    """Get SessionRepository implementation (workout_completions)."""
    return SupabaseSessionRepository(client)


def get_exercises_repo(
    client: Client = Depends(get_supabase_client_required),
) -> ExercisesRepository:
    """Get ExercisesRepository implementation (canonical exercises)."""
    return SupabaseExercisesRepository(client)


def get_milestone_notifier() -> MilestoneNotifier:
    """Get MilestoneNotifier implementation."""
    return LoggingMilestoneNotifier()


# =============================================================================
# Goal Store Provider
# =============================================================================


def get_goal_store(
    user_id: str = Depends(get_current_user),
    goal_repo: GoalRepository = Depends(get_goal_repo),
    session_repo: SessionRepository = Depends(get_session_repo),
    exercises_repo: ExercisesRepository = Depends(get_exercises_repo),
    notifier: MilestoneNotifier = Depends(get_milestone_notifier),
    settings: Settings = Depends(get_settings),
) -> GoalStore:
    """
    Get a loaded GoalStore for the authenticated user.

    Raises:
        HTTPException: 503 if goals or sessions cannot be loaded
    """
    store = GoalStore(
        owner_id=user_id,
        goal_repo=goal_repo,
        session_repo=session_repo,
        notifier=notifier,
        exercises_repo=exercises_repo,
        settings=settings,
    )
    try:
        store.load()
    except GoalPersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return store


# =============================================================================
# Exports
# =============================================================================

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
