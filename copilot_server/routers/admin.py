# copilot_server/routers/admin.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from copilot_server.core.auth import require_admin
from copilot_server.database import get_session
from copilot_server.models.user import User
from copilot_server.repositories.stats_repo import StatsRepository
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository
from copilot_server.routers.auth import get_user_service
from copilot_server.schemas.stats import AdminDashboardStats
from copilot_server.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    DailyUsage,
    MessageResponse,
    StatusUpdate,
    UserCreatedResponse,
    UserDetailResponse,
    UserListResponse,
    UserRead,
)
from copilot_server.services.quota_service import QuotaService
from copilot_server.services.stats_service import StatsService
from copilot_server.services.user_service import UserService

# Every route here requires an active admin
router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

repo = UserRepository()
usage_repo = UsageRepository()
quota = QuotaService(repo, usage_repo)
stats_service = StatsService(StatsRepository(), repo, usage_repo)


@router.get("/users", response_model=UserListResponse)
def list_users(
    session: Session = Depends(get_session),
    service: UserService = Depends(get_user_service),
):
    """
    List all users, newest first, with today's usage.
    """
    users = []
    for u in service.list_users(session):
        users.append(UserRead.from_user(u, today_usage=quota.used_today(session, u.id)))
    return UserListResponse(users=users)


@router.get("/users/{user_id}", response_model=UserDetailResponse)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    service: UserService = Depends(get_user_service),
):
    """
    One user with today's usage and a 30-day per-day history.
    """
    user = service.get_user(session, user_id)
    history = service.usage_history(session, user.id, days=30)
    return UserDetailResponse(
        user=UserRead.from_user(user, today_usage=quota.used_today(session, user.id)),
        usage_stats=[DailyUsage(date=d, count=n) for d, n in history],
    )


@router.post("/users", response_model=UserCreatedResponse)
def create_user(
    payload: AdminUserCreate,
    session: Session = Depends(get_session),
    service: UserService = Depends(get_user_service),
):
    """
    Create a user directly (active by default, limit 10 unless given).
    """
    user = service.create_user(session, payload)
    return UserCreatedResponse(message="User created successfully", user_id=user.id)


@router.put("/users/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """
    Update name, status, daily limit (-1 = unlimited), paid flag or password.
    """
    service.update_user(session, admin, user_id, payload)
    return MessageResponse(message="User updated successfully")


@router.put("/users/{user_id}/status", response_model=MessageResponse)
def update_status(
    user_id: int,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """
    Quick status change: active, paused, deactivated or pending.
    """
    service.set_status(session, admin, user_id, payload.status)
    return MessageResponse(message=f"User {payload.status.value} successfully")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """
    Delete a standard user and their usage history.
    """
    service.delete_user(session, admin, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/stats", response_model=AdminDashboardStats)
def get_stats(
    days: int = Query(7, ge=1, le=365),
    session: Session = Depends(get_session),
):
    """
    Account head counts and per-user analysis totals over the last `days`.
    """
    return stats_service.get_admin_dashboard_stats(session, days=days)
