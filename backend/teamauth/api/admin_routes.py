# backend/teamauth/api/admin_routes.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from teamauth.api.deps_auth import get_current_user, get_db, require_admin
from teamauth.api.schemas import PermissionsIn, UserPageOut, UserWithCountOut, user_out
from teamauth.models.user import User
from teamauth.services import admin

router = APIRouter()


# ---------- ADMIN ONLY ----------

@router.get("/all-users")
def get_all_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return {"success": True, "users": [user_out(u) for u in admin.list_all_users(db)]}


@router.get("/users-with-gpt-counts", response_model=UserPageOut)
def get_users_with_gpt_counts(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
    current_admin: User = Depends(require_admin),
):
    page_n, limit_n = admin.parse_page(page, limit)
    result = admin.users_with_gpt_counts(db, current_admin, page_n, limit_n)

    users = [
        UserWithCountOut.model_validate(u).model_copy(update={"gptCount": count})
        for u, count in result["users"]
    ]
    return UserPageOut(users=users, total=result["total"], page=result["page"], limit=result["limit"])


@router.patch("/user-permissions/{user_id}")
def update_user_permissions(
    user_id: int,
    payload: PermissionsIn,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    user = admin.update_user_permissions(db, user_id, payload.role, payload.department)
    return {"success": True, "message": "User permissions updated successfully", "user": user_out(user)}


@router.delete("/team-member/{user_id}")
def remove_team_member(user_id: int, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    results = admin.remove_team_member(db, user_id)
    return {
        "success": True,
        "message": "User and all associated data removed successfully",
        "deletionResults": results,
    }


# ---------- ADMIN OR SELF ----------

@router.get("/user-gpt-count/{user_id}")
def get_user_gpt_count(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    admin.ensure_self_or_admin(current_user, user_id)
    return {"success": True, "count": admin.user_gpt_count(db, user_id)}


@router.get("/user-activity/{user_id}")
def get_user_activity(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    admin.ensure_self_or_admin(current_user, user_id)
    return {"success": True, "activities": admin.user_activity(db, user_id)}
