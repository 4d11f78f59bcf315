import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from teamauth.core.exceptions import Forbidden, NotFound, ServerError, ValidationError
from teamauth.models.chat_history import ChatHistory
from teamauth.models.gpt_assignment import UserGptAssignment
from teamauth.models.user import ROLES, User
from teamauth.models.user_favorite import UserFavorite

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# tables holding per-user rows, removed together with the user
CASCADE_MODELS = {
    "chatHistory": ChatHistory,
    "gptAssignments": UserGptAssignment,
    "favorites": UserFavorite,
}


def parse_page(page: Optional[str], limit: Optional[str]) -> tuple[int, int]:
    """Lenient parsing: anything that is not a positive integer falls back to the default."""

    def _positive(value: Optional[str], default: int) -> int:
        try:
            n = int(value)
        except (TypeError, ValueError):
            return default
        return n if n > 0 else default

    return _positive(page, DEFAULT_PAGE), _positive(limit, DEFAULT_LIMIT)


def list_all_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def users_with_gpt_counts(db: Session, caller: User, page: int, limit: int) -> dict:
    skip = (page - 1) * limit

    base = db.query(User).filter(User.id != caller.id)
    total = base.count()
    users = base.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()

    counts: Dict[int, int] = {}
    if users:
        rows = (
            db.query(UserGptAssignment.user_id, func.count(UserGptAssignment.id))
            .filter(UserGptAssignment.user_id.in_([u.id for u in users]))
            .group_by(UserGptAssignment.user_id)
            .all()
        )
        counts = {user_id: count for user_id, count in rows}

    return {
        "users": [(u, counts.get(u.id, 0)) for u in users],
        "total": total,
        "page": page,
        "limit": limit,
    }


def update_user_permissions(db: Session, user_id: int, role: Optional[str], department: Optional[str]) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    if role:
        role = role.strip().lower()
        if role not in ROLES:
            raise ValidationError("Invalid role")
        user.role = role

    if department:
        user.department = department.strip()

    db.commit()
    db.refresh(user)
    logger.info("Permissions updated for user_id=%s role=%s", user.id, user.role)
    return user


def remove_team_member(db: Session, user_id: int) -> dict:
    """Delete a user and every per-user row in one transaction."""
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    results = {}
    try:
        for label, model in CASCADE_MODELS.items():
            results[label] = (
                db.query(model)
                .filter(model.user_id == user_id)
                .delete(synchronize_session=False)
            )
        db.delete(user)
        db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Removing user_id=%s failed, transaction rolled back", user_id)
        raise ServerError("Failed to remove team member") from e

    results["user"] = True
    logger.info("Removed user_id=%s and associated data: %s", user_id, results)
    return results


def ensure_self_or_admin(caller: User, user_id: int) -> None:
    if not caller.is_admin and caller.id != user_id:
        raise Forbidden("Not authorized to access this resource")


def user_gpt_count(db: Session, user_id: int) -> int:
    return db.query(UserGptAssignment).filter(UserGptAssignment.user_id == user_id).count()


def user_activity(db: Session, user_id: int) -> list:
    if not db.get(User, user_id):
        raise NotFound("User not found")
    # activity events are not recorded yet
    return []
