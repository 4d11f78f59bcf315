from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from teamauth.core.database import Base


class UserFavorite(Base):
    __tablename__ = "user_favorites"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    gpt_id = Column(String, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
