from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from teamauth.core.database import Base


class UserGptAssignment(Base):
    __tablename__ = "user_gpt_assignments"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    gpt_id = Column(String, nullable=False, index=True)
    assigned_by = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
