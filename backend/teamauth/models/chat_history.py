from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from teamauth.core.database import Base


class ChatHistory(Base):
    __tablename__ = "chat_histories"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    gpt_id = Column(String, nullable=True)
    title = Column(String, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
