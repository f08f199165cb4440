from sqlalchemy import Column, Integer, String, DateTime, Text, text, Index

from tradejournal.models.db import Base


class MentorMessage(Base):
    __tablename__ = "mentor_chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    role = Column(String(16), nullable=False)  # user / assistant
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))

    __table_args__ = (
        Index("idx_mentor_user_created", "user_id", "created_at"),
    )
