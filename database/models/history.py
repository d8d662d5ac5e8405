"""Learning history model: one completed quiz or study session per row."""

from .base import Base, Column, String, Integer, DateTime, Text, JSON, Index, datetime, new_id


class LearningHistoryItem(Base):
    __tablename__ = "learning_history"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)

    document_name = Column(String(500), nullable=False)
    summary = Column(Text, nullable=False, default="")
    questions = Column(JSON, nullable=False, default=list)
    user_answers = Column(JSON, nullable=False, default=list)
    score = Column(Integer, nullable=True)

    completed_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("idx_history_user_completed", "user_id", "completed_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "documentName": self.document_name,
            "summary": self.summary,
            "questions": self.questions or [],
            "userAnswers": self.user_answers or [],
            "score": self.score,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self):
        return f"<LearningHistoryItem(id={self.id}, name={self.document_name}, score={self.score})>"
