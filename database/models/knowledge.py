"""
Knowledge base model.

One row per item a user added to their knowledge base: the source content
(text and/or a media data URI) plus the summary generated when it was added
or last edited.
"""

from .base import Base, Column, String, DateTime, Text, Index, datetime, new_id


class KnowledgeItem(Base):
    """Stored study material owned by one user."""
    __tablename__ = "knowledge_items"

    id = Column(String(64), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)

    document_name = Column(String(500), nullable=False)
    document_content = Column(Text, nullable=False, default="")
    media_data_uri = Column(Text, nullable=True)
    summary = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_knowledge_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "documentName": self.document_name,
            "documentContent": self.document_content,
            "mediaDataUri": self.media_data_uri,
            "summary": self.summary,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<KnowledgeItem(id={self.id}, name={self.document_name})>"
