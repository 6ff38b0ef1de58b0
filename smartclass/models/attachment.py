from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from smartclass.db.base_class import Base


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)

    filename = Column(String(255), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    path = Column(String(1024), nullable=False)
    size = Column(Integer, nullable=False)

    submission = relationship("Submission", back_populates="attachments")
