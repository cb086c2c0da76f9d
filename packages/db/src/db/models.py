# This project was developed with assistance from AI tools.
"""
Loan intake domain models

Deals (one borrower's application thread), the documents attached to them,
and the append-only activity log read by the dashboard.
"""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import DealStatus, DocumentStatus, DocumentType


class Deal(Base):
    """One loan application thread for one client email address."""

    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False, index=True)
    subject_line = Column(Text, nullable=True)
    status = Column(
        Enum(DealStatus, name="deal_status", native_enum=False),
        nullable=False,
        default=DealStatus.NEW,
        index=True,
    )
    application_data = Column(JSON, nullable=False, default=dict)
    raw_email_body = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship(
        "Document", back_populates="deal", cascade="all, delete-orphan",
    )
    activity = relationship(
        "ActivityLog", back_populates="deal", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Deal(id={self.id}, email='{self.client_email}', status='{self.status}')>"


class Document(Base):
    """Attachment processed for a deal."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deal_id = Column(
        Integer, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    file_name = Column(String(500), nullable=False)
    file_url = Column(String(1000), nullable=True)
    doc_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
        default=DocumentType.OTHER,
    )
    status = Column(
        Enum(DocumentStatus, name="document_status", native_enum=False),
        nullable=False,
        default=DocumentStatus.PENDING,
    )
    extracted_data = Column(JSON, nullable=True)
    gmail_message_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    deal = relationship("Deal", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, type='{self.doc_type}', status='{self.status}')>"


class ActivityLog(Base):
    """Append-only activity trail. INSERT + SELECT only -- no UPDATE."""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deal_id = Column(
        Integer, ForeignKey("deals.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    action = Column(String(50), nullable=False, index=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    deal = relationship("Deal", back_populates="activity")

    def __repr__(self):
        return f"<ActivityLog(deal_id={self.deal_id}, action='{self.action}')>"
