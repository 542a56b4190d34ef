# backend/accounting_api/models/document_template.py
import uuid
from sqlalchemy import Column, String, Text, Boolean, Integer, Float, DateTime, JSON, Uuid, Enum as DBEnum
from sqlalchemy.sql import func # For server-side default timestamps

from accounting_api.db.base_class import Base
from accounting_api.documents.types import DocumentTypeEnum

class DocumentTemplate(Base):
    # __tablename__ will be 'documenttemplates'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    # Owning tenant. Clients live in the wider product schema, no FK here.
    client_id = Column(Integer, nullable=False, index=True)
    document_type = Column(
        DBEnum(DocumentTypeEnum, name="document_type_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Ordered list of {id, name, heightInches, fieldPositions}; order is the vertical stacking order
    sections = Column(JSON, nullable=False, default=list)
    page_width = Column(Float, nullable=False)
    page_height = Column(Float, nullable=False)
    ui_preferences = Column(JSON, nullable=True)

    # Bumped on every update, checked when the caller sends expectedVersion
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<DocumentTemplate(id={self.id}, type='{self.document_type}', name='{self.name}')>"
