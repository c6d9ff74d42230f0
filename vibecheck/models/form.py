"""Feedback form model."""

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vibecheck.database import Base, JSONType


class Form(Base):
    """Form definition; fields is a list of {id, type, label, required}."""

    __tablename__ = "forms"

    form_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.tenant_id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, default="Default Feedback Form")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    fields: Mapped[list] = mapped_column(JSONType, nullable=False)
