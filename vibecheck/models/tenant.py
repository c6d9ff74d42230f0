"""Tenant model."""

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vibecheck.database import Base


class Tenant(Base):
    """Tenant table - one per business, one API key each."""

    __tablename__ = "tenants"

    tenant_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    webhook_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Governance config, read-only to the pipeline
    alert_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    require_resolution_note: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    require_resolution_proof: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_reassignment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    api_key_hash: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[str] = mapped_column(
        "created_at", type_=String(50)
    )  # timestamptz as string for simplicity
