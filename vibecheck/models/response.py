"""Feedback response model."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vibecheck.database import Base, JSONType
from vibecheck.schemas.submission import Metrics


class FeedbackResponse(Base):
    """Customer submissions - write-once."""

    __tablename__ = "responses"

    response_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tenants.tenant_id"), nullable=False, index=True
    )
    form_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("forms.form_id"), nullable=False
    )
    answers: Mapped[list] = mapped_column(JSONType, nullable=False)
    nps_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    csat_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    order_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    store_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # qr_static|qr_magic
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    @property
    def metrics(self) -> Metrics:
        return Metrics(nps_score=self.nps_score, csat_score=self.csat_score)
