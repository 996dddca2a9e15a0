# funnelflow/models/lead.py

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from funnelflow.utils.database import Base, utc_now


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    company = Column(String, nullable=False)
    contact = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    source = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    status = Column(String, nullable=True)

    stage = Column(String(20), nullable=False, default="awareness")     # всегда каноническое значение
    notes = Column(Text, nullable=True)
    content_strategies = Column(JSON, nullable=False, default=list)     # ["blog", "webinar", ...]
    movement_history = Column(JSON, nullable=False, default=list)       # [{from_stage, to_stage, moved_at}]

    last_contact = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("Account", back_populates="leads")
