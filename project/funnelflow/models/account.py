# funnelflow/models/account.py

from sqlalchemy import Column, Integer, String, DateTime, Index, func
from sqlalchemy.orm import relationship
from funnelflow.utils.database import Base, utc_now


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), nullable=False)
    email = Column(String, nullable=True)
    password = Column(String, nullable=False)                  # только хэш
    reset_token = Column(String, nullable=True, index=True)
    reset_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    leads = relationship("Lead", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)


# логин уникален без учёта регистра
Index("ux_accounts_username_lower", func.lower(Account.username), unique=True)
