from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base


class CredentialsEntry(Base):
    __tablename__ = "user_credentials"

    id = Column(Integer, primary_key=True)
    mobile_number = Column(String(10), nullable=False, unique=True, index=True)
    password_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
