from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from app.database import Base


class OtpEntry(Base):
    __tablename__ = "password_reset_otps"

    id = Column(Integer, primary_key=True)
    mobile_number = Column(String(10), nullable=False)
    otp_code = Column(String(10), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_password_reset_otps_mobile_number", "mobile_number"),
        Index("ix_password_reset_otps_expires_at", "expires_at"),
    )
