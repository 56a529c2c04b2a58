from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import secrets

from app.config import settings
from app.models.db_operation import (
    _add_record,
    _delete_records,
    _select_one_or_none,
    _update_records,
)
from app.models.otp import OtpEntry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpRecord:
    id: int
    mobile_number: str
    code: str
    expires_at: datetime


class OtpStore:
    """Password-reset codes keyed by mobile number.

    At most one code is live per number: requesting a new one deletes every
    earlier row for that number first. Expired and used rows are left in the
    table; lookups simply ignore them.
    """

    def __init__(self, ttl_seconds: int, code_length: int) -> None:
        self._ttl_seconds = ttl_seconds
        self._code_length = code_length

    def request_otp(self, mobile_number: str) -> OtpRecord:
        now = datetime.now(timezone.utc)
        removed = _delete_records("otp", mobile_number=mobile_number)
        if removed:
            LOGGER.info("Discarded %s previous OTP(s) for %s", removed, mobile_number)
        entry = _add_record(
            "otp",
            mobile_number=mobile_number,
            otp_code=self._generate_code(),
            expires_at=now + timedelta(seconds=self._ttl_seconds),
            is_used=False,
            created_at=now,
        )
        return OtpRecord(
            id=entry.id,
            mobile_number=entry.mobile_number,
            code=entry.otp_code,
            expires_at=entry.expires_at,
        )

    def find_valid(self, mobile_number: str, code: str) -> OtpEntry | None:
        now = datetime.now(timezone.utc)
        return _select_one_or_none(
            "otp",
            mobile_number=mobile_number,
            otp_code=code,
            is_used=False,
            expires_at=(">=", now),
        )

    def verify_otp(self, mobile_number: str, code: str) -> bool:
        # Read-only: a verified code stays usable until a reset consumes it.
        return self.find_valid(mobile_number, code) is not None

    def mark_used(self, otp_id: int) -> bool:
        return _update_records("otp", values={"is_used": True}, id=otp_id) > 0

    def _generate_code(self) -> str:
        lower = 10 ** (self._code_length - 1)
        return str(lower + secrets.randbelow(9 * lower))


otp_store = OtpStore(settings.otp_ttl_seconds, settings.otp_length)
