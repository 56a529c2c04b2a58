from datetime import datetime, timezone
import hashlib
import logging
import re

from sqlalchemy.exc import IntegrityError

from app.models.credentials import CredentialsEntry
from app.models.db_operation import _add_record, _select_one_or_none, _update_records

LOGGER = logging.getLogger(__name__)

MOBILE_NUMBER_PATTERN = re.compile(r"^[0-9]{10}$")


class CredentialsError(ValueError):
    pass


def is_valid_mobile_number(mobile_number: object) -> bool:
    return isinstance(mobile_number, str) and bool(
        MOBILE_NUMBER_PATTERN.fullmatch(mobile_number)
    )


def hash_password(password: str) -> str:
    # Unsalted single SHA-256 pass; sign-in elsewhere compares hashes this way.
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class CredentialStore:
    def exists(self, mobile_number: str) -> bool:
        return self.get_by_mobile(mobile_number) is not None

    def get_by_mobile(self, mobile_number: str) -> CredentialsEntry | None:
        return _select_one_or_none("credentials", mobile_number=mobile_number)

    def create(self, mobile_number: str, password: str) -> CredentialsEntry:
        now = datetime.now(timezone.utc)
        try:
            return _add_record(
                "credentials",
                mobile_number=mobile_number,
                password_hash=hash_password(password),
                created_at=now,
                updated_at=now,
            )
        except IntegrityError as exc:
            raise CredentialsError(
                "An account with this mobile number already exists"
            ) from exc

    def authenticate(self, mobile_number: str, password: str) -> CredentialsEntry | None:
        entry = self.get_by_mobile(mobile_number)
        if entry is None or entry.password_hash != hash_password(password):
            return None
        return entry

    def update_password(self, mobile_number: str, new_password: str) -> int:
        updated = _update_records(
            "credentials",
            values={
                "password_hash": hash_password(new_password),
                "updated_at": datetime.now(timezone.utc),
            },
            mobile_number=mobile_number,
        )
        if not updated:
            LOGGER.warning("No credentials updated for %s", mobile_number)
        return updated


credential_store = CredentialStore()
