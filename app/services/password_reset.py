"""Mobile number + OTP password reset.

The three steps are independent and stateless: ``reset_password`` checks the
code again on its own and never relies on an earlier ``verify_otp`` call.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.services.credentials import credential_store, is_valid_mobile_number
from app.services.otp import otp_store
from app.services.sessions import session_store
from app.services.sms import SmsSendError, send_password_reset_sms

LOGGER = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    return value.strip() if value is not None else None


class PasswordResetError(ValueError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PasswordResetService:
    def request_otp(self, mobile_number: str | None) -> dict:
        if not mobile_number or not is_valid_mobile_number(mobile_number):
            raise PasswordResetError("Please enter a valid 10-digit mobile number")

        if not credential_store.exists(mobile_number):
            raise PasswordResetError(
                "No account found with this mobile number", status_code=404
            )

        try:
            record = otp_store.request_otp(mobile_number)
        except SQLAlchemyError as exc:
            LOGGER.error("OTP creation error for %s: %s", mobile_number, exc)
            raise PasswordResetError("Failed to generate OTP", status_code=500) from exc

        if settings.sms_configured:
            try:
                send_password_reset_sms(mobile_number, record.code)
            except SmsSendError as exc:
                raise PasswordResetError(str(exc), status_code=502) from exc
        else:
            LOGGER.warning(
                "SMS delivery is not configured; OTP for %s was not dispatched",
                mobile_number,
            )

        response = {"success": True, "message": "OTP sent successfully"}
        if settings.otp_debug:
            LOGGER.warning("OTP for %s: %s", mobile_number, record.code)
            response["debug_otp"] = record.code
        return response

    def verify_otp(self, mobile_number: str | None, otp: str | None) -> dict:
        mobile_number, otp = _clean(mobile_number), _clean(otp)
        if not mobile_number or not otp:
            raise PasswordResetError("Mobile number and OTP are required")

        if not otp_store.verify_otp(mobile_number, otp):
            raise PasswordResetError("Invalid or expired OTP")

        return {
            "success": True,
            "message": "OTP verified successfully",
            "verified": True,
        }

    def reset_password(
        self,
        mobile_number: str | None,
        otp: str | None,
        new_password: str | None,
    ) -> dict:
        mobile_number, otp = _clean(mobile_number), _clean(otp)
        if not mobile_number or not otp or not new_password:
            raise PasswordResetError(
                "Mobile number, OTP, and new password are required"
            )

        if len(new_password) < settings.min_password_length:
            raise PasswordResetError(
                f"Password must be at least {settings.min_password_length} characters"
            )

        otp_entry = otp_store.find_valid(mobile_number, otp)
        if otp_entry is None:
            raise PasswordResetError("Invalid or expired OTP. Please request a new one.")

        try:
            updated = credential_store.update_password(mobile_number, new_password)
        except SQLAlchemyError as exc:
            LOGGER.error("Password update error for %s: %s", mobile_number, exc)
            raise PasswordResetError("Failed to update password", status_code=500) from exc
        if not updated:
            raise PasswordResetError(
                "No account found with this mobile number", status_code=404
            )

        # Not atomic with the update above; a failure here leaves the code usable.
        otp_store.mark_used(otp_entry.id)

        credentials = credential_store.get_by_mobile(mobile_number)
        if credentials is not None:
            deactivated = session_store.deactivate_all(credentials.id)
            LOGGER.info(
                "Password reset for user %s; %s session(s) deactivated",
                credentials.id,
                deactivated,
            )

        return {
            "success": True,
            "message": "Password reset successfully. Please sign in with your new password.",
        }


password_reset_service = PasswordResetService()
