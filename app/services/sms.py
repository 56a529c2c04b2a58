from __future__ import annotations

import base64
import logging
import re
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from app.config import settings

LOGGER = logging.getLogger(__name__)

TWILIO_MESSAGES_ENDPOINT = (
    "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
)


class SmsSendError(RuntimeError):
    pass


def send_password_reset_sms(to_phone: str, code: str) -> None:
    if not settings.sms_configured:
        raise SmsSendError("Twilio is not configured")
    account_sid = settings.twilio_account_sid
    auth_token = settings.twilio_auth_token

    to_number = _normalize_e164(to_phone)
    from_number = _normalize_e164(settings.twilio_phone_number)
    body = _build_body(code, settings.otp_ttl_seconds)
    LOGGER.info("Sending password reset SMS to=%s from=%s", to_number, from_number)
    payload = urlencode({"To": to_number, "From": from_number, "Body": body}).encode(
        "utf-8"
    )
    token = base64.b64encode(f"{account_sid}:{auth_token}".encode("utf-8")).decode(
        "ascii"
    )
    request = Request(
        TWILIO_MESSAGES_ENDPOINT.format(account_sid=account_sid),
        data=payload,
        headers={
            "Authorization": f"Basic {token}",
            "Content-Type": "application/x-www-form-urlencoded",
        },
        method="POST",
    )
    try:
        with urlopen(request, timeout=10) as response:
            response.read()
    except HTTPError as exc:
        error_body = exc.read().decode("utf-8", errors="replace")
        LOGGER.error(
            "Twilio API error to=%s response=%s",
            to_number,
            error_body,
        )
        raise SmsSendError("Failed to send OTP") from exc
    except URLError as exc:
        raise SmsSendError("Failed to reach SMS provider") from exc


def _normalize_e164(phone_number: str) -> str:
    digits = re.sub(r"\D", "", phone_number.strip())
    if not digits:
        raise SmsSendError("Phone number is missing")
    if len(digits) == 10:
        default_code = re.sub(r"\D", "", settings.default_country_code)
        if not default_code:
            raise SmsSendError("Default country code is not configured")
        digits = f"{default_code}{digits}"
    if len(digits) < 10 or len(digits) > 15:
        raise SmsSendError("Phone number must include a valid country code")
    return f"+{digits}"


def _build_body(code: str, ttl_seconds: int) -> str:
    minutes = max(1, ttl_seconds // 60)
    return (
        f"Your password reset code is {code}."
        f" It expires in {minutes} minute(s)."
        " Do not share it with anyone."
    )
