from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from app.database import session_scope
from app.models.db_operation import _update_records
from app.models.otp import OtpEntry
from app.services import password_reset as password_reset_module
from app.services.sms import SmsSendError

MOBILE = "9876543210"
ENDPOINT = "/functions/password-reset"


def _post(client, **body):
    return client.post(ENDPOINT, json=body)


def _request_code(client, mobile_number: str = MOBILE) -> str:
    response = _post(client, action="request_otp", mobile_number=mobile_number)
    assert response.status_code == 200, response.text
    return response.json()["debug_otp"]


def _otp_rows(mobile_number: str = MOBILE):
    with session_scope() as session:
        return session.execute(
            select(OtpEntry).where(OtpEntry.mobile_number == mobile_number)
        ).scalars().all()


@pytest.mark.parametrize(
    "mobile_number",
    ["12345", "12345678901", "12345abcde", "98765 43210", "+919876543210", ""],
)
def test_request_otp_rejects_malformed_mobile_number(client, mobile_number):
    response = _post(client, action="request_otp", mobile_number=mobile_number)
    assert response.status_code == 400
    assert response.json() == {"error": "Please enter a valid 10-digit mobile number"}


def test_request_otp_rejects_missing_mobile_number(client):
    response = _post(client, action="request_otp")
    assert response.status_code == 400


def test_request_otp_unknown_number(client):
    response = _post(client, action="request_otp", mobile_number="1111111111")
    assert response.status_code == 404
    assert response.json() == {"error": "No account found with this mobile number"}


def test_request_otp_returns_debug_code(client, make_user):
    make_user(MOBILE)
    response = _post(client, action="request_otp", mobile_number=MOBILE)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "OTP sent successfully"
    assert len(body["debug_otp"]) == 6
    assert body["debug_otp"].isdigit()
    assert not body["debug_otp"].startswith("0")


def test_request_otp_twice_keeps_single_row(client, make_user):
    make_user(MOBILE)
    _request_code(client)
    second = _request_code(client)

    rows = _otp_rows()
    assert len(rows) == 1
    assert rows[0].otp_code == second
    assert rows[0].is_used is False


def test_otp_expires_after_ten_minutes(client, make_user):
    make_user(MOBILE)
    _request_code(client)
    row = _otp_rows()[0]
    created_at = row.created_at.replace(tzinfo=timezone.utc)
    expires_at = row.expires_at.replace(tzinfo=timezone.utc)
    assert expires_at - created_at == timedelta(minutes=10)


def test_verify_otp_does_not_consume_code(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)

    for _ in range(2):
        response = _post(client, action="verify_otp", mobile_number=MOBILE, otp=code)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "OTP verified successfully",
            "verified": True,
        }
    assert _otp_rows()[0].is_used is False


def test_verify_otp_wrong_code(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)
    wrong = "100000" if code != "100000" else "100001"
    response = _post(client, action="verify_otp", mobile_number=MOBILE, otp=wrong)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired OTP"}


def test_verify_otp_requires_fields(client):
    response = _post(client, action="verify_otp", mobile_number=MOBILE)
    assert response.status_code == 400
    assert response.json() == {"error": "Mobile number and OTP are required"}


def test_expired_otp_rejected_by_verify_and_reset(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)
    _update_records(
        "otp",
        values={"expires_at": datetime.now(timezone.utc) - timedelta(minutes=1)},
        mobile_number=MOBILE,
    )

    response = _post(client, action="verify_otp", mobile_number=MOBILE, otp=code)
    assert response.status_code == 400

    response = _post(
        client,
        action="reset_password",
        mobile_number=MOBILE,
        otp=code,
        new_password="newsecret",
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired OTP. Please request a new one."}


def test_reset_password_changes_credentials(client, make_user):
    make_user(MOBILE, password="oldsecret")
    code = _request_code(client)

    response = _post(
        client,
        action="reset_password",
        mobile_number=MOBILE,
        otp=code,
        new_password="newsecret",
    )
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Password reset successfully. Please sign in with your new password.",
    }

    old_login = client.post(
        "/api/auth/login", json={"mobile_number": MOBILE, "password": "oldsecret"}
    )
    assert old_login.status_code == 401
    new_login = client.post(
        "/api/auth/login", json={"mobile_number": MOBILE, "password": "newsecret"}
    )
    assert new_login.status_code == 200


def test_used_otp_cannot_be_reused(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)
    body = {
        "action": "reset_password",
        "mobile_number": MOBILE,
        "otp": code,
        "new_password": "newsecret",
    }
    assert client.post(ENDPOINT, json=body).status_code == 200
    assert _otp_rows()[0].is_used is True

    body["new_password"] = "another-secret"
    response = client.post(ENDPOINT, json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired OTP. Please request a new one."}


def test_reset_password_deactivates_sessions(client, make_user):
    _, headers = make_user(MOBILE)
    assert client.get("/api/jobs/mine", headers=headers).status_code == 200

    code = _request_code(client)
    response = _post(
        client,
        action="reset_password",
        mobile_number=MOBILE,
        otp=code,
        new_password="newsecret",
    )
    assert response.status_code == 200

    response = client.get("/api/jobs/mine", headers=headers)
    assert response.status_code == 401


def test_reset_password_rejects_short_password(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)
    response = _post(
        client,
        action="reset_password",
        mobile_number=MOBILE,
        otp=code,
        new_password="abc",
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Password must be at least 6 characters"}
    assert _otp_rows()[0].is_used is False


def test_reset_password_requires_fields(client):
    response = _post(client, action="reset_password", mobile_number=MOBILE, otp="123456")
    assert response.status_code == 400
    assert response.json() == {"error": "Mobile number, OTP, and new password are required"}


def test_invalid_action(client):
    response = _post(client, action="delete_account", mobile_number=MOBILE)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


def test_malformed_body(client):
    response = client.post(
        ENDPOINT, content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_unexpected_error_maps_to_internal_server_error(client, monkeypatch):
    def _boom(mobile_number):
        raise RuntimeError("database went away")

    monkeypatch.setattr(password_reset_module.credential_store, "exists", _boom)
    response = _post(client, action="request_otp", mobile_number=MOBILE)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_debug_code_hidden_when_debug_disabled(client, make_user, monkeypatch):
    make_user(MOBILE)
    monkeypatch.setattr(
        password_reset_module,
        "settings",
        replace(password_reset_module.settings, otp_debug=False),
    )
    response = _post(client, action="request_otp", mobile_number=MOBILE)
    assert response.status_code == 200
    assert "debug_otp" not in response.json()


def test_otp_dispatched_over_sms_when_configured(client, make_user, monkeypatch):
    make_user(MOBILE)
    sent = []
    monkeypatch.setattr(
        password_reset_module,
        "settings",
        replace(
            password_reset_module.settings,
            twilio_account_sid="AC123",
            twilio_auth_token="token",
            twilio_phone_number="+15550001111",
        ),
    )
    monkeypatch.setattr(
        password_reset_module,
        "send_password_reset_sms",
        lambda to_phone, code: sent.append((to_phone, code)),
    )

    code = _request_code(client)
    assert sent == [(MOBILE, code)]


def test_sms_failure_maps_to_bad_gateway(client, make_user, monkeypatch):
    make_user(MOBILE)

    def _fail(to_phone, code):
        raise SmsSendError("Failed to send OTP")

    monkeypatch.setattr(
        password_reset_module,
        "settings",
        replace(
            password_reset_module.settings,
            twilio_account_sid="AC123",
            twilio_auth_token="token",
            twilio_phone_number="+15550001111",
        ),
    )
    monkeypatch.setattr(password_reset_module, "send_password_reset_sms", _fail)

    response = _post(client, action="request_otp", mobile_number=MOBILE)
    assert response.status_code == 502
    assert response.json() == {"error": "Failed to send OTP"}


def test_cors_open_to_any_origin(client):
    response = client.options(
        ENDPOINT,
        headers={
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_numeric_json_fields_are_accepted(client, make_user):
    make_user(MOBILE)
    response = client.post(
        ENDPOINT, json={"action": "request_otp", "mobile_number": int(MOBILE)}
    )
    assert response.status_code == 200
    code = response.json()["debug_otp"]

    response = client.post(
        ENDPOINT,
        json={"action": "verify_otp", "mobile_number": int(MOBILE), "otp": int(code)},
    )
    assert response.status_code == 200
    assert response.json()["verified"] is True


def test_verify_and_reset_trim_mobile_and_code(client, make_user):
    make_user(MOBILE)
    code = _request_code(client)
    response = _post(
        client, action="verify_otp", mobile_number=f" {MOBILE} ", otp=f" {code}"
    )
    assert response.status_code == 200

    response = _post(
        client,
        action="reset_password",
        mobile_number=f"{MOBILE} ",
        otp=f"{code} ",
        new_password="newsecret",
    )
    assert response.status_code == 200
    assert _otp_rows()[0].is_used is True


def test_reset_password_when_credentials_vanished(client, make_user, monkeypatch):
    make_user(MOBILE)
    code = _request_code(client)
    monkeypatch.setattr(
        password_reset_module.credential_store,
        "update_password",
        lambda mobile_number, new_password: 0,
    )

    response = _post(
        client,
        action="reset_password",
        mobile_number=MOBILE,
        otp=code,
        new_password="newsecret",
    )
    assert response.status_code == 404
    assert response.json() == {"error": "No account found with this mobile number"}
    assert _otp_rows()[0].is_used is False
