import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from app.schemas.password_reset import PasswordResetAction
from app.services.password_reset import PasswordResetError, password_reset_service

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["password-reset"])


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/password-reset")
async def password_reset(request: Request) -> JSONResponse:
    try:
        try:
            payload = PasswordResetAction.model_validate(await request.json())
        except (ValueError, ValidationError):
            return _error("Invalid request body", status.HTTP_400_BAD_REQUEST)

        if payload.action == "request_otp":
            result = await run_in_threadpool(
                password_reset_service.request_otp, payload.mobile_number
            )
        elif payload.action == "verify_otp":
            result = await run_in_threadpool(
                password_reset_service.verify_otp, payload.mobile_number, payload.otp
            )
        elif payload.action == "reset_password":
            result = await run_in_threadpool(
                password_reset_service.reset_password,
                payload.mobile_number,
                payload.otp,
                payload.new_password,
            )
        else:
            return _error("Invalid action", status.HTTP_400_BAD_REQUEST)
        return JSONResponse(status_code=status.HTTP_200_OK, content=result)
    except PasswordResetError as exc:
        return _error(exc.message, exc.status_code)
    except Exception:
        LOGGER.exception("Password reset error")
        return _error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
