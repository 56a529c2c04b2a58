from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.config import settings
from app.services.credentials import is_valid_mobile_number


class CredentialsRequest(BaseModel):
    mobile_number: str = Field(min_length=10, max_length=10)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("mobile_number")
    @classmethod
    def validate_mobile_number(cls, value: str) -> str:
        if not is_valid_mobile_number(value):
            raise ValueError("Please enter a valid 10-digit mobile number")
        return value


class RegisterRequest(CredentialsRequest):
    @field_validator("password")
    @classmethod
    def validate_password_length(cls, value: str) -> str:
        if len(value) < settings.min_password_length:
            raise ValueError(
                f"Password must be at least {settings.min_password_length} characters"
            )
        return value


class RegisterResponse(BaseModel):
    message: str
    user_id: int


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in_seconds: int
    user_id: int


class PasswordStrengthRequest(BaseModel):
    password: str = Field(max_length=128)


class PasswordStrengthResponse(BaseModel):
    checks: dict[str, bool]
    passed_checks: int
    strength: Literal["weak", "fair", "good", "strong"]
    percentage: float
