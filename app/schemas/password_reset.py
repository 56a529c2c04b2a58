from typing import Optional

from pydantic import BaseModel, ConfigDict


class PasswordResetAction(BaseModel):
    """Body of the action-dispatched password reset endpoint.

    Field presence and shape are checked per action by the service so that
    failures come back as ``{"error": ...}`` rather than a validation dump.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    action: Optional[str] = None
    mobile_number: Optional[str] = None
    otp: Optional[str] = None
    new_password: Optional[str] = None
