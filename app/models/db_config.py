from app.models.credentials import CredentialsEntry
from app.models.otp import OtpEntry
from app.models.session import SessionEntry


class Databases:
    credentials = CredentialsEntry
    session = SessionEntry
    otp = OtpEntry
