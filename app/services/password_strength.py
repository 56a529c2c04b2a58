from dataclasses import dataclass
import re

from app.config import settings

SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
TOTAL_CHECKS = 5


@dataclass(frozen=True)
class PasswordStrength:
    checks: dict[str, bool]
    passed_checks: int
    strength: str
    percentage: float


def evaluate_password(password: str) -> PasswordStrength:
    checks = {
        "min_length": len(password) >= settings.min_password_length,
        "has_uppercase": bool(re.search(r"[A-Z]", password)),
        "has_lowercase": bool(re.search(r"[a-z]", password)),
        "has_number": bool(re.search(r"[0-9]", password)),
        "has_special": bool(SPECIAL_CHARACTERS.search(password)),
    }
    passed = sum(checks.values())
    if passed >= 5:
        strength = "strong"
    elif passed >= 4:
        strength = "good"
    elif passed >= 3:
        strength = "fair"
    else:
        strength = "weak"
    return PasswordStrength(
        checks=checks,
        passed_checks=passed,
        strength=strength,
        percentage=passed / TOTAL_CHECKS * 100,
    )
