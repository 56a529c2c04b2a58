import pytest

from app.services.password_strength import evaluate_password


@pytest.mark.parametrize(
    "password, strength, passed",
    [
        ("", "weak", 0),
        ("abc", "weak", 1),
        ("abcdef", "weak", 2),
        ("abcdef1", "fair", 3),
        ("Abcdef1", "good", 4),
        ("Abcdef1!", "strong", 5),
    ],
)
def test_strength_levels(password, strength, passed):
    result = evaluate_password(password)
    assert result.strength == strength
    assert result.passed_checks == passed
    assert result.percentage == passed / 5 * 100


def test_special_characters_are_limited_to_known_set():
    assert evaluate_password("Abcdef1_").checks["has_special"] is False
    assert evaluate_password("Abcdef1?").checks["has_special"] is True


def test_password_strength_endpoint(client):
    response = client.post("/api/auth/password-strength", json={"password": "Abcdef1"})
    assert response.status_code == 200
    body = response.json()
    assert body["strength"] == "good"
    assert body["checks"] == {
        "min_length": True,
        "has_uppercase": True,
        "has_lowercase": True,
        "has_number": True,
        "has_special": False,
    }
    assert body["percentage"] == 80.0
