"""Shared builders for tests."""

from datetime import datetime, timezone
from uuid import uuid4

from src.models.user import User

# Long enough to pass the minimum image size check
SAMPLE_IMAGE = "data:image/jpeg;base64," + ("QUJDRA" * 400)


def make_user(email: str = "alice@example.com", name: str = "Alice") -> User:
    """Create a User model for tests that do not need the store."""
    return User(
        id=uuid4(),
        email=email,
        name=name,
        created_at=datetime.now(timezone.utc),
    )


def register(
    client,
    email: str = "alice@example.com",
    password: str = "secret123",
    name: str = "Alice",
) -> dict:
    """Register through the API and return the response body."""
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()


def bearer(body: dict) -> dict:
    """Authorization header for an auth response body."""
    return {"Authorization": f"Bearer {body['tokens']['accessToken']}"}
