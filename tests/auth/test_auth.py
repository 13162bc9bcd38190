import pytest
from fastapi import HTTPException, status

from blogapi.auth.security import (
    create_access_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from tests.factories import UserFactory


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = get_password_hash("Testpassword1")

        assert hashed != "Testpassword1"
        assert verify_password("Testpassword1", hashed)
        assert not verify_password("wrong", hashed)


class TestTokens:
    def test_round_trip(self):
        token = create_access_token({"sub": "42"})

        assert verify_token(token)["sub"] == "42"

    def test_invalid_token(self):
        with pytest.raises(HTTPException) as exc_info:
            verify_token("garbage")

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


class TestLogin:
    def test_login(self, client, db_session):
        user = UserFactory.with_password("Secret123", email="writer@example.com")

        response = client.post(
            "/auth/login", json={"email": "Writer@Example.com ", "password": "Secret123"}
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["token_type"] == "bearer"
        assert verify_token(data["access_token"])["sub"] == str(user.id)

    def test_wrong_password(self, client, db_session):
        UserFactory.with_password("Secret123", email="writer@example.com")

        response = client.post(
            "/auth/login", json={"email": "writer@example.com", "password": "nope"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_user(self, client):
        response = client.post(
            "/auth/login", json={"email": "ghost@example.com", "password": "x"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_for_deleted_user(self, client):
        token = create_access_token({"sub": "9999"})

        response = client.get(
            "/api/articles", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
