"""Request helpers shared by the API tests."""

from taskhub.config import Settings

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "pw123456"


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "database_url": TEST_DB_URL,
        "access_token_secret": "test-access-secret",
        "refresh_token_secret": "test-refresh-secret",
        "bcrypt_rounds": 4,
        "rate_limit_rpm": 10_000,
        "rate_limit_auth_rpm": 10_000,
    }
    values.update(overrides)
    return Settings(**values)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client, email: str, role: str = "user", password: str = PASSWORD) -> dict:
    r = await client.post(
        "/api/auth/register",
        json={"email": email, "password": password, "role": role},
    )
    assert r.status_code == 201, r.text
    return r.json()["user"]


async def login(client, email: str, password: str = PASSWORD) -> dict:
    r = await client.post(
        "/api/auth/login", json={"email": email, "password": password}
    )
    assert r.status_code == 200, r.text
    return r.json()


async def signup(client, email: str, role: str = "user") -> dict:
    """Register + login. Returns the login body plus ready-made headers."""
    await register(client, email, role)
    body = await login(client, email)
    body["headers"] = bearer(body["accessToken"])
    return body


async def create_project(client, headers: dict, title: str = "P1") -> dict:
    r = await client.post("/api/projects", json={"title": title}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


async def create_task(
    client, headers: dict, project_id: int, assigned_to_id=None, title: str = "T1"
) -> dict:
    body = {"title": title, "projectId": project_id}
    if assigned_to_id is not None:
        body["assignedToId"] = assigned_to_id
    r = await client.post("/api/tasks", json=body, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()
