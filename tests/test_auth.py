import pytest

from models import Role
from services.auth import create_token, decode_token, hash_password, verify_password

REGISTRATION = {
    "username": "carol",
    "email": "carol@example.com",
    "password": "hunter22",
    "first_name": "Carol",
    "address": "9 Elm St",
}


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_token_roundtrip():
    token = create_token(7, "carol", Role.ADMIN, secret="k")
    data = decode_token(token, secret="k")
    assert data["sub"] == 7
    assert data["name"] == "carol"
    assert data["role"] == "ADMIN"


def test_token_rejected_when_tampered_or_expired():
    token = create_token(7, "carol", Role.CUSTOMER, secret="k")
    header, payload, _ = token.split(".")

    assert decode_token(token, secret="other") is None
    assert decode_token(f"{header}.{payload}.forged", secret="k") is None
    assert decode_token("not-a-token", secret="k") is None
    assert decode_token(f"{header}.{payload}.\xe9", secret="k") is None
    assert decode_token(create_token(7, "carol", Role.CUSTOMER, secret="k", expires_in=-10), secret="k") is None


@pytest.mark.asyncio
async def test_register_then_login(client):
    resp = await client.post("/api/register", json=REGISTRATION)
    assert resp.status_code == 201
    body = resp.json()
    assert body["type"] == "Bearer"
    assert body["role"] == "CUSTOMER"
    assert body["username"] == "carol"

    login = await client.post("/api/login", json={"username": "carol", "password": "hunter22"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "carol@example.com"
    assert me.json()["address"] == "9 Elm St"


@pytest.mark.asyncio
async def test_register_cannot_claim_admin(client):
    resp = await client.post("/api/register", json={**REGISTRATION, "role": "ADMIN"})
    assert resp.status_code == 201
    assert resp.json()["role"] == "CUSTOMER"


@pytest.mark.asyncio
async def test_register_duplicates(client):
    await client.post("/api/register", json=REGISTRATION)

    same_name = await client.post("/api/register", json={**REGISTRATION, "email": "other@example.com"})
    assert same_name.status_code == 400
    assert same_name.json()["detail"] == "Username is already taken!"

    same_email = await client.post("/api/register", json={**REGISTRATION, "username": "carol2"})
    assert same_email.status_code == 400
    assert same_email.json()["detail"] == "Email is already in use!"


@pytest.mark.asyncio
@pytest.mark.parametrize("override", [
    {"username": "ab"},
    {"email": "not-an-email"},
    {"password": "123"},
])
async def test_register_validation(client, override):
    resp = await client.post("/api/register", json={**REGISTRATION, **override})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_failures(client, make_user):
    await make_user("dave", password="rightpass1")

    wrong_pw = await client.post("/api/login", json={"username": "dave", "password": "nope"})
    assert wrong_pw.status_code == 401
    assert wrong_pw.json()["detail"] == "Invalid credentials"

    unknown = await client.post("/api/login", json={"username": "nobody", "password": "nope"})
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_bad_bearer_tokens(client):
    assert (await client.get("/api/users/me")).status_code == 401
    assert (await client.get("/api/users/me", headers={"Authorization": "Bearer junk"})).status_code == 401
    assert (await client.get("/api/users/me", headers={"Authorization": "Basic abc"})).status_code == 401
    latin1 = {"Authorization": "Bearer a.b.\xe9".encode("latin-1")}
    assert (await client.get("/api/users/me", headers=latin1)).status_code == 401


@pytest.mark.asyncio
async def test_token_for_deleted_user(client):
    token = create_token(12345, "ghost", Role.ADMIN)
    resp = await client.get("/api/orders/all", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
