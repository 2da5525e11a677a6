from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from coffeeshop.models import User
from tests.conftest import PASSWORD


async def test_register_returns_user_and_token(client):
    response = await client.post("/api/auth/register", json={
        "first_name": "An",
        "last_name": "Nguyen",
        "email": "An.Nguyen@mail.com",
        "password": PASSWORD,
    })

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Registration successful"
    assert body["user"]["email"] == "an.nguyen@mail.com"
    assert "password" not in body["user"]
    assert body["token"]


async def test_register_duplicate_email(client, register):
    await register()
    response = await client.post("/api/auth/register", json={
        "first_name": "Other",
        "last_name": "Person",
        "email": "an.nguyen@mail.com",
        "password": "x",
    })

    assert response.status_code == 400
    assert response.json() == {"message": "Email already exists"}


async def test_register_missing_fields(client):
    response = await client.post("/api/auth/register", json={"email": "an.nguyen@mail.com"})

    assert response.status_code == 400
    assert response.json()["message"].startswith("Missing or invalid fields")


async def test_login_queues_notice(client, register, dispatched):
    await register()
    response = await client.post(
        "/api/auth/login", json={"email": "an.nguyen@mail.com", "password": PASSWORD}
    )

    assert response.status_code == 200
    assert response.json()["token"]
    assert dispatched.login_notice.calls[0][:2] == ("an.nguyen@mail.com", "An Nguyen")


async def test_login_wrong_password(client, register):
    await register()
    response = await client.post(
        "/api/auth/login", json={"email": "an.nguyen@mail.com", "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid email or password"}


async def test_login_unknown_email(client):
    response = await client.post(
        "/api/auth/login", json={"email": "ghost@mail.com", "password": "nope"}
    )
    assert response.status_code == 401


async def test_profile_requires_token(client):
    response = await client.get("/api/auth/profile")
    assert response.status_code == 401

    response = await client.get("/api/auth/profile", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}


async def test_profile_read_and_update(client, register):
    headers = await register()

    response = await client.get("/api/auth/profile", headers=headers)
    assert response.json()["first_name"] == "An"

    response = await client.put("/api/auth/profile", headers=headers, json={
        "first_name": "Anh",
        "last_name": "Nguyen",
        "address": "12 Le Loi",
    })
    assert response.status_code == 200
    assert response.json()["first_name"] == "Anh"
    assert response.json()["address"] == "12 Le Loi"


async def test_reset_otp_for_unknown_email_looks_the_same(client, register, dispatched):
    await register()

    unknown = await client.post("/api/auth/request-reset-otp", json={"email": "ghost@mail.com"})
    known = await client.post("/api/auth/request-reset-otp", json={"email": "an.nguyen@mail.com"})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    assert len(dispatched.reset_otp.calls) == 1


async def test_password_reset_flow(client, register, dispatched):
    await register()
    await client.post("/api/auth/request-reset-otp", json={"email": "an.nguyen@mail.com"})
    email, _, otp = dispatched.reset_otp.calls[0]
    assert email == "an.nguyen@mail.com"
    wrong = "000000" if otp != "000000" else "111111"

    response = await client.post(
        "/api/auth/verify-reset-otp", json={"email": email, "otp": wrong}
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Incorrect OTP"}

    response = await client.post("/api/auth/verify-reset-otp", json={"email": email, "otp": otp})
    assert response.status_code == 200

    response = await client.post(
        "/api/auth/reset-password",
        json={"email": email, "otp": otp, "new_password": "brand-new"},
    )
    assert response.status_code == 200

    # The code is single use
    response = await client.post(
        "/api/auth/reset-password",
        json={"email": email, "otp": otp, "new_password": "again"},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid OTP"}

    old = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    new = await client.post("/api/auth/login", json={"email": email, "password": "brand-new"})
    assert old.status_code == 401
    assert new.status_code == 200


async def test_expired_otp(client, register, dispatched, session_maker):
    await register()
    await client.post("/api/auth/request-reset-otp", json={"email": "an.nguyen@mail.com"})
    otp = dispatched.reset_otp.calls[0][2]

    async with session_maker() as session:
        user = (await session.execute(select(User))).scalar_one()
        user.reset_otp_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
        await session.commit()

    response = await client.post(
        "/api/auth/verify-reset-otp", json={"email": "an.nguyen@mail.com", "otp": otp}
    )
    assert response.status_code == 400
    assert response.json() == {"message": "OTP has expired"}


async def test_camel_case_names_are_accepted(client):
    response = await client.post("/api/auth/register", json={
        "firstName": "An",
        "lastName": "Nguyen",
        "email": "an.nguyen@mail.com",
        "password": PASSWORD,
    })
    assert response.status_code == 201
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    response = await client.put(
        "/api/auth/profile", headers=headers, json={"firstName": "Anh", "lastName": "Tran"}
    )
    assert response.status_code == 200
    assert response.json()["first_name"] == "Anh"
    assert response.json()["last_name"] == "Tran"


class BrokenBroker:
    def delay(self, *args, **kwargs):
        raise ConnectionError("broker unreachable")


async def test_reset_otp_request_survives_broker_outage(client, register, monkeypatch, session_maker):
    await register()
    monkeypatch.setattr("coffeeshop.routers.auth.send_password_reset_otp", BrokenBroker())

    response = await client.post("/api/auth/request-reset-otp", json={"email": "an.nguyen@mail.com"})

    assert response.status_code == 200
    async with session_maker() as session:
        user = (await session.execute(select(User))).scalar_one()
        assert user.reset_otp is not None
