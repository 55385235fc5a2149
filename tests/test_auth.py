# tests/test_auth.py
# Sign-up / sign-in / sign-out through the real app with a temp database.

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

import finance_tracker.routers.account as account_router
from finance_tracker.models import Credential, FinancialProfile, User


def test_signup_creates_user_and_profile(client, signup_data, session):
    r = client.post("/auth/signup", data=signup_data, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"

    user = session.exec(select(User).where(User.login == "maria_s")).one()
    cred = session.exec(select(Credential)).one()
    assert user.id == cred.id
    assert user.email == "maria@test.com"
    assert cred.hashed_password != "secret1"
    profile = session.exec(
        select(FinancialProfile).where(FinancialProfile.user_id == user.id)
    ).one()
    assert profile.default_closing_day == 1

    # session cookie is set: dashboard opens
    r = client.get("/dashboard")
    assert r.status_code == 200
    assert "Hello, Maria!" in r.text


def test_pages_require_sign_in(client):
    for path in ("/dashboard", "/transactions", "/categories", "/loans", "/recurring", "/account"):
        r = client.get(path, follow_redirects=False)
        assert r.status_code == 303, path
        assert r.headers["location"] == "/auth/signin"

    r = client.get("/auth/signin")
    assert "Please sign in to continue." in r.text


def test_password_mismatch(client, signup_data, session):
    data = dict(signup_data, confirm_password="other1")
    r = client.post("/auth/signup", data=data, follow_redirects=False)
    assert r.status_code == 400
    assert "Passwords do not match" in r.text
    assert session.exec(select(Credential)).first() is None


def test_signup_field_validation(client, signup_data):
    data = dict(signup_data, login="no spaces", phone="123", birth_date="")
    r = client.post("/auth/signup", data=data, follow_redirects=False)
    assert r.status_code == 400
    assert "Login may only contain letters, numbers and underscore" in r.text
    assert "Invalid phone number" in r.text
    assert "Birth date is required" in r.text
    # passwords are never echoed back
    assert "secret1" not in r.text


def test_duplicate_email(client, signup_data):
    client.post("/auth/signup", data=signup_data, follow_redirects=False)
    client.get("/auth/signout")

    data = dict(signup_data, login="someone_else")
    r = client.post("/auth/signup", data=data, follow_redirects=False)
    assert r.status_code == 400
    assert "This email is already registered." in r.text


def test_duplicate_login(client, signup_data, session):
    client.post("/auth/signup", data=signup_data, follow_redirects=False)
    client.get("/auth/signout")

    data = dict(signup_data, email="other@test.com")
    r = client.post("/auth/signup", data=data, follow_redirects=False)
    assert r.status_code == 400
    assert "This login is already in use." in r.text
    # only one personal-data row exists
    assert len(session.exec(select(User)).all()) == 1


def test_signin_wrong_password(client, signup_data):
    client.post("/auth/signup", data=signup_data, follow_redirects=False)
    client.get("/auth/signout")

    r = client.post(
        "/auth/signin",
        data={"email": "maria@test.com", "password": "wrong!"},
        follow_redirects=False,
    )
    assert r.status_code == 400
    assert "Invalid email or password." in r.text


def test_signin_missing_fields(client):
    r = client.post("/auth/signin", data={"email": "", "password": ""}, follow_redirects=False)
    assert r.status_code == 400
    assert "Fill in all fields" in r.text


def test_signout_then_signin(client, signup_data):
    client.post("/auth/signup", data=signup_data, follow_redirects=False)

    r = client.get("/auth/signout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert client.get("/dashboard", follow_redirects=False).status_code == 303

    # email is matched case-insensitively
    r = client.post(
        "/auth/signin",
        data={"email": "  MARIA@test.com ", "password": "secret1"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert client.get("/dashboard").status_code == 200


def test_home_redirects_when_signed_in(signed_in):
    r = signed_in.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.text == "ok"


def test_half_registered_credential_cannot_sign_in(client, signup_data, session):
    client.post("/auth/signup", data=signup_data, follow_redirects=False)
    client.get("/auth/signout")
    # same login, new email: the credential is created, the profile insert fails
    data = dict(signup_data, email="other@test.com")
    assert client.post("/auth/signup", data=data, follow_redirects=False).status_code == 400
    assert len(session.exec(select(Credential)).all()) == 2

    r = client.post(
        "/auth/signin",
        data={"email": "other@test.com", "password": "secret1"},
        follow_redirects=False,
    )
    assert r.status_code == 400
    assert "This account was not fully created. Please contact support." in r.text

    r = client.get("/account/financial", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/auth/signin"


def test_financial_page_survives_store_errors(signed_in, monkeypatch):
    def broken(session, user_id):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(account_router, "get_or_create_financial_profile", broken)

    r = signed_in.get("/account/financial", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert "Could not load the financial profile." in signed_in.get("/dashboard").text
