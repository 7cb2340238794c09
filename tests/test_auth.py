"""Registration, login, logout and access control."""

import pytest
from sqlalchemy import text

from damibook.config import settings
from damibook.models import Post, User
from damibook.services.auth import verify_password

from conftest import login, register, session_headers


def test_login_page(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert 'name="username"' in response.text


def test_register_page(client):
    response = client.get("/register")
    assert response.status_code == 200
    assert 'action="/register"' in response.text


def test_register_logs_in_and_redirects_to_feed(client, db):
    response = register(client, "alice", "pw1")
    assert response.status_code == 200
    assert response.url.path == "/"
    assert response.history[0].status_code == 303
    assert "alice" in response.text

    users = db.all(User)
    assert len(users) == 1
    assert users[0].username == "alice"
    assert users[0].created_at is not None


def test_register_stores_salted_hash(client, db):
    register(client, "alice", "pw1")
    client.get("/logout")
    register(client, "bob", "pw1")

    alice, bob = db.all(User)
    assert alice.password_hash != "pw1"
    assert alice.password_hash != bob.password_hash
    assert verify_password("pw1", alice.password_hash)


@pytest.mark.parametrize("username,password", [
    ("", "pw1"),
    ("alice", ""),
    ("   ", "pw1"),
    ("", ""),
])
def test_register_requires_identity_and_secret(client, db, username, password):
    response = register(client, username, password)
    assert response.status_code == 400
    assert "required" in response.text
    assert db.count(User) == 0


def test_register_missing_fields(client, db):
    response = client.post("/register", data={})
    assert response.status_code == 400
    assert db.count(User) == 0


def test_register_duplicate_username(client, db):
    register(client, "alice", "pw1")
    client.get("/logout")

    response = register(client, "alice", "other")
    assert response.status_code == 400
    assert "already taken" in response.text
    assert db.count(User) == 1


def test_unique_constraint_backs_up_the_check(client, db, monkeypatch):
    # Tables were created with uniqueness enforced; skipping the lookup
    # leaves the constraint to reject the duplicate
    assert User.__table__.c.username.unique
    register(client, "alice", "pw1")
    client.get("/logout")

    monkeypatch.setattr(settings, "ENFORCE_UNIQUE_IDENTITY", False)
    response = register(client, "alice", "pw2")
    assert response.status_code == 400
    assert "already taken" in response.text
    assert db.count(User) == 1


def test_duplicates_allowed_when_uniqueness_is_off(client, db, monkeypatch):
    # Schema as it is created with ENFORCE_UNIQUE_IDENTITY=false: a plain index
    async def drop_unique_index(session):
        await session.execute(text("DROP INDEX ix_users_username"))
        await session.execute(text("CREATE INDEX ix_users_username ON users (username)"))
        await session.commit()

    db.run(drop_unique_index)
    monkeypatch.setattr(settings, "ENFORCE_UNIQUE_IDENTITY", False)

    register(client, "alice", "pw1")
    client.get("/logout")
    response = register(client, "alice", "pw2")
    assert response.url.path == "/"

    first, second = db.all(User, username="alice")
    assert first.id < second.id

    # Login resolves to the oldest account
    client.get("/logout")
    assert login(client, "alice", "pw1").url.path == "/"
    client.post("/posts", data={"content": "hello"})
    assert db.all(Post)[0].author_id == first.id

    client.get("/logout")
    assert login(client, "alice", "pw2").status_code == 401


def test_login_success(client, alice):
    client.get("/logout")

    response = login(client, "alice", "pw1")
    assert response.status_code == 200
    assert response.url.path == "/"
    assert "alice" in response.text


def test_login_unknown_user(client, alice):
    client.get("/logout")

    response = login(client, "nobody", "pw1")
    assert response.status_code == 401
    assert "User not found" in response.text
    assert client.get("/").url.path == "/login"


def test_login_wrong_password(client, alice):
    client.get("/logout")

    response = login(client, "alice", "wrong")
    assert response.status_code == 401
    assert "Incorrect password" in response.text
    assert client.get("/").url.path == "/login"


def test_login_other_users_password(client, alice, bob):
    client.get("/logout")

    response = login(client, "alice", "pw2")
    assert response.status_code == 401


def test_login_replaces_previous_session(client, alice):
    old_token = client.cookies.get(settings.SESSION_COOKIE_NAME)

    login(client, "alice", "pw1")
    new_token = client.cookies.get(settings.SESSION_COOKIE_NAME)
    assert new_token != old_token

    client.cookies.clear()
    response = client.get("/", headers=session_headers(old_token), follow_redirects=False)
    assert response.headers["location"] == "/login"
    response = client.get("/", headers=session_headers(new_token), follow_redirects=False)
    assert response.status_code == 200


def test_session_cookie_flags(client):
    response = register(client, "alice", "pw1")
    set_cookie = response.history[0].headers["set-cookie"].lower()
    assert settings.SESSION_COOKIE_NAME in set_cookie
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie


def test_protected_routes_redirect_anonymous(client, db):
    for path in ["/", "/chat/1"]:
        response = client.get(path, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    for path in ["/posts", "/posts/1/comments", "/chat/1"]:
        response = client.post(path, data={"content": "x"}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


def test_forged_session_token_is_rejected(client):
    response = client.get("/", headers=session_headers("not-a-real-token"), follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_logout(client, alice):
    assert client.get("/").url.path == "/"

    response = client.get("/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"

    response = client.get("/", follow_redirects=False)
    assert response.headers["location"] == "/login"


def test_logout_destroys_session_server_side(client, alice):
    token = client.cookies.get(settings.SESSION_COOKIE_NAME)
    client.get("/logout")

    # Replaying the old cookie does not bring the session back
    response = client.get("/", headers=session_headers(token), follow_redirects=False)
    assert response.headers["location"] == "/login"


def test_logout_when_anonymous(client):
    response = client.get("/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


class TestEmailIdentity:
    """AUTH_IDENTITY=email: register with username + email, log in with email."""

    @pytest.fixture(autouse=True)
    def email_identity(self, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_IDENTITY", "email")

    def test_forms_ask_for_email(self, client):
        assert 'name="email"' in client.get("/register").text
        assert 'name="email"' in client.get("/login").text

    def test_register_and_login_with_email(self, client, db):
        response = register(client, "alice", "pw1", email="Alice@Example.com")
        assert response.url.path == "/"

        user = db.user("alice")
        assert user.email == "Alice@example.com"

        client.get("/logout")
        response = client.post("/login", data={"email": "Alice@example.com", "password": "pw1"})
        assert response.url.path == "/"

    def test_register_requires_email(self, client, db):
        response = register(client, "alice", "pw1")
        assert response.status_code == 400
        assert "Email is required" in response.text
        assert db.count(User) == 0

    def test_register_rejects_malformed_email(self, client, db):
        response = register(client, "alice", "pw1", email="not-an-email")
        assert response.status_code == 400
        assert db.count(User) == 0

    def test_duplicate_email(self, client, db):
        register(client, "alice", "pw1", email="alice@example.com")
        client.get("/logout")

        response = register(client, "alice2", "pw2", email="alice@example.com")
        assert response.status_code == 400
        assert "already taken" in response.text
        assert db.count(User) == 1

    def test_login_by_username_is_not_accepted(self, client):
        register(client, "alice", "pw1", email="alice@example.com")
        client.get("/logout")

        response = login(client, "alice", "pw1")
        assert response.status_code == 401
