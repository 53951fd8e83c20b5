import itertools
from concurrent.futures import Future
from datetime import datetime, timezone

import pytest
from argon2 import PasswordHasher

from campushub.auth_service import store
from campushub.auth_service.utils import create_token
from campushub.core.exceptions import AlreadyRegisteredError, DuplicateEmailError, EventNotFoundError
from campushub.gateway.server import create_app
from campushub.notify_service.mailer import Notifier

TEST_SECRET = "campushub-test-secret-0123456789abcdef"


class InlineExecutor:
    """Runs submitted work immediately so email side effects are observable."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def shutdown(self, wait=True):
        pass


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to, subject, html_body, text_body, bcc=None):
        if self.fail:
            raise RuntimeError("mail relay unavailable")
        self.sent.append({"to": list(to), "bcc": list(bcc or []), "subject": subject, "html": html_body, "text": text_body})


class FakeCredentialStore:
    """In-memory stand-in for the users/admins tables, one namespace per kind."""

    def __init__(self):
        self.ph = PasswordHasher()
        self.rows = {store.USER: {}, store.ADMIN: {}}
        self.ids = itertools.count(1)

    def create_principal(self, kind, email, password):
        table = self.rows[kind]
        if any(row["email"] == email for row in table.values()):
            raise DuplicateEmailError(kind, email)
        username = email.split("@")[0]
        row = {
            "id": next(self.ids),
            "username": username,
            "email": email,
            "role": "admin" if kind == store.ADMIN else "student",
            "password_hash": self.ph.hash(password),
            "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        }
        if kind == store.ADMIN:
            row["admin_name"] = username
        table[row["id"]] = row
        return {k: v for k, v in row.items() if k != "password_hash"}

    def find_by_email(self, kind, email):
        for row in self.rows[kind].values():
            if row["email"] == email:
                return dict(row)
        return None

    def find_by_id(self, kind, principal_id):
        row = self.rows[kind].get(principal_id)
        if row is None:
            return None
        return {k: v for k, v in row.items() if k != "password_hash"}

    def list_user_emails(self):
        return [row["email"] for row in self.rows[store.USER].values()]


class FakeEventsBackend:
    """In-memory stand-in for the catalog and ledger modules."""

    def __init__(self, credentials):
        self.credentials = credentials
        self.events = {}
        self.registrations = []
        self.ids = itertools.count(1)

    def create_event(self, organizer_id, fields):
        event = dict(fields, id=next(self.ids), organizerId=organizer_id)
        self.events[event["id"]] = event
        return dict(event)

    def get_event(self, event_id):
        event = self.events.get(event_id)
        return dict(event) if event else None

    def register(self, user_id, event_id):
        if event_id not in self.events:
            raise EventNotFoundError(event_id)
        if any(r["userId"] == user_id and r["eventId"] == event_id for r in self.registrations):
            raise AlreadyRegisteredError(user_id, event_id)
        registration = {"id": len(self.registrations) + 1, "userId": user_id, "eventId": event_id}
        self.registrations.append(registration)
        return dict(registration)

    def list_for_event(self, event_id):
        out = []
        for r in self.registrations:
            if r["eventId"] == event_id:
                user = self.credentials.find_by_id(store.USER, r["userId"])
                out.append(dict(r, user={"id": user["id"], "username": user["username"], "email": user["email"]}))
        return out


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def notifier(transport):
    return Notifier(transport, executor=InlineExecutor(), app_url="https://campushub.test/")


@pytest.fixture
def app(notifier):
    app = create_app(
        {
            "TESTING": True,
            "JWT_SECRET": TEST_SECRET,
            "TOKEN_EXPIRATION_MINUTES": None,
            "DATABASE_URL": None,
            "RESEND_API_KEY": None,
        },
        notifier=notifier,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_token(app):
    def _make(subject_id=1, email="a@x.com", role="student"):
        with app.app_context():
            return create_token(subject_id, email, role)
    return _make


@pytest.fixture
def bearer(make_token):
    def _bearer(subject_id=1, email="a@x.com", role="student"):
        return {"Authorization": f"Bearer {make_token(subject_id, email, role)}"}
    return _bearer


@pytest.fixture
def mock_db(mocker):
    """
    Mocks the pooled connection and its cursor for every storage module.
    """
    mock_conn = mocker.MagicMock()
    mock_cursor = mocker.MagicMock()

    mock_conn.__enter__.return_value = mock_conn
    mock_conn.__exit__.return_value = None
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None
    mock_conn.cursor.return_value = mock_cursor

    for target in (
        "campushub.auth_service.store.get_db",
        "campushub.events_service.catalog.get_db",
        "campushub.events_service.ledger.get_db",
    ):
        mocker.patch(target, return_value=mock_conn)

    return mock_conn, mock_cursor


@pytest.fixture
def credentials(mocker):
    fake = FakeCredentialStore()
    mocker.patch("campushub.auth_service.store.create_principal", side_effect=fake.create_principal)
    mocker.patch("campushub.auth_service.store.find_by_email", side_effect=fake.find_by_email)
    mocker.patch("campushub.auth_service.store.find_by_id", side_effect=fake.find_by_id)
    mocker.patch("campushub.auth_service.store.list_user_emails", side_effect=fake.list_user_emails)
    return fake


@pytest.fixture
def events_backend(mocker, credentials):
    fake = FakeEventsBackend(credentials)
    mocker.patch("campushub.events_service.catalog.create_event", side_effect=fake.create_event)
    mocker.patch("campushub.events_service.catalog.get_event", side_effect=fake.get_event)
    mocker.patch("campushub.events_service.ledger.register", side_effect=fake.register)
    mocker.patch("campushub.events_service.ledger.list_for_event", side_effect=fake.list_for_event)
    return fake
