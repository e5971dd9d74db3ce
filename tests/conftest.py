"""
Shared pytest fixtures for the contact api tests.
"""
import pytest
from fastapi.testclient import TestClient

from contact_api.config.config import EmailSettings, RateLimitSettings, Settings, StorageSettings
from contact_api.database.messages import MessageStore
from contact_api.email.email import DisabledNotifier, NotificationResult, NotificationStatus
from contact_api.main.main import create_app
from contact_api.models.contact import SubmissionRecord

VALID_SUBMISSION = {
    "name": "Jo",
    "email": "a@b.com",
    "subject": "Hi",
    "message": "this is long enough"
}


class RecordingNotifier:
    """notifier that always delivers and remembers what it was given"""
    provider = "recording"

    def __init__(self, status: NotificationStatus = NotificationStatus.SENT, error: str | None = None):
        self.status = status
        self.error = error
        self.records: list[SubmissionRecord] = []

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        self.records.append(record)
        return NotificationResult(status=self.status, provider=self.provider, error=self.error)


class ExplodingNotifier:
    provider = "exploding"

    async def send(self, record: SubmissionRecord) -> NotificationResult:
        raise RuntimeError("notifier blew up")


def make_record(**overrides) -> SubmissionRecord:
    fields = dict(id="lq2x8abc123", name="Jo Bloggs", email="jo@example.com", subject="Hello",
                  company="", message="this is long enough", ip="127.0.0.1",
                  timestamp="2024-01-01T10:00:00.000Z")
    fields.update(overrides)
    return SubmissionRecord(**fields)


@pytest.fixture
def messages_file(tmp_path):
    return tmp_path / "data" / "messages.json"


@pytest.fixture
def settings(messages_file):
    return Settings(
        STORAGE=StorageSettings(MESSAGES_FILE=str(messages_file), STORE_SERIALIZE_WRITES=True),
        RATE_LIMIT=RateLimitSettings(RATE_LIMIT_MAX_REQUESTS=100, RATE_LIMIT_WINDOW_SECONDS=900),
        EMAIL_SETTINGS=EmailSettings(EMAIL_PROVIDER="disabled", SMTP_HOST=None, SMTP_USER=None, SMTP_PASS=None,
                                     SENDGRID_API_KEY=None, RECEIVER_EMAIL=None),
        DEBUG=False,
        TRUST_PROXY=True,
        EXPOSE_CONFIG_STATUS=False)


@pytest.fixture
def store(messages_file):
    return MessageStore(file_path=str(messages_file))


@pytest.fixture
def make_client(settings):
    """builds a started TestClient, notifier and store can be swapped per test"""
    clients = []

    def _make_client(notifier=None, store=None, app_settings=None):
        app = create_app(settings=app_settings or settings, store=store, notifier=notifier or DisabledNotifier())
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make_client
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
