import socket

import pytest

from src.utils.factories import CloudEventFactory
from src.webhook_client.client import WebhookClient
from src.webhook_client.config import ClientConfig
from src.webhook_client.encoding import Mode
from src.webhook_client.logger import DeliveryLogger
from src.webhook_receiver.server import WebhookReceiverServer


WEBHOOK_SECRET = b"test-secret-key-for-hmac"


@pytest.fixture
def webhook_secret():
    return WEBHOOK_SECRET


@pytest.fixture
def attempt_log():
    return DeliveryLogger()


@pytest.fixture
def receiver():
    """Receiver without signature verification."""
    server = WebhookReceiverServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def signed_receiver():
    """Receiver that rejects requests without a valid X-Hub-Signature-256."""
    server = WebhookReceiverServer(secret=WEBHOOK_SECRET)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def make_client(attempt_log):
    """Build clients against a URL; every client built is closed on teardown."""
    clients = []

    def _make(url: str, **overrides) -> WebhookClient:
        settings = {
            "url": url,
            "max_rate": 100,
            "mode": Mode.BINARY,
            "timeout_seconds": 5,
        }
        settings.update(overrides)
        client = WebhookClient(ClientConfig(**settings), attempt_log=attempt_log)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client, receiver):
    return make_client(receiver.url)


@pytest.fixture
def structured_client(make_client, receiver):
    return make_client(receiver.url, mode=Mode.STRUCTURED)


@pytest.fixture
def signed_client(make_client, receiver, webhook_secret):
    return make_client(receiver.url, secret=webhook_secret)


@pytest.fixture
def unused_url():
    """URL of a local port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/webhook"


@pytest.fixture
def event_factory():
    return CloudEventFactory
