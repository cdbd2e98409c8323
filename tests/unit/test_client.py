import threading

import pytest
import requests

from src.webhook_client.client import WebhookClient
from src.webhook_client.config import DEFAULT_USER_AGENT, ClientConfig
from src.webhook_client.encoding import Mode
from src.webhook_client.transport import DeadlineAdapter


URL = "https://example.test/webhook"


class TestClientConfig:
    """Tests for ClientConfig defaults and checks."""

    @pytest.mark.unit
    def test_defaults(self):
        config = ClientConfig(url=URL, max_rate=10)
        assert config.mode is Mode.BINARY
        assert config.origin == "hoist.ketch.com"
        assert config.trusted_origin == "gangplank.ketch.com"
        assert config.secret == b""
        assert config.timeout_seconds == 30
        assert config.pool_maxsize == 10

    @pytest.mark.unit
    def test_str_secret_encoded(self):
        assert ClientConfig(url=URL, max_rate=10, secret="s3cret").secret == b"s3cret"

    @pytest.mark.unit
    @pytest.mark.parametrize("max_rate", [-1, 1.5, True, "10"])
    def test_invalid_rate_rejected(self, max_rate):
        with pytest.raises(ValueError):
            ClientConfig(url=URL, max_rate=max_rate)

    @pytest.mark.unit
    def test_empty_url_rejected(self):
        with pytest.raises(ValueError):
            ClientConfig(url="", max_rate=10)

    @pytest.mark.unit
    def test_pool_size_must_be_positive(self):
        with pytest.raises(ValueError, match="pool_maxsize"):
            ClientConfig(url=URL, max_rate=10, pool_maxsize=0)

    @pytest.mark.unit
    def test_accepted_origins(self):
        config = ClientConfig(url=URL, max_rate=10, origin="a.example", trusted_origin="b.example")
        assert config.accepted_origins == {"a.example", "*", "b.example"}


class TestSharedHeaders:
    """Tests for headers built at construction."""

    @pytest.mark.unit
    def test_shared_headers(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=25))
        headers = client.headers

        assert headers["User-Agent"] == DEFAULT_USER_AGENT
        assert headers["Origin"] == "hoist.ketch.com"
        assert headers["WebHook-Request-Origin"] == "hoist.ketch.com"
        assert headers["WebHook-Request-Rate"] == "25"
        assert headers["Cache-Control"] == "no-store"
        assert "Authorization" not in headers

    @pytest.mark.unit
    def test_authorization_header_when_supplied(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=25, authorization="Bearer abc"))
        assert client.headers["authorization"] == "Bearer abc"

    @pytest.mark.unit
    def test_headers_returns_copy(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=25))
        client.headers["Origin"] = "evil.example"
        assert client.headers["Origin"] == "hoist.ketch.com"

    @pytest.mark.unit
    def test_tls_settings_applied_to_session(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=25, verify="/etc/ca.pem", cert="/etc/client.pem"))
        assert client.session.verify == "/etc/ca.pem"
        assert client.session.cert == "/etc/client.pem"

    @pytest.mark.unit
    def test_deadline_adapter_mounted_with_pool_size(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=25, pool_maxsize=4))
        for scheme in ("http://", "https://"):
            adapter = client.session.get_adapter(scheme + "example.test")
            assert isinstance(adapter, DeadlineAdapter)
            assert adapter._pool_maxsize == 4

    @pytest.mark.unit
    def test_adapter_mounted_on_supplied_session(self):
        session = requests.Session()
        client = WebhookClient(ClientConfig(url=URL, max_rate=25), session=session)
        assert client.session is session
        assert isinstance(session.get_adapter(URL), DeadlineAdapter)


class TestNegotiatedRate:
    """Tests for the compare-and-lower rate update."""

    @pytest.mark.unit
    def test_starts_at_requested_rate(self):
        assert WebhookClient(ClientConfig(url=URL, max_rate=100)).max_rate == 100

    @pytest.mark.unit
    def test_lower_rate_applies(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=100))
        assert client.lower_max_rate(40) == 40
        assert client.max_rate == 40

    @pytest.mark.unit
    def test_rate_never_raised(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=100))
        client.lower_max_rate(40)
        assert client.lower_max_rate(80) == 40
        assert client.lower_max_rate(100) == 40
        assert client.max_rate == 40

    @pytest.mark.unit
    def test_concurrent_lowering_keeps_minimum(self):
        client = WebhookClient(ClientConfig(url=URL, max_rate=10_000))
        rates = list(range(1, 500))
        barrier = threading.Barrier(8)

        def worker(chunk):
            barrier.wait()
            for rate in chunk:
                client.lower_max_rate(rate)

        threads = [threading.Thread(target=worker, args=(rates[i::8],)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert client.max_rate == 1

    @pytest.mark.unit
    def test_context_manager_closes_session(self):
        with WebhookClient(ClientConfig(url=URL, max_rate=1)) as client:
            assert client.max_rate == 1
