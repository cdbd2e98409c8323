from src.utils.crypto import generate_signature

LEGACY_SIGNATURE_HEADER = "X-Hub-Signature"
SIGNATURE_HEADER = "X-Hub-Signature-256"

# Header name -> hash algorithm. Both are emitted so receivers that only
# check the legacy header keep working.
SIGNATURE_ALGORITHMS = {
    LEGACY_SIGNATURE_HEADER: "sha1",
    SIGNATURE_HEADER: "sha256",
}


class WebhookSigner:
    """Signs outgoing webhook payloads with HMAC-SHA1 and HMAC-SHA256."""

    def __init__(self, secret: bytes):
        if not secret:
            raise ValueError("signing secret must not be empty")
        self.secret = secret

    def sign(self, algorithm: str, payload: bytes) -> str:
        return generate_signature(algorithm, self.secret, payload)

    def signature_headers(self, payload: bytes) -> dict[str, str]:
        """Signature headers for the exact payload bytes sent on the wire."""
        return {
            header: self.sign(algorithm, payload)
            for header, algorithm in SIGNATURE_ALGORITHMS.items()
        }
