import hashlib
import hmac


def generate_signature(algorithm: str, secret: bytes, payload: bytes) -> str:
    """Generate a hex-encoded HMAC digest of payload using the named hash algorithm."""
    return hmac.new(secret, payload, getattr(hashlib, algorithm)).hexdigest()


def verify_signature(algorithm: str, secret: bytes, payload: bytes, signature: str) -> bool:
    """Verify an HMAC digest against a payload in constant time."""
    expected = generate_signature(algorithm, secret, payload)
    return hmac.compare_digest(expected, signature)
