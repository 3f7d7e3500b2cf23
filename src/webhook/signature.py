"""HMAC verification of Messenger webhook callbacks.

The platform signs every POST with the app secret and sends the result as
``X-Hub-Signature: sha1=<hex>`` (and ``X-Hub-Signature-256: sha256=<hex>``).
The digest covers the raw request body, so verification must run on the
bytes exactly as received, before any JSON decoding.
"""

from __future__ import annotations

import hmac
from collections.abc import Mapping

SIGNATURE_HEADERS = ("x-hub-signature", "x-hub-signature-256")


class SignatureError(Exception):
    """Base class for rejected webhook signatures."""


class SignatureMissingError(SignatureError):
    """Raised when the request carries no signature header."""

    def __init__(self) -> None:
        super().__init__("Missing request signature")


class SignatureInvalidError(SignatureError):
    """Raised when the signature is malformed or does not match the body."""

    def __init__(self, reason: str = "Signature mismatch") -> None:
        self.reason = reason
        super().__init__(f"Couldn't validate the request signature: {reason}")


class SignatureVerifier:
    """Validates ``<method>=<hex-digest>`` signatures with a shared secret."""

    def __init__(
        self,
        app_secret: str,
        allowed_methods: tuple[str, ...] = ("sha1", "sha256"),
    ) -> None:
        self._secret = app_secret.encode()
        self._allowed = allowed_methods

    def verify(self, signature: str | None, body: bytes) -> None:
        """Raise a SignatureError unless ``signature`` matches ``body``."""
        if not signature:
            raise SignatureMissingError()

        method, sep, supplied = signature.strip().partition("=")
        method = method.lower()
        if not sep or not supplied:
            raise SignatureInvalidError("Malformed signature header")
        if method not in self._allowed:
            raise SignatureInvalidError(f"Unsupported method {method!r}")

        expected = self.digest(body, method)
        if not hmac.compare_digest(supplied.lower().encode(), expected.encode()):
            raise SignatureInvalidError()

    def verify_headers(self, headers: Mapping[str, str], body: bytes) -> None:
        """Verify using the first signature header present in ``headers``."""
        for name in SIGNATURE_HEADERS:
            value = headers.get(name)
            if value:
                self.verify(value, body)
                return
        raise SignatureMissingError()

    def digest(self, body: bytes, method: str = "sha1") -> str:
        return hmac.new(self._secret, body, method).hexdigest()

    def sign(self, body: bytes, method: str = "sha1") -> str:
        """Return a header value the platform would send for ``body``."""
        return f"{method}={self.digest(body, method)}"
