"""ES256 provider tokens for APNs token-based authentication."""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import re
from typing import Any

import pendulum
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from cryptography.hazmat.primitives.serialization import load_der_private_key

logger = logging.getLogger(__name__)

_PEM_ARMOR = re.compile(r"-----(?:BEGIN|END) [A-Z ]+-----")
_P256_COORDINATE_BYTES = 32


class TokenSigningError(Exception):
    """Raised when the APNs provider token cannot be produced."""


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _encode_segment(value: dict[str, Any]) -> str:
    return b64url(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def load_signing_key(pem: str) -> ec.EllipticCurvePrivateKey:
    """Load a P-256 key from PEM text, tolerating escaped or missing newlines."""

    body = _PEM_ARMOR.sub("", pem.replace("\\n", "\n"))
    body = "".join(body.split())
    if not body:
        raise TokenSigningError("APNs private key is empty")
    try:
        der = base64.b64decode(body, validate=True)
        key = load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise TokenSigningError(f"Invalid APNs private key: {exc}") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise TokenSigningError("APNs private key must be an EC P-256 key")
    return key


class APNsTokenSigner:
    def __init__(
        self,
        *,
        key_id: str,
        team_id: str,
        private_key: str,
        ttl_seconds: int = 0,
    ) -> None:
        self._key_id = key_id
        self._team_id = team_id
        self._private_key = private_key
        self._ttl_seconds = ttl_seconds
        self._key: ec.EllipticCurvePrivateKey | None = None
        self._cached: tuple[int, str] | None = None
        self._lock = asyncio.Lock()

    def _signing_key(self) -> ec.EllipticCurvePrivateKey:
        if self._key is None:
            self._key = load_signing_key(self._private_key)
        return self._key

    def sign(self, issued_at: int | None = None) -> str:
        if issued_at is None:
            issued_at = pendulum.now("UTC").int_timestamp
        header = {"alg": "ES256", "kid": self._key_id}
        claims = {"iss": self._team_id, "iat": issued_at}
        signing_input = f"{_encode_segment(header)}.{_encode_segment(claims)}"
        key = self._signing_key()
        try:
            der_signature = key.sign(signing_input.encode("ascii"), ec.ECDSA(hashes.SHA256()))
        except (ValueError, TypeError) as exc:
            raise TokenSigningError(f"Unable to sign APNs token: {exc}") from exc
        # JWS wants the raw r || s form, not DER.
        r, s = decode_dss_signature(der_signature)
        raw_signature = r.to_bytes(_P256_COORDINATE_BYTES, "big") + s.to_bytes(
            _P256_COORDINATE_BYTES, "big"
        )
        return f"{signing_input}.{b64url(raw_signature)}"

    async def get_token(self) -> str:
        if not self._ttl_seconds:
            return self.sign()
        async with self._lock:
            now = pendulum.now("UTC").int_timestamp
            if self._cached and now - self._cached[0] < self._ttl_seconds:
                return self._cached[1]
            token = self.sign(now)
            self._cached = (now, token)
            logger.info("apns.token_refreshed", extra={"key_id": self._key_id, "iat": now})
            return token
