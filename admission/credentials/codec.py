"""Encode and decode the bearer credential shown at the checkpoint.

A credential carries ``{"userId", "eventId"}`` and nothing else. It is
stateless: decoding only checks shape, and whether the pair is a real,
current registration is decided later against the roster.

Two formats exist:

    plain:   base64(JSON)              e.g. ``eyJ1c2VySWQiOiAi...``
    signed:  ``v1.`` + JWS compact     HS256 over the same JSON object

The plain format is readable by anyone holding the QR code. The signed
format is issued when a signing key is configured; the ``v1.`` prefix is
the format version, and the algorithm travels in the JWS header.
"""
import base64
import json
import re
from dataclasses import dataclass

from jose import jws
from jose.exceptions import JWSError

from admission.core.config import settings

SIGNED_PREFIX = "v1."
SIGNING_ALGORITHM = "HS256"

_WHITESPACE = re.compile(r"\s+")


class FormatError(ValueError):
    """The token is not a well-formed credential."""


@dataclass(frozen=True)
class Credential:
    user_id: str
    event_id: str

    def to_payload(self) -> dict[str, str]:
        return {"userId": self.user_id, "eventId": self.event_id}


def _from_payload(payload) -> Credential:
    if not isinstance(payload, dict):
        raise FormatError("QR code missing required data")
    user_id = payload.get("userId")
    event_id = payload.get("eventId")
    if not isinstance(user_id, str) or not isinstance(event_id, str) or not user_id or not event_id:
        raise FormatError("QR code missing required data")
    return Credential(user_id=user_id, event_id=event_id)


class CredentialCodec:
    """Converts credentials to and from their wire form.

    Args:
        signing_key: If set, ``encode`` emits signed tokens and signed
            tokens are verified with this key.
        accept_unsigned: Whether ``decode`` still accepts plain tokens.
    """

    def __init__(self, signing_key: str | None = None, accept_unsigned: bool = True):
        self.signing_key = signing_key or None
        self.accept_unsigned = accept_unsigned

    def encode(self, user_id: str, event_id: str) -> str:
        payload = Credential(user_id=user_id, event_id=event_id).to_payload()
        if self.signing_key:
            return SIGNED_PREFIX + jws.sign(payload, self.signing_key, algorithm=SIGNING_ALGORITHM)
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def decode(self, token: str) -> Credential:
        """Return the credential in ``token`` or raise ``FormatError``."""
        if not isinstance(token, str):
            raise FormatError("Invalid QR code format")
        token = _WHITESPACE.sub("", token)
        if not token:
            raise FormatError("Invalid QR code format")

        if token.startswith(SIGNED_PREFIX):
            return self._decode_signed(token[len(SIGNED_PREFIX):])

        if self.signing_key and not self.accept_unsigned:
            raise FormatError("Unsigned QR codes are not accepted")
        try:
            raw = base64.b64decode(token, validate=True)
            payload = json.loads(raw.decode("utf-8"))
        except (ValueError, RecursionError):
            # binascii.Error, UnicodeDecodeError and JSONDecodeError are ValueErrors;
            # deeply nested JSON raises RecursionError
            raise FormatError("Invalid QR code format") from None
        return _from_payload(payload)

    def _decode_signed(self, compact: str) -> Credential:
        if not self.signing_key:
            raise FormatError("Signed QR codes are not configured")
        try:
            raw = jws.verify(compact, self.signing_key, algorithms=[SIGNING_ALGORITHM])
            payload = json.loads(raw.decode("utf-8"))
        except (JWSError, ValueError, RecursionError):
            raise FormatError("Invalid QR code signature") from None
        return _from_payload(payload)


def get_codec() -> CredentialCodec:
    """Codec configured from application settings."""
    return CredentialCodec(
        signing_key=settings.credential_signing_key,
        accept_unsigned=settings.accept_unsigned_credentials,
    )


def encode_credential(user_id: str, event_id: str) -> str:
    return get_codec().encode(user_id, event_id)


def decode_credential(token: str) -> Credential:
    return get_codec().decode(token)
