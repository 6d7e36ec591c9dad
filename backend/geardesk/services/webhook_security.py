"""HMAC-SHA256 signatures for inbound webhooks (``X-Webhook-Signature: sha256=<hex>``)."""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional, Union

SIGNATURE_PREFIX = "sha256="


@dataclass
class SignatureCheck:
    valid: bool
    provided_signature: Optional[str]
    computed_signature: str


def _digest(raw_body: Union[bytes, str], secret: str) -> str:
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def sign_payload(raw_body: Union[bytes, str], secret: str) -> str:
    """Signature header value for a body, e.g. for test fixtures or the bot."""
    return f"{SIGNATURE_PREFIX}{_digest(raw_body, secret)}"


def verify_webhook_signature(
    raw_body: Union[bytes, str],
    signature_header: Optional[str],
    secret: str,
) -> SignatureCheck:
    """Check the signature over the raw (unparsed) body.

    Never raises: a missing header or a malformed signature is simply invalid.
    """
    computed = _digest(raw_body, secret)
    computed_header = f"{SIGNATURE_PREFIX}{computed}"

    if not signature_header:
        return SignatureCheck(False, None, computed_header)

    provided = signature_header
    if provided.startswith(SIGNATURE_PREFIX):
        provided = provided[len(SIGNATURE_PREFIX):]

    if len(provided) != len(computed):
        return SignatureCheck(False, signature_header, computed_header)

    valid = hmac.compare_digest(provided.encode("utf-8"), computed.encode("utf-8"))
    return SignatureCheck(valid, signature_header, computed_header)
