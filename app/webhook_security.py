"""
Webhook Security Module

Signature verification for inbound SMS webhooks:
- Constant-time signature comparison (prevents timing attacks)
- Twilio X-Twilio-Signature (HMAC-SHA1 over URL + sorted form parameters)
- Detailed logging for security auditing
"""

import base64
import hashlib
import hmac
import logging
from typing import Mapping

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_twilio_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    """Compute the base64 HMAC-SHA1 signature Twilio sends for a form POST"""
    payload = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("utf-8")


def public_request_url(request: Request) -> str:
    """URL as Twilio saw it, honouring a TLS-terminating proxy"""
    url = str(request.url)
    forwarded_proto = request.headers.get("X-Forwarded-Proto")
    if forwarded_proto and url.startswith("http://") and forwarded_proto == "https":
        url = "https://" + url[len("http://"):]
    return url


def verify_twilio_webhook(
    request: Request,
    auth_token: str,
    params: Mapping[str, str],
    raise_on_failure: bool = True,
) -> bool:
    """
    Verify Twilio webhook signature.

    Twilio uses:
    - Header: 'X-Twilio-Signature' (base64 HMAC-SHA1 keyed with the account auth token)

    Args:
        request: FastAPI request object
        auth_token: Twilio auth token
        params: Parsed form parameters of the request
        raise_on_failure: If True, raises HTTPException on failure

    Returns:
        True when the signature matches
    """
    signature_header = request.headers.get("X-Twilio-Signature", "")

    if not signature_header:
        logger.warning("🚫 Twilio webhook missing signature header")
        if raise_on_failure:
            raise HTTPException(status_code=403, detail="Missing webhook signature")
        return False

    expected_signature = compute_twilio_signature(auth_token, public_request_url(request), params)

    if not constant_time_compare(expected_signature, signature_header):
        logger.warning("🚫 Twilio webhook signature mismatch")
        if raise_on_failure:
            raise HTTPException(status_code=403, detail="Invalid webhook signature")
        return False

    logger.debug("✅ Twilio webhook signature verified")
    return True
