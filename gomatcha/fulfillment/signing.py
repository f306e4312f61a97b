"""
Signature HMAC des requêtes transporteur.

signature = HMAC-SHA256(app_secret, "{app_id}:{timestamp}:{payload_json}")
Le corps envoyé doit être exactement la chaîne signée.
"""
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

APP_ID_HEADER = "app-id"
TIMESTAMP_HEADER = "x-timestamp"
SIGNATURE_HEADER = "x-signature"


def serialize_payload(payload: Optional[Dict[str, Any]]) -> str:
    if payload is None:
        return ""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def compute_signature(app_id: str, app_secret: str, timestamp: str, payload_json: str) -> str:
    message = f"{app_id}:{timestamp}:{payload_json}".encode("utf-8")
    return hmac.new(app_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def build_signed_headers(
    app_id: str,
    app_secret: str,
    payload_json: str,
    timestamp: Optional[str] = None,
) -> Dict[str, str]:
    timestamp = timestamp or str(int(time.time()))
    return {
        APP_ID_HEADER: app_id,
        TIMESTAMP_HEADER: timestamp,
        SIGNATURE_HEADER: compute_signature(app_id, app_secret, timestamp, payload_json),
    }


def verify_signature(app_id: str, app_secret: str, timestamp: str, payload_json: str, signature: str) -> bool:
    expected = compute_signature(app_id, app_secret, timestamp, payload_json)
    return hmac.compare_digest(expected, signature)
