"""
Autopay request/callback signing.

Every signed message is an ordered list of fields joined with "|" and hashed
with SHA-256. Whenever the shared secret takes part it is the last field.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional, Sequence

SEPARATOR = "|"


class HashSigner:
    def sign(self, fields: Sequence[str]) -> str:
        content = SEPARATOR.join(fields)
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def verify(self, fields: Sequence[str], candidate: Optional[str]) -> bool:
        if not candidate:
            return False
        expected = self.sign(fields)
        return hmac.compare_digest(expected.encode("utf-8"), candidate.encode("utf-8"))


def generate_unique_id() -> str:
    """Random 32-char hex message id."""
    return secrets.token_hex(16)
