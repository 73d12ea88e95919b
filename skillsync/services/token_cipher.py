"""Symmetric encryption for session secrets kept at rest."""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Encrypt and decrypt sensitive strings using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    def encrypt_json(self, payload: Dict[str, Any]) -> str:
        """Serialize ``payload`` and encrypt it as a single blob."""
        return self.encrypt(json.dumps(payload, separators=(",", ":"), sort_keys=True))

    def decrypt_json(self, ciphertext: str) -> Dict[str, Any]:
        payload = json.loads(self.decrypt(ciphertext))
        if not isinstance(payload, dict):
            raise ValueError("Decrypted payload is not a JSON object.")
        return payload


__all__ = ["TokenCipherService"]
