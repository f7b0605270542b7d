# core/helpers/encryption.py
from __future__ import annotations

from typing import Iterable, List, Optional

from cryptography.fernet import Fernet, InvalidToken


class KeyringCipher:
    """
    Fernet keyring:
    - first key is the current key (used for ENCRYPT),
    - remaining keys are legacy keys (used only for DECRYPT).
    Keys are base64 strings as produced by ``Fernet.generate_key()``.
    """

    def __init__(self, current_key: str | bytes, legacy_keys: Iterable[str | bytes] = ()) -> None:
        self._ring: List[Fernet] = [Fernet(_as_bytes(current_key))]
        for k in legacy_keys:
            self._ring.append(Fernet(_as_bytes(k)))

    @classmethod
    def from_config(cls, key: str) -> Optional["KeyringCipher"]:
        """Cipher for a configured key, None when encryption is switched off (empty key)."""
        parts = [p.strip() for p in (key or "").split(",") if p.strip()]
        if not parts:
            return None
        return cls(parts[0], parts[1:])

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, data: bytes) -> bytes:
        return self._ring[0].encrypt(data)

    def decrypt(self, token: bytes) -> bytes:
        """Try the current key first, then legacy keys; raise InvalidToken if none fits."""
        for f in self._ring:
            try:
                return f.decrypt(token)
            except InvalidToken:
                continue
        raise InvalidToken("Unable to decrypt token with any key of the ring")

    def encrypt_text(self, text: str) -> str:
        return self.encrypt(text.encode("utf-8")).decode("ascii")

    def decrypt_text(self, token: str) -> str:
        return self.decrypt(token.encode("ascii")).decode("utf-8")


def _as_bytes(key: str | bytes) -> bytes:
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    return key.encode("ascii")
