"""Credential vault: AES-256-GCM encryption for provider access tokens at rest."""

import base64
import hashlib
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from recoverhub.services.errors import CredentialDecryptionError

IV_LENGTH = 12
TAG_LENGTH = 16


@dataclass(frozen=True)
class EncryptedCredential:
    """Base64-encoded ciphertext, IV and GCM auth tag."""

    encrypted: str
    iv: str
    auth_tag: str


class CredentialVault:
    """Encrypts and decrypts credentials with a key derived from a secret.

    The AES key is the SHA-256 digest of the configured secret, so any
    non-empty string can be used as ``ENCRYPTION_KEY``.
    """

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("ENCRYPTION_KEY is not configured")
        self._aead = AESGCM(hashlib.sha256(secret.encode()).digest())

    def encrypt(self, plaintext: str) -> EncryptedCredential:
        iv = os.urandom(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode(), None)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return EncryptedCredential(
            encrypted=base64.b64encode(ciphertext).decode(),
            iv=base64.b64encode(iv).decode(),
            auth_tag=base64.b64encode(tag).decode(),
        )

    def decrypt(self, credential: EncryptedCredential) -> str:
        """Return the plaintext.

        Raises:
            CredentialDecryptionError: If any field is malformed or the tag
                does not authenticate (wrong key or tampered data).
        """
        try:
            ciphertext = base64.b64decode(credential.encrypted, validate=True)
            iv = base64.b64decode(credential.iv, validate=True)
            tag = base64.b64decode(credential.auth_tag, validate=True)
            plaintext = self._aead.decrypt(iv, ciphertext + tag, None)
        except (InvalidTag, ValueError) as exc:
            raise CredentialDecryptionError("Stored credential could not be decrypted") from exc
        return plaintext.decode()
