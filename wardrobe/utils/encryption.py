"""Fernet wrapping for the backend token kept in the signed session cookie."""
from cryptography.fernet import Fernet, InvalidToken
from flask import current_app, has_app_context
import os
from .logging import get_logger

log = get_logger(__name__)


def _fernet() -> Fernet:
    key = current_app.config.get("ENCRYPTION_KEY") if has_app_context() else None
    key = key or os.getenv("ENCRYPTION_KEY")
    if not key:
        raise ValueError("No Encryption Key Specified")
    try:
        return Fernet(key.encode("utf-8"))
    except (TypeError, ValueError) as e:
        raise ValueError("ENCRYPTION_KEY is not a valid Fernet key") from e


def encrypt_data(plain_text: str) -> str:
    if not plain_text:
        raise ValueError("Cannot encrypt an empty token")
    return _fernet().encrypt(plain_text.encode("utf-8")).decode("utf-8")


def decrypt_data(cipher_text: str) -> str:
    if not cipher_text:
        raise ValueError("Cannot decrypt an empty token")
    try:
        return _fernet().decrypt(cipher_text.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        log.warning("Stored token failed to decrypt, it was issued under another key or tampered with")
        raise ValueError("Invalid or corrupted Cipher Text")
