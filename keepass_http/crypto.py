"""
KeePassHTTP Crypto Core — Shared key, nonce/verifier and field encryption.

Every exchange with the store uses AES-256-CBC (PKCS#7 padding, base64 text)
keyed with the 32-byte shared key, and the exchange's own random 16-byte
nonce as IV:

- Request:  Nonce = b64(random 16B), Verifier = b64(AES-CBC(key, iv=nonce, b64(nonce)))
- Response: the store echoes a Nonce/Verifier pair built the same way,
  and every encrypted response field uses that response nonce as IV.

Security Note:
    The verifier only proves both sides hold the same key. It is not a MAC
    over the payload, so payload integrity is not guaranteed by the protocol.
    Never log key material, nonces, verifiers or decrypted fields.
"""
import os
import hmac
import base64
import binascii
import logging

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import ConfigurationError, ValidationError

logger = logging.getLogger("keepass_http")

KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 16  # one AES block, used as CBC IV
BLOCK_SIZE = algorithms.AES.block_size  # in bits
BLOCK_BYTES = BLOCK_SIZE // 8


# ---------------------------------------------------------------------------
# Field encryption
# ---------------------------------------------------------------------------

def encrypt_field(key: bytes, iv: bytes, plaintext: str) -> str:
    """Encrypt a text field with AES-256-CBC.

    Args:
        key: Raw 32-byte shared key.
        iv: Raw 16-byte nonce of the current exchange.
        plaintext: Text to encrypt (UTF-8 encoded before padding).

    Returns:
        Base64 ciphertext, as the store expects it on the wire.
    """
    padder = padding.PKCS7(BLOCK_SIZE).padder()
    data = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ct = encryptor.update(data) + encryptor.finalize()
    return base64.b64encode(ct).decode("ascii")


def decrypt_field(key: bytes, iv: bytes, ciphertext: str) -> str:
    """Decrypt a base64 AES-256-CBC text field.

    Raises:
        ValueError: If the input is not base64, not block aligned,
            badly padded or not UTF-8 once decrypted.
    """
    try:
        ct = base64.b64decode(ciphertext, validate=True)
    except (binascii.Error, TypeError) as err:
        raise ValueError(f"Ciphertext is not valid base64: {err}") from err
    if not ct or len(ct) % BLOCK_BYTES:
        raise ValueError(
            f"Ciphertext length {len(ct)} is not a multiple of the block size"
        )
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    data = decryptor.update(ct) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE).unpadder()
    plain = unpadder.update(data) + unpadder.finalize()
    return plain.decode("utf-8")


# ---------------------------------------------------------------------------
# Per-exchange context
# ---------------------------------------------------------------------------

class Exchange:
    """One request/response round trip bound to a single nonce.

    An ``Exchange`` is produced either by ``CipherSession.new_exchange()``
    (outgoing request) or by ``CipherSession.verify_response()`` (incoming,
    verified response). Fields are always encrypted and decrypted with the
    nonce of the exchange that owns them.
    """

    __slots__ = ("_key", "_iv", "nonce", "verifier")

    def __init__(self, key: bytes, iv: bytes, nonce: str, verifier: str):
        self._key = key
        self._iv = iv
        self.nonce = nonce
        self.verifier = verifier

    def __repr__(self) -> str:
        return "<Exchange>"

    def encrypt(self, plaintext: str) -> str:
        return encrypt_field(self._key, self._iv, plaintext)

    def decrypt(self, ciphertext: str) -> str:
        return decrypt_field(self._key, self._iv, ciphertext)

    def envelope(self) -> dict:
        """Nonce and Verifier fields to merge into an outgoing request."""
        return {"Nonce": self.nonce, "Verifier": self.verifier}


class CipherSession:
    """Owns the shared key and creates/validates exchanges.

    The session holds no nonce state of its own: the current nonce lives
    in the ``Exchange`` returned for each round trip.
    """

    def __init__(self, key: bytes):
        if not isinstance(key, (bytes, bytearray)):
            raise ConfigurationError(
                f"Shared key must be bytes, got {type(key).__name__}"
            )
        if len(key) != KEY_LENGTH:
            raise ConfigurationError(
                f"Key length must be {KEY_LENGTH} bytes (256 bit), "
                f"got {len(key)}"
            )
        self._key = bytes(key)

    def __repr__(self) -> str:
        return "<CipherSession aes-256-cbc>"

    @property
    def encoded_key(self) -> str:
        """Base64 shared key, sent only in the ``associate`` request."""
        return base64.b64encode(self._key).decode("ascii")

    def new_exchange(self) -> Exchange:
        """Start a round trip with a fresh random nonce and its verifier."""
        iv = os.urandom(NONCE_SIZE)
        nonce = base64.b64encode(iv).decode("ascii")
        verifier = encrypt_field(self._key, iv, nonce)
        return Exchange(self._key, iv, nonce, verifier)

    def verify_response(self, nonce: str, verifier: str) -> Exchange:
        """Check a response's Nonce/Verifier pair.

        Returns:
            Exchange bound to the response nonce, used to decrypt the
            response payload.

        Raises:
            ValidationError: If the verifier does not decrypt to the nonce.
        """
        if not isinstance(nonce, str) or not isinstance(verifier, str):
            raise ValidationError("Response is missing Nonce or Verifier")
        try:
            iv = base64.b64decode(nonce, validate=True)
        except (binascii.Error, ValueError) as err:
            raise ValidationError("Response nonce is not valid base64") from err
        if len(iv) != NONCE_SIZE:
            raise ValidationError(
                f"Response nonce must be {NONCE_SIZE} bytes, got {len(iv)}"
            )
        try:
            decoded = decrypt_field(self._key, iv, verifier)
        except ValueError as err:
            raise ValidationError("Response verifier could not be decrypted") from err
        if not hmac.compare_digest(decoded.encode("utf-8"), nonce.encode("utf-8")):
            raise ValidationError("Response verifier does not match its nonce")
        logger.debug("Response verifier accepted")
        return Exchange(self._key, iv, nonce, verifier)
