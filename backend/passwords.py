import base64
from os import urandom

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LEN = 32
SALT_LEN = 16
SCHEME = "scrypt"


def _b64e(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64d(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _kdf(salt: bytes, n: int = SCRYPT_N, r: int = SCRYPT_R, p: int = SCRYPT_P) -> Scrypt:
    return Scrypt(salt=salt, length=KEY_LEN, n=n, r=r, p=p)


def hash_password(password: str) -> str:
    """Return 'scrypt$n$r$p$salt$key' for storage."""
    salt = urandom(SALT_LEN)
    key = _kdf(salt).derive(password.encode("utf-8"))
    return f"{SCHEME}${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${_b64e(salt)}${_b64e(key)}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, n, r, p, salt, key = encoded.split("$")
    except (AttributeError, ValueError):
        return False
    if scheme != SCHEME:
        return False
    try:
        _kdf(_b64d(salt), int(n), int(r), int(p)).verify(password.encode("utf-8"), _b64d(key))
    except (InvalidKey, ValueError):
        return False
    return True
