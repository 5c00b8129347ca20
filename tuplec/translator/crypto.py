"""Signing helpers for translation ledger entries."""
from __future__ import annotations

from pathlib import Path

from ..constants import KEY_FILE, PUB_FILE

try:  # pragma: no cover - optional dependency
    from cryptography.exceptions import InvalidSignature
    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
except ImportError:  # pragma: no cover
    InvalidSignature = serialization = Ed25519PrivateKey = None


def _require_cryptography():
    if Ed25519PrivateKey is None or serialization is None:
        raise RuntimeError(
            "Signing support is unavailable; install the 'cryptography' package"
        )


def ensure_keypair(key_file=KEY_FILE, pub_file=PUB_FILE):
    """Load the Ed25519 signing key, creating the key pair on first use."""

    _require_cryptography()
    key_path = Path(key_file)
    if key_path.exists():
        return serialization.load_pem_private_key(key_path.read_bytes(), password=None)

    print("🔐 Generating new tuplec signing key ...")
    private_key = Ed25519PrivateKey.generate()
    key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    Path(pub_file).write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    print(f"  ✓ Keys written to {key_file}, {pub_file}")
    return private_key


def sign_digest(sha256_hex, key_file=KEY_FILE, pub_file=PUB_FILE):
    """Sign a hex digest and return the signature as hex."""

    private_key = ensure_keypair(key_file, pub_file)
    return private_key.sign(sha256_hex.encode("ascii")).hex()


def verify_signature(sha256_hex, signature_hex, pub_file=PUB_FILE):
    """Check a signature produced by :func:`sign_digest`."""

    _require_cryptography()
    public_key = serialization.load_pem_public_key(Path(pub_file).read_bytes())
    try:
        public_key.verify(bytes.fromhex(signature_hex), sha256_hex.encode("ascii"))
    except (InvalidSignature, ValueError):
        return False
    return True


__all__ = [
    "ensure_keypair",
    "sign_digest",
    "verify_signature",
]
