import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives import serialization

from .containers import public_key_from_spki_der, seed_from_pkcs8_der
from .errors import InvalidSeedLength, KeyGenerationError

SEED_SIZE = 32
EXPANDED_KEY_SIZE = 64


@dataclass(frozen=True)
class KeyPair:
    public_key: bytes
    seed: bytes


def _check_seed(seed):
    seed = bytes(seed)
    if len(seed) != SEED_SIZE:
        raise InvalidSeedLength(f"Seed must be {SEED_SIZE} bytes, got {len(seed)}")
    return seed


def generate_random_keypair():
    """
    Generates a fresh Ed25519 key and pulls the raw seed and public key
    out of its standard DER containers.
    """
    try:
        private_key = ed25519.Ed25519PrivateKey.generate()

        priv_der = private_key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )
        pub_der = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )
    except Exception as e:
        raise KeyGenerationError(f"Failed to generate Ed25519 keys: {e}") from e

    return KeyPair(
        public_key=public_key_from_spki_der(pub_der),
        seed=seed_from_pkcs8_der(priv_der),
    )


def derive_public_key_from_seed(seed):
    seed = _check_seed(seed)
    private_key = ed25519.Ed25519PrivateKey.from_private_bytes(seed)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


def expand_secret_key(seed):
    """SHA-512 of the seed with the Ed25519 scalar clamp applied to the first half."""
    h = bytearray(hashlib.sha512(_check_seed(seed)).digest())
    h[0] &= 0xF8
    h[31] &= 0x7F
    h[31] |= 0x40
    return bytes(h)
