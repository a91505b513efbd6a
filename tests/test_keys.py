import hashlib

import pytest

from oniongen.codec import derive_onion_address
from oniongen.errors import InvalidSeedLength, KeyGenerationError
from oniongen.keys import (
    KeyPair,
    derive_public_key_from_seed,
    expand_secret_key,
    generate_random_keypair,
)
from oniongen import keys

from conftest import RFC8032_PUBLIC, RFC8032_SEED


def test_generate_random_keypair():
    keypair = generate_random_keypair()
    assert isinstance(keypair, KeyPair)
    assert len(keypair.public_key) == 32
    assert len(keypair.seed) == 32
    assert derive_public_key_from_seed(keypair.seed) == keypair.public_key


def test_generated_keypairs_differ():
    assert generate_random_keypair() != generate_random_keypair()


def test_generation_failure_is_wrapped(monkeypatch):
    def broken():
        raise RuntimeError("entropy exhausted")

    monkeypatch.setattr(keys.ed25519.Ed25519PrivateKey, "generate", broken)
    with pytest.raises(KeyGenerationError, match="entropy exhausted"):
        generate_random_keypair()


def test_public_key_from_rfc8032_seed():
    assert derive_public_key_from_seed(RFC8032_SEED) == RFC8032_PUBLIC


def test_derivation_is_deterministic():
    seed = bytes(range(32))
    assert derive_public_key_from_seed(seed) == derive_public_key_from_seed(seed)
    assert expand_secret_key(seed) == expand_secret_key(seed)


def test_expand_seed_one():
    seed = bytes(31) + b"\x01"
    expanded = expand_secret_key(seed)
    digest = hashlib.sha512(seed).digest()

    assert len(expanded) == 64
    assert expanded[0] & 0x07 == 0
    assert expanded[31] & 0x80 == 0
    assert expanded[31] & 0x40 == 0x40
    assert expanded[0] == digest[0] & 0xF8
    assert expanded[1:31] == digest[1:31]
    # the signing prefix half is untouched
    assert expanded[32:] == digest[32:]
    assert expand_secret_key(seed) == expanded


@pytest.mark.parametrize("seed", [b"", bytes(31), bytes(33), bytes(64)])
def test_bad_seed_length(seed):
    with pytest.raises(InvalidSeedLength):
        derive_public_key_from_seed(seed)
    with pytest.raises(InvalidSeedLength):
        expand_secret_key(seed)


def test_address_from_generated_key():
    keypair = generate_random_keypair()
    assert len(derive_onion_address(keypair.public_key)) == 56
