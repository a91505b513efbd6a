import pytest

from oniongen.codec import derive_onion_address
from oniongen.keys import expand_secret_key, generate_random_keypair
from oniongen.records import MatchRecord

# RFC 8032, test 1
RFC8032_SEED = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
RFC8032_PUBLIC = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")


def find_record(prefix):
    while True:
        keypair = generate_random_keypair()
        address = derive_onion_address(keypair.public_key)
        if address.startswith(prefix):
            return MatchRecord.from_keys(
                address, keypair.public_key, keypair.seed, expand_secret_key(keypair.seed)
            )


@pytest.fixture(scope="session")
def ab_record():
    return find_record("ab")
