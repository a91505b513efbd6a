"""
Tor v3 onion address encoding.

An address is base32(public_key || checksum || version) where
checksum = SHA3-256(".onion checksum" || public_key || version)[:2]
and version = 0x03. The 35 input bytes encode to exactly 56 symbols,
so the address never carries padding.
"""
import base64
import binascii
import hashlib
import re

from .errors import InvalidKeyLength, ValidationError

CHECKSUM_PREFIX = b".onion checksum"
VERSION = b"\x03"
PUBLIC_KEY_SIZE = 32
ADDRESS_LENGTH = 56
ONION_SUFFIX = ".onion"

ADDRESS_RE = re.compile(r"^[a-z2-7]{56}$")
ADDRESS_ERROR = "Invalid onion address (must be 56 base32 characters, a-z and 2-7)."


def base32_encode(data, padding=True):
    """RFC 4648 base32, lowercased. Addresses are encoded with padding=False."""
    encoded = base64.b32encode(bytes(data)).decode("ascii").lower()
    if not padding:
        encoded = encoded.rstrip("=")
    return encoded


def base32_decode(text):
    text = text.strip().rstrip("=").upper()
    # b32decode insists on complete 8-symbol groups
    text += "=" * (-len(text) % 8)
    try:
        return base64.b32decode(text)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base32 data: {e}") from e


def strip_onion_suffix(address):
    address = address.strip().lower()
    if address.endswith(ONION_SUFFIX):
        address = address[:-len(ONION_SUFFIX)]
    return address


def onion_checksum(public_key):
    digest = hashlib.sha3_256(CHECKSUM_PREFIX + public_key + VERSION).digest()
    return digest[:2]


def derive_onion_address(public_key):
    """Return the 56 character address (no .onion suffix) for a raw public key."""
    public_key = bytes(public_key)
    if len(public_key) != PUBLIC_KEY_SIZE:
        raise InvalidKeyLength(
            f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}"
        )
    return base32_encode(public_key + onion_checksum(public_key) + VERSION, padding=False)


def decode_onion_address(address):
    """Split an address into (public_key, checksum, version) bytes."""
    address = strip_onion_suffix(address)
    if not ADDRESS_RE.match(address):
        raise ValidationError(ADDRESS_ERROR)
    raw = base32_decode(address)
    return raw[:32], raw[32:34], raw[34:35]


def verify_address_matches_key(address, public_key):
    try:
        expected = derive_onion_address(public_key)
    except InvalidKeyLength:
        return False
    return strip_onion_suffix(address) == expected
