"""
Raw byte extraction from the DER containers the Ed25519 primitive exports.

RFC 8410 fixes both layouts for Ed25519 (offsets are into the DER bytes):

PKCS#8 private key, 48 bytes:
    30 2e                       SEQUENCE
       02 01 00                 INTEGER version 0
       30 05 06 03 2b 65 70     SEQUENCE { OID 1.3.101.112 }
       04 22                    OCTET STRING (privateKey)
          04 20 <seed>          OCTET STRING, seed at bytes 16..48

SubjectPublicKeyInfo, 44 bytes:
    30 2a                       SEQUENCE
       30 05 06 03 2b 65 70     SEQUENCE { OID 1.3.101.112 }
       03 21 00 <key>           BIT STRING, 0 unused bits, key at bytes 12..44

The functions below walk the structure instead of slicing at those offsets,
so a PKCS#8 v2 container (with a trailing public key field) decodes too.
"""
from .errors import KeyGenerationError

SEQUENCE = 0x30
INTEGER = 0x02
BIT_STRING = 0x03
OCTET_STRING = 0x04
OBJECT_IDENTIFIER = 0x06

ED25519_OID = bytes.fromhex("2b6570")
RAW_KEY_SIZE = 32


def _read_tlv(der, offset, limit=None):
    """Return (tag, value_start, value_end) of the element at offset."""
    limit = len(der) if limit is None else limit
    if offset + 2 > limit:
        raise KeyGenerationError("Truncated DER element")
    tag = der[offset]
    length = der[offset + 1]
    pos = offset + 2
    if length & 0x80:
        num_bytes = length & 0x7F
        if num_bytes == 0 or num_bytes > 4 or pos + num_bytes > limit:
            raise KeyGenerationError("Unsupported DER length encoding")
        length = int.from_bytes(der[pos:pos + num_bytes], "big")
        pos += num_bytes
    if pos + length > limit:
        raise KeyGenerationError("DER element overruns its container")
    return tag, pos, pos + length


def _children(der, start, end):
    pos = start
    while pos < end:
        tag, vstart, vend = _read_tlv(der, pos, end)
        yield tag, vstart, vend
        pos = vend


def _expect(element, tag, what):
    if element is None or element[0] != tag:
        raise KeyGenerationError(f"Unexpected DER structure: missing {what}")
    return element


def _check_algorithm(der, element):
    _, start, end = _expect(element, SEQUENCE, "algorithm identifier")
    oid = _expect(next(_children(der, start, end), None), OBJECT_IDENTIFIER, "algorithm OID")
    if der[oid[1]:oid[2]] != ED25519_OID:
        raise KeyGenerationError("Container does not hold an Ed25519 key")


def _outer_sequence(der):
    der = bytes(der)
    tag, start, end = _read_tlv(der, 0)
    if tag != SEQUENCE:
        raise KeyGenerationError("Key container is not a DER SEQUENCE")
    return der, list(_children(der, start, end))


def seed_from_pkcs8_der(der):
    """Return the 32 byte Ed25519 seed held in a DER PKCS#8 private key."""
    der, fields = _outer_sequence(der)
    if len(fields) < 3:
        raise KeyGenerationError("PKCS#8 container has too few fields")
    _expect(fields[0], INTEGER, "version")
    _check_algorithm(der, fields[1])
    _, start, end = _expect(fields[2], OCTET_STRING, "privateKey")

    # CurvePrivateKey is itself an OCTET STRING wrapped in the privateKey field
    tag, seed_start, seed_end = _read_tlv(der, start, end)
    if tag != OCTET_STRING or seed_end - seed_start != RAW_KEY_SIZE:
        raise KeyGenerationError("PKCS#8 privateKey is not a 32 byte seed")
    return der[seed_start:seed_end]


def public_key_from_spki_der(der):
    """Return the 32 byte Ed25519 public key held in a DER SubjectPublicKeyInfo."""
    der, fields = _outer_sequence(der)
    if len(fields) != 2:
        raise KeyGenerationError("SubjectPublicKeyInfo must have two fields")
    _check_algorithm(der, fields[0])
    _, start, end = _expect(fields[1], BIT_STRING, "subjectPublicKey")

    # first content byte of a BIT STRING counts the unused trailing bits
    if end - start != RAW_KEY_SIZE + 1 or der[start] != 0:
        raise KeyGenerationError("subjectPublicKey is not a 32 byte key")
    return der[start + 1:end]
