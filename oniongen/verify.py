"""
Cross-check a generated record: address <-> public key <-> seed <-> expanded key.

Every field is normalised and validated before anything is derived, so a
malformed input never produces a half-finished report.
"""
import json
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .codec import ADDRESS_ERROR, ADDRESS_RE, derive_onion_address, strip_onion_suffix
from .errors import ValidationError
from .keys import derive_public_key_from_seed, expand_secret_key

OK = "OK"
MISMATCH = "MISMATCH"

ONION_CHECK = "Onion ↔ Public Key"
SEED_PUBLIC_CHECK = "Seed ↔ Public Key"
SEED_EXPANDED_CHECK = "Seed → Expanded Secret Key"

_FIELDS = (
    # (name, pattern, message)
    ("onion", ADDRESS_RE, ADDRESS_ERROR),
    ("public_key", re.compile(r"^[0-9a-f]{64}$"),
     "Public key must be 64 hex characters (32 bytes)."),
    ("seed", re.compile(r"^[0-9a-f]{64}$"),
     "Seed must be 64 hex characters (32 bytes)."),
    ("expanded_key", re.compile(r"^[0-9a-f]{128}$"),
     "Expanded secret key must be 128 hex characters (64 bytes)."),
)


@dataclass(frozen=True)
class VerificationInput:
    onion: Optional[str] = None
    public_key: Optional[str] = None
    seed: Optional[str] = None
    expanded_key: Optional[str] = None


@dataclass
class Check:
    name: str
    status: Optional[str] = None  # None: not run

    @property
    def ran(self):
        return self.status is not None

    @property
    def passed(self):
        return self.status == OK


@dataclass
class VerificationReport:
    inputs: VerificationInput
    checks: List[Check] = field(default_factory=list)
    calculated_onion: Optional[str] = None
    derived_public_key: Optional[str] = None
    derived_expanded_key: Optional[str] = None

    @property
    def ok(self):
        ran = [c for c in self.checks if c.ran]
        return bool(ran) and all(c.passed for c in ran)

    def status(self, name):
        for check in self.checks:
            if check.name == name:
                return check.status
        return None


def normalize_inputs(onion=None, public_key=None, seed=None, expanded_key=None):
    """
    Lowercase, trim and validate each field. The address and public key are
    required; an empty seed or expanded key counts as absent.
    """
    values = {
        "onion": strip_onion_suffix(onion) if onion else "",
        "public_key": (public_key or "").strip().lower(),
        "seed": (seed or "").strip().lower(),
        "expanded_key": (expanded_key or "").strip().lower(),
    }
    if not values["onion"]:
        raise ValidationError("Onion address is required")
    if not values["public_key"]:
        raise ValidationError("Public key is required")
    for name, pattern, message in _FIELDS:
        if values[name] and not pattern.match(values[name]):
            raise ValidationError(message)
    return VerificationInput(**{k: v or None for k, v in values.items()})


def load_record(path):
    """Read a generator result file into the keyword arguments of normalize_inputs."""
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ValidationError(f"Failed to read JSON file: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Failed to read JSON file: expected an object")
    return {
        "onion": data.get("onionAddress") or "",
        "public_key": data.get("publicKey") or "",
        "seed": data.get("seed") or "",
        "expanded_key": data.get("expandedSecretKey") or "",
    }


def _status(matched):
    return OK if matched else MISMATCH


def run_checks(inputs):
    """Run the checks on inputs from normalize_inputs (address and public key present)."""
    report = VerificationReport(inputs=inputs)
    onion_check = Check(ONION_CHECK)
    seed_check = Check(SEED_PUBLIC_CHECK)
    expanded_check = Check(SEED_EXPANDED_CHECK)

    report.calculated_onion = derive_onion_address(bytes.fromhex(inputs.public_key))
    onion_check.status = _status(report.calculated_onion == inputs.onion)

    if inputs.seed:
        seed = bytes.fromhex(inputs.seed)
        report.derived_public_key = derive_public_key_from_seed(seed).hex()
        report.derived_expanded_key = expand_secret_key(seed).hex()
        seed_check.status = _status(report.derived_public_key == inputs.public_key)
        if inputs.expanded_key:
            expanded_check.status = _status(report.derived_expanded_key == inputs.expanded_key)
        else:
            # nothing given to contradict the derivation
            expanded_check.status = OK

    report.checks = [onion_check, seed_check, expanded_check]
    return report


def render_report(report):
    inputs = report.inputs
    lines = [
        "Input Data:",
        f"Onion Address: {inputs.onion}.onion",
        f"Public Key: {inputs.public_key}",
    ]
    if inputs.seed:
        lines.append(f"Seed: {inputs.seed}")
    if inputs.expanded_key:
        lines.append(f"Expanded Secret Key: {inputs.expanded_key}")
    lines.append("")

    lines += [
        "1. Onion Address ↔ Public Key:",
        f"   Calculated: {report.calculated_onion}.onion",
        f"   Given:      {inputs.onion}.onion",
        f"   Match: {report.status(ONION_CHECK)}",
        "",
    ]

    if inputs.seed:
        lines.append("2. Seed ↔ Public Key:")
        lines.append(f"   Public from seed: {report.derived_public_key}")
        lines.append(f"   Match: {report.status(SEED_PUBLIC_CHECK)}")
        if inputs.expanded_key:
            lines.append(f"   Expanded secret match: {report.status(SEED_EXPANDED_CHECK)}")
        lines.append("")
    elif inputs.expanded_key:
        lines += [
            "2. Expanded Secret Key:",
            "   Error: Cannot derive seed from expanded secret key",
            "",
        ]

    lines.append("Summary:")
    for check in report.checks:
        if check.ran:
            lines.append(f"  {check.name}: {check.status}")
    lines.append("")
    lines.append(f"Result: {'OK' if report.ok else 'FAIL'}")
    return lines
