import json
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class MatchRecord:
    onion_address: str
    public_key: str
    seed: str
    expanded_secret_key: str

    @classmethod
    def from_keys(cls, onion_address, public_key, seed, expanded_secret_key):
        return cls(
            onion_address=onion_address,
            public_key=public_key.hex(),
            seed=seed.hex(),
            expanded_secret_key=expanded_secret_key.hex(),
        )

    def to_json(self):
        return {
            "onionAddress": self.onion_address,
            "publicKey": self.public_key,
            "seed": self.seed,
            "expandedSecretKey": self.expanded_secret_key,
        }


def save_match_record(record, output_dir="."):
    """Writes <onionAddress>.json readable by the owner only and returns its path."""
    filename = os.path.join(output_dir, f"{record.onion_address}.json")

    fd = os.open(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w') as f:
        json.dump(record.to_json(), f, indent=2)
        f.write("\n")

    return filename
