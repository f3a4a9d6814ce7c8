"""Vaults remembered between sessions, stored as a small JSON file."""

import json
import sys
from pathlib import Path

from mangrove_vaults.constants import SAVE_FILE_VERSION
from mangrove_vaults.formatters import same_address
from mangrove_vaults.models import SavedVault, SaveFile


class SavedVaultStore:
    """
    JSON store: {"version": 1, "vaults": [{address, name, chainId, label?, vaultType?}]}.

    A missing, unreadable or malformed file reads as an empty store.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> SaveFile:
        if not self.path.exists():
            return SaveFile(version=SAVE_FILE_VERSION)
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            if raw.get("version") != SAVE_FILE_VERSION or not isinstance(raw.get("vaults"), list):
                raise ValueError("unsupported save file format")
            return SaveFile(version=SAVE_FILE_VERSION, vaults=[SavedVault.from_dict(v) for v in raw["vaults"]])
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as ex:
            print(f"⚠️  Ignoring invalid save file {self.path}: {ex}", file=sys.stderr)
            return SaveFile(version=SAVE_FILE_VERSION)

    def save(self, entry: SavedVault) -> None:
        """Append `entry`, replacing any saved vault with the same address on the same chain."""
        current = self.load()
        vaults = [
            v for v in current.vaults if not (v.chain_id == entry.chain_id and same_address(v.address, entry.address))
        ]
        vaults.append(entry)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(
                {"version": SAVE_FILE_VERSION, "vaults": [v.to_dict() for v in vaults]},
                f,
                ensure_ascii=False,
                indent=2,
            )
        print(f"✅ Saved vault {entry.name} ({entry.address}) to {self.path}", file=sys.stderr)

    def for_chain(self, chain_id: int) -> list[SavedVault]:
        return [v for v in self.load().vaults if v.chain_id == chain_id]
