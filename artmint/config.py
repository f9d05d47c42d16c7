# artmint/config.py
"""
Collection configuration.

Stored as YAML in the artmint home directory:

    name: Gallery
    symbol: GAL
    store_dir: collection
    identities_dir: identities
    signer: giles
    log_level: INFO

Relative directories resolve against the home directory, which defaults
to $ARTMINT_HOME or ~/.artmint.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = "collection.yaml"


def default_home() -> Path:
    return Path(os.environ.get("ARTMINT_HOME", "~/.artmint")).expanduser()


@dataclass
class CollectionConfig:
    """Settings for one collection and the tools that open it."""
    name: str = ""
    symbol: str = ""
    store_dir: str = "collection"
    identities_dir: str = "identities"
    signer: str = ""
    log_level: str = "WARNING"
    home: Optional[Path] = None

    def _resolve(self, value: str) -> Path:
        path = Path(value).expanduser()
        if path.is_absolute() or self.home is None:
            return path
        return self.home / path

    @property
    def store_path(self) -> Path:
        return self._resolve(self.store_dir)

    @property
    def identities_path(self) -> Path:
        return self._resolve(self.identities_dir)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "store_dir": self.store_dir,
            "identities_dir": self.identities_dir,
            "signer": self.signer,
            "log_level": self.log_level,
        }

    @classmethod
    def from_yaml(cls, yaml_content: str, home: Path = None) -> "CollectionConfig":
        """Parse config from YAML string."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Collection config must be a mapping")
        return cls(
            name=str(data.get("name", "")),
            symbol=str(data.get("symbol", "")),
            store_dir=str(data.get("store_dir", "collection")),
            identities_dir=str(data.get("identities_dir", "identities")),
            signer=str(data.get("signer") or ""),
            log_level=str(data.get("log_level", "WARNING")).upper(),
            home=home,
        )

    @classmethod
    def load(cls, home: Path | str = None) -> "CollectionConfig":
        """Load config from the home directory; defaults if there is none."""
        home = Path(home) if home else default_home()
        path = home / CONFIG_FILENAME
        if not path.exists():
            return cls(home=home)
        with open(path, "r") as f:
            return cls.from_yaml(f.read(), home=home)

    def save(self) -> Path:
        """Write config into the home directory."""
        home = self.home or default_home()
        home.mkdir(parents=True, exist_ok=True)
        path = home / CONFIG_FILENAME
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        return path
