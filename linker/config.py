"""Configuration for the linker index."""
import json
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from linker.scoring import DEFAULT_WEIGHTS, Weights


DEFAULT_SELECTOR = "fzf --with-nth=2..3"
WEIGHTS_FILE_NAME = "weights.json"


@dataclass
class SelectorConfig:
    """Configuration for the interactive selector process."""
    command: List[str] = field(default_factory=lambda: shlex.split(DEFAULT_SELECTOR))
    timeout: float = 300.0  # Seconds before an idle selector is killed

    @classmethod
    def from_env(cls) -> "SelectorConfig":
        """Create config from environment variables."""
        return cls(
            command=shlex.split(os.environ.get("LINKER_SELECTOR", DEFAULT_SELECTOR)),
            timeout=float(os.environ.get("LINKER_SELECTOR_TIMEOUT", "300.0")),
        )


@dataclass
class Config:
    """Main configuration for linker."""
    selector: SelectorConfig = field(default_factory=SelectorConfig.from_env)
    index_dir: Optional[Path] = None  # None = .linker in the current directory
    opener: Optional[str] = None  # None = platform default
    fetch_timeout: float = 10.0  # Seconds, for --fetch-title

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        dir_str = os.environ.get("LINKER_DIR")
        index_dir = Path(dir_str) if dir_str else None

        return cls(
            selector=SelectorConfig.from_env(),
            index_dir=index_dir,
            opener=os.environ.get("LINKER_OPENER") or None,
            fetch_timeout=float(os.environ.get("LINKER_FETCH_TIMEOUT", "10.0")),
        )


def load_weights(path: Path) -> Weights:
    """Load scoring weights from a JSON file.

    The file holds {"weights": {...}} with all six coefficients.

    Args:
        path: Path to the weights file

    Returns:
        Weights from the file, or the defaults if it doesn't exist

    Raises:
        ValueError: If the file is unreadable, malformed or missing a coefficient
    """
    if not path.exists():
        return DEFAULT_WEIGHTS

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Invalid weights file {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("weights"), dict):
        raise ValueError(f"Invalid weights file {path}: expected a 'weights' object")

    return Weights.from_dict(data["weights"])


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
