"""
User settings for bookshelf.

Settings live in a small JSON file:
- $XDG_CONFIG_HOME/bookshelf/config.json (``~/.config`` when XDG_CONFIG_HOME is unset)
- ~/.bookshelf/config.json when that config directory does not exist

    {
      "cli": {"verbose": false, "color": true},
      "library": {"default_file": "~/Documents/pocketshelf.json"}
    }
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

APP_DIR = "bookshelf"
LEGACY_DIR = ".bookshelf"
CONFIG_FILE = "config.json"


@dataclass
class CLIConfig:
    """Output defaults for every command."""
    verbose: bool = False
    color: bool = True


@dataclass
class LibraryConfig:
    """Where the backup file lives when neither --file nor $BOOKSHELF_FILE is given."""
    default_file: Optional[str] = None

    def file_path(self) -> Optional[Path]:
        return Path(self.default_file).expanduser() if self.default_file else None


@dataclass
class BookshelfConfig:
    cli: CLIConfig = field(default_factory=CLIConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {"cli": asdict(self.cli), "library": asdict(self.library)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BookshelfConfig':
        """
        Build a config from parsed JSON.

        Raises:
            TypeError: A section holds keys this version does not know
        """
        return cls(
            cli=CLIConfig(**data.get("cli", {})),
            library=LibraryConfig(**data.get("library", {})),
        )


def get_config_path() -> Path:
    """Location of the config file (it may not exist yet)."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    if not base.exists():
        return Path.home() / LEGACY_DIR / CONFIG_FILE
    return base / APP_DIR / CONFIG_FILE


def load_config() -> BookshelfConfig:
    """
    Read the config file.

    A missing file gives the defaults. So does an unreadable or malformed
    one, after logging a warning.
    """
    path = get_config_path()
    if not path.exists():
        return BookshelfConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return BookshelfConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError, AttributeError) as e:
        logger.warning(f"Ignoring config file {path}: {e}")
        return BookshelfConfig()


def save_config(config: BookshelfConfig) -> Path:
    """Write ``config`` and return the file it went to."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
    logger.debug(f"Wrote config to {path}")
    return path


def ensure_config_exists() -> Path:
    path = get_config_path()
    if path.exists():
        return path
    logger.debug(f"Creating default config at {path}")
    return save_config(BookshelfConfig())


def update_config(
    default_file: Optional[str] = None,
    cli_verbose: Optional[bool] = None,
    cli_color: Optional[bool] = None,
) -> BookshelfConfig:
    """
    Change some settings and save.

    Arguments left as None keep their current value.
    """
    config = load_config()
    changes = [
        (config.library, "default_file", default_file),
        (config.cli, "verbose", cli_verbose),
        (config.cli, "color", cli_color),
    ]
    for section, name, value in changes:
        if value is not None:
            setattr(section, name, value)

    save_config(config)
    return config
