"""Persistent app configuration."""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator, model_validator

from ..common.pydantic import SearchLimits
from ..search.skip_rules import SkipRules

logger = logging.getLogger(__name__)

# field -> (default, minimum, maximum)
LIMIT_BOUNDS: dict[str, tuple[float, float, float]] = {
    "max_results": (5000, 100, 50_000),
    "max_depth": (5, 1, 20),
    "max_files_scanned": (100_000, 1000, 1_000_000),
    "content_timeout": (30.0, 1.0, 300.0),
}


def default_skip_directories() -> list[str]:
    """User-editable starting list of directories to skip."""
    return [
        # Python installations (Python27, Python312, ...)
        "Python*",
        # Large game installations not caught by platform folders
        "Call of Duty*",
        "Grand Theft Auto*",
        "Red Dead Redemption*",
        "Cyberpunk*",
        "The Witcher*",
        "Minecraft*",
        "World of Warcraft*",
        # Browser caches and data
        "Google/Chrome/User Data",
        "Mozilla/Firefox/Profiles",
        # Development tools
        "Android/Sdk",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        # System/temp directories
        "$Recycle.Bin",
        "System Volume Information",
    ]


def default_bookmarks() -> list[str]:
    """Bookmarks for a fresh install."""
    return [str(Path.home())]


class AppConfig(BaseModel):
    """User configuration, persisted as JSON in the app data directory."""

    max_results: int = Field(default=5000, description="Maximum results per search (100-50000).")
    max_depth: int = Field(default=5, description="Maximum recursion depth (1-20).")
    max_files_scanned: int = Field(default=100_000, description="Entries scanned before giving up (1000-1000000).")
    content_timeout: float = Field(default=30.0, description="Content search timeout in seconds (1-300).")
    skip_directories: list[str] = Field(default_factory=default_skip_directories)
    show_hidden: bool = Field(default=True, description="Whether hidden entries are listed and searched.")
    root_path: str = Field(default="", description="Directory to start in; empty means the working directory.")
    bookmarks: list[str] = Field(default_factory=default_bookmarks)
    frecency: dict[str, int] = Field(default_factory=dict, description="Visit count per directory.")
    last_visited: dict[str, str] = Field(default_factory=dict, description="ISO timestamp of the last visit.")
    editor: str = Field(default="", description="Preferred editor command.")

    @field_validator("max_results", "max_depth", "max_files_scanned", "content_timeout")
    @classmethod
    def clamp_limits(cls, value: float, info: ValidationInfo) -> float:
        """Clamp search limits into sane ranges."""
        name = info.field_name or ""
        default, minimum, maximum = LIMIT_BOUNDS[name]
        if value <= 0:
            return type(value)(default)
        if value < minimum:
            logger.warning("%s too low (%s), using minimum of %s", name, value, minimum)
            return type(value)(minimum)
        if value > maximum:
            logger.warning("%s too high (%s), using maximum of %s", name, value, maximum)
            return type(value)(maximum)
        return value

    @field_validator("skip_directories")
    @classmethod
    def fill_skip_directories(cls, value: list[str]) -> list[str]:
        """An empty list means the defaults were never written."""
        return value or default_skip_directories()

    @model_validator(mode="after")
    def bookmark_root(self) -> "AppConfig":
        """Keep the root path bookmarked."""
        if self.root_path and self.root_path not in self.bookmarks:
            self.bookmarks.insert(0, self.root_path)
        return self

    def search_limits(self) -> SearchLimits:
        """Immutable limits for one search."""
        return SearchLimits(
            max_results=self.max_results,
            max_depth=self.max_depth,
            max_files_scanned=self.max_files_scanned,
            content_timeout=float(self.content_timeout),
        )

    def skip_rules(self) -> SkipRules:
        """Essential rules merged with the user's skip list."""
        return SkipRules.from_config(self.skip_directories)


def load_config(path: Path) -> AppConfig:
    """Load the config file, falling back to defaults when it is missing or broken."""
    if not path.exists():
        return AppConfig()
    try:
        return AppConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.warning("Failed to read config file %s: %s, using defaults", path, e)
        return AppConfig()


def save_config(config: AppConfig, path: Path) -> None:
    """Write the config file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2), encoding="utf-8")
