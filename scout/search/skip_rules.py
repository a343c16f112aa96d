"""Directory exclusion rules shared by every recursive strategy."""

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePath

# Large or system directories that are never worth descending into.
ESSENTIAL_SKIP_NAMES = frozenset(
    {
        # Version control
        ".git", ".svn", ".hg",
        # Dependencies
        "node_modules", "vendor", ".npm", ".yarn",
        # Build outputs
        "dist", "build", "target", ".next", ".nuxt",
        # Caches
        ".cache", "__pycache__", ".pytest_cache",
        # Python environments
        ".venv", "venv", "env", "virtualenv", "site-packages", ".tox", ".mypy_cache",
        # Language toolchains
        ".cargo", ".rustup", ".go", ".gradle", ".m2", ".ivy2", ".pub-cache",
        # Game libraries
        "steamapps", "Steam", "SteamLibrary", "Epic Games", "EpicGamesLauncher",
        "XboxGames", "WindowsApps", "ModifiableWindowsApps",
        "GOG Galaxy", "Origin Games", "Riot Games",
        # Windows system
        "$Recycle.Bin", "$RECYCLE.BIN", "System Volume Information", "Recovery",
        "Windows", "Program Files", "Program Files (x86)", "ProgramData", "AppData",
        "Config.Msi", "PerfLogs", "AMD",
        # Linux system
        "proc", "sys", "dev", "run", "lost+found", "tmp", "var", "boot", "snap", "wslg",
        # macOS system
        "Library", "System", ".Trash",
        # IDE/Editor
        ".idea", ".vscode", ".vs",
    }
)  # fmt: skip

ESSENTIAL_SKIP_PREFIXES = ("TEMP", "UMFD-", "wsl", "found.", "AMD", ".Font Driver", "Unreal", "Unity")

# Only compared against full paths, so a project folder called "lib" is still searched.
ESSENTIAL_SKIP_ABSOLUTE = (
    "/usr", "/bin", "/sbin", "/lib", "/lib32", "/lib64", "/libx32", "/etc", "/opt", "/mnt", "/media",
)  # fmt: skip

IGNORED_NAMES = frozenset({".DS_Store", "Thumbs.db"})


@dataclass(frozen=True, slots=True)
class SkipRules:
    """Immutable merged set of exclusion rules.

    User patterns ending in ``*`` are prefix wildcards, patterns containing a
    path separator match the trailing components of a directory path, and
    anything else is an exact directory name.
    """

    names: frozenset[str] = ESSENTIAL_SKIP_NAMES
    prefixes: tuple[str, ...] = ESSENTIAL_SKIP_PREFIXES
    absolute_paths: tuple[str, ...] = ESSENTIAL_SKIP_ABSOLUTE
    path_suffixes: tuple[tuple[str, ...], ...] = field(default=())

    @classmethod
    def from_config(cls, skip_directories: Iterable[str] = ()) -> "SkipRules":
        """Merge user-configurable patterns with the essential rules."""
        names = set(ESSENTIAL_SKIP_NAMES)
        prefixes = list(ESSENTIAL_SKIP_PREFIXES)
        suffixes: list[tuple[str, ...]] = []
        for raw in skip_directories:
            pattern = raw.strip()
            if not pattern:
                continue
            if "/" in pattern or "\\" in pattern:
                parts = tuple(p for p in pattern.replace("\\", "/").split("/") if p)
                if parts and parts not in suffixes:
                    suffixes.append(parts)
            elif pattern.endswith("*"):
                prefix = pattern.rstrip("*")
                if prefix and prefix not in prefixes:
                    prefixes.append(prefix)
            else:
                names.add(pattern)
        return cls(
            names=frozenset(names),
            prefixes=tuple(prefixes),
            absolute_paths=ESSENTIAL_SKIP_ABSOLUTE,
            path_suffixes=tuple(suffixes),
        )

    def should_skip_dir(self, path: str, name: str) -> bool:
        """Whether the directory at ``path`` (named ``name``) must not be entered."""
        if path in self.absolute_paths:
            return True
        if name in self.names:
            return True
        if name.startswith(self.prefixes):
            return True
        if self.path_suffixes:
            parts = PurePath(path).parts
            for suffix in self.path_suffixes:
                if len(parts) >= len(suffix) and parts[-len(suffix) :] == suffix:
                    return True
        return False

    def is_ignored(self, name: str) -> bool:
        """Whether a file name is noise that never shows up in results."""
        return name in IGNORED_NAMES

    def rg_globs(self, root: str) -> list[str]:
        """Exclusion globs for the content search tool, consistent with ``should_skip_dir``.

        Every glob ends in "/" and so only matches directories; files with the
        same names are still searched.
        """
        globs = [f"!{name}/" for name in sorted(self.names)]
        globs.extend(f"!{prefix}*/" for prefix in self.prefixes)
        globs.extend("!**/" + "/".join(suffix) + "/" for suffix in self.path_suffixes)
        root_abs = os.path.abspath(root)
        for absolute in self.absolute_paths:
            # Globs starting with "/" are anchored at the search root.
            try:
                relative = os.path.relpath(absolute, root_abs)
            except ValueError:
                continue
            if relative != "." and not relative.startswith(".."):
                globs.append("!/" + relative.replace(os.sep, "/") + "/")
        return globs
