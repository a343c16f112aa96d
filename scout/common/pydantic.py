"""Pydantic base model."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class FrozenBaseModel(BaseModel):
    """Pydantic frozen base model."""

    model_config = ConfigDict(frozen=True, strict=True)


class SearchQuery(FrozenBaseModel):
    """Search query."""

    text: str


class SearchResult(FrozenBaseModel):
    """One matched (or listed) filesystem entry.

    ``matched_indexes`` point into ``display_name``, which is what gets rendered.
    Keeping them on the result itself means no ordering step can separate an
    entry from its highlight information.
    """

    path: Path
    display_name: str
    is_dir: bool = False
    size: int = 0
    modified_ns: int | None = None
    line_number: int | None = None
    matched_indexes: tuple[int, ...] = ()
    volume: str | None = None

    @property
    def name(self) -> str:
        """Base name of the entry."""
        return self.path.name or str(self.path)


class SearchLimits(FrozenBaseModel):
    """Per-session bounds, resolved from configuration at dispatch time."""

    max_results: int = Field(default=5000, ge=1)
    max_depth: int = Field(default=5, ge=1)
    max_files_scanned: int = Field(default=100_000, ge=1)
    content_timeout: float = Field(default=30.0, gt=0)
    max_file_size: str = Field(default="1M", description="Largest file the content search will read.")
