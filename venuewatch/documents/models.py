from pydantic import BaseModel, Field

from venuewatch.storage.hashing import content_hash


class MergedPage(BaseModel):
    url: str = Field(min_length=1)
    html: str


class MergedDocument(BaseModel):
    """All of a venue's pages combined, with source URLs kept for attribution."""

    venue_id: str = Field(min_length=1)
    venue_name: str
    website: str
    pages: list[MergedPage] = Field(default_factory=list)


class TrimmedPage(BaseModel):
    url: str = Field(min_length=1)
    text: str
    size_reduction: float = Field(ge=0.0, le=100.0)


class TrimmedDocument(BaseModel):
    """Visible-text-only version of a MergedDocument."""

    venue_id: str = Field(min_length=1)
    venue_name: str
    website: str
    pages: list[TrimmedPage] = Field(default_factory=list)
    size_reduction: float = Field(ge=0.0, le=100.0)

    def combined_text(self) -> str:
        return "\n".join(page.text for page in self.pages)

    def source_hash(self) -> str:
        """Hash of the concatenated page texts, as sent to extraction."""
        return content_hash(self.combined_text())
