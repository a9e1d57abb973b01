"""
Search result data models for the Resource Finder.

This module defines the structures produced by traversal and search:
resource descriptors, content matches with line context, and the complete
search result returned at the tool boundary.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime
from pathlib import PurePosixPath
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ResourceKind(Enum):
    """Kinds of resources a provider can yield."""
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


class ResourceDescriptor(BaseModel):
    """
    A single resource yielded by a provider listing or traversal.

    Descriptors are immutable once yielded. Identity is the ``uri``.

    Attributes:
        uri: Provider-specific URI (scheme + path)
        display_name: Name shown to users
        relative_path: Path relative to the data source root, POSIX separators
        kind: File, directory or other
        mime_type: MIME type if known
        size_bytes: Size in bytes if known
        last_modified: Last modification time (timezone-aware UTC) if known
        provider_extra: Provider-specific extra fields
    """

    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., min_length=1, description="Provider-specific resource URI")
    display_name: str = Field(..., description="Name shown to users")
    relative_path: str = Field(..., description="Path relative to the data source root")
    kind: ResourceKind = Field(ResourceKind.FILE, description="Resource kind")
    mime_type: Optional[str] = Field(None, description="MIME type if known")
    size_bytes: Optional[int] = Field(None, ge=0, description="Size in bytes")
    last_modified: Optional[datetime] = Field(None, description="Last modification time")
    provider_extra: Optional[Dict[str, Any]] = Field(None, description="Provider-specific extras")

    @field_validator('kind', mode='before')
    @classmethod
    def validate_kind(cls, v) -> ResourceKind:
        """Ensure kind is a ResourceKind enum."""
        if isinstance(v, str):
            try:
                return ResourceKind(v)
            except ValueError:
                raise ValueError(f"Invalid resource kind: {v}")
        return v

    @field_validator('relative_path')
    @classmethod
    def validate_relative_path(cls, v: str) -> str:
        """Normalize to POSIX separators without a leading ./ or /."""
        v = v.replace('\\', '/')
        while v.startswith('./'):
            v = v[2:]
        return v.lstrip('/')

    @property
    def is_directory(self) -> bool:
        return self.kind == ResourceKind.DIRECTORY

    def get_extension(self) -> Optional[str]:
        """Get the lowercase extension including the dot, if any."""
        suffix = PurePosixPath(self.relative_path).suffix
        return suffix.lower() if suffix else None

    def get_depth(self) -> int:
        """Number of path segments below the root."""
        if not self.relative_path:
            return 0
        return len(self.relative_path.split('/'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert descriptor to dictionary representation."""
        data = self.model_dump(exclude_none=True)
        data['kind'] = self.kind.value
        if self.last_modified:
            data['last_modified'] = self.last_modified.isoformat()
        return data

    def __str__(self) -> str:
        if self.is_directory:
            return f"{self.relative_path}/"
        return self.relative_path


class ContentMatch(BaseModel):
    """
    A single content match within a resource, with surrounding lines.

    Attributes:
        line_number: 1-based line number of the match
        content: The matching line
        context_before: Lines preceding the match
        context_after: Lines following the match
        match_start: Character offset of the match within ``content``
        match_end: Character offset of the match end within ``content``
    """

    line_number: int = Field(..., ge=1, description="1-based line number of the match")
    content: str = Field(..., description="The matching line")
    context_before: List[str] = Field(default_factory=list, description="Lines before the match")
    context_after: List[str] = Field(default_factory=list, description="Lines after the match")
    match_start: Optional[int] = Field(None, ge=0, description="Match start within content")
    match_end: Optional[int] = Field(None, ge=0, description="Match end within content")

    @model_validator(mode='after')
    def validate_match_positions(self):
        """Validate match offsets are consistent."""
        if self.match_start is not None and self.match_end is not None:
            if self.match_end < self.match_start:
                raise ValueError("Invalid match position")
        return self

    def get_highlighted_content(self, highlight_start: str = "**", highlight_end: str = "**") -> str:
        """Get content with the match wrapped in the given markers."""
        if self.match_start is None or self.match_end is None:
            return self.content

        before = self.content[:self.match_start]
        match = self.content[self.match_start:self.match_end]
        after = self.content[self.match_end:]

        return f"{before}{highlight_start}{match}{highlight_end}{after}"


class SearchResult(BaseModel):
    """
    Complete result of a search operation.

    A failed search still produces a well-formed result: zero matches, the
    criteria description, and diagnostic text in ``errors_encountered``.

    Attributes:
        matches: Matching resources in traversal order
        criteria_description: Canonical human-readable description of the criteria
        errors_encountered: Diagnostics for skipped resources or rejected criteria
        content_matches: Content matches keyed by relative path (when requested)
        cancelled: Whether the search stopped early on cancellation or timeout
        total_scanned: Number of resources visited
    """

    matches: List[ResourceDescriptor] = Field(default_factory=list, description="Matching resources")
    criteria_description: str = Field("", description="Human-readable description of the criteria")
    errors_encountered: List[str] = Field(default_factory=list, description="Errors encountered during search")
    content_matches: Dict[str, List[ContentMatch]] = Field(default_factory=dict, description="Content matches by path")
    cancelled: bool = Field(False, description="Whether the search was cancelled")
    total_scanned: int = Field(0, ge=0, description="Number of resources visited")

    def get_match_count(self) -> int:
        """Get the total number of matches."""
        return len(self.matches)

    def get_relative_paths(self) -> List[str]:
        """Get the relative paths of all matches in order."""
        return [match.relative_path for match in self.matches]

    def has_errors(self) -> bool:
        """Check if any errors occurred during search."""
        return len(self.errors_encountered) > 0

    def add_error(self, error: str) -> None:
        """Add an error message to the results."""
        self.errors_encountered.append(error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert search result to dictionary representation."""
        return {
            'matches': [match.to_dict() for match in self.matches],
            'match_count': self.get_match_count(),
            'criteria_description': self.criteria_description,
            'errors_encountered': list(self.errors_encountered),
            'content_matches': {
                path: [m.model_dump() for m in found]
                for path, found in self.content_matches.items()
            },
            'cancelled': self.cancelled,
            'total_scanned': self.total_scanned,
            'has_errors': self.has_errors(),
        }

    def __str__(self) -> str:
        """String representation of the search result."""
        parts = [f"Found {self.get_match_count()} matches"]
        parts.append(f"Scanned {self.total_scanned} resources")
        if self.cancelled:
            parts.append("Cancelled")
        if self.has_errors():
            parts.append(f"Errors: {len(self.errors_encountered)}")
        return " | ".join(parts)
