"""
Listing and metadata models shared by every data source provider.
"""

from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .search_results import ResourceDescriptor


class ListResourcesQuery(BaseModel):
    """
    Parameters for a resource listing.

    Attributes:
        path: Directory (relative to the root) to list; root when empty
        depth: Levels of recursion; 1 lists immediate children, None is unbounded
        page_size: Requested page size; providers may cap it
        page_token: Opaque cursor returned by a previous page
    """

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field("", description="Directory to list, relative to the root")
    depth: Optional[int] = Field(1, ge=1, description="Recursion depth; None is unbounded")
    page_size: Optional[int] = Field(None, gt=0, alias='pageSize', description="Requested page size")
    page_token: Optional[str] = Field(None, alias='pageToken', description="Opaque pagination cursor")

    @field_validator('path', mode='before')
    @classmethod
    def normalize_path(cls, v: Optional[str]) -> str:
        """Normalize to a POSIX relative path."""
        if v is None:
            return ""
        v = str(v).replace('\\', '/').strip()
        while v.startswith('./'):
            v = v[2:]
        if v == '.':
            return ""
        return v.strip('/')


class PaginationInfo(BaseModel):
    next_page_token: Optional[str] = Field(None, description="Cursor for the next page")


class ListResourcesResult(BaseModel):
    """
    One page of a resource listing.

    Attributes:
        resources: Resources in deterministic order
        uri_template: Template for constructing resource URIs
        pagination: Present when another page is available
    """

    resources: List[ResourceDescriptor] = Field(default_factory=list, description="Listed resources")
    uri_template: str = Field(..., description="URI template for resources")
    pagination: Optional[PaginationInfo] = Field(None, description="Pagination details")

    @property
    def next_page_token(self) -> Optional[str]:
        if self.pagination is None:
            return None
        return self.pagination.next_page_token

    def to_dict(self) -> Dict[str, Any]:
        """Convert the listing to dictionary representation."""
        data: Dict[str, Any] = {
            'resources': [resource.to_dict() for resource in self.resources],
            'uri_template': self.uri_template,
        }
        if self.pagination is not None:
            data['pagination'] = self.pagination.model_dump(exclude_none=True)
        return data


class CapabilityFlags(BaseModel):
    can_read: bool = False
    can_write: bool = False
    can_list: bool = False
    can_search: bool = False


class PracticalLimits(BaseModel):
    """
    Provider hints for callers that need a representative sample.

    Attributes:
        recommended_page_size: Page size giving a useful overview of the source
        max_file_size_for_load: Largest resource worth loading in full (bytes)
    """

    recommended_page_size: int = Field(15, gt=0)
    max_file_size_for_load: int = Field(5000000, gt=0)


class FilesystemMetadata(BaseModel):
    """
    Stat-level aggregates for a filesystem data source.

    Attributes:
        total_files: Number of regular files
        total_directories: Number of directories below the root
        deepest_path_depth: Maximum segment count below the root
        largest_file_size: Size of the largest file in bytes
        oldest_file_date: Oldest modification time among files
        newest_file_date: Newest modification time among files
        file_extensions: Count of files per lowercase extension (with the dot)
        capabilities: Operations the provider supports
        practical_limits: Sampling and loading hints
    """

    total_files: int = Field(0, ge=0)
    total_directories: int = Field(0, ge=0)
    deepest_path_depth: int = Field(0, ge=0)
    largest_file_size: int = Field(0, ge=0)
    oldest_file_date: Optional[datetime] = None
    newest_file_date: Optional[datetime] = None
    file_extensions: Dict[str, int] = Field(default_factory=dict)
    capabilities: CapabilityFlags = Field(default_factory=CapabilityFlags)
    practical_limits: PracticalLimits = Field(default_factory=PracticalLimits)

    def get_top_extensions(self, n: int = 10) -> List[tuple]:
        """Get the ``n`` most common extensions as (extension, count) pairs."""
        ordered = sorted(self.file_extensions.items(), key=lambda item: (-item[1], item[0]))
        return ordered[:n]


class ResourceMetadataSummary(BaseModel):
    """
    Aggregated statistics describing a data source.

    Built fresh on every request.

    Attributes:
        total_resources: Number of resources of any kind
        resource_types: Count per resource kind
        last_scanned: When the aggregation was computed
        filesystem: Filesystem-specific aggregates
        provider_extra: Aggregates for other provider types
    """

    total_resources: int = Field(0, ge=0)
    resource_types: Dict[str, int] = Field(default_factory=dict)
    last_scanned: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    filesystem: Optional[FilesystemMetadata] = None
    provider_extra: Optional[Dict[str, Any]] = None

    def get_recommended_page_size(self, default: int = 15) -> int:
        """Get the provider's recommended sample size, if it published one."""
        if self.filesystem is not None:
            return self.filesystem.practical_limits.recommended_page_size
        if self.provider_extra and 'recommended_page_size' in self.provider_extra:
            return int(self.provider_extra['recommended_page_size'])
        return default

    def to_dict(self) -> Dict[str, Any]:
        """Convert the summary to dictionary representation."""
        return self.model_dump(mode='json', exclude_none=True)
