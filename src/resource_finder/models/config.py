"""
Configuration data models for the Resource Finder.

This module defines the data structures for application configuration,
including data sources, ignore patterns, scanning buffers, and search limits.
"""

from typing import Dict, List, Optional, Any
from pathlib import Path
from enum import Enum
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


class ProviderType(Enum):
    """Supported data source provider types."""
    FILESYSTEM = "filesystem"
    MCP = "mcp"
    NOTION = "notion"
    GOOGLEDOCS = "googledocs"
    MEMORY = "memory"


class LimitsConfig(BaseModel):
    """
    Configuration for system limits and constraints.

    Attributes:
        max_files: Maximum number of resources to visit in a single search
        max_bytes_per_file: Largest resource a caller should load in full (bytes)
        timeout_seconds: Timeout for search operations
        max_concurrent: Maximum concurrent content scans
        max_page_size: Upper bound applied to listing page sizes
    """

    max_files: int = Field(200000, gt=0, description="Maximum number of resources to visit")
    max_bytes_per_file: int = Field(5000000, gt=0, description="Largest resource to load in full (bytes)")
    timeout_seconds: float = Field(300, gt=0, description="Timeout for search operations")
    max_concurrent: int = Field(4, gt=0, description="Maximum concurrent content scans")
    max_page_size: int = Field(1000, gt=0, description="Upper bound for listing page sizes")

    def get_max_size_human_readable(self) -> str:
        """Get max file size in human-readable format."""
        size = float(self.max_bytes_per_file)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['max_size_human'] = self.get_max_size_human_readable()
        return data


class ScanConfig(BaseModel):
    """
    Buffer settings for content scanning.

    Resources up to ``whole_file_threshold`` bytes are read in one piece.
    Larger ones are streamed in ``chunk_size`` reads, carrying the last
    ``chunk_size + overlap`` characters into the next window so that matches
    spanning a read boundary are still found. Matches up to ``chunk_size``
    characters wide are guaranteed to be detected in chunked mode, provided
    their lookahead reaches no more than half of ``overlap`` past their end.

    Attributes:
        chunk_size: Bytes read per chunk in streaming mode
        overlap: Extra characters carried between windows; half of it is the
            right-hand context a match needs before it is accepted
        whole_file_threshold: Size at or below which a resource is read whole
        binary_sniff_bytes: Bytes inspected to decide whether content is binary
    """

    chunk_size: int = Field(1024 * 1024, gt=0, description="Bytes read per chunk")
    overlap: int = Field(64 * 1024, gt=0, description="Extra characters carried between windows")
    whole_file_threshold: int = Field(8 * 1024 * 1024, ge=0, description="Read-whole threshold (bytes)")
    binary_sniff_bytes: int = Field(1024, gt=0, description="Bytes inspected for binary detection")


class SearchConfig(BaseModel):
    """
    Defaults for search behaviour.

    Attributes:
        include_directories: Whether directories can appear in search results
        context_lines: Lines of context around content matches
        max_matches_per_file: Maximum content matches reported per resource
    """

    include_directories: bool = Field(False, description="Include directories in search results")
    context_lines: int = Field(2, ge=0, description="Lines of context around content matches")
    max_matches_per_file: int = Field(5, gt=0, description="Content matches reported per resource")


class DataSourceConfig(BaseModel):
    """
    A configured data source.

    Attributes:
        id: Identifier used by the load tool
        name: Human-readable name
        provider_type: Provider backing this data source
        root: Root directory (filesystem providers only)
        capabilities: Optional override of the provider's capability set
    """

    id: str = Field(..., min_length=1, description="Data source identifier")
    name: Optional[str] = Field(None, description="Human-readable name")
    provider_type: ProviderType = Field(ProviderType.FILESYSTEM, description="Provider type")
    root: Optional[str] = Field(None, description="Root directory for filesystem sources")
    capabilities: Optional[List[str]] = Field(None, description="Capability override")

    @field_validator('provider_type', mode='before')
    @classmethod
    def validate_provider_type(cls, v) -> ProviderType:
        """Validate and convert provider type to enum."""
        if isinstance(v, str):
            try:
                return ProviderType(v)
            except ValueError:
                raise ValueError(f"Invalid provider type: {v}")
        return v

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: Optional[str]) -> Optional[str]:
        """Expand user paths in the root directory."""
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Data source root cannot be empty")
        return str(Path(v).expanduser())

    @model_validator(mode='after')
    def validate_filesystem_root(self):
        """Filesystem sources need a root directory."""
        if self.provider_type == ProviderType.FILESYSTEM and not self.root:
            raise ValueError(f"Filesystem data source '{self.id}' requires a root")
        return self

    def get_display_name(self) -> str:
        """Get the name shown to users, falling back to the id."""
        return self.name or self.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump(exclude_none=True)
        data['provider_type'] = self.provider_type.value
        return data


class FinderConfig(BaseModel):
    """
    Main configuration class for the Resource Finder.

    Attributes:
        data_sources: Configured data sources
        ignore: Extra ignore patterns (gitignore-style) applied by the filesystem walker
        limits: System limits and constraints
        scan: Content scanner buffer settings
        search: Search defaults
    """

    data_sources: List[DataSourceConfig] = Field(default_factory=list, description="Configured data sources")
    ignore: List[str] = Field(default_factory=list, description="Extra ignore patterns (gitignore-style)")
    limits: LimitsConfig = Field(default_factory=LimitsConfig, description="System limits and constraints")
    scan: ScanConfig = Field(default_factory=ScanConfig, description="Content scanner settings")
    search: SearchConfig = Field(default_factory=SearchConfig, description="Search defaults")

    @field_validator('ignore')
    @classmethod
    def normalize_ignore_patterns(cls, v: List[str]) -> List[str]:
        """Strip blank lines and comments from ignore patterns."""
        normalized_patterns = []
        for pattern in v:
            if not pattern or not pattern.strip():
                continue
            pattern = pattern.strip()
            if pattern.startswith('#'):
                continue
            normalized_patterns.append(pattern)
        return normalized_patterns

    @model_validator(mode='after')
    def validate_data_source_ids(self):
        """Data source ids must be unique."""
        seen = set()
        for source in self.data_sources:
            if source.id in seen:
                raise ValueError(f"Duplicate data source id: {source.id}")
            seen.add(source.id)
        return self

    def get_data_source(self, source_id: str) -> Optional[DataSourceConfig]:
        """Look up a configured data source by id."""
        for source in self.data_sources:
            if source.id == source_id:
                return source
        return None

    def validate_configuration(self) -> List[str]:
        """
        Check the configuration for settings that are legal but likely mistakes.

        Returns:
            List of warning messages
        """
        warnings = []

        if not self.data_sources:
            warnings.append("No data sources configured")

        for source in self.data_sources:
            if source.root and not Path(source.root).exists():
                warnings.append(f"Data source '{source.id}' root does not exist: {source.root}")

        if self.scan.overlap >= self.scan.chunk_size:
            warnings.append("Scan overlap is not smaller than chunk size; each window carries more context than new data")

        if self.limits.max_concurrent > 64:
            warnings.append(f"Very high max_concurrent ({self.limits.max_concurrent}) may exhaust file handles")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert the complete configuration to dictionary representation."""
        return {
            'data_sources': [source.to_dict() for source in self.data_sources],
            'ignore': list(self.ignore),
            'limits': self.limits.model_dump(),
            'scan': self.scan.model_dump(),
            'search': self.search.model_dump(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create a FinderConfig from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Data sources: {len(self.data_sources)}"]
        parts.append(f"Ignore patterns: {len(self.ignore)}")
        parts.append(f"Max concurrent: {self.limits.max_concurrent}")
        return " | ".join(parts)


KNOWN_SECTIONS = ('data_sources', 'ignore', 'limits', 'scan', 'search')


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary using Pydantic.

    Args:
        config_data: Dictionary containing configuration data

    Returns:
        Normalized configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config_data).__name__}")

    unknown = [key for key in config_data if key not in KNOWN_SECTIONS]
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    for section in ('limits', 'scan', 'search'):
        value = config_data.get(section)
        if value is not None and not isinstance(value, dict):
            raise ValueError(f"Section '{section}' must be a mapping")

    try:
        config = FinderConfig.model_validate(config_data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}")

    return config.to_dict()
