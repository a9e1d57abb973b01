"""
Data models for the Resource Finder.

This module contains the core data structures used throughout the system.
"""

from .search_criteria import SearchCriteria, FindResourcesRequest
from .search_results import ResourceKind, ResourceDescriptor, ContentMatch, SearchResult
from .resources import (
    ListResourcesQuery,
    ListResourcesResult,
    PaginationInfo,
    ResourceMetadataSummary,
    FilesystemMetadata,
)
from .guidance import ContentTypeGuidance, GuidanceExample, InstructionFilters

__all__ = [
    'SearchCriteria',
    'FindResourcesRequest',
    'ResourceKind',
    'ResourceDescriptor',
    'ContentMatch',
    'SearchResult',
    'ListResourcesQuery',
    'ListResourcesResult',
    'PaginationInfo',
    'ResourceMetadataSummary',
    'FilesystemMetadata',
    'ContentTypeGuidance',
    'GuidanceExample',
    'InstructionFilters',
]
