"""
Load-data-source tool boundary.

Resolves a data source by id and returns its metadata, content-type
guidance, a resource listing, or a combination. Results are plain data;
rendering for a terminal or UI is left to the caller.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import FinderError
from ..models.guidance import ContentTypeGuidance, InstructionFilters
from ..models.resources import ListResourcesQuery, ListResourcesResult, ResourceMetadataSummary
from .accessor import Capability, require_capability
from .guidance import build_guidance, relevant_sections
from .registry import DataSourceRegistry


logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 15
MAX_SAMPLE_SIZE = 20


class ReturnType(Enum):
    """What the load tool returns."""
    METADATA = "metadata"
    RESOURCES = "resources"
    BOTH = "both"
    INSTRUCTIONS = "instructions"
    COMBINED = "combined"


class LoadDataSourceRequest(BaseModel):
    """
    Typed request accepted by the load-data-source tool.

    Attributes:
        data_source_id: Registered data source id
        return_type: What to return
        path: Directory to list, relative to the root
        depth: Listing depth (1 = immediate children)
        page_size: Requested page size
        page_token: Cursor from a previous page
        instruction_filters: Narrowing for content-type guidance
    """

    model_config = ConfigDict(populate_by_name=True)

    data_source_id: str = Field(..., min_length=1, alias='dataSourceId')
    return_type: ReturnType = Field(ReturnType.METADATA, alias='returnType')
    path: Optional[str] = None
    depth: Optional[int] = Field(1, ge=1)
    page_size: Optional[int] = Field(None, gt=0, alias='pageSize')
    page_token: Optional[str] = Field(None, alias='pageToken')
    instruction_filters: Optional[InstructionFilters] = Field(None, alias='instructionFilters')

    @field_validator('return_type', mode='before')
    @classmethod
    def validate_return_type(cls, v) -> ReturnType:
        """Ensure return_type is a ReturnType enum."""
        if isinstance(v, str):
            try:
                return ReturnType(v)
            except ValueError:
                raise ValueError(f"Invalid return type: {v}")
        return v

    def listing_query(self, page_size: Optional[int] = None) -> ListResourcesQuery:
        return ListResourcesQuery(
            path=self.path or "",
            depth=self.depth,
            page_size=page_size or self.page_size,
            page_token=self.page_token,
        )


class LoadDataSourceResult(BaseModel):
    """
    Structured result of the load-data-source tool.

    ``error`` is set, and the other payload fields left empty, when the data
    source is unknown or lacks a required capability.
    """

    data_source_id: str
    name: Optional[str] = None
    provider_type: Optional[str] = None
    return_type: ReturnType
    metadata: Optional[ResourceMetadataSummary] = None
    guidance: Optional[ContentTypeGuidance] = None
    resources: Optional[ListResourcesResult] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to dictionary representation."""
        data = self.model_dump(mode='json', exclude_none=True)
        data['return_type'] = self.return_type.value
        return data


def load_data_source(registry: DataSourceRegistry, request: LoadDataSourceRequest) -> LoadDataSourceResult:
    """
    Run the load-data-source tool.

    Args:
        registry: Registered data sources
        request: Tool request

    Returns:
        LoadDataSourceResult; errors are reported in its ``error`` field
    """
    logger.info(f"Loading data source '{request.data_source_id}' ({request.return_type.value})")
    result = LoadDataSourceResult(data_source_id=request.data_source_id, return_type=request.return_type)

    try:
        accessor = registry.get(request.data_source_id)
        result.name = registry.get_name(request.data_source_id)
        result.provider_type = accessor.provider_type
        return_type = request.return_type
        filters = request.instruction_filters

        if return_type in (ReturnType.RESOURCES, ReturnType.COMBINED):
            require_capability(accessor, Capability.LIST)

        if return_type in (ReturnType.METADATA, ReturnType.BOTH, ReturnType.COMBINED):
            result.metadata = accessor.get_metadata()

        if return_type in (ReturnType.INSTRUCTIONS, ReturnType.COMBINED):
            filters = _with_all_sections(accessor.provider_type, filters, accessor)
        if return_type != ReturnType.RESOURCES:
            result.guidance = build_guidance(accessor.provider_type, filters, accessor)

        if return_type == ReturnType.BOTH and accessor.has_capability(Capability.LIST):
            sample_size = result.metadata.get_recommended_page_size(DEFAULT_SAMPLE_SIZE)
            result.resources = accessor.list_resources(
                request.listing_query(min(sample_size, MAX_SAMPLE_SIZE))
            )
        elif return_type in (ReturnType.RESOURCES, ReturnType.COMBINED):
            result.resources = accessor.list_resources(request.listing_query())

    except FinderError as e:
        logger.warning(f"Loading data source '{request.data_source_id}' failed: {e.message}")
        result.metadata = None
        result.guidance = None
        result.resources = None
        result.error = e.to_dict()

    return result


def _with_all_sections(provider_type: str, filters: Optional[InstructionFilters],
                       accessor) -> InstructionFilters:
    """Request every relevant instruction section unless the caller chose some."""
    filters = filters or InstructionFilters()
    if filters.sections:
        return filters
    base = build_guidance(provider_type, InstructionFilters(), accessor)
    return filters.model_copy(update={'sections': relevant_sections(base)})
