"""
Search criteria data models for the Resource Finder.

This module defines the criteria a search is evaluated against and the
typed request accepted at the find-resources tool boundary.
"""

from typing import Dict, List, Optional, Any, Union
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DateInput = Union[str, date, datetime]


class SearchCriteria(BaseModel):
    """
    Criteria a resource must satisfy to be included in a search result.

    Every field is optional; an empty criteria object matches everything.
    Dates are kept as the text the caller supplied so the criteria
    description echoes it back unchanged.

    Attributes:
        content_pattern: Regular expression searched for in resource content
        case_sensitive: Whether the content pattern is case-sensitive
        resource_pattern: Glob pattern (``|``-separated alternatives) for resource paths
        size_min: Inclusive minimum size in bytes
        size_max: Inclusive maximum size in bytes
        modified_after: Inclusive lower bound on modification date
        modified_before: Inclusive upper bound on modification date
    """

    content_pattern: Optional[str] = Field(None, description="Regex searched for in content")
    case_sensitive: bool = Field(False, description="Whether the content pattern is case-sensitive")
    resource_pattern: Optional[str] = Field(None, description="Glob pattern for resource paths")
    size_min: Optional[int] = Field(None, ge=0, description="Inclusive minimum size in bytes")
    size_max: Optional[int] = Field(None, ge=0, description="Inclusive maximum size in bytes")
    modified_after: Optional[str] = Field(None, description="Inclusive lower modification date bound")
    modified_before: Optional[str] = Field(None, description="Inclusive upper modification date bound")

    @field_validator('content_pattern', 'resource_pattern')
    @classmethod
    def blank_pattern_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty patterns as absent."""
        if v is None or v == "":
            return None
        return v

    @field_validator('modified_after', 'modified_before', mode='before')
    @classmethod
    def validate_date(cls, v: Optional[DateInput]) -> Optional[str]:
        """Accept date, datetime or date strings; keep them as text."""
        if v is None:
            return None
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        if not isinstance(v, str):
            raise ValueError(f"Unsupported date value: {v!r}")
        v = v.strip()
        if not v:
            return None

        from ..tools.metadata_filter import parse_date_bound
        parse_date_bound(v)
        return v

    @model_validator(mode='after')
    def validate_size_range(self):
        """Check that the size bounds form a valid range."""
        if self.size_min is not None and self.size_max is not None:
            if self.size_min > self.size_max:
                raise ValueError("size_min must be <= size_max")
        return self

    def has_content_pattern(self) -> bool:
        return self.content_pattern is not None

    def has_metadata_filters(self) -> bool:
        """Check if any size or date filter is present."""
        return any(value is not None for value in (
            self.size_min, self.size_max, self.modified_after, self.modified_before
        ))

    def is_empty(self) -> bool:
        """Check if these criteria match everything."""
        return (
            self.content_pattern is None
            and self.resource_pattern is None
            and not self.has_metadata_filters()
        )

    def describe(self) -> str:
        """
        Render the canonical criteria description.

        Clauses appear in a fixed order regardless of how the criteria were
        built: content pattern, case sensitivity, resource pattern, modified
        after, modified before, minimum size, maximum size.

        Returns:
            Clauses joined by ", "; empty string when there are no criteria
        """
        clauses: List[str] = []
        if self.content_pattern is not None:
            clauses.append(f'content pattern "{self.content_pattern}"')
            clauses.append("case-sensitive" if self.case_sensitive else "case-insensitive")
        if self.resource_pattern is not None:
            clauses.append(f'resource pattern "{self.resource_pattern}"')
        if self.modified_after is not None:
            clauses.append(f"modified after {self.modified_after}")
        if self.modified_before is not None:
            clauses.append(f"modified before {self.modified_before}")
        if self.size_min is not None:
            clauses.append(f"minimum size {self.size_min} bytes")
        if self.size_max is not None:
            clauses.append(f"maximum size {self.size_max} bytes")
        return ", ".join(clauses)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the criteria to a dictionary representation."""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchCriteria':
        """Create a SearchCriteria instance from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        return self.describe() or "all resources"


class FindResourcesRequest(BaseModel):
    """
    Typed request accepted by the find-resources tool.

    Field aliases follow the camelCase names used on the tool wire format;
    snake_case names are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True)

    content_pattern: Optional[str] = Field(None, alias='contentPattern')
    resource_pattern: Optional[str] = Field(None, alias='resourcePattern')
    case_sensitive: bool = Field(False, alias='caseSensitive')
    size_min: Optional[int] = Field(None, alias='sizeMin')
    size_max: Optional[int] = Field(None, alias='sizeMax')
    date_after: Optional[str] = Field(None, alias='dateAfter')
    date_before: Optional[str] = Field(None, alias='dateBefore')
    include_content: bool = Field(False, alias='includeContent')

    def to_criteria_fields(self) -> Dict[str, Any]:
        """Map request fields onto SearchCriteria field names."""
        return {
            'content_pattern': self.content_pattern,
            'case_sensitive': self.case_sensitive,
            'resource_pattern': self.resource_pattern,
            'size_min': self.size_min,
            'size_max': self.size_max,
            'modified_after': self.date_after,
            'modified_before': self.date_before,
        }

    def to_criteria(self) -> SearchCriteria:
        """
        Convert the request to SearchCriteria.

        Raises:
            pydantic.ValidationError: If a size or date value is invalid
        """
        return SearchCriteria(**self.to_criteria_fields())
