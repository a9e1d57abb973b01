"""
Content-type guidance models.

Guidance tells downstream edit tools which content representations and
edit operations a provider accepts.
"""

from typing import Dict, List, Optional, Any
from pydantic import BaseModel, ConfigDict, Field


class GuidanceExample(BaseModel):
    """
    An example tool call illustrating one way to write to a provider.

    Attributes:
        description: What the example demonstrates
        tool: Tool the example invokes
        input: Example tool input
        content_type: Content representation used, for create/rewrite examples
        operation: Operation demonstrated (create, edit, ...)
        edit_type: Edit type used, for edit examples
    """

    description: str
    tool: str
    input: Dict[str, Any] = Field(default_factory=dict)
    content_type: Optional[str] = None
    operation: Optional[str] = None
    edit_type: Optional[str] = None


class InstructionFilters(BaseModel):
    """
    Narrowing filters for guidance.

    Absent filters include everything relevant to the provider.

    Attributes:
        content_types: Keep only examples using these content types
        operations: Keep only examples demonstrating these operations
        edit_types: Keep only examples using these edit types
        sections: Detailed instruction sections to render
        include_overview: Whether to include the general notes
    """

    model_config = ConfigDict(populate_by_name=True)

    content_types: Optional[List[str]] = Field(None, alias='contentTypes')
    operations: Optional[List[str]] = None
    edit_types: Optional[List[str]] = Field(None, alias='editTypes')
    sections: Optional[List[str]] = None
    include_overview: bool = Field(True, alias='includeOverview')


class ContentTypeGuidance(BaseModel):
    """
    Accepted content representations and edit operations for a provider.

    Attributes:
        primary_content_type: Native content shape of the provider
        accepted_content_types: Content types accepted for create/rewrite
        accepted_edit_types: Edit operation types the provider supports
        preferred_content_type: Content type callers should prefer
        examples: Example tool calls
        notes: General usage notes
        instructions: Detailed instruction sections keyed by section name
    """

    primary_content_type: str
    accepted_content_types: List[str] = Field(default_factory=list)
    accepted_edit_types: List[str] = Field(default_factory=list)
    preferred_content_type: str
    examples: List[GuidanceExample] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    instructions: Optional[Dict[str, str]] = None

    def supports_edit_type(self, edit_type: str) -> bool:
        return edit_type in self.accepted_edit_types

    def to_dict(self) -> Dict[str, Any]:
        """Convert guidance to dictionary representation."""
        return self.model_dump(exclude_none=True)
