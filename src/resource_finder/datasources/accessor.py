"""Provider contract shared by every data source.

Each provider (filesystem, MCP, Notion, Google Docs, ...) implements
ResourceAccessor to take part in both resource search and data-source
loading. Callers check ``has_capability`` before invoking an operation;
accessors also guard each operation with ``require_capability`` so a missing
capability fails fast instead of returning empty data.
"""

from enum import Enum
from typing import BinaryIO, Protocol, Union, runtime_checkable

from ..errors import CapabilityError
from ..models.resources import ListResourcesQuery, ListResourcesResult, ResourceMetadataSummary


class Capability(Enum):
    """Operations a provider may support."""
    READ = "read"
    WRITE = "write"
    LIST = "list"
    SEARCH = "search"
    MOVE = "move"
    DELETE = "delete"


@runtime_checkable
class ResourceAccessor(Protocol):
    """Protocol for data source providers.

    Listing semantics are shared by every hierarchical provider: ``depth=1``
    returns immediate children, ``depth=None`` recurses without bound, and
    ``page_size`` is a hint the provider may cap.
    """

    provider_type: str

    def list_resources(self, query: ListResourcesQuery) -> ListResourcesResult:
        """List resources below a path.

        Args:
            query: Path, depth and pagination parameters.

        Returns:
            One page of resources plus the URI template and, when more
            remain, a cursor for the next page.
        """
        ...

    def get_metadata(self) -> ResourceMetadataSummary:
        """Aggregate stat-level statistics without reading resource content."""
        ...

    def has_capability(self, capability: Union[str, Capability]) -> bool:
        """Check whether the provider supports an operation."""
        ...

    def get_uri_for_resource(self, relative_path_template: str) -> str:
        """Build the provider's canonical URI template for a relative path template."""
        ...

    def open_resource(self, relative_path: str) -> BinaryIO:
        """Open a resource's content for reading.

        Raises:
            NotFoundError: If the resource does not exist.
            CapabilityError: If the provider cannot read content.
        """
        ...


def capability_name(capability: Union[str, Capability]) -> str:
    if isinstance(capability, Capability):
        return capability.value
    return str(capability)


def require_capability(accessor: ResourceAccessor, capability: Union[str, Capability]) -> None:
    """Raise CapabilityError unless the accessor supports ``capability``.

    Raises:
        CapabilityError: If the capability is missing.
    """
    if not accessor.has_capability(capability):
        name = getattr(accessor, 'name', None) or getattr(accessor, 'provider_type', type(accessor).__name__)
        raise CapabilityError(capability_name(capability), name)
