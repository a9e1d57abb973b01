"""In-memory data source provider.

Useful as a reference implementation of the provider contract for
non-filesystem backends, and in tests.
"""

import io
import logging
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import BinaryIO, Dict, Iterable, List, Optional, Union

from ..errors import NotFoundError
from ..models.resources import (
    ListResourcesQuery,
    ListResourcesResult,
    PaginationInfo,
    ResourceMetadataSummary,
)
from ..models.search_results import ResourceDescriptor, ResourceKind
from ..tools.fs_walker import path_key
from .accessor import Capability, capability_name, require_capability
from .pagination import decode_cursor, encode_cursor, query_fingerprint


logger = logging.getLogger(__name__)


class InMemoryResourceAccessor:
    """Dict-backed ResourceAccessor.

    Directories are implied by the paths of the stored resources.

    Example:
        accessor = InMemoryResourceAccessor({
            "docs/intro.md": "# Intro",
            "notes.txt": b"raw bytes",
        })
        page = accessor.list_resources(ListResourcesQuery(depth=None))
    """

    DEFAULT_CAPABILITIES = ('read', 'list', 'search')

    def __init__(
        self,
        resources: Optional[Dict[str, Union[str, bytes]]] = None,
        provider_type: str = 'memory',
        name: str = 'memory',
        capabilities: Optional[Iterable[Union[str, Capability]]] = None,
        modified: Optional[Dict[str, datetime]] = None,
        max_page_size: int = 1000,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize with optional resource contents.

        Args:
            resources: Mapping of relative paths to content
            provider_type: Provider type reported to callers
            name: Data source name used in error messages
            capabilities: Supported capabilities (read, list and search by default)
            modified: Optional modification times per path (UTC now otherwise)
            max_page_size: Upper bound for listing page sizes
            logger: Logger to report through
        """
        self.provider_type = provider_type
        self.name = name
        self.max_page_size = max_page_size
        self.logger = logger or logging.getLogger(__name__)
        if capabilities is None:
            capabilities = self.DEFAULT_CAPABILITIES
        self._capabilities = {capability_name(c) for c in capabilities}
        self._content: Dict[str, bytes] = {}
        self._modified: Dict[str, datetime] = {}
        now = datetime.now(timezone.utc)
        for path, content in (resources or {}).items():
            self.add_resource(path, content, (modified or {}).get(path, now))

    def add_resource(self, path: str, content: Union[str, bytes],
                     modified: Optional[datetime] = None) -> None:
        """Add or replace a resource.

        Args:
            path: Relative path
            content: Text (stored as UTF-8) or bytes
            modified: Modification time (UTC now when omitted)
        """
        normalized = self._normalize_path(path)
        if isinstance(content, str):
            content = content.encode('utf-8')
        self._content[normalized] = content
        self._modified[normalized] = modified or datetime.now(timezone.utc)

    def remove_resource(self, path: str) -> None:
        normalized = self._normalize_path(path)
        self._content.pop(normalized, None)
        self._modified.pop(normalized, None)

    def _normalize_path(self, path: str) -> str:
        normalized = str(PurePosixPath(path.replace('\\', '/')))
        return '' if normalized == '.' else normalized.lstrip('/')

    def _directories(self) -> List[str]:
        directories = set()
        for path in self._content:
            parts = path.split('/')
            for i in range(1, len(parts)):
                directories.add('/'.join(parts[:i]))
        return list(directories)

    def _descriptors(self) -> List[ResourceDescriptor]:
        """All resources and implied directories in depth-first lexical order."""
        descriptors = []
        for directory in self._directories():
            descriptors.append(ResourceDescriptor(
                uri=self.get_uri_for_resource(directory),
                display_name=PurePosixPath(directory).name,
                relative_path=directory,
                kind=ResourceKind.DIRECTORY,
            ))
        for path, content in self._content.items():
            descriptors.append(ResourceDescriptor(
                uri=self.get_uri_for_resource(path),
                display_name=PurePosixPath(path).name,
                relative_path=path,
                kind=ResourceKind.FILE,
                size_bytes=len(content),
                last_modified=self._modified.get(path),
            ))
        descriptors.sort(key=lambda d: path_key(d.relative_path))
        return descriptors

    def has_capability(self, capability: Union[str, Capability]) -> bool:
        return capability_name(capability) in self._capabilities

    def get_uri_for_resource(self, relative_path_template: str) -> str:
        return f"{self.provider_type}://{self.name}/{relative_path_template}"

    def list_resources(self, query: Optional[ListResourcesQuery] = None) -> ListResourcesResult:
        """List resources with the same depth and cursor semantics as the filesystem provider.

        Raises:
            CapabilityError: If listing is not supported
            NotFoundError: If the path names no resource
        """
        require_capability(self, Capability.LIST)
        query = query or ListResourcesQuery()

        base = path_key(self._normalize_path(query.path))
        if base and '/'.join(base) not in self._directories():
            raise NotFoundError(query.path, "path does not exist")

        fingerprint = query_fingerprint(query.path, query.depth)
        cursor = decode_cursor(query.page_token, fingerprint, self.logger)
        requested = query.page_size or (cursor.page_size if cursor else self.max_page_size)
        page_size = min(requested, self.max_page_size)
        after = path_key(cursor.key) if cursor else None

        selected = []
        for descriptor in self._descriptors():
            key = path_key(descriptor.relative_path)
            if key[:len(base)] != base or len(key) == len(base):
                continue
            if query.depth is not None and len(key) - len(base) > query.depth:
                continue
            if after is not None and key <= after:
                continue
            selected.append(descriptor)
            if len(selected) > page_size:
                break

        pagination = None
        if len(selected) > page_size:
            selected = selected[:page_size]
            pagination = PaginationInfo(
                next_page_token=encode_cursor(selected[-1].relative_path, page_size, fingerprint)
            )

        return ListResourcesResult(
            resources=selected,
            uri_template=self.get_uri_for_resource('{path}'),
            pagination=pagination,
        )

    def get_metadata(self) -> ResourceMetadataSummary:
        descriptors = self._descriptors()
        resource_types: Dict[str, int] = {}
        for descriptor in descriptors:
            kind = descriptor.kind.value
            resource_types[kind] = resource_types.get(kind, 0) + 1

        return ResourceMetadataSummary(
            total_resources=len(descriptors),
            resource_types=resource_types,
            provider_extra={
                'provider_type': self.provider_type,
                'total_bytes': sum(len(content) for content in self._content.values()),
                'recommended_page_size': min(max(len(descriptors), 1), 20),
            },
        )

    def open_resource(self, relative_path: str) -> BinaryIO:
        """Open a stored resource.

        Raises:
            CapabilityError: If reading is not supported
            NotFoundError: If the resource does not exist
        """
        require_capability(self, Capability.READ)
        content = self._content.get(self._normalize_path(relative_path))
        if content is None:
            raise NotFoundError(relative_path, "resource does not exist")
        return io.BytesIO(content)

    def __repr__(self) -> str:
        return f"InMemoryResourceAccessor({self.provider_type!r}, {len(self._content)} resources)"
