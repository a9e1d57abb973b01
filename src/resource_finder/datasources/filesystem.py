"""
Filesystem data source provider.

Lists a directory tree depth-first in lexical order, paginating with
continuation keys so a page boundary stays put when entries are added or
removed elsewhere in the tree.
"""

import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Set, Union

from ..errors import IoError, NotFoundError
from ..models.config import FinderConfig
from ..models.resources import (
    CapabilityFlags,
    FilesystemMetadata,
    ListResourcesQuery,
    ListResourcesResult,
    PaginationInfo,
    PracticalLimits,
    ResourceMetadataSummary,
)
from ..models.search_results import ResourceKind
from ..tools.fs_walker import FILE_URI_TEMPLATE, FSWalker, IgnoreRules
from .accessor import Capability, capability_name, require_capability
from .pagination import decode_cursor, encode_cursor, query_fingerprint


logger = logging.getLogger(__name__)

MIN_RECOMMENDED_PAGE_SIZE = 10
MAX_RECOMMENDED_PAGE_SIZE = 50


class FilesystemResourceAccessor:
    """
    ResourceAccessor backed by a local directory.

    Attributes:
        root: Resolved root directory
        name: Data source name used in error messages
        config: Finder configuration (limits and ignore patterns)
    """

    provider_type = 'filesystem'
    DEFAULT_CAPABILITIES = frozenset(c.value for c in Capability)

    def __init__(self, root: Union[str, Path], config: Optional[FinderConfig] = None,
                 name: Optional[str] = None, capabilities: Optional[Iterable[str]] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the accessor.

        Args:
            root: Root directory of the data source
            config: Finder configuration
            name: Data source name (defaults to the root directory name)
            capabilities: Capability override (defaults to all)
            logger: Logger to report through

        Raises:
            NotFoundError: If the root does not exist or is not a directory
        """
        self.config = config or FinderConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.root = Path(root).expanduser().resolve()
        if not self.root.is_dir():
            raise NotFoundError(str(root), "data source root does not exist")
        self.name = name or self.root.name
        if capabilities is None:
            self._capabilities: Set[str] = set(self.DEFAULT_CAPABILITIES)
        else:
            self._capabilities = {capability_name(c) for c in capabilities}

    def walker(self) -> FSWalker:
        """Create a walker with ignore rules read fresh from the root."""
        rules = IgnoreRules.from_root(self.root, self.config.ignore)
        return FSWalker(self.root, self.config, ignore_rules=rules, logger=self.logger)

    def has_capability(self, capability: Union[str, Capability]) -> bool:
        return capability_name(capability) in self._capabilities

    def get_uri_for_resource(self, relative_path_template: str) -> str:
        return FILE_URI_TEMPLATE.replace('{path}', relative_path_template)

    def list_resources(self, query: Optional[ListResourcesQuery] = None) -> ListResourcesResult:
        """
        List resources below ``query.path``.

        Args:
            query: Listing parameters (defaults to immediate children of the root)

        Returns:
            One page of resources in depth-first lexical order

        Raises:
            CapabilityError: If listing is not supported
            NotFoundError: If the path is missing or escapes the root
        """
        require_capability(self, Capability.LIST)
        query = query or ListResourcesQuery()

        fingerprint = query_fingerprint(query.path, query.depth)
        cursor = decode_cursor(query.page_token, fingerprint, self.logger)

        requested = query.page_size or (cursor.page_size if cursor else self.config.limits.max_page_size)
        page_size = min(requested, self.config.limits.max_page_size)
        after = cursor.key if cursor else None

        walker = self.walker()
        resources = []
        has_more = False
        for entry in walker.walk(query.path, depth=query.depth, after=after):
            if len(resources) >= page_size:
                has_more = True
                break
            resources.append(entry.descriptor)

        pagination = None
        if has_more:
            token = encode_cursor(resources[-1].relative_path, page_size, fingerprint)
            pagination = PaginationInfo(next_page_token=token)

        self.logger.debug(
            f"Listed {len(resources)} resources under '{query.path or '.'}' "
            f"(depth={query.depth}, more={has_more})"
        )
        return ListResourcesResult(
            resources=resources,
            uri_template=self.get_uri_for_resource('{path}'),
            pagination=pagination,
        )

    def get_metadata(self) -> ResourceMetadataSummary:
        """
        Aggregate stat-level statistics over the whole tree.

        Returns:
            Summary with filesystem aggregates, built fresh on every call
        """
        walker = self.walker()
        fs = FilesystemMetadata()
        resource_types = {}
        total = 0

        for entry in walker.walk():
            descriptor = entry.descriptor
            total += 1
            kind = descriptor.kind.value
            resource_types[kind] = resource_types.get(kind, 0) + 1
            fs.deepest_path_depth = max(fs.deepest_path_depth, descriptor.get_depth())

            if descriptor.kind == ResourceKind.DIRECTORY:
                fs.total_directories += 1
                continue
            if descriptor.kind != ResourceKind.FILE:
                continue

            fs.total_files += 1
            if descriptor.size_bytes is not None:
                fs.largest_file_size = max(fs.largest_file_size, descriptor.size_bytes)
            modified = descriptor.last_modified
            if modified is not None:
                if fs.oldest_file_date is None or modified < fs.oldest_file_date:
                    fs.oldest_file_date = modified
                if fs.newest_file_date is None or modified > fs.newest_file_date:
                    fs.newest_file_date = modified
            extension = descriptor.get_extension()
            if extension:
                fs.file_extensions[extension] = fs.file_extensions.get(extension, 0) + 1

        for message in walker.errors:
            self.logger.debug(f"Metadata scan skipped: {message}")

        fs.capabilities = CapabilityFlags(
            can_read=self.has_capability(Capability.READ),
            can_write=self.has_capability(Capability.WRITE),
            can_list=self.has_capability(Capability.LIST),
            can_search=self.has_capability(Capability.SEARCH),
        )
        fs.practical_limits = PracticalLimits(
            recommended_page_size=recommended_page_size(total, fs.total_directories),
            max_file_size_for_load=self.config.limits.max_bytes_per_file,
        )

        return ResourceMetadataSummary(
            total_resources=total,
            resource_types=resource_types,
            filesystem=fs,
        )

    def open_resource(self, relative_path: str) -> BinaryIO:
        """
        Open a file below the root for binary reading.

        Raises:
            CapabilityError: If reading is not supported
            NotFoundError: If the path is missing, escapes the root, or is a directory
            IoError: If the file cannot be opened
        """
        require_capability(self, Capability.READ)
        path = self.walker().resolve(relative_path)
        if path.is_dir():
            raise NotFoundError(relative_path, "not a file")
        try:
            return open(path, 'rb')
        except OSError as e:
            raise IoError(relative_path, e)

    def __repr__(self) -> str:
        return f"FilesystemResourceAccessor({str(self.root)!r})"


def recommended_page_size(total_entries: int, total_directories: int) -> int:
    """Average entries per directory (root included), clamped to a useful sample size."""
    average = round(total_entries / (total_directories + 1))
    return max(MIN_RECOMMENDED_PAGE_SIZE, min(MAX_RECOMMENDED_PAGE_SIZE, average))
