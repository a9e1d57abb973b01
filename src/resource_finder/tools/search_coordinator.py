"""
Search coordination for the Resource Finder.

Each visited resource moves through the same stages: path filter, then
metadata filter, then content filter. The cheap filters run inline during
traversal; content scans are the only expensive step and run on a bounded
thread pool, one task per resource. Matches are returned in traversal order
whatever order the scans finish in.
"""

import time
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from ..datasources.accessor import Capability, ResourceAccessor, require_capability
from ..datasources.filesystem import FilesystemResourceAccessor
from ..errors import FinderError, IoError, PatternError, RegexError
from ..models.config import FinderConfig
from ..models.resources import ListResourcesQuery
from ..models.search_criteria import FindResourcesRequest, SearchCriteria
from ..models.search_results import ContentMatch, ResourceDescriptor, ResourceKind, SearchResult
from .content_scanner import BufferSafeContentScanner, compile_content_pattern, find_matches
from .glob_matcher import GlobSet, compile_glob
from .metadata_filter import MetadataFilter


logger = logging.getLogger(__name__)

Scope = Union[str, Path, ResourceAccessor]
Opener = Callable[[], BinaryIO]


class SearchCoordinator:
    """
    Runs a search over a filesystem root or any ResourceAccessor.

    A coordinator holds no state between searches; every call gets its own
    walker, filters and worker pool.
    """

    def __init__(self, config: Optional[FinderConfig] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the coordinator.

        Args:
            config: Configuration providing limits, scan buffers and search defaults
            logger: Logger to report through (module logger when omitted)
        """
        self.config = config or FinderConfig()
        self.logger = logger or logging.getLogger(__name__)

    def search(self, scope: Scope, criteria: Optional[SearchCriteria] = None,
               cancel_event: Optional[threading.Event] = None,
               include_content: bool = False) -> SearchResult:
        """
        Find resources matching the criteria.

        An invalid resource or content pattern does not raise: the result
        has zero matches and the error text in ``errors_encountered``.

        Args:
            scope: Filesystem root directory or a ResourceAccessor
            criteria: Search criteria (matches everything when omitted)
            cancel_event: Set to stop the search early with partial results
            include_content: Collect matching lines with context for content searches

        Returns:
            SearchResult with matches in traversal order

        Raises:
            NotFoundError: If the filesystem root does not exist
            CapabilityError: If the accessor cannot list, search or read as required
        """
        criteria = criteria or SearchCriteria()
        result = SearchResult(criteria_description=criteria.describe())

        try:
            glob_set = compile_glob(criteria.resource_pattern) if criteria.resource_pattern else None
            regex = None
            if criteria.content_pattern is not None:
                regex = compile_content_pattern(criteria.content_pattern, criteria.case_sensitive)
        except (PatternError, RegexError) as e:
            self.logger.warning(f"Rejected search criteria: {e.message}")
            result.add_error(e.message)
            return result

        metadata_filter = MetadataFilter(criteria)
        candidates, walk_errors = self._candidates(scope, regex is not None)

        deadline = time.monotonic() + self.config.limits.timeout_seconds
        timed_out = threading.Event()

        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            if time.monotonic() >= deadline:
                timed_out.set()
                return True
            return False

        self.logger.info(f"Searching {scope!r}: {result.criteria_description or 'all resources'}")
        started = time.monotonic()

        included: Dict[int, ResourceDescriptor] = {}
        content_matches: Dict[str, List[ContentMatch]] = {}
        include_directories = self.config.search.include_directories and regex is None
        scanner = BufferSafeContentScanner(self.config.scan, self.logger)
        max_pending = self.config.limits.max_concurrent * 4
        pending: Dict[Future, Tuple[int, ResourceDescriptor]] = {}
        stopped = False

        with ThreadPoolExecutor(max_workers=self.config.limits.max_concurrent) as executor:
            for index, (descriptor, opener) in enumerate(candidates(should_stop)):
                if should_stop():
                    stopped = True
                    break
                result.total_scanned += 1

                if not self._passes_cheap_filters(descriptor, glob_set, metadata_filter, include_directories):
                    continue

                if regex is None:
                    included[index] = descriptor
                    continue

                if descriptor.kind != ResourceKind.FILE:
                    continue

                future = executor.submit(self._scan_resource, descriptor, opener, regex, scanner,
                                         should_stop, include_content)
                pending[future] = (index, descriptor)
                if len(pending) >= max_pending:
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    self._collect(done, pending, included, content_matches, result)
            else:
                stopped = should_stop()

            if stopped:
                for future in pending:
                    future.cancel()
            done, _ = wait(pending)
            self._collect(done, pending, included, content_matches, result)

        for message in walk_errors:
            result.add_error(message)

        result.matches = [included[index] for index in sorted(included)]
        result.content_matches = content_matches

        if stopped or should_stop():
            result.cancelled = True
            if timed_out.is_set():
                result.add_error(
                    f"Search timed out after {self.config.limits.timeout_seconds}s; results are partial"
                )
            else:
                result.add_error("Search cancelled; results are partial")

        self.logger.info(
            f"Search finished in {time.monotonic() - started:.2f}s: "
            f"{result.get_match_count()} matches, {result.total_scanned} scanned, "
            f"{len(result.errors_encountered)} errors"
        )
        return result

    def _candidates(self, scope: Scope, needs_content: bool):
        """
        Resolve the scope into a candidate generator and an error sink.

        Returns:
            (generator factory taking should_stop, list collecting traversal errors)
        """
        errors: List[str] = []

        if isinstance(scope, (str, Path)):
            scope = FilesystemResourceAccessor(scope, self.config, logger=self.logger)

        require_capability(scope, Capability.SEARCH)
        require_capability(scope, Capability.LIST)
        if needs_content:
            require_capability(scope, Capability.READ)

        if isinstance(scope, FilesystemResourceAccessor):
            accessor = scope
            walker = accessor.walker()

            def walk(should_stop) -> Iterator[Tuple[ResourceDescriptor, Opener]]:
                try:
                    for entry in walker.walk(should_stop=should_stop):
                        # opened through the accessor so symlinks cannot leave the root
                        yield entry.descriptor, _accessor_opener(accessor, entry.relative_path)
                finally:
                    errors.extend(walker.errors)

            return walk, errors

        accessor = scope

        def listing(should_stop) -> Iterator[Tuple[ResourceDescriptor, Opener]]:
            token = None
            while True:
                page = accessor.list_resources(ListResourcesQuery(depth=None, page_token=token))
                for descriptor in page.resources:
                    yield descriptor, _accessor_opener(accessor, descriptor.relative_path)
                token = page.next_page_token
                if not token or should_stop():
                    return

        return listing, errors

    def _passes_cheap_filters(self, descriptor: ResourceDescriptor, glob_set: Optional[GlobSet],
                              metadata_filter: MetadataFilter, include_directories: bool) -> bool:
        if descriptor.is_directory and not include_directories:
            return False
        if glob_set is not None and not glob_set.matches(descriptor.relative_path):
            return False
        if not metadata_filter.passes(descriptor):
            self.logger.debug(f"Metadata filter rejected {descriptor.relative_path}")
            return False
        return True

    def _scan_resource(self, descriptor: ResourceDescriptor, opener: Opener, regex,
                       scanner: BufferSafeContentScanner, should_stop: Callable[[], bool],
                       include_content: bool) -> Tuple[bool, List[ContentMatch]]:
        """Content-filter one resource; runs on a worker thread."""
        if should_stop():
            return False, []
        try:
            with opener() as handle:
                matched = scanner.scan(handle, regex, should_stop)
            if not matched or not include_content:
                return matched, []

            with opener() as handle:
                raw = handle.read(self.config.limits.max_bytes_per_file)
            text = raw.decode('utf-8', errors='replace')
            found = find_matches(
                text, regex,
                context_lines=self.config.search.context_lines,
                max_matches=self.config.search.max_matches_per_file,
            )
            return True, found
        except OSError as e:
            raise IoError(descriptor.relative_path, e)

    def _collect(self, done: Set[Future], pending: Dict[Future, Tuple[int, ResourceDescriptor]],
                 included: Dict[int, ResourceDescriptor],
                 content_matches: Dict[str, List[ContentMatch]], result: SearchResult) -> None:
        for future in done:
            index, descriptor = pending.pop(future)
            if future.cancelled():
                continue
            try:
                matched, found = future.result()
            except FinderError as e:
                self.logger.warning(f"Skipping {descriptor.relative_path}: {e.message}")
                result.add_error(e.message)
                continue
            if matched:
                included[index] = descriptor
                if found:
                    content_matches[descriptor.relative_path] = found


def _accessor_opener(accessor: ResourceAccessor, relative_path: str) -> Opener:
    return lambda: accessor.open_resource(relative_path)


def find_resources(request: FindResourcesRequest, scope: Scope,
                   config: Optional[FinderConfig] = None,
                   cancel_event: Optional[threading.Event] = None) -> SearchResult:
    """
    Run the find-resources tool.

    Every failure is reported inside the returned SearchResult; nothing is
    raised past this boundary.

    Args:
        request: Tool request
        scope: Filesystem root directory or a ResourceAccessor
        config: Finder configuration
        cancel_event: Set to stop the search early

    Returns:
        SearchResult
    """
    try:
        criteria = request.to_criteria()
    except ValidationError as e:
        unchecked = SearchCriteria.model_construct(**request.to_criteria_fields())
        result = SearchResult(criteria_description=unchecked.describe())
        for error in e.errors():
            field = '.'.join(str(part) for part in error['loc']) or 'criteria'
            result.add_error(f"Invalid {field}: {error['msg']}")
        return result

    coordinator = SearchCoordinator(config)
    try:
        return coordinator.search(scope, criteria, cancel_event, include_content=request.include_content)
    except FinderError as e:
        logger.warning(f"Search aborted: {e.message}")
        result = SearchResult(criteria_description=criteria.describe())
        result.add_error(e.message)
        return result
