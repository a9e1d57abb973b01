"""
Unit tests for search coordination.

Tests the full path, metadata and content pipeline over a filesystem root
and over generic accessors, including error reporting, ordering and
cancellation.
"""

import os
import shutil
import tempfile
import threading
from pathlib import Path

import pytest

from resource_finder.datasources.filesystem import FilesystemResourceAccessor
from resource_finder.datasources.memory import InMemoryResourceAccessor
from resource_finder.errors import CapabilityError, IoError
from resource_finder.models.config import FinderConfig, LimitsConfig, ScanConfig, SearchConfig
from resource_finder.models.search_criteria import FindResourcesRequest, SearchCriteria
from resource_finder.tools.search_coordinator import SearchCoordinator, find_resources


class TestSearchCoordinator:
    """Test cases for SearchCoordinator over a filesystem root."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        self._create_test_structure()
        self.coordinator = SearchCoordinator()

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def _create_test_structure(self):
        """Create a small corpus with three resources mentioning hello."""
        files = {
            "hello.txt": "Hello world\nsecond line\n",
            "nested/greeting.md": "first\nsay hello\nlast\n",
            "nested/deep/HELLO.log": "HELLO THERE",
            "other.txt": "nothing here",
            "empty.txt": "",
        }
        for rel, content in files.items():
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        (self.root / "image.bin").write_bytes(b"Hello\x00\x00\x01\x02binary")

    def test_content_search(self):
        """Test a case-insensitive content search."""
        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="Hello"))

        assert result.get_relative_paths() == ["hello.txt", "nested/deep/HELLO.log", "nested/greeting.md"]
        assert result.criteria_description == 'content pattern "Hello", case-insensitive'
        assert not result.has_errors()
        assert not result.cancelled

    def test_case_insensitive_is_superset(self):
        """Test that case-insensitive matches include case-sensitive ones."""
        sensitive = self.coordinator.search(self.root, SearchCriteria(content_pattern="Hello", case_sensitive=True))
        insensitive = self.coordinator.search(self.root, SearchCriteria(content_pattern="Hello"))

        assert sensitive.get_relative_paths() == ["hello.txt"]
        assert set(sensitive.get_relative_paths()) <= set(insensitive.get_relative_paths())

    def test_binary_resources_never_match(self):
        """Test that binary content is skipped by content searches."""
        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="binary"))

        assert result.get_relative_paths() == []

    def test_resource_pattern_with_size(self):
        """Test combining a glob with a size bound."""
        result = self.coordinator.search(self.root, SearchCriteria(resource_pattern="*.txt", size_max=0))

        assert result.get_relative_paths() == ["empty.txt"]
        assert result.criteria_description == 'resource pattern "*.txt", maximum size 0 bytes'

    def test_empty_criteria_lists_files(self):
        """Test that empty criteria match every file but no directories."""
        result = self.coordinator.search(self.root, SearchCriteria())

        assert result.get_relative_paths() == [
            "empty.txt", "hello.txt", "image.bin", "nested/deep/HELLO.log", "nested/greeting.md", "other.txt",
        ]
        assert result.total_scanned == 8

    def test_directories_on_request(self):
        """Test that directories are included when configured."""
        config = FinderConfig(search=SearchConfig(include_directories=True))

        result = SearchCoordinator(config).search(self.root, SearchCriteria(resource_pattern="nested"))

        assert result.get_relative_paths() == ["nested"]
        assert SearchCoordinator().search(self.root, SearchCriteria(resource_pattern="nested")).matches == []

    def test_invalid_regex(self):
        """Test that an invalid content pattern yields an error result."""
        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="["))

        assert result.get_match_count() == 0
        assert result.criteria_description == 'content pattern "[", case-insensitive'
        assert len(result.errors_encountered) == 1
        assert "unterminated character set" in result.errors_encountered[0]

    def test_invalid_glob(self):
        """Test that an invalid resource pattern yields an error result."""
        result = self.coordinator.search(self.root, SearchCriteria(resource_pattern="*.ts||*.js"))

        assert result.get_match_count() == 0
        assert "empty alternative" in result.errors_encountered[0]

    def test_include_content(self):
        """Test collecting matching lines with context."""
        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="hello"), include_content=True)

        found = result.content_matches["nested/greeting.md"]
        assert found[0].line_number == 2
        assert found[0].content == "say hello"
        assert found[0].context_before == ["first"]
        assert set(result.content_matches) == set(result.get_relative_paths())

    def test_results_keep_traversal_order(self):
        """Test that parallel scans return matches in traversal order."""
        for i in range(30):
            (self.root / "many").mkdir(exist_ok=True)
            (self.root / "many" / f"f{i:02d}.txt").write_text("x" * (i * 10) + "needle")
        config = FinderConfig(limits=LimitsConfig(max_concurrent=4))

        result = SearchCoordinator(config).search(self.root, SearchCriteria(content_pattern="needle"))

        assert result.get_relative_paths() == [f"many/f{i:02d}.txt" for i in range(30)]

    def test_chunked_scanning_configuration(self):
        """Test content search with tiny scan buffers."""
        config = FinderConfig(scan=ScanConfig(chunk_size=4, overlap=32, whole_file_threshold=0))

        result = SearchCoordinator(config).search(self.root, SearchCriteria(content_pattern="say hello"))

        assert result.get_relative_paths() == ["nested/greeting.md"]

    def test_ignored_resources_are_not_searched(self):
        """Test that .gitignore rules apply to searches."""
        (self.root / ".gitignore").write_text("nested/\n")

        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="hello"))

        assert result.get_relative_paths() == ["hello.txt"]

    def test_cancelled_before_start(self):
        """Test that a set cancel event yields a partial, flagged result."""
        cancel_event = threading.Event()
        cancel_event.set()

        result = self.coordinator.search(self.root, SearchCriteria(content_pattern="hello"), cancel_event)

        assert result.cancelled
        assert result.matches == []
        assert "Search cancelled; results are partial" in result.errors_encountered

    def test_timeout(self):
        """Test that an elapsed deadline yields a partial, flagged result."""
        config = FinderConfig(limits=LimitsConfig(timeout_seconds=1e-9))

        result = SearchCoordinator(config).search(self.root, SearchCriteria(content_pattern="hello"))

        assert result.cancelled
        assert result.errors_encountered[-1].startswith("Search timed out after")

    def test_filesystem_accessor_scope(self):
        """Test searching through a filesystem accessor."""
        accessor = FilesystemResourceAccessor(self.root)

        result = self.coordinator.search(accessor, SearchCriteria(content_pattern="THERE", case_sensitive=True))

        assert result.get_relative_paths() == ["nested/deep/HELLO.log"]

    def test_filesystem_accessor_without_read(self):
        """Test that content search requires the read capability."""
        accessor = FilesystemResourceAccessor(self.root, capabilities=['list', 'search'])

        with pytest.raises(CapabilityError):
            self.coordinator.search(accessor, SearchCriteria(content_pattern="x"))

        result = self.coordinator.search(accessor, SearchCriteria(resource_pattern="*.md"))
        assert result.get_relative_paths() == ["nested/greeting.md"]

    def test_filesystem_accessor_without_search_or_list(self):
        """Test that an explicit filesystem accessor must support search and list."""
        read_only = FilesystemResourceAccessor(self.root, capabilities=['read'])
        no_list = FilesystemResourceAccessor(self.root, capabilities=['read', 'search'])

        with pytest.raises(CapabilityError) as exc_info:
            self.coordinator.search(read_only, SearchCriteria(resource_pattern="*.txt"))
        assert exc_info.value.capability == 'search'

        with pytest.raises(CapabilityError) as exc_info:
            self.coordinator.search(no_list, SearchCriteria(resource_pattern="*.txt"))
        assert exc_info.value.capability == 'list'

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlink_outside_root_is_not_read(self):
        """Test that a file symlinked from outside the root is never scanned."""
        outside = tempfile.mkdtemp()
        try:
            secret = Path(outside) / "secret.txt"
            secret.write_text("hello from outside")
            try:
                os.symlink(secret, self.root / "leak.txt")
            except OSError:
                pytest.skip("cannot create symlinks")

            result = self.coordinator.search(
                self.root, SearchCriteria(content_pattern="outside"), include_content=True
            )

            assert result.get_relative_paths() == []
            assert "leak.txt" not in result.content_matches
            assert any("escapes the data source root" in e for e in result.errors_encountered)
        finally:
            shutil.rmtree(outside)


class TestAccessorSearch:
    """Test cases for searching non-filesystem accessors."""

    def setup_method(self):
        """Set up an in-memory accessor."""
        self.accessor = InMemoryResourceAccessor({
            "a.txt": "Hello",
            "docs/b.md": "nothing",
            "docs/c.md": "hello again",
        })
        self.coordinator = SearchCoordinator()

    def test_content_search(self):
        """Test a content search over an accessor."""
        result = self.coordinator.search(self.accessor, SearchCriteria(content_pattern="hello"))

        assert result.get_relative_paths() == ["a.txt", "docs/c.md"]

    def test_paged_listing(self):
        """Test that every page of the accessor's listing is searched."""
        accessor = InMemoryResourceAccessor(
            {f"f{i}.txt": "hit" for i in range(7)}, max_page_size=3
        )

        result = self.coordinator.search(accessor, SearchCriteria(content_pattern="hit"))

        assert result.get_match_count() == 7

    def test_requires_search_capability(self):
        """Test that accessors must support search."""
        accessor = InMemoryResourceAccessor({"a.txt": "x"}, capabilities=['read', 'list'])

        with pytest.raises(CapabilityError) as exc_info:
            self.coordinator.search(accessor, SearchCriteria())

        assert exc_info.value.capability == 'search'

    def test_read_errors_are_reported(self):
        """Test that a failing resource is skipped and reported."""

        class FlakyAccessor(InMemoryResourceAccessor):
            def open_resource(self, relative_path):
                if relative_path == "a.txt":
                    raise IoError(relative_path, OSError("boom"))
                return super().open_resource(relative_path)

        accessor = FlakyAccessor({"a.txt": "hello", "b.txt": "hello"})

        result = self.coordinator.search(accessor, SearchCriteria(content_pattern="hello"))

        assert result.get_relative_paths() == ["b.txt"]
        assert result.errors_encountered == ["Error reading a.txt: boom"]


class TestFindResources:
    """Test cases for the find-resources tool boundary."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)
        (self.root / "a.txt").write_text("Hello")
        (self.root / "b.txt").write_text("")

    def teardown_method(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_request(self):
        """Test a request using wire-format names."""
        request = FindResourcesRequest.model_validate({'contentPattern': 'hello', 'includeContent': True})

        result = find_resources(request, self.root)

        assert result.get_relative_paths() == ["a.txt"]
        assert result.content_matches["a.txt"][0].line_number == 1

    def test_invalid_criteria(self):
        """Test that invalid criteria are reported, not raised."""
        request = FindResourcesRequest(sizeMin=5, sizeMax=1)

        result = find_resources(request, self.root)

        assert result.get_match_count() == 0
        assert result.criteria_description == "minimum size 5 bytes, maximum size 1 bytes"
        assert "size_min must be <= size_max" in result.errors_encountered[0]

    def test_invalid_date(self):
        """Test that an unparseable date is reported with its field."""
        request = FindResourcesRequest(dateAfter="someday")

        result = find_resources(request, self.root)

        assert result.errors_encountered[0].startswith("Invalid modified_after")

    def test_missing_root(self):
        """Test that a missing root is reported, not raised."""
        request = FindResourcesRequest(contentPattern="x")

        result = find_resources(request, self.root / "missing")

        assert result.get_match_count() == 0
        assert "does not exist" in result.errors_encountered[0]

    def test_capability_error(self):
        """Test that a capability error is reported, not raised."""
        accessor = InMemoryResourceAccessor({"a.txt": "x"}, capabilities=['list'])

        result = find_resources(FindResourcesRequest(contentPattern="x"), accessor)

        assert "does not support the 'search' capability" in result.errors_encountered[0]
