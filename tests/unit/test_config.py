"""
Unit tests for configuration data models.

Tests the LimitsConfig, ScanConfig, SearchConfig, DataSourceConfig and
FinderConfig classes, and dictionary validation.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from pydantic import ValidationError

from resource_finder.models.config import (
    DataSourceConfig,
    FinderConfig,
    LimitsConfig,
    ProviderType,
    ScanConfig,
    SearchConfig,
    validate_config_dict,
)


class TestLimitsConfig:
    """Test cases for LimitsConfig class."""

    def test_default_values(self):
        """Test default limit values."""
        limits = LimitsConfig()

        assert limits.max_files == 200000
        assert limits.max_bytes_per_file == 5000000
        assert limits.timeout_seconds == 300
        assert limits.max_concurrent == 4
        assert limits.max_page_size == 1000

    def test_positive_values_required(self):
        """Test that limits must be positive."""
        with pytest.raises(ValidationError):
            LimitsConfig(max_files=0)
        with pytest.raises(ValidationError):
            LimitsConfig(timeout_seconds=-1)

    def test_human_readable_size(self):
        """Test human-readable size formatting."""
        assert LimitsConfig(max_bytes_per_file=512).get_max_size_human_readable() == "512.0 B"
        assert LimitsConfig(max_bytes_per_file=2048).get_max_size_human_readable() == "2.0 KB"
        assert LimitsConfig().to_dict()['max_size_human'] == "4.8 MB"


class TestScanAndSearchConfig:
    """Test cases for ScanConfig and SearchConfig."""

    def test_scan_defaults(self):
        """Test default scan buffer sizes."""
        scan = ScanConfig()

        assert scan.chunk_size == 1024 * 1024
        assert scan.overlap == 64 * 1024
        assert scan.whole_file_threshold == 8 * 1024 * 1024
        assert scan.binary_sniff_bytes == 1024

    def test_whole_file_threshold_may_be_zero(self):
        """Test that a zero threshold forces chunked scanning."""
        assert ScanConfig(whole_file_threshold=0).whole_file_threshold == 0
        with pytest.raises(ValidationError):
            ScanConfig(chunk_size=0)

    def test_search_defaults(self):
        """Test default search settings."""
        search = SearchConfig()

        assert search.include_directories is False
        assert search.context_lines == 2
        assert search.max_matches_per_file == 5


class TestDataSourceConfig:
    """Test cases for DataSourceConfig class."""

    def test_filesystem_source(self):
        """Test a filesystem data source."""
        source = DataSourceConfig(id='project', root='~/code')

        assert source.provider_type == ProviderType.FILESYSTEM
        assert source.root == str(Path('~/code').expanduser())
        assert source.get_display_name() == 'project'
        assert source.to_dict()['provider_type'] == 'filesystem'

    def test_filesystem_source_requires_root(self):
        """Test that filesystem sources need a root."""
        with pytest.raises(ValidationError, match="requires a root"):
            DataSourceConfig(id='project')

    def test_other_provider_without_root(self):
        """Test that other providers need no root."""
        source = DataSourceConfig(id='wiki', name='Wiki', provider_type='notion')

        assert source.provider_type == ProviderType.NOTION
        assert source.get_display_name() == 'Wiki'

    def test_invalid_provider(self):
        """Test that unknown provider types are rejected."""
        with pytest.raises(ValidationError, match="Invalid provider type"):
            DataSourceConfig(id='x', provider_type='ftp', root='.')

    def test_empty_root(self):
        """Test that blank roots are rejected."""
        with pytest.raises(ValidationError, match="root cannot be empty"):
            DataSourceConfig(id='x', root='   ')


class TestFinderConfig:
    """Test cases for FinderConfig class."""

    def setup_method(self):
        """Set up a temporary root."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up the temporary root."""
        shutil.rmtree(self.temp_dir)

    def test_defaults(self):
        """Test default configuration."""
        config = FinderConfig()

        assert config.data_sources == []
        assert config.ignore == []
        assert str(config) == "Data sources: 0 | Ignore patterns: 0 | Max concurrent: 4"

    def test_ignore_normalization(self):
        """Test that blank lines and comments are dropped from ignore patterns."""
        config = FinderConfig(ignore=["  *.log  ", "", "# comment", "build/"])

        assert config.ignore == ["*.log", "build/"]

    def test_get_data_source(self):
        """Test data source lookup by id."""
        config = FinderConfig(data_sources=[{'id': 'a', 'root': self.temp_dir}])

        assert config.get_data_source('a').root == self.temp_dir
        assert config.get_data_source('b') is None

    def test_duplicate_ids(self):
        """Test that data source ids are unique."""
        with pytest.raises(ValidationError, match="Duplicate data source id: a"):
            FinderConfig(data_sources=[{'id': 'a', 'root': '.'}, {'id': 'a', 'root': '.'}])

    def test_validate_configuration_warnings(self):
        """Test warnings for legal but suspicious settings."""
        config = FinderConfig(
            data_sources=[{'id': 'gone', 'root': str(Path(self.temp_dir) / 'gone')}],
            scan={'chunk_size': 1024, 'overlap': 2048},
            limits={'max_concurrent': 100},
        )

        warnings = config.validate_configuration()

        assert len(warnings) == 3
        assert any("root does not exist" in w for w in warnings)
        assert any("overlap" in w for w in warnings)
        assert any("max_concurrent" in w for w in warnings)

    def test_dict_round_trip(self):
        """Test conversion to and from dictionaries."""
        config = FinderConfig(
            data_sources=[{'id': 'a', 'root': self.temp_dir, 'capabilities': ['read', 'list']}],
            ignore=['*.tmp'],
        )

        assert FinderConfig.from_dict(config.to_dict()) == config


class TestValidateConfigDict:
    """Test cases for validate_config_dict."""

    def test_valid(self):
        """Test that a valid dictionary is normalized."""
        data = validate_config_dict({'ignore': ['# only a comment', '*.bak'], 'limits': {'max_files': 10}})

        assert data['ignore'] == ['*.bak']
        assert data['limits']['max_files'] == 10
        assert data['scan']['overlap'] == 64 * 1024

    def test_not_a_mapping(self):
        """Test that non-mapping input is rejected."""
        with pytest.raises(ValueError, match="must be a mapping"):
            validate_config_dict(['a'])

    def test_unknown_sections(self):
        """Test that unknown sections are rejected."""
        with pytest.raises(ValueError, match="Unknown configuration sections: output, security"):
            validate_config_dict({'security': {}, 'output': {}})

    def test_invalid_section_type(self):
        """Test that sections must be mappings."""
        with pytest.raises(ValueError, match="Section 'scan' must be a mapping"):
            validate_config_dict({'scan': [1, 2]})

    def test_invalid_values(self):
        """Test that invalid values are reported."""
        with pytest.raises(ValueError, match="Configuration validation failed"):
            validate_config_dict({'search': {'context_lines': -1}})
