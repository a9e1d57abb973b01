"""
Data source providers for the Resource Finder.

This module contains the provider contract and the bundled providers.
"""

from .accessor import Capability, ResourceAccessor, require_capability
from .filesystem import FilesystemResourceAccessor
from .memory import InMemoryResourceAccessor
from .guidance import build_guidance
from .registry import DataSourceRegistry
from .load_datasource import LoadDataSourceRequest, LoadDataSourceResult, ReturnType, load_data_source

__all__ = [
    'Capability',
    'ResourceAccessor',
    'require_capability',
    'FilesystemResourceAccessor',
    'InMemoryResourceAccessor',
    'build_guidance',
    'DataSourceRegistry',
    'LoadDataSourceRequest',
    'LoadDataSourceResult',
    'ReturnType',
    'load_data_source',
]
