"""
Registry of configured data sources.
"""

import logging
from typing import Dict, List, Optional

from ..errors import NotFoundError
from ..models.config import FinderConfig, ProviderType
from .accessor import ResourceAccessor
from .filesystem import FilesystemResourceAccessor


logger = logging.getLogger(__name__)


class DataSourceRegistry:
    """
    Maps data source ids to accessors.

    Any object satisfying the ResourceAccessor protocol can be registered;
    filesystem sources can also be built from configuration.
    """

    def __init__(self):
        self._accessors: Dict[str, ResourceAccessor] = {}
        self._names: Dict[str, str] = {}

    def register(self, source_id: str, accessor: ResourceAccessor, name: Optional[str] = None) -> None:
        """
        Register an accessor under an id.

        Raises:
            TypeError: If the accessor does not satisfy the provider contract
            ValueError: If the id is already registered
        """
        if not isinstance(accessor, ResourceAccessor):
            raise TypeError(f"{type(accessor).__name__} does not implement ResourceAccessor")
        if source_id in self._accessors:
            raise ValueError(f"Data source already registered: {source_id}")
        self._accessors[source_id] = accessor
        self._names[source_id] = name or source_id
        logger.debug(f"Registered data source '{source_id}' ({accessor.provider_type})")

    def get(self, source_id: str) -> ResourceAccessor:
        """
        Look up an accessor.

        Raises:
            NotFoundError: If no data source has this id
        """
        accessor = self._accessors.get(source_id)
        if accessor is None:
            raise NotFoundError(source_id, "no such data source")
        return accessor

    def get_name(self, source_id: str) -> str:
        self.get(source_id)
        return self._names[source_id]

    def ids(self) -> List[str]:
        return list(self._accessors)

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._accessors

    def __len__(self) -> int:
        return len(self._accessors)

    @classmethod
    def from_config(cls, config: FinderConfig) -> 'DataSourceRegistry':
        """
        Build a registry from configured data sources.

        Only filesystem sources can be created locally; other provider
        types are registered by the application that owns their clients.

        Raises:
            NotFoundError: If a filesystem root does not exist
        """
        registry = cls()
        for source in config.data_sources:
            if source.provider_type != ProviderType.FILESYSTEM:
                logger.info(f"Skipping data source '{source.id}': "
                            f"{source.provider_type.value} accessors are registered by the host")
                continue
            accessor = FilesystemResourceAccessor(
                source.root,
                config=config,
                name=source.get_display_name(),
                capabilities=source.capabilities,
            )
            registry.register(source.id, accessor, name=source.get_display_name())
        return registry
