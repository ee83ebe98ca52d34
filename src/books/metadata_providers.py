"""
BookVetting - Metadata Providers
================================

Bibliographic lookup by ISBN or URL. Concrete lookups (catalog APIs,
store pages) implement MetadataProvider; the aggregator asks each
provider that supports the identifier, in priority order, and returns
the first result.

Usage:
    aggregator = MetadataAggregator([CatalogProvider(), StorePageProvider()])
    metadata = await aggregator.lookup("9780060652920")
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from src.shared.models import BookMetadata

logger = logging.getLogger(__name__)


class MetadataProvider(ABC):
    """
    One source of book metadata.

    Attributes:
        name: Used in logs
        priority: Lower runs first
        enabled: Disabled providers are skipped
    """
    name: str = "provider"
    priority: int = 100
    enabled: bool = True

    @abstractmethod
    def supports(self, identifier: str) -> bool:
        """Whether this provider understands the identifier (ISBN, URL)."""
        pass

    @abstractmethod
    async def lookup(self, identifier: str) -> Optional[BookMetadata]:
        """Metadata for the identifier, or None if not found."""
        pass


class MetadataAggregator:
    """Ordered provider chain; first non-None result wins."""

    def __init__(self, providers: Sequence[MetadataProvider] = ()):
        self.providers: List[MetadataProvider] = sorted(providers, key=lambda p: p.priority)

    def register(self, provider: MetadataProvider) -> None:
        self.providers.append(provider)
        self.providers.sort(key=lambda p: p.priority)

    async def lookup(self, identifier: str) -> Optional[BookMetadata]:
        identifier = identifier.strip()

        for provider in self.providers:
            if not provider.enabled or not provider.supports(identifier):
                continue

            try:
                metadata = await provider.lookup(identifier)
            except Exception as e:
                logger.warning(f"Metadata provider {provider.name} failed for {identifier}: {e}")
                continue

            if metadata is not None:
                logger.info(f"Metadata for {identifier} found by {provider.name}")
                return metadata

        logger.info(f"No metadata found for {identifier}")
        return None
