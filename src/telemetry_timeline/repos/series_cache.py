import logging
from typing import Dict, List, Optional

from ..entities.channel import CacheKey
from ..entities.series import NormalizedDataset

logger = logging.getLogger(__name__)


class SeriesCache:
    """In-memory normalized series keyed by data source and bucket size."""

    def __init__(self):
        self._entries: Dict[CacheKey, NormalizedDataset] = {}

    def get(self, key: CacheKey) -> Optional[NormalizedDataset]:
        return self._entries.get(key)

    def put(self, dataset: NormalizedDataset) -> None:
        self._entries[dataset.key] = dataset
        logger.debug(f"Cached {len(dataset.channels)} channels for {dataset.key}")

    def invalidate(self, key: CacheKey) -> bool:
        """Drop one entry; True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def keys(self) -> List[CacheKey]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
