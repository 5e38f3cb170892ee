"""Assets — lookup of icon records from an external asset service.

Submodules:
  models     AssetRecord, AssetBackendError, SVG helpers.
  backends   AssetBackend protocol; memory and directory implementations.
  resolver   IconResolver: cache, pending-request dedup, batching.
"""

from .models import AssetRecord, AssetBackendError, svg_to_data_url, markup_aspect_ratio
from .backends import AssetBackend, MemoryAssetBackend, DirectoryAssetBackend
from .resolver import IconResolver

__all__ = [
    # Models
    "AssetRecord", "AssetBackendError", "svg_to_data_url", "markup_aspect_ratio",
    # Backends
    "AssetBackend", "MemoryAssetBackend", "DirectoryAssetBackend",
    # Resolver
    "IconResolver",
]
