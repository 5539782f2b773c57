"""PhotoVault object storage and access-control core.

The package turns uploaded blobs into addressable objects, issues time-boxed
upload grants and enforces per-object read/write policy at download time.
HTTP wiring lives in :mod:`photovault.main`.
"""

__all__: list[str] = []
