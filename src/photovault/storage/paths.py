"""Mapping between logical object paths and physical storage locations."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Sequence
from urllib.parse import urlsplit

import structlog

from .errors import ObjectNotFoundError, StorageConfigurationError

LOGICAL_PREFIX = "/objects/"
UPLOADS_DIR = "uploads"

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class PathResolver:
    """Resolve object identifiers against the private root and public roots.

    The private root holds uploaded objects under ``uploads/<object_id>``.
    Public roots are searched in declaration order so an earlier root can
    override files shipped by a later one.
    """

    private_root: Path | None
    public_roots: Sequence[Path] = field(default_factory=tuple)

    def require_private_root(self) -> Path:
        if self.private_root is None:
            raise StorageConfigurationError(
                "PHOTOVAULT_PRIVATE_OBJECT_DIR is not set; configure a local directory path"
            )
        return self.private_root

    def object_path_for(self, object_id: str) -> Path:
        """Return the physical location reserved for ``object_id``."""
        _validate_object_id(object_id)
        return self.require_private_root() / UPLOADS_DIR / object_id

    def resolve_upload_target(self) -> tuple[str, Path]:
        """Mint a fresh object identifier and prepare its parent directory."""
        object_id = uuid.uuid4().hex
        target = self.object_path_for(object_id)
        target.parent.mkdir(parents=True, exist_ok=True)
        return object_id, target

    def resolve_for_read(self, logical_path: str) -> Path:
        """Return the existing physical file behind ``logical_path``."""
        root = self.require_private_root()
        relative = _strip_logical_prefix(logical_path)
        candidate = _join_within(root, relative)
        if candidate is None or not candidate.is_file():
            logger.debug("objects.resolve.not_found", logical_path=logical_path)
            raise ObjectNotFoundError()
        return candidate

    def resolve_public(self, relative_path: str) -> Path | None:
        """Return the first public root location holding ``relative_path``."""
        relative = relative_path.lstrip("/")
        for root in self.public_roots:
            candidate = _join_within(root, relative)
            if candidate is not None and candidate.is_file():
                return candidate
        return None

    def to_logical_path(self, physical_location: Path) -> str:
        """Express ``physical_location`` in the ``/objects/`` namespace."""
        root = self.require_private_root().resolve()
        try:
            relative = Path(physical_location).resolve().relative_to(root)
        except ValueError as exc:
            raise ObjectNotFoundError("Object is outside the private root") from exc
        return LOGICAL_PREFIX + relative.as_posix()

    def object_id_from_logical_path(self, logical_path: str) -> str:
        relative = PurePosixPath(_strip_logical_prefix(logical_path))
        if len(relative.parts) != 2 or relative.parts[0] != UPLOADS_DIR:
            raise ObjectNotFoundError()
        return relative.name


def object_id_from_reference(reference: str) -> str:
    """Extract an object identifier from an id, logical path or upload URL."""

    value = reference.strip()
    if "://" in value:
        value = urlsplit(value).path
    if "/" in value:
        value = PurePosixPath(value).name
    _validate_object_id(value)
    return value


def _validate_object_id(object_id: str) -> None:
    if not object_id or object_id in {".", ".."} or "/" in object_id or "\\" in object_id:
        raise ObjectNotFoundError()


def _strip_logical_prefix(logical_path: str) -> str:
    if logical_path.startswith(LOGICAL_PREFIX):
        return logical_path[len(LOGICAL_PREFIX):]
    return logical_path.lstrip("/")


def _join_within(root: Path, relative: str) -> Path | None:
    """Join ``relative`` onto ``root`` unless the result escapes ``root``."""
    if not relative:
        return None
    base = root.resolve()
    candidate = (base / relative).resolve()
    if candidate != base and base not in candidate.parents:
        return None
    return candidate


__all__ = [
    "LOGICAL_PREFIX",
    "UPLOADS_DIR",
    "PathResolver",
    "object_id_from_reference",
]
