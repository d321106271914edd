"""Photo manager: ordering, primary selection and upload ingestion.

Operates in place on a document's photo list. Invariant after every
operation on a non-empty list: exactly one photo is primary.

remove() does not renumber display_order; call reorder() afterwards.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath

from listingwizard.catalog import PhotoCategory
from listingwizard.core.diagnostics import emit
from listingwizard.core.interfaces import UploadService
from listingwizard.core.logging import get_logger
from listingwizard.document import Photo

log = get_logger(__name__)

_PHOTO_CATEGORIES = frozenset(c.value for c in PhotoCategory)


@dataclass(frozen=True)
class UploadFile:
    filename: str
    data: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class UploadOutcome:
    """Per-file result of a batch upload."""

    filename: str
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def upload_path(filename: str, prefix: str = "properties", now_ms: int | None = None) -> str:
    """Object path for an uploaded image: <prefix>/property-<ms>-<rand>.<ext>"""
    ext = PurePosixPath(filename).suffix.lstrip(".").lower() or "jpg"
    ms = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    rand = uuid.uuid4().hex[:8]
    name = f"property-{ms}-{rand}.{ext}"
    prefix = prefix.strip("/")
    return f"{prefix}/{name}" if prefix else name


class PhotoManager:
    def __init__(self, photos: list[Photo]) -> None:
        self.photos = photos

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.photos):
            raise IndexError(f"Photo index {index} out of range (0..{len(self.photos) - 1})")

    def add(self, photo: Photo) -> Photo:
        """Append a photo; it becomes primary only if the list was empty."""
        was_empty = not self.photos
        photo.is_primary = was_empty
        self.photos.append(photo)
        photo.display_order = len(self.photos) - 1
        return photo

    def add_from_url(
        self,
        url: str,
        caption: str = "",
        alt_text: str = "",
        category: str = PhotoCategory.EXTERIOR.value,
    ) -> Photo:
        url = url.strip()
        if not url:
            raise ValueError("Image URL is required")
        caption = caption or "Property image"
        return self.add(
            Photo(
                image_url=url,
                caption=caption,
                alt_text=alt_text or caption,
                category=category,
            )
        )

    def remove(self, index: int) -> Photo:
        """Remove a photo. If it was the primary, the new first photo is promoted."""
        self._check_index(index)
        removed = self.photos.pop(index)
        if removed.is_primary and self.photos:
            self.photos[0].is_primary = True
        return removed

    def set_primary(self, index: int) -> None:
        self._check_index(index)
        for i, p in enumerate(self.photos):
            p.is_primary = i == index

    def move(self, index: int, direction: str) -> bool:
        """Swap with the adjacent photo and renumber the whole list.

        Returns False when the move would leave the list bounds.
        """
        self._check_index(index)
        if direction == "up":
            target = index - 1
        elif direction == "down":
            target = index + 1
        else:
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

        if not 0 <= target < len(self.photos):
            return False
        self.photos[index], self.photos[target] = self.photos[target], self.photos[index]
        self.reorder()
        return True

    def reorder(self) -> None:
        """Make display_order dense and consistent with list position."""
        for i, p in enumerate(self.photos):
            p.display_order = i

    def update(
        self,
        index: int,
        *,
        caption: str | None = None,
        alt_text: str | None = None,
        category: str | None = None,
    ) -> Photo:
        self._check_index(index)
        p = self.photos[index]
        if caption is not None:
            p.caption = caption
        if alt_text is not None:
            p.alt_text = alt_text
        if category is not None:
            if category not in _PHOTO_CATEGORIES:
                raise ValueError(f"Unknown photo category: {category!r}")
            p.category = category
        return p

    async def ingest(
        self,
        files: list[UploadFile],
        uploader: UploadService,
        *,
        title: str = "",
        path_prefix: str = "properties",
    ) -> list[UploadOutcome]:
        """Upload a batch concurrently and append the photos that succeeded.

        Partial failure is reported per file; successful photos are appended
        in input order.
        """
        if not files:
            return []

        async def _one(f: UploadFile) -> str:
            return await uploader.upload(
                f.data, upload_path(f.filename, path_prefix), f.content_type
            )

        results = await asyncio.gather(*(_one(f) for f in files), return_exceptions=True)

        outcomes: list[UploadOutcome] = []
        for f, res in zip(files, results, strict=True):
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                log.warning(f"Upload failed for {f.filename}: {type(res).__name__}: {res}")
                outcomes.append(UploadOutcome(filename=f.filename, error=str(res)))
                continue
            self.add(
                Photo(
                    image_url=res,
                    caption=f"Property image {len(self.photos) + 1}",
                    alt_text=f"{title or 'Property'} - Image",
                )
            )
            outcomes.append(UploadOutcome(filename=f.filename, url=res))

        failed = sum(1 for o in outcomes if not o.ok)
        emit(
            "photos.ingest",
            component="photos",
            operation="ingest",
            data={"total": len(files), "failed": failed},
        )
        if failed:
            log.info(f"Uploaded {len(files) - failed}/{len(files)} photos")
        return outcomes
