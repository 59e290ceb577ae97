"""Pick a downloadable file out of message media."""
import logging
from typing import Sequence

from telethon.tl.types import (
    Document,
    DocumentAttributeFilename,
    InputDocumentFileLocation,
    InputPhotoFileLocation,
    MessageMediaDocument,
    MessageMediaPhoto,
    Photo,
    PhotoCachedSize,
    PhotoSize,
    PhotoSizeProgressive,
    PhotoStrippedSize,
)

from ..config import MediaKind
from ..errors import InvalidMedia, NoResolvableSize, UnsupportedMedia
from ..models import ResourceDescriptor
from .sanitize import sanitize

log = logging.getLogger(__name__)

DEFAULT_EXTENSION = "bin"
_EXTENSION_FORBIDDEN = set('/\\:*?"<>| ')


def locate(media, *, message_id: int | None = None, logger: logging.Logger | None = None) -> ResourceDescriptor:
    """Return the file to fetch for ``media``.

    Documents are fetched whole; photos are fetched at their largest
    server-side size. Anything else raises ``UnsupportedMedia``, which
    callers treat as a skip rather than a failure.
    """
    logger = logger or log
    if isinstance(media, MessageMediaDocument):
        return _locate_document(media.document, message_id, logger)
    if isinstance(media, MessageMediaPhoto):
        return _locate_photo(media.photo, message_id, logger)
    logger.debug(f"Unsupported media type {type(media).__name__} (msg {message_id})")
    raise UnsupportedMedia(f"Unsupported media type {type(media).__name__}", message_id=message_id)


def _locate_document(doc, message_id, logger) -> ResourceDescriptor:
    if not isinstance(doc, Document):
        details = type(doc).__name__ if doc is not None else "missing"
        raise InvalidMedia(f"Document is {details} for msg {message_id}", message_id=message_id)

    if not doc.file_reference:
        logger.warning(f"Document {doc.id} has an empty file reference, download may fail (msg {message_id})")

    return ResourceDescriptor(
        location=InputDocumentFileLocation(
            id=doc.id,
            access_hash=doc.access_hash,
            file_reference=doc.file_reference or b"",
            thumb_size="",
        ),
        filename=document_filename(doc, logger),
        kind=MediaKind.DOCUMENT,
        media_id=doc.id,
        dc_id=doc.dc_id,
        size=doc.size or 0,
    )


def document_filename(doc: Document, logger: logging.Logger | None = None) -> str:
    """Original file name if the document has one, else ``<id>.<ext>`` from its MIME type."""
    logger = logger or log
    for attr in doc.attributes or ():
        if isinstance(attr, DocumentAttributeFilename) and attr.file_name:
            logger.debug(f"Document {doc.id} has filename attribute {attr.file_name!r}")
            return sanitize(attr.file_name)

    name = f"{doc.id}.{extension_from_mime(doc.mime_type)}"
    logger.debug(f"Document {doc.id} has no filename, using {name} (mime {doc.mime_type})")
    return sanitize(name)


def extension_from_mime(mime_type: str | None) -> str:
    """``image/png`` -> ``png``; odd or missing subtypes give ``bin``."""
    parts = (mime_type or "").split("/")
    if len(parts) != 2 or not parts[1]:
        return DEFAULT_EXTENSION
    subtype = parts[1].lower().split(";", 1)[0].strip()
    if 0 < len(subtype) < 10 and not _EXTENSION_FORBIDDEN.intersection(subtype):
        return subtype
    return DEFAULT_EXTENSION


def _locate_photo(photo, message_id, logger) -> ResourceDescriptor:
    if not isinstance(photo, Photo):
        details = type(photo).__name__ if photo is not None else "missing"
        raise InvalidMedia(f"Photo is {details} for msg {message_id}", message_id=message_id)

    size = pick_largest_size(photo.sizes or (), logger=logger)
    if size is None:
        raise NoResolvableSize(
            f"No downloadable photo size for msg {message_id} (photo {photo.id})",
            message_id=message_id,
        )
    logger.debug(f"Selected photo size {size.type} ({size.w}x{size.h}) for photo {photo.id}")

    if not photo.file_reference:
        logger.warning(f"Photo {photo.id} has an empty file reference, download may fail (msg {message_id})")

    return ResourceDescriptor(
        location=InputPhotoFileLocation(
            id=photo.id,
            access_hash=photo.access_hash,
            file_reference=photo.file_reference or b"",
            thumb_size=size.type,
        ),
        filename=f"{photo.id}_{size.type}.jpg",
        kind=MediaKind.PHOTO,
        media_id=photo.id,
        dc_id=photo.dc_id,
        size=_byte_size(size),
    )


def pick_largest_size(sizes: Sequence, logger: logging.Logger | None = None):
    """Largest fetchable size by ``max(w, h)``; the first one wins a tie.

    Cached and stripped sizes are inline previews and never count.
    Returns ``None`` when nothing can be fetched.
    """
    logger = logger or log
    best = None
    best_dim = 0
    for size in sizes:
        if isinstance(size, (PhotoCachedSize, PhotoStrippedSize)):
            logger.debug(f"Skipping inline photo size {size.type} ({type(size).__name__})")
            continue
        if not isinstance(size, (PhotoSize, PhotoSizeProgressive)):
            logger.warning(f"Unknown photo size type {type(size).__name__}")
            continue
        dim = max(size.w, size.h)
        if dim > best_dim:
            best, best_dim = size, dim
    return best


def _byte_size(size) -> int:
    if isinstance(size, PhotoSizeProgressive):
        return size.sizes[-1] if size.sizes else 0
    return size.size or 0
