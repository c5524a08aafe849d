"""File validation — declared type, extension and magic-byte checks for uploads.

Uses the `filetype` library for magic-byte sniffing so a declared
content type is never trusted on its own: a PNG posted as text/markdown
is rejected, and a PDF posted as image/png is skipped.
"""
import logging
from pathlib import PurePosixPath

import filetype

from ..errors import ValidationError

log = logging.getLogger(__name__)

# Bytes filetype needs to recognise every signature it knows
SNIFF_BYTES = 261

DESCRIPTION_EXTENSIONS = {"md", "txt"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "bmp", "ico", "tif", "tiff"}
DEFAULT_IMAGE_EXTENSION = "jpg"


def get_extension(filename: str | None) -> str:
    """Lowercase extension without the dot, or "" when there is none.

    Directory components (either separator) are ignored and dotfiles such
    as ".env" have no extension.
    """
    if not filename:
        return ""
    name = PurePosixPath(filename.replace("\\", "/")).name
    return PurePosixPath(name).suffix.lstrip(".").lower()


def sniff_mime(head: bytes) -> str | None:
    """MIME type recognised from the leading bytes, or None for plain text / unknown."""
    if not head:
        return None
    return filetype.guess_mime(head)


def validate_description(content_type: str | None, filename: str | None, head: bytes) -> str:
    """Check a description upload and return its extension.

    Raises:
        ValidationError: wrong declared type, missing or disallowed
            extension, or binary content behind a text content type
    """
    if not (content_type or "").lower().startswith("text/"):
        raise ValidationError("Description must be a text file")

    ext = get_extension(filename)
    if not ext:
        raise ValidationError("Description file has no extension")
    if ext not in DESCRIPTION_EXTENSIONS:
        raise ValidationError("Wrong file type, please upload a .md or .txt file")

    sniffed = sniff_mime(head)
    if sniffed:
        log.info(f"Rejected description {filename!r}: content looks like {sniffed}")
        raise ValidationError("Description content is not plain text")
    return ext


def image_extension(content_type: str | None, filename: str | None, head: bytes) -> str | None:
    """Extension to store an image part under, or None if the part is not an image.

    Both the declared content type and the sniffed signature must be image/*.
    A missing filename extension falls back to jpg; one outside
    IMAGE_EXTENSIONS is replaced by the sniffed type's extension.
    """
    if not (content_type or "").lower().startswith("image/"):
        return None
    kind = filetype.guess(head) if head else None
    if kind is None or not kind.mime.startswith("image/"):
        log.info(f"Skipped image {filename!r}: declared {content_type}, "
                 f"sniffed {kind.mime if kind else None}")
        return None
    ext = get_extension(filename)
    if not ext:
        return DEFAULT_IMAGE_EXTENSION
    if ext not in IMAGE_EXTENSIONS:
        return kind.extension
    return ext
