"""
uploads.py — Upload ingestion for descriptions and images

Takes multipart parts, validates them, and copies each accepted part into
its fixed per-kind directory under a freshly generated name.

Business Rules:
- Stored name is <uuid4>.<ext>; the client filename never reaches the path
- Description: one file, text/* with a .md or .txt extension, else 400
- Images: each part judged on its own; non-images are skipped silently
- A failed image copy is reported per file and does not fail the others
- Copies go to "<name>.part" and are renamed into place, so an
  interrupted copy never leaves a file under its final name
- Files larger than settings.max_upload_size_mb are rejected

Called by: routers/sys_resources.py, routers/user.py
Depends on: utils/file_validation.py, config.py, errors.py
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path

from fastapi import UploadFile

from .config import settings
from .errors import StorageError, ValidationError
from .schemas.resources import ImageUploadResponse, UploadFailure, UploadResult
from .utils.file_validation import SNIFF_BYTES, image_extension, validate_description

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class UploadTooLarge(Exception):
    pass


def _copy_atomic(src, dest: Path, limit: int) -> None:
    """Copy a file object to dest through a .part sibling, then rename."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    try:
        src.seek(0)
        copied = 0
        with open(tmp, "wb") as out:
            while True:
                chunk = src.read(CHUNK_SIZE)
                if not chunk:
                    break
                copied += len(chunk)
                if copied > limit:
                    raise UploadTooLarge(f"{copied} bytes exceeds {limit}")
                out.write(chunk)
        os.replace(tmp, dest)
    except BaseException:
        try:
            tmp.unlink()
        except FileNotFoundError:
            pass
        raise


async def store_file(upload: UploadFile, directory: str, extension: str) -> UploadResult:
    """Copy an upload into directory as <new id>.<extension>."""
    generated_id = str(uuid.uuid4())
    dest = Path(directory) / f"{generated_id}.{extension}"
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _copy_atomic, upload.file, dest, settings.max_upload_bytes)
    return UploadResult(stored_path=str(dest), generated_id=generated_id)


async def _read_head(upload: UploadFile) -> bytes:
    head = await upload.read(SNIFF_BYTES)
    await upload.seek(0)
    return head


async def ingest_description(upload: UploadFile | None) -> UploadResult:
    """Validate and store a single description file.

    Raises:
        ValidationError: no file, wrong type, bad extension, too large
        StorageError: the copy failed
    """
    if upload is None:
        raise ValidationError("file not found in request")

    head = await _read_head(upload)
    ext = validate_description(upload.content_type, upload.filename, head)

    try:
        result = await store_file(upload, settings.description_dir, ext)
    except UploadTooLarge:
        raise ValidationError(f"File too large (max {settings.max_upload_size_mb} MB)")
    except OSError as e:
        log.error(f"Description copy failed for {upload.filename!r}: {e}")
        raise StorageError(f"Could not store description: {e}")

    log.info(f"Stored description {upload.filename!r} as {result.stored_path}")
    return result


async def ingest_images(uploads: list[UploadFile], directory: str | None = None) -> ImageUploadResponse:
    """Validate and store every image part; return per-file outcomes.

    Non-image parts are left out of both lists. Raises ValidationError
    only when the request carried no files at all.
    """
    if not uploads:
        raise ValidationError("file not found in request")

    target = directory or settings.avatar_dir
    response = ImageUploadResponse()
    for upload in uploads:
        head = await _read_head(upload)
        ext = image_extension(upload.content_type, upload.filename, head)
        if ext is None:
            continue
        name = upload.filename or "file"
        try:
            result = await store_file(upload, target, ext)
        except UploadTooLarge:
            response.failed.append(UploadFailure(
                filename=name, reason=f"File too large (max {settings.max_upload_size_mb} MB)"))
            continue
        except OSError as e:
            log.error(f"Image copy failed for {name!r}: {e}")
            response.failed.append(UploadFailure(filename=name, reason=f"copy failed: {e}"))
            continue
        response.stored.append(result)

    log.info(f"Image upload: {len(response.stored)} stored, {len(response.failed)} failed, "
             f"{len(uploads) - len(response.stored) - len(response.failed)} skipped")
    return response


def remove_stored(path: str) -> None:
    """Best-effort delete of a stored upload, used when metadata can't be saved."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning(f"Could not remove orphaned upload {path}: {e}")
