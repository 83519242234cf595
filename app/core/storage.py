# app/core/storage.py

import time
import uuid
from pathlib import Path

from fastapi import UploadFile
from loguru import logger
from starlette.concurrency import run_in_threadpool
from supabase import create_client, Client

from app.core.config import settings
from app.core.errors import ValidationError

LOCAL_SCHEME = "local://"
SUPABASE_SCHEME = "supabase://"

# Init Client (Graceful Failure -> local disk)
try:
    supabase: Client | None = (
        create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        if settings.SUPABASE_URL and settings.SUPABASE_KEY else None
    )
except Exception as e:
    logger.warning(f"Supabase init failed, using local uploads: {e}")
    supabase = None


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[1].lower() if "." in filename else ""


async def save_resume(file: UploadFile | None) -> tuple[str, str] | None:
    """
    Stores an uploaded resume and returns (reference, original filename).

    - Rejects disallowed extensions and files over MAX_UPLOAD_SIZE (ValidationError).
    - Ignores the client's filename for storage; a timestamp + uuid name is used.
    - Returns None when no file was sent, or when the backend write fails
      (logged; the caller carries on without a resume).
    """
    if file is None or not file.filename:
        return None

    original_name = Path(file.filename).name
    ext = _extension(original_name)
    if ext not in settings.ALLOWED_RESUME_EXTENSIONS:
        allowed = ", ".join(sorted(settings.ALLOWED_RESUME_EXTENSIONS))
        raise ValidationError(f"resume: unsupported file type '.{ext}'. Allowed: {allowed}")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError(
            f"resume: file too large. Maximum size is {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
        )
    if not content:
        raise ValidationError("resume: file is empty")

    stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex}.{ext}"

    try:
        if supabase:
            object_path = f"resumes/{stored_name}"
            await run_in_threadpool(
                supabase.storage.from_(settings.SUPABASE_BUCKET).upload,
                path=object_path,
                file=content,
                file_options={"content-type": file.content_type or "application/octet-stream"},
            )
            reference = f"{SUPABASE_SCHEME}{object_path}"
        else:
            upload_dir = Path(settings.UPLOAD_DIR)
            upload_dir.mkdir(parents=True, exist_ok=True)
            await run_in_threadpool((upload_dir / stored_name).write_bytes, content)
            reference = f"{LOCAL_SCHEME}{stored_name}"
    except Exception:
        logger.exception(f"Resume upload failed for '{original_name}'")
        return None

    logger.info(f"Stored resume '{original_name}' as {reference}")
    return reference, original_name


async def delete_resume(reference: str | None) -> bool:
    """
    Removes a stored resume. Never raises: a missing object or a backend
    error is logged and reported as False.
    """
    if not reference:
        return False

    try:
        if reference.startswith(SUPABASE_SCHEME):
            if not supabase:
                logger.warning(f"Supabase not configured; cannot remove {reference}")
                return False
            object_path = reference[len(SUPABASE_SCHEME):]
            await run_in_threadpool(supabase.storage.from_(settings.SUPABASE_BUCKET).remove, [object_path])
        else:
            path = resolve_local_path(reference)
            if path is None:
                return False
            await run_in_threadpool(path.unlink)
    except Exception as e:
        logger.warning(f"Failed to remove resume {reference}: {e}")
        return False

    logger.info(f"Removed resume {reference}")
    return True


def resolve_local_path(reference: str) -> Path | None:
    """Maps a local:// reference to a file inside UPLOAD_DIR, if it still exists."""
    if not reference or not reference.startswith(LOCAL_SCHEME):
        return None

    # basename only, so a crafted reference can't escape the upload dir
    path = Path(settings.UPLOAD_DIR) / Path(reference[len(LOCAL_SCHEME):]).name
    return path if path.is_file() else None


def get_signed_url(reference: str, expiration: int = 3600) -> str | None:
    """
    Temporary link for a resume kept in Supabase storage.
    Valid for 1 hour by default.
    """
    if not reference or not reference.startswith(SUPABASE_SCHEME) or not supabase:
        return None

    object_path = reference[len(SUPABASE_SCHEME):]
    try:
        response = supabase.storage.from_(settings.SUPABASE_BUCKET).create_signed_url(object_path, expiration)
    except Exception as e:
        logger.warning(f"Failed to sign URL for {object_path}: {e}")
        return None

    # Handle different Supabase SDK response shapes
    if isinstance(response, dict):
        return response.get("signedURL") or response.get("signedUrl")
    return getattr(response, "signedURL", None) or str(response)
