from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from werkzeug.utils import secure_filename

from ..core.enums import AttendanceAction
from ..core.exceptions import UpstreamError
from .watermark import apply_watermark

logger = logging.getLogger(__name__)

ACTION_FILE_LABELS = {
    AttendanceAction.CLOCK_IN: "AbsenMasuk",
    AttendanceAction.RESUME: "AbsenMasuk",
    AttendanceAction.BREAK_START: "MulaiIstirahat",
    AttendanceAction.BREAK_END: "SelesaiIstirahat",
    AttendanceAction.CLOCK_OUT: "AbsenPulang",
    AttendanceAction.PERMIT: "Izin",
}


@dataclass(frozen=True)
class PhotoMetadata:
    employee_name: str
    action: AttendanceAction
    taken_at: datetime  # local wall-clock
    location: Optional[str] = None


def build_photo_filename(meta: PhotoMetadata) -> str:
    """<NamaTanpaSpasi>_<YYYY-MM-DD>_<Aksi>_<HH-MM-SS>.jpg"""
    clean_name = re.sub(r"\s+", "", meta.employee_name or "") or "Karyawan"
    clean_name = re.sub(r"[^\w.-]", "", clean_name)
    action = ACTION_FILE_LABELS.get(meta.action, "Foto")
    return f"{clean_name}_{meta.taken_at:%Y-%m-%d}_{action}_{meta.taken_at:%H-%M-%S}.jpg"


class PhotoStore(Protocol):
    def upload(self, content: bytes, filename: str, mime_type: str, metadata: PhotoMetadata) -> str:
        """Persist the photo and return its file id.

        Raises UpstreamError when the storage cannot be reached or written.
        """

        raise NotImplementedError


class LocalPhotoStore(PhotoStore):
    """Stores evidence photos under ``<upload_dir>/attendance``."""

    def __init__(self, upload_dir: str, *, subdir: str = "attendance", watermark: bool = True):
        self._root = os.path.join(upload_dir, subdir)
        self._subdir = subdir
        self._watermark = watermark

    def upload(self, content: bytes, filename: str, mime_type: str, metadata: PhotoMetadata) -> str:
        if self._watermark:
            content = apply_watermark(
                content,
                name=metadata.employee_name,
                taken_at=metadata.taken_at,
                location=metadata.location,
            )

        name = build_photo_filename(metadata)
        try:
            os.makedirs(self._root, exist_ok=True)
            base, ext = os.path.splitext(name)
            counter = 0
            while True:
                try:
                    # Exclusive create; a name already taken moves to the next suffix.
                    with open(os.path.join(self._root, name), "xb") as f:
                        f.write(content)
                    break
                except FileExistsError:
                    counter += 1
                    name = f"{base}_{counter}{ext}"
        except OSError as e:
            logger.warning("Photo upload failed for %s: %s", filename, e)
            raise UpstreamError("Gagal mengunggah foto. Silakan coba lagi.") from e

        logger.info("Photo stored as %s", name, extra={"action": metadata.action.value})
        return f"{self._subdir}/{name}"


def save_upload(content: bytes, filename: str, *, upload_dir: str, subdir: str, now: datetime) -> str:
    """Store an arbitrary uploaded image (announcement, profile) and return its relative path."""
    safe = secure_filename(filename or "") or "image.jpg"
    name = f"{now:%Y%m%d%H%M%S}_{safe}"
    try:
        root = os.path.join(upload_dir, subdir)
        os.makedirs(root, exist_ok=True)
        with open(os.path.join(root, name), "wb") as f:
            f.write(content)
    except OSError as e:
        logger.warning("Upload of %s failed: %s", filename, e)
        raise UpstreamError("Gagal mengunggah gambar. Silakan coba lagi.") from e
    return f"{subdir}/{name}"
