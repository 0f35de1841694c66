from __future__ import annotations

import io
from datetime import datetime

from PIL import Image

from src.absensi.absensi.core.enums import AttendanceAction
from src.absensi.absensi.photos.store import LocalPhotoStore, PhotoMetadata, build_photo_filename, save_upload
from src.absensi.absensi.photos.watermark import apply_watermark, format_indonesian_datetime

TAKEN = datetime(2026, 3, 4, 8, 10, 0)


def _jpeg(size=(320, 240)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, (200, 180, 160)).save(out, format="JPEG")
    return out.getvalue()


def test_indonesian_datetime():
    assert format_indonesian_datetime(TAKEN) == "Rabu, 4 Maret 2026 | 08:10:00"


def test_photo_filename():
    meta = PhotoMetadata(employee_name="Siti  Rahma", action=AttendanceAction.BREAK_END, taken_at=TAKEN)
    assert build_photo_filename(meta) == "SitiRahma_2026-03-04_SelesaiIstirahat_08-10-00.jpg"


def test_watermark_keeps_image_size():
    marked = apply_watermark(_jpeg(), name="Siti Rahma", taken_at=TAKEN, location="Jl. Sudirman, Jakarta")

    with Image.open(io.BytesIO(marked)) as img:
        assert img.format == "JPEG"
        assert img.size == (320, 240)


def test_undecodable_photo_is_stored_unchanged():
    assert apply_watermark(b"not an image", name="X", taken_at=TAKEN, location=None) == b"not an image"


def test_local_store_writes_and_avoids_collisions(tmp_path):
    store = LocalPhotoStore(str(tmp_path), watermark=False)
    meta = PhotoMetadata(employee_name="Budi", action=AttendanceAction.CLOCK_IN, taken_at=TAKEN)

    first = store.upload(b"one", "photo.jpg", "image/jpeg", meta)
    second = store.upload(b"two", "photo.jpg", "image/jpeg", meta)

    assert first == "attendance/Budi_2026-03-04_AbsenMasuk_08-10-00.jpg"
    assert second == "attendance/Budi_2026-03-04_AbsenMasuk_08-10-00_1.jpg"
    assert (tmp_path / first).read_bytes() == b"one"
    assert (tmp_path / second).read_bytes() == b"two"


def test_save_upload_sanitizes_name(tmp_path):
    ref = save_upload(b"img", "../../etc/poster rapat.png", upload_dir=str(tmp_path), subdir="announcements", now=TAKEN)

    assert ref == "announcements/20260304081000_etc_poster_rapat.png"
    assert (tmp_path / ref).read_bytes() == b"img"


def test_local_store_never_overwrites_a_file_written_by_another_request(tmp_path):
    (tmp_path / "attendance").mkdir()
    taken = tmp_path / "attendance" / "Budi_2026-03-04_AbsenMasuk_08-10-00.jpg"
    taken.write_bytes(b"other request")

    store = LocalPhotoStore(str(tmp_path), watermark=False)
    meta = PhotoMetadata(employee_name="Budi", action=AttendanceAction.CLOCK_IN, taken_at=TAKEN)

    ref = store.upload(b"mine", "photo.jpg", "image/jpeg", meta)

    assert ref == "attendance/Budi_2026-03-04_AbsenMasuk_08-10-00_1.jpg"
    assert taken.read_bytes() == b"other request"
    assert (tmp_path / ref).read_bytes() == b"mine"
