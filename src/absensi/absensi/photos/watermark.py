"""Evidence watermark: name, Indonesian date/time and location on a dark footer."""

from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Optional

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

logger = logging.getLogger(__name__)

HARI = ["Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu", "Minggu"]
BULAN = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]


def format_indonesian_datetime(value: datetime) -> str:
    """Rabu, 4 Maret 2026 | 08:10:00"""
    return f"{HARI[value.weekday()]}, {value.day} {BULAN[value.month - 1]} {value.year} | {value:%H:%M:%S}"


def _font(size: int):
    try:
        return ImageFont.truetype("DejaVuSans.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _truncate(draw: ImageDraw.ImageDraw, text: str, font, max_width: int) -> str:
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + "...", font=font) > max_width:
        text = text[:-1]
    return text + "..."


def apply_watermark(content: bytes, *, name: str, taken_at: datetime, location: Optional[str]) -> bytes:
    """Return a JPEG with the footer drawn in; undecodable input is returned as-is."""
    try:
        with Image.open(io.BytesIO(content)) as src:
            img = src.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Photo could not be decoded, stored without watermark: %s", e)
        return content

    width, height = img.size
    footer = max(int(height * 0.25), min(150, height))
    overlay = Image.new("RGBA", img.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    draw.rectangle([0, height - footer, width, height], fill=(0, 0, 0, 170))

    padding = int(width * 0.04)
    line_height = int(footer * 0.28)
    start_y = height - footer + int(footer * 0.15)

    name_font = _font(max(22, int(height * 0.045)))
    date_font = _font(max(18, int(height * 0.038)))
    loc_font = _font(max(14, int(height * 0.03)))

    draw.text((padding, start_y), name or "ABSENSI NH", font=name_font, fill="white")
    draw.text((padding, start_y + line_height), format_indonesian_datetime(taken_at), font=date_font, fill="white")
    loc_text = _truncate(draw, location or "Lokasi tidak diketahui", loc_font, width - padding * 2)
    draw.text((padding, start_y + int(line_height * 1.9)), loc_text, font=loc_font, fill="white")

    img = Image.alpha_composite(img.convert("RGBA"), overlay).convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=90)
    return out.getvalue()
