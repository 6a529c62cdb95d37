from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..core.exceptions import ValidationError
from .collaborators import ImageSink

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


class LocalImageStore(ImageSink):
    """Writes captured faces as JPEG files under ``upload_dir``.

    The returned reference is ``{url_prefix}/{filename}``, served by whatever
    static file handler fronts ``upload_dir``.
    """

    def __init__(self, upload_dir: str | Path, *, url_prefix: str = "/uploads/faces"):
        self._upload_dir = Path(upload_dir)
        self._url_prefix = url_prefix.rstrip("/")

    def save(self, *, image_base64: str, filename_stem: str) -> str:
        payload = _DATA_URL_PREFIX.sub("", (image_base64 or "").strip())
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Captured image is not valid base64")

        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
        except (UnidentifiedImageError, OSError):
            raise ValidationError("Captured image could not be decoded")

        self._upload_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{filename_stem}.jpg"
        image.convert("RGB").save(self._upload_dir / filename, format="JPEG", quality=90)
        return f"{self._url_prefix}/{filename}"

    def discard(self, reference: str) -> None:
        name = Path(reference).name
        if not name:
            return
        (self._upload_dir / name).unlink(missing_ok=True)
