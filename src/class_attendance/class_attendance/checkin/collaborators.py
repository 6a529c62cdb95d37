from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class FaceMatch:
    confidence: float
    descriptor: Optional[Sequence[float]] = None


class FaceMatcher(Protocol):
    """Opaque face-matching capability (embedding and comparison live elsewhere)."""

    def match(self, *, student_id: str, descriptor: Sequence[float]) -> FaceMatch:
        raise NotImplementedError


class ImageSink(Protocol):
    """Persists a captured image and returns a reference to it."""

    def save(self, *, image_base64: str, filename_stem: str) -> str:
        raise NotImplementedError

    def discard(self, reference: str) -> None:
        """Remove an image returned by ``save`` that ended up unused."""
        raise NotImplementedError
