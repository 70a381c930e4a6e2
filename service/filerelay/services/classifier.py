"""
Upload kind classification.

Decides which Bot API method a fetched resource is sent with:
- PHOTO: sendPhoto
- VIDEO: sendVideo
- AUDIO: sendAudio
- DOCUMENT: sendDocument (fallback, always matches)

Rules are evaluated in order, first match wins. The declared media type
is checked before the filename extension within each rule, and DOCUMENT
is the unconditional default so every resource gets a kind.
"""

from enum import Enum
from typing import Callable, Optional
from dataclasses import dataclass

from filerelay.utils.urls import file_extension


class UploadKind(str, Enum):
    """Target Telegram media type."""
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"

    @property
    def method(self) -> str:
        """Bot API method name, e.g. sendPhoto."""
        return f"send{self.value.capitalize()}"

    @property
    def field(self) -> str:
        """Multipart form field carrying the file."""
        return self.value


IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp", "svg"})
VIDEO_EXTENSIONS = frozenset({"mp4", "avi", "mov", "mkv", "wmv", "flv", "webm"})
AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "aac", "flac", "ogg", "m4a"})


@dataclass(frozen=True)
class ClassificationRule:
    kind: UploadKind
    matches: Callable[[str, str], bool]  # (media_type, extension) -> bool


def _media_rule(kind: UploadKind, prefix: str, extensions: frozenset) -> ClassificationRule:
    return ClassificationRule(
        kind=kind,
        matches=lambda media_type, ext: media_type.startswith(prefix) or ext in extensions,
    )


CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    _media_rule(UploadKind.PHOTO, "image/", IMAGE_EXTENSIONS),
    _media_rule(UploadKind.VIDEO, "video/", VIDEO_EXTENSIONS),
    _media_rule(UploadKind.AUDIO, "audio/", AUDIO_EXTENSIONS),
    ClassificationRule(kind=UploadKind.DOCUMENT, matches=lambda media_type, ext: True),
)


def classify(media_type: Optional[str], file_name: str) -> UploadKind:
    """
    Classify a resource by its declared media type and display name.

    Args:
        media_type: Content-Type reported by the remote server (may be None)
        file_name: Display name derived from the URL

    Returns:
        The first matching UploadKind; DOCUMENT when nothing else matches.
    """
    media_type = (media_type or "").strip().lower()
    ext = file_extension(file_name)

    # The DOCUMENT rule always matches, so next() never exhausts
    return next(
        rule.kind for rule in CLASSIFICATION_RULES
        if rule.matches(media_type, ext)
    )
