MAX_IMAGE_BYTES = 2 * 1024 * 1024


class ValidationFailed(ValueError):
    """Input rejected before any backend call was made."""


class ImageRejected(ValidationFailed):
    pass


def validate_image(mime: str | None, size: int, max_bytes: int = MAX_IMAGE_BYTES) -> None:
    if not mime or not mime.startswith("image/"):
        raise ImageRejected("Please select an image file")
    if size > max_bytes:
        raise ImageRejected(f"The image must be at most {max_bytes // (1024 * 1024)}MB")


def require_fields(**values: str | None) -> None:
    missing = [name for name, value in values.items() if not (value or "").strip()]
    if missing:
        raise ValidationFailed(f"Missing required field(s): {', '.join(missing)}")
