"""
Field validation rules for guestbook entries.

Every rule is a pure function over a single raw value and returns a
RuleResult carrying both the outcome and a human-readable message, so the
same rules drive interactive per-field feedback and full submission checks.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from guestbook.core.config import settings

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

# ASCII only: \d would otherwise accept any Unicode decimal digit
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}", re.ASCII)
PHONE_PATTERN = re.compile(r"[789]\d{9}", re.ASCII)


@dataclass(frozen=True)
class RuleResult:
    valid: bool
    message: str


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.3g} MB"
    if size >= 1024:
        return f"{size / 1024:.3g} KB"
    return f"{size} bytes"


def validate_name(value: Any) -> RuleResult:
    # len() counts code points, not bytes
    length = len(_as_text(value).strip())
    if length < NAME_MIN_LENGTH:
        return RuleResult(False, f"The name must be at least {NAME_MIN_LENGTH} characters long.")
    if length > NAME_MAX_LENGTH:
        return RuleResult(False, f"The name must not exceed {NAME_MAX_LENGTH} characters.")
    return RuleResult(True, "The name is valid.")


def validate_email(value: Any) -> RuleResult:
    email = _as_text(value)
    if not email:
        return RuleResult(False, "The email is required.")
    if not EMAIL_PATTERN.fullmatch(email):
        return RuleResult(False, "The email is not valid.")
    return RuleResult(True, "The email is valid.")


def validate_phone(value: Any) -> RuleResult:
    if not PHONE_PATTERN.fullmatch(_as_text(value)):
        return RuleResult(False, "The phone number must be 10 digits starting with 7, 8 or 9.")
    return RuleResult(True, "The phone number is valid.")


def validate_message(value: Any) -> RuleResult:
    if _as_text(value) == "":
        return RuleResult(False, "The message cannot be empty.")
    return RuleResult(True, "The message is valid.")


def validate_review(value: Any) -> RuleResult:
    if _as_text(value) == "":
        return RuleResult(False, "The review cannot be empty.")
    return RuleResult(True, "The review is valid.")


def validate_upload(
    filename: str,
    size: int,
    max_size: int,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> List[str]:
    """Return every problem with an uploaded file; an empty list means it is acceptable."""
    allowed = [ext.lower() for ext in (allowed_extensions or settings.ALLOWED_IMAGE_EXTENSIONS)]
    errors = []
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension not in allowed:
        errors.append(f"Only files with the following extensions are allowed: {' '.join(allowed)}.")
    if size > max_size:
        errors.append(f"The file is {_format_size(size)} exceeding the maximum file size of {_format_size(max_size)}.")
    return errors


def _image_rule(label: str, max_size: int, image: Any) -> RuleResult:
    # Images are optional
    if image is None:
        return RuleResult(True, f"No {label} provided.")
    errors = validate_upload(image.filename, image.size, max_size)
    if errors:
        return RuleResult(False, " ".join(errors))
    return RuleResult(True, f"The {label} is valid.")


def validate_avatar(image: Any) -> RuleResult:
    """`image` is anything with `filename` and `size` (a stored MediaFile, for instance) or None."""
    return _image_rule("avatar", settings.AVATAR_MAX_SIZE, image)


def validate_review_image(image: Any) -> RuleResult:
    return _image_rule("review image", settings.REVIEW_IMAGE_MAX_SIZE, image)


TEXT_RULES: Dict[str, Callable[[Any], RuleResult]] = {
    "name": validate_name,
    "email": validate_email,
    "phone": validate_phone,
    "message": validate_message,
    "review": validate_review,
}

IMAGE_RULES: Dict[str, Callable[[Any], RuleResult]] = {
    "avatar_media_id": validate_avatar,
    "review_image_media_id": validate_review_image,
}


def check_fields(fields: Mapping[str, Any]) -> Dict[str, RuleResult]:
    """Per-field feedback for the text fields present in `fields`."""
    return {field: rule(fields[field]) for field, rule in TEXT_RULES.items() if field in fields}


def validate(
    fields: Mapping[str, Any],
    media: Optional[Mapping[str, Any]] = None,
    partial: bool = False,
) -> Dict[str, str]:
    """
    Run all rules and collect every failure as {field: message}.

    media maps the image reference fields to resolved media objects.
    With partial=True only the keys present in `fields` are checked.
    """
    media = media or {}
    errors: Dict[str, str] = {}
    for field, rule in TEXT_RULES.items():
        if partial and field not in fields:
            continue
        result = rule(fields.get(field))
        if not result.valid:
            errors[field] = result.message
    for field, rule in IMAGE_RULES.items():
        if partial and field not in fields:
            continue
        result = rule(media.get(field))
        if not result.valid:
            errors[field] = result.message
    return errors
