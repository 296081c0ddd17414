import re
import hashlib
from typing import Optional, Tuple
from dataclasses import dataclass

from core.config import ADMIN_CODE_PREFIX
from core.errors import ConfigurationError
from utils.time_util import load_zone, parse_hhmm


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    sanitized_value: Optional[str] = None


def validate_timezone(name: str) -> ValidationResult:
    """
    Validate an IANA timezone name for a party.

    Returns ValidationResult with:
    - is_valid: True if the zone database knows the name
    - sanitized_value: Trimmed zone name
    """
    if not name or not name.strip():
        return ValidationResult(
            is_valid=False,
            error_message="Timezone cannot be empty",
            error_code="EMPTY_TIMEZONE"
        )

    name = name.strip()
    try:
        load_zone(name)
    except ConfigurationError:
        return ValidationResult(
            is_valid=False,
            error_message=f"Unknown timezone '{name}' (use an IANA name such as Europe/Berlin)",
            error_code="UNKNOWN_TIMEZONE"
        )

    return ValidationResult(is_valid=True, sanitized_value=name)


def validate_window(start: str, end: str) -> ValidationResult:
    """Validate a session window given as 'HH:MM' start and end."""
    start_min, end_min = parse_hhmm(start), parse_hhmm(end)

    if start_min is None:
        return ValidationResult(
            is_valid=False,
            error_message="Start time must be HH:MM (00:00-23:59)",
            error_code="INVALID_START"
        )

    if end_min is None:
        return ValidationResult(
            is_valid=False,
            error_message="End time must be HH:MM (00:00-23:59)",
            error_code="INVALID_END"
        )

    if start_min == end_min:
        return ValidationResult(
            is_valid=False,
            error_message="Window must not start and end at the same minute",
            error_code="EMPTY_WINDOW"
        )

    return ValidationResult(is_valid=True, sanitized_value=f"{start.strip()}-{end.strip()}")


def parse_admin_code(code: str) -> Optional[Tuple[str, str]]:
    """
    Split an admin code into (party slot, admin id).

    Codes look like ``<prefix><2-digit slot><1-digit admin>``, digits 1-9 only.
    The slot doubles as the party id.
    """
    if not code:
        return None
    match = re.fullmatch(rf"{re.escape(ADMIN_CODE_PREFIX)}([1-9]{{2}})([1-9])", code.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def device_fingerprint(*attributes) -> str:
    """SHA-256 over the client attributes; a weak ban key, not an identity."""
    payload = "|".join(str(a) for a in attributes)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
