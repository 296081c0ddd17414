from typing import Sequence

from core.logger import setup_logger
from core.validators import ValidationResult, device_fingerprint, parse_admin_code, validate_timezone, validate_window
from hub_engine.membership import is_banned
from hub_engine.models import SESSION_TYPES, UserRole

logger = setup_logger("PARTIES")


class RegistrationError(ValueError):
    pass


async def register_party(store, name: str, admin_code: str, timezone: str = "UTC", client_attributes: Sequence = ()):
    """Creates a party and its first admin from an admin code. Returns (party, admin)."""
    slot = parse_admin_code(admin_code)
    if not slot:
        raise RegistrationError("Invalid admin code format.")
    party_id, admin_id = slot

    if await store.get("parties", party_id) is not None:
        raise RegistrationError(f"Party slot {party_id} is taken.")
    if await store.query("parties", name=name.strip()):
        raise RegistrationError("Community name taken.")

    tz_check = validate_timezone(timezone)
    party = await store.insert("parties", {
        "id": party_id,
        "name": name.strip(),
        "timezone": tz_check.sanitized_value if tz_check.is_valid else "UTC",
        "pod_sessions": [],
        "session_config": {},
        "max_slots": 50,
    })
    admin = await store.insert("users", {
        "id": f"admin-{party_id}-{admin_id}",
        "name": "Admin",
        "role": UserRole.ADMIN,
        "party_id": party_id,
        "device_fingerprint": device_fingerprint(*client_attributes) if client_attributes else None,
    })
    logger.info(f"🏠 Registered party {party.name} in slot {party_id}")
    return party, admin


async def register_member(store, party_id: str, name: str, client_attributes: Sequence = ()):
    """Signs up a regular member unless the name or device is banned in the party."""
    fingerprint = device_fingerprint(*client_attributes) if client_attributes else None
    if await is_banned(store, party_id, name, fingerprint):
        raise RegistrationError("This identity has been expelled from the party.")
    if await store.query("users", party_id=party_id, name=name):
        raise RegistrationError("Name already taken in this party.")

    return await store.insert("users", {
        "name": name,
        "role": UserRole.REGULAR,
        "party_id": party_id,
        "device_fingerprint": fingerprint,
        "engagement_warnings": 0,
        "warning_label": "CLEAN",
    })


async def update_timezone(store, party_id: str, timezone: str) -> ValidationResult:
    result = validate_timezone(timezone)
    if result.is_valid:
        await store.update("parties", party_id, {"timezone": result.sanitized_value})
    return result


async def configure_window(store, party, session_type: str, enabled: bool, start: str, end: str) -> ValidationResult:
    """Sets one named window of a party's ``session_config``."""
    if session_type not in SESSION_TYPES:
        return ValidationResult(
            is_valid=False,
            error_message=f"Unknown session '{session_type}'",
            error_code="UNKNOWN_SESSION"
        )
    result = validate_window(start, end)
    if not result.is_valid:
        return result

    config = dict(party.session_config or {})
    config[session_type] = {"enabled": bool(enabled), "start": start.strip(), "end": end.strip()}
    await store.update("parties", party.id, {"session_config": config})
    return result
