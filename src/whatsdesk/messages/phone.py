"""Phone extraction from upstream session identifiers.

Session ids are loosely phone-shaped: "5511999998888", a WhatsApp JID
("5511999998888@s.whatsapp.net"), "5511999998888-Maria" or an opaque
token. Extraction never fails; callers that need a real phone check
`is_valid_phone_number` on the result.
"""

import re

_PHONE_DIGITS = re.compile(r"\d{10,15}", re.ASCII)


def extract_phone(session_id: str) -> str:
    """Derive a normalized phone from a session id.

    Args:
        session_id: Upstream conversation key.

    Returns:
        The first run of 10-15 digits found anywhere in the input, or the
        input truncated at its first "@" when there is no such run.
    """
    match = _PHONE_DIGITS.search(session_id)
    if match:
        return match.group(0)
    return session_id.split("@", 1)[0]


def is_valid_phone_number(value: str) -> bool:
    """True if value is purely 10-15 digits."""
    return _PHONE_DIGITS.fullmatch(value) is not None


def extract_name_from_session_id(session_id: str) -> str | None:
    """Name part of a "PHONE-NAME" session id, if the id uses that form."""
    phone, sep, name = session_id.partition("-")
    if not sep or not is_valid_phone_number(phone):
        return None
    return name.strip() or None
