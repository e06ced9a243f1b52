"""Contact display-name resolution with sticky names.

Channels report the contact's name inconsistently: some rows carry it,
others carry null. The resolver remembers the first real name seen for
each phone and never regresses to a fallback afterwards.

One instance is shared per process by the API layer; tests create their
own. All check-then-set sequences run under a lock so two concurrent
resolutions for the same phone cannot produce two authoritative names.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from whatsdesk.infra.time import utc_now_iso
from whatsdesk.messages.models import PendingContact, ResolvedContact
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import phone_suffix, safe_log_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolverStats:
    """Cache sizes reported by `ContactNameResolver.get_stats`."""

    resolved: int
    pending: int


def fallback_display(phone: str) -> str:
    """Last 4 digits of the phone, or the whole phone if shorter."""
    return phone[-4:] if len(phone) > 4 else phone


class ContactNameResolver:
    """Process-wide phone -> display name cache."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._resolved: dict[str, ResolvedContact] = {}
        self._pending: dict[str, list[PendingContact]] = {}

    def resolve(
        self,
        phone: str,
        session_id: str,
        provided_name: str | None = None,
        timestamp: str | None = None,
    ) -> str:
        """Return the authoritative display name for a phone.

        A cached name always wins. Otherwise a non-blank provided name is
        cached and returned. Otherwise the phone suffix is returned
        without being cached, so a later real name can still stick.

        Args:
            phone: Normalized phone (cache key).
            session_id: Session id the phone came from.
            provided_name: Name reported by the channel for this row.
            timestamp: When the name was observed (default: now).
        """
        with self._lock:
            cached = self._resolved.get(phone)
            if cached is not None:
                return cached.display_name

            name = provided_name.strip() if provided_name else ""
            if not name:
                return fallback_display(phone)

            self._resolved[phone] = ResolvedContact(
                phone=phone,
                display_name=name,
                resolved_at=timestamp or utc_now_iso(),
            )
            self._pending.pop(phone, None)

        logger.info(
            "contact name resolved",
            extra={"extra_fields": safe_log_context(phone=phone_suffix(phone))},
        )
        return name

    def force_resolve(self, phone: str, name: str) -> None:
        """Overwrite the cached name (administrative override). Blank names are ignored."""
        final_name = name.strip() if name else ""
        if not final_name:
            return

        with self._lock:
            self._resolved[phone] = ResolvedContact(
                phone=phone,
                display_name=final_name,
                resolved_at=utc_now_iso(),
            )
            self._pending.pop(phone, None)

        logger.info(
            "contact name forced",
            extra={"extra_fields": safe_log_context(phone=phone_suffix(phone))},
        )

    def get_resolved_name(self, phone: str) -> str | None:
        """Cached name for phone, without any fallback."""
        with self._lock:
            cached = self._resolved.get(phone)
        return cached.display_name if cached else None

    def mark_pending(self, phone: str, session_id: str, timestamp: str | None = None) -> None:
        """Record a session whose phone has no name yet.

        No-op once the phone is resolved or the session is already queued.
        """
        with self._lock:
            if phone in self._resolved:
                return
            entries = self._pending.setdefault(phone, [])
            if any(entry.session_id == session_id for entry in entries):
                return
            entries.append(
                PendingContact(
                    phone=phone,
                    session_id=session_id,
                    timestamp=timestamp or utc_now_iso(),
                )
            )

    def is_pending(self, phone: str) -> bool:
        with self._lock:
            return phone in self._pending

    def process_pending(self, phone: str) -> list[PendingContact]:
        """Drain and return the pending entries for phone."""
        with self._lock:
            return self._pending.pop(phone, [])

    def get_stats(self) -> ResolverStats:
        with self._lock:
            return ResolverStats(resolved=len(self._resolved), pending=len(self._pending))

    def clear_cache(self) -> None:
        """Forget every resolved and pending contact."""
        with self._lock:
            self._resolved.clear()
            self._pending.clear()
        logger.info("contact name cache cleared")
