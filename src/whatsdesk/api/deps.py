"""Shared API dependencies."""

from whatsdesk.contacts.resolver import ContactNameResolver

# One resolver per process: names resolved by any request stay sticky
_resolver = ContactNameResolver()


def get_resolver() -> ContactNameResolver:
    """Get the process resolver (overridable via app.dependency_overrides)."""
    return _resolver
