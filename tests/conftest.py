"""Shared pytest fixtures for whatsdesk tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_app_resolver():
    """Reset the process-wide name resolver to avoid cross-test contamination.

    Sticky names survive for the life of the process, so a name resolved
    by one API test would otherwise leak into the next.
    """
    from whatsdesk.api.deps import get_resolver

    get_resolver().clear_cache()
    yield
    get_resolver().clear_cache()


@pytest.fixture
def resolver():
    """Isolated resolver instance."""
    from whatsdesk.contacts.resolver import ContactNameResolver

    return ContactNameResolver()
