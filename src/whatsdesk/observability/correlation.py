"""Request-scoped log context: correlation ID and channel.

Both values live in context variables so every log line emitted while
serving a request carries them, including lines from the parsing
pipeline that knows nothing about HTTP.
"""

import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
channel_id_var: ContextVar[str] = ContextVar("channel_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Incoming IDs end up in every log line; anything else is replaced
_ACCEPTED_INCOMING = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def accept_correlation_id(incoming: str | None) -> str:
    """Keep a caller-supplied correlation ID if it is well-formed, else mint one."""
    if incoming and _ACCEPTED_INCOMING.fullmatch(incoming):
        return incoming
    return generate_correlation_id()


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


def get_channel_id() -> str:
    return channel_id_var.get()


@contextmanager
def bind_channel(channel_id: str) -> Iterator[None]:
    """Tag log lines emitted inside the block with a channel id."""
    token = channel_id_var.set(channel_id)
    try:
        yield
    finally:
        channel_id_var.reset(token)
