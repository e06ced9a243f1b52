"""Contact name administration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from whatsdesk.contacts.resolver import ContactNameResolver

from ..deps import get_resolver

router = APIRouter(prefix="/contacts", tags=["contacts"])


class ForceNameRequest(BaseModel):
    """Request body for PUT /contacts/{phone}/name."""

    name: str = Field(..., min_length=1, max_length=200)


@router.get("/stats")
def contact_stats(resolver: ContactNameResolver = Depends(get_resolver)) -> dict:
    """Resolved and pending contact counts."""
    stats = resolver.get_stats()
    return {"resolved": stats.resolved, "pending": stats.pending}


@router.get("/{phone}/name")
def get_contact_name(
    phone: str = Path(..., description="Normalized phone"),
    resolver: ContactNameResolver = Depends(get_resolver),
) -> dict:
    """Resolved name for a phone. 404 if none is known yet."""
    name = resolver.get_resolved_name(phone)
    if name is None:
        raise HTTPException(status_code=404, detail="Contact name not resolved")
    return {"phone": phone, "name": name, "pending": resolver.is_pending(phone)}


@router.put("/{phone}/name")
def force_contact_name(
    body: ForceNameRequest,
    phone: str = Path(..., description="Normalized phone"),
    resolver: ContactNameResolver = Depends(get_resolver),
) -> dict:
    """Override the sticky name for a phone."""
    if not body.name.strip():
        raise HTTPException(status_code=422, detail="name must not be blank")
    resolver.force_resolve(phone, body.name)
    return {"phone": phone, "name": resolver.get_resolved_name(phone)}
