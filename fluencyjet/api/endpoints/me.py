"""Current-user plan summary."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from fluencyjet.api.deps import get_content_service, get_current_user
from fluencyjet.core.access import entitlements
from fluencyjet.db.models.user import User
from fluencyjet.schemas import EntitlementsResponse
from fluencyjet.services.content import ContentService


router = APIRouter(prefix="/me", tags=["me"])


@router.get("/entitlements", response_model=EntitlementsResponse)
def get_entitlements(
    current_user: User = Depends(get_current_user),
    service: ContentService = Depends(get_content_service),
) -> EntitlementsResponse:
    summary = entitlements(current_user, service.rules)
    return EntitlementsResponse(
        plan=summary.plan,
        tier_level=summary.tier_level,
        proActive=summary.pro_active,
        tracks=[track.value for track in summary.tracks],
        freeLessons=summary.free_lessons,
    )
