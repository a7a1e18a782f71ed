from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.brand_kit import BrandKit
from menumagic.schemas.menu_template import BrandKitOut, BrandKitUpdate
from menumagic.services.audit_service import log_audit_event
from menumagic.services.template_service import ensure_brand_kit

router = APIRouter(prefix="/brand-kit", tags=["brand-kit"])


def _brand_kit_out(kit: BrandKit) -> BrandKitOut:
    return BrandKitOut(
        logo_url=kit.logo_url,
        primary_color_hex=kit.primary_color_hex,
        secondary_colors=list(kit.secondary_colors_json or []),
        font_family_main=kit.font_family_main,
        font_family_secondary=kit.font_family_secondary,
        updated_at=kit.updated_at,
    )


@router.get(
    "",
    response_model=BrandKitOut,
    summary="Get the restaurant brand kit, created with defaults on first read",
    responses=error_responses(401, 500),
)
def get_brand_kit(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="load brand kit"):
        kit = ensure_brand_kit(db, restaurant_id=ctx.restaurant_id)
    db.refresh(kit)
    return _brand_kit_out(kit)


@router.patch(
    "",
    response_model=BrandKitOut,
    summary="Update brand colors, fonts and logo URL",
    responses=error_responses(401, 422, 500),
)
def update_brand_kit(
    payload: BrandKitUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    changes = payload.model_dump(exclude_unset=True)
    with transaction(db, action="update brand kit"):
        kit = ensure_brand_kit(db, restaurant_id=ctx.restaurant_id)
        # Omitted or null fields keep their current value, except logo_url which null clears.
        if "logo_url" in changes:
            kit.logo_url = (payload.logo_url or "").strip() or None
        if payload.primary_color_hex is not None:
            kit.primary_color_hex = payload.primary_color_hex
        if payload.secondary_colors is not None:
            kit.secondary_colors_json = payload.secondary_colors
        if payload.font_family_main is not None:
            kit.font_family_main = payload.font_family_main.strip()
        if payload.font_family_secondary is not None:
            kit.font_family_secondary = payload.font_family_secondary.strip()
        log_audit_event(
            db,
            ctx=ctx,
            action="brand_kit.update",
            target_type="brand_kit",
            target_id=kit.id,
            metadata_json={"fields": sorted(changes)},
        )
    db.refresh(kit)
    return _brand_kit_out(kit)
