from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import Conflict
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.menu_template import MenuTemplate
from menumagic.schemas.common import OkOut
from menumagic.schemas.menu_template import (
    MenuTemplateCreate,
    MenuTemplateOut,
    MenuTemplateSummaryOut,
    MenuTemplateUpdate,
)
from menumagic.services import template_service
from menumagic.services.audit_service import log_audit_event
from menumagic.services.catalog_service import get_owned

router = APIRouter(prefix="/menu-templates", tags=["menu-templates"])


def _template_out(template: MenuTemplate) -> MenuTemplateOut:
    return MenuTemplateOut(
        id=template.id,
        name=template.name,
        description=template.description,
        preview_image_url=template.preview_image_url,
        is_default=template.is_default,
        template_data_json=template.template_data_json or {},
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


def _ensure_name_available(db: Session, *, restaurant_id: int, name: str, exclude_id: int | None = None) -> None:
    stmt = select(MenuTemplate.id).where(
        MenuTemplate.restaurant_id == restaurant_id,
        func.lower(MenuTemplate.name) == name.lower(),
    )
    if exclude_id is not None:
        stmt = stmt.where(MenuTemplate.id != exclude_id)
    if db.execute(stmt).first():
        raise Conflict("A template with this name already exists")


@router.get(
    "",
    response_model=list[MenuTemplateSummaryOut],
    summary="List menu templates",
    responses=error_responses(401, 500),
)
def list_templates(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    templates = db.execute(
        select(MenuTemplate)
        .where(MenuTemplate.restaurant_id == ctx.restaurant_id)
        .order_by(MenuTemplate.is_default.desc(), MenuTemplate.name.asc())
    ).scalars().all()
    return [
        MenuTemplateSummaryOut(
            id=template.id,
            name=template.name,
            description=template.description,
            preview_image_url=template.preview_image_url,
            is_default=template.is_default,
        )
        for template in templates
    ]


@router.get(
    "/{template_id}",
    response_model=MenuTemplateOut,
    summary="Get menu template with its style settings",
    responses=error_responses(401, 404, 500),
)
def get_template(
    template_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    template = get_owned(db, MenuTemplate, restaurant_id=ctx.restaurant_id, object_id=template_id, label="Template")
    return _template_out(template)


@router.post(
    "",
    response_model=MenuTemplateOut,
    status_code=201,
    summary="Create menu template",
    responses=error_responses(401, 409, 422, 500),
)
def create_template(
    payload: MenuTemplateCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    _ensure_name_available(db, restaurant_id=ctx.restaurant_id, name=payload.name)
    with transaction(db, action="create template"):
        template = MenuTemplate(
            restaurant_id=ctx.restaurant_id,
            name=payload.name,
            description=payload.description,
            preview_image_url=payload.preview_image_url,
            template_data_json=payload.template_data_json.model_dump(exclude_none=True),
            is_default=False,
        )
        db.add(template)
        db.flush()
        log_audit_event(
            db,
            ctx=ctx,
            action="template.create",
            target_type="menu_template",
            target_id=template.id,
            metadata_json={"name": template.name},
        )
    db.refresh(template)
    return _template_out(template)


@router.post(
    "/seed-defaults",
    response_model=list[MenuTemplateOut],
    summary="Create the built-in templates if they are missing",
    responses=error_responses(401, 500),
)
def seed_default_templates(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    with transaction(db, action="seed default templates"):
        created = template_service.seed_default_templates(db, restaurant_id=ctx.restaurant_id)
    for template in created:
        db.refresh(template)
    return [_template_out(template) for template in created]


@router.patch(
    "/{template_id}",
    response_model=MenuTemplateOut,
    summary="Update menu template",
    responses=error_responses(401, 404, 409, 422, 500),
)
def update_template(
    template_id: int,
    payload: MenuTemplateUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    template = get_owned(db, MenuTemplate, restaurant_id=ctx.restaurant_id, object_id=template_id, label="Template")
    changes = payload.model_dump(exclude_unset=True)
    name = (changes.get("name") or "").strip()
    if name:
        _ensure_name_available(db, restaurant_id=ctx.restaurant_id, name=name, exclude_id=template.id)

    with transaction(db, action="update template"):
        if name:
            template.name = name
        if "description" in changes:
            template.description = payload.description
        if "preview_image_url" in changes:
            template.preview_image_url = payload.preview_image_url
        if payload.template_data_json is not None:
            # Style settings are replaced as a whole.
            template.template_data_json = payload.template_data_json.model_dump(exclude_none=True)
        log_audit_event(
            db,
            ctx=ctx,
            action="template.update",
            target_type="menu_template",
            target_id=template.id,
            metadata_json={"fields": sorted(changes)},
        )
    db.refresh(template)
    return _template_out(template)


@router.delete(
    "/{template_id}",
    response_model=OkOut,
    summary="Delete menu template; menus using it fall back to no template",
    responses=error_responses(401, 404, 500),
)
def delete_template(
    template_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    template = get_owned(db, MenuTemplate, restaurant_id=ctx.restaurant_id, object_id=template_id, label="Template")
    with transaction(db, action="delete template"):
        template_service.detach_template(db, restaurant_id=ctx.restaurant_id, template_id=template.id)
        log_audit_event(
            db,
            ctx=ctx,
            action="template.delete",
            target_type="menu_template",
            target_id=template.id,
            metadata_json={"name": template.name},
        )
        db.delete(template)
    return OkOut()
