from fastapi import APIRouter, Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.core.errors import Conflict, NotFound, ValidationFailed
from menumagic.core.security_current import RequestContext, get_request_context
from menumagic.db.transaction import transaction
from menumagic.models.digital_menu import DigitalMenu, DigitalMenuItem
from menumagic.models.dish import Dish
from menumagic.models.menu_template import MenuTemplate
from menumagic.schemas.common import OkOut
from menumagic.schemas.digital_menu import (
    DigitalMenuCreate,
    DigitalMenuDetailOut,
    DigitalMenuItemIn,
    DigitalMenuItemOut,
    DigitalMenuOut,
    DigitalMenuReorderIn,
    DigitalMenuUpdate,
)
from menumagic.schemas.menu_template import MenuTemplateApplyIn
from menumagic.services import menu_service
from menumagic.services.audit_service import log_audit_event
from menumagic.services.catalog_service import get_owned
from menumagic.services.qr_service import qr_data_uri

router = APIRouter(prefix="/digital-menus", tags=["digital-menus"])


def _menu_out(menu: DigitalMenu, item_count: int) -> DigitalMenuOut:
    return DigitalMenuOut(
        id=menu.id,
        name=menu.name,
        is_active=menu.is_active,
        template_id=menu.template_id,
        qr_code_url=menu.qr_code_url,
        public_url=menu_service.public_menu_url(menu.id),
        item_count=item_count,
        created_at=menu.created_at,
        updated_at=menu.updated_at,
    )


def _menu_detail_out(db: Session, menu: DigitalMenu) -> DigitalMenuDetailOut:
    rows = menu_service.menu_items(db, menu_id=menu.id)
    return DigitalMenuDetailOut(
        **_menu_out(menu, len(rows)).model_dump(),
        items=[
            DigitalMenuItemOut(
                dish_id=dish.id,
                dish_name=dish.name,
                price=float(dish.price),
                is_available=dish.is_available,
                order_index=item.order_index,
            )
            for item, dish in rows
        ],
    )


def _owned_dish_ids(db: Session, *, restaurant_id: int, dish_ids: list[int]) -> None:
    found = set(
        db.execute(
            select(Dish.id).where(Dish.restaurant_id == restaurant_id, Dish.id.in_(dish_ids))
        ).scalars()
    )
    missing = [dish_id for dish_id in dish_ids if dish_id not in found]
    if missing:
        raise NotFound(f"Dish not found: {missing[0]}")


@router.get(
    "",
    response_model=list[DigitalMenuOut],
    summary="List digital menus",
    responses=error_responses(401, 500),
)
def list_menus(
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menus = db.execute(
        select(DigitalMenu).where(DigitalMenu.restaurant_id == ctx.restaurant_id).order_by(DigitalMenu.id.asc())
    ).scalars().all()
    counts = menu_service.menu_item_counts(db, [menu.id for menu in menus])
    return [_menu_out(menu, counts.get(menu.id, 0)) for menu in menus]


@router.get(
    "/{menu_id}",
    response_model=DigitalMenuDetailOut,
    summary="Get digital menu with its dishes",
    responses=error_responses(401, 404, 500),
)
def get_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    return _menu_detail_out(db, menu)


@router.post(
    "",
    response_model=DigitalMenuDetailOut,
    status_code=201,
    summary="Create digital menu",
    responses=error_responses(400, 401, 404, 422, 500),
)
def create_menu(
    payload: DigitalMenuCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if len(set(payload.dish_ids)) != len(payload.dish_ids):
        raise ValidationFailed("dish_ids must not contain duplicates")
    if payload.dish_ids:
        _owned_dish_ids(db, restaurant_id=ctx.restaurant_id, dish_ids=payload.dish_ids)
    if payload.template_id is not None:
        get_owned(db, MenuTemplate, restaurant_id=ctx.restaurant_id, object_id=payload.template_id, label="Template")

    with transaction(db, action="create menu"):
        menu = DigitalMenu(
            restaurant_id=ctx.restaurant_id,
            name=payload.name,
            is_active=payload.is_active,
            template_id=payload.template_id,
        )
        db.add(menu)
        db.flush()
        for index, dish_id in enumerate(payload.dish_ids):
            db.add(DigitalMenuItem(digital_menu_id=menu.id, dish_id=dish_id, order_index=index))
        log_audit_event(
            db,
            ctx=ctx,
            action="menu.create",
            target_type="digital_menu",
            target_id=menu.id,
            metadata_json={"name": menu.name},
        )
    db.refresh(menu)
    return _menu_detail_out(db, menu)


@router.patch(
    "/{menu_id}",
    response_model=DigitalMenuDetailOut,
    summary="Rename or publish/unpublish a menu",
    responses=error_responses(401, 404, 422, 500),
)
def update_menu(
    menu_id: int,
    payload: DigitalMenuUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    with transaction(db, action="update menu"):
        if payload.name is not None and payload.name.strip():
            menu.name = payload.name.strip()
        if payload.is_active is not None:
            menu.is_active = payload.is_active
    db.refresh(menu)
    return _menu_detail_out(db, menu)


@router.delete(
    "/{menu_id}",
    response_model=OkOut,
    summary="Delete digital menu",
    responses=error_responses(401, 404, 500),
)
def delete_menu(
    menu_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    with transaction(db, action="delete menu"):
        db.execute(delete(DigitalMenuItem).where(DigitalMenuItem.digital_menu_id == menu.id))
        db.delete(menu)
    return OkOut()


@router.post(
    "/{menu_id}/items",
    response_model=DigitalMenuDetailOut,
    status_code=201,
    summary="Add a dish to the end of a menu",
    responses=error_responses(401, 404, 409, 422, 500),
)
def add_menu_item(
    menu_id: int,
    payload: DigitalMenuItemIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    get_owned(db, Dish, restaurant_id=ctx.restaurant_id, object_id=payload.dish_id, label="Dish")
    exists = db.execute(
        select(DigitalMenuItem.id).where(
            DigitalMenuItem.digital_menu_id == menu.id,
            DigitalMenuItem.dish_id == payload.dish_id,
        )
    ).first()
    if exists:
        raise Conflict("Dish is already on this menu")

    with transaction(db, action="add menu item"):
        db.add(
            DigitalMenuItem(
                digital_menu_id=menu.id,
                dish_id=payload.dish_id,
                order_index=menu_service.next_item_index(db, menu_id=menu.id),
            )
        )
    db.refresh(menu)
    return _menu_detail_out(db, menu)


@router.delete(
    "/{menu_id}/items/{dish_id}",
    response_model=DigitalMenuDetailOut,
    summary="Remove a dish from a menu",
    responses=error_responses(401, 404, 500),
)
def remove_menu_item(
    menu_id: int,
    dish_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    item = db.execute(
        select(DigitalMenuItem).where(
            DigitalMenuItem.digital_menu_id == menu.id,
            DigitalMenuItem.dish_id == dish_id,
        )
    ).scalar_one_or_none()
    if not item:
        raise NotFound("Dish is not on this menu")
    with transaction(db, action="remove menu item"):
        db.delete(item)
    db.refresh(menu)
    return _menu_detail_out(db, menu)


@router.put(
    "/{menu_id}/items/order",
    response_model=DigitalMenuDetailOut,
    summary="Reorder the dishes of a menu",
    responses=error_responses(401, 404, 409, 422, 500),
)
def reorder_menu_items(
    menu_id: int,
    payload: DigitalMenuReorderIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    items = {
        item.dish_id: item
        for item in db.execute(
            select(DigitalMenuItem).where(DigitalMenuItem.digital_menu_id == menu.id)
        ).scalars()
    }
    if len(set(payload.dish_ids)) != len(payload.dish_ids) or set(payload.dish_ids) != set(items):
        raise Conflict("dish_ids must list every dish on the menu exactly once")

    with transaction(db, action="reorder menu items"):
        for index, dish_id in enumerate(payload.dish_ids):
            items[dish_id].order_index = index
    db.refresh(menu)
    return _menu_detail_out(db, menu)


@router.post(
    "/{menu_id}/qr",
    response_model=DigitalMenuOut,
    summary="Generate and store the QR code for the public menu URL",
    responses=error_responses(401, 404, 500),
)
def generate_menu_qr(
    menu_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    data_uri = qr_data_uri(menu_service.public_menu_url(menu.id))
    with transaction(db, action="store menu QR code"):
        menu.qr_code_url = data_uri
        log_audit_event(
            db,
            ctx=ctx,
            action="menu.qr_generate",
            target_type="digital_menu",
            target_id=menu.id,
        )
    db.refresh(menu)
    counts = menu_service.menu_item_counts(db, [menu.id])
    return _menu_out(menu, counts.get(menu.id, 0))


@router.put(
    "/{menu_id}/template",
    response_model=DigitalMenuDetailOut,
    summary="Apply a template to a menu, or clear it with null",
    responses=error_responses(401, 404, 422, 500),
)
def apply_menu_template(
    menu_id: int,
    payload: MenuTemplateApplyIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    menu = get_owned(db, DigitalMenu, restaurant_id=ctx.restaurant_id, object_id=menu_id, label="Menu")
    if payload.template_id is not None:
        get_owned(db, MenuTemplate, restaurant_id=ctx.restaurant_id, object_id=payload.template_id, label="Template")

    with transaction(db, action="apply menu template"):
        menu.template_id = payload.template_id
        log_audit_event(
            db,
            ctx=ctx,
            action="menu.template_apply",
            target_type="digital_menu",
            target_id=menu.id,
            metadata_json={"template_id": payload.template_id},
        )
    db.refresh(menu)
    return _menu_detail_out(db, menu)
