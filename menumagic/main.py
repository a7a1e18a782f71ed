import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from menumagic.core.errors import AppError
from menumagic.core.observability import (
    app_error_handler,
    http_exception_handler,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from menumagic.core.config import settings
from menumagic.db.session import engine
from menumagic.routers import (
    auth,
    brand_kit,
    categories,
    costs,
    digital_menus,
    dishes,
    ingredients,
    inventory,
    menu_templates,
    pos,
    public_menu,
    recipes,
    restaurant,
    suppliers,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description=(
        "Back-office API for MenuMagic restaurants.\n\n"
        "Quick test flow:\n"
        "1. Call `POST /auth/register` or `POST /auth/login`; the session cookie is set on the response.\n"
        "2. Test protected endpoints (`/ingredients`, `/inventory`, `/recipes`, `/pos`, `/digital-menus`).\n"
        "3. Publish a menu and open `GET /menu/{id}` without a session."
    ),
    swagger_ui_parameters={
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "Account registration and cookie sessions."},
        {"name": "restaurant", "description": "Restaurant profile."},
        {"name": "categories", "description": "Ordered categories for ingredients, recipes, dishes and suppliers."},
        {"name": "suppliers", "description": "Supplier directory."},
        {"name": "ingredients", "description": "Ingredients, units and purchase costs."},
        {"name": "inventory", "description": "Append-only stock adjustments and current stock levels."},
        {"name": "recipes", "description": "Recipes with rolled-up ingredient cost and margin."},
        {"name": "dishes", "description": "Sellable dishes linked to recipes."},
        {"name": "pos", "description": "Order capture, totals and payments."},
        {"name": "digital-menus", "description": "Digital menu authoring and QR codes."},
        {"name": "menu-templates", "description": "Reusable menu styles applied to digital menus."},
        {"name": "brand-kit", "description": "Restaurant logo, colors and fonts."},
        {"name": "public", "description": "Unauthenticated guest menu and QR rendering."},
        {"name": "costs", "description": "Cost and margin reporting."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:3000"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local frontends run on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(restaurant.router)
app.include_router(categories.router)
app.include_router(suppliers.router)
app.include_router(ingredients.router)
app.include_router(inventory.router)
app.include_router(recipes.router)
app.include_router(dishes.router)
app.include_router(pos.router)
app.include_router(digital_menus.router)
app.include_router(menu_templates.router)
app.include_router(brand_kit.router)
app.include_router(public_menu.router)
app.include_router(costs.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness check failed: %s", exc)
        return {"ok": False}
    return {"ok": True}
