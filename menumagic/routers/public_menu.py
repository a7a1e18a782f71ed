from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from menumagic.core.api_docs import error_responses
from menumagic.core.deps import get_db
from menumagic.schemas.digital_menu import PublicMenuOut, QrGenerateIn, QrOut
from menumagic.services.menu_service import build_public_menu
from menumagic.services.qr_service import qr_data_uri

router = APIRouter(tags=["public"])


@router.get(
    "/menu/{menu_id}",
    response_model=PublicMenuOut,
    summary="Published menu for guests",
    responses=error_responses(404, 500),
)
def get_public_menu(menu_id: int, db: Session = Depends(get_db)):
    return build_public_menu(db, menu_id=menu_id)


@router.post(
    "/qr/generate",
    response_model=QrOut,
    summary="Render a URL as a PNG QR code data URI",
    responses=error_responses(400, 422),
)
def generate_qr(payload: QrGenerateIn):
    return QrOut(qr_code_base64=qr_data_uri(payload.url))
