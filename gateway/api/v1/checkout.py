import structlog
from fastapi import APIRouter, Depends

from gateway.api.deps import get_content_store, get_current_user
from gateway.schemas.checkout import CheckoutRequest
from gateway.schemas.user import UserProfile
from gateway.services.directus import ContentStore
from gateway.services.stock_reconciler import reconcile
from gateway.utils.response import error, success

router = APIRouter()
logger = structlog.get_logger()


@router.post(
    "",
    response_model=dict,
    summary="Validate checkout stock",
    description="""
Checks every requested line item against current Directus stock without
reserving or deducting inventory.

Responds 200 when all items are available and 400 when any item is missing
or short; both carry the full per-item `stockCheck` array.
""",
    responses={
        200: {"description": "All items available"},
        400: {"description": "Validation error or insufficient stock"},
        401: {"description": "Not authenticated"},
    },
)
@router.post("/", response_model=dict, include_in_schema=False)
async def checkout(
    payload: CheckoutRequest,
    current_user: UserProfile = Depends(get_current_user),
    content_store: ContentStore = Depends(get_content_store),
):
    logger.info("checkout_started", user_id=current_user.id, line_items=len(payload.items))

    product_ids = list(dict.fromkeys(item.product_id for item in payload.items))
    stock_records = await content_store.get_stock_records(product_ids)
    verdict = reconcile(payload.items, stock_records)

    if not verdict.can_proceed:
        logger.warning(
            "checkout_insufficient_stock",
            user_id=current_user.id,
            unavailable=[r.product_id for r in verdict.stock_check if not r.is_available],
        )
        return error(
            message=verdict.message,
            error="Insufficient stock",
            status_code=400,
            data=verdict,
        )

    logger.info(
        "checkout_validated",
        user_id=current_user.id,
        line_items=len(payload.items),
        total_items=verdict.total_items,
    )
    return success(data=verdict, message="Stock validation successful")
