import structlog
from fastapi import APIRouter, Depends

from gateway.api.deps import get_content_store, get_current_user
from gateway.core.exceptions import ProductNotFound
from gateway.services.directus import ContentStore
from gateway.utils.response import success

router = APIRouter(dependencies=[Depends(get_current_user)])
logger = structlog.get_logger()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
async def get_products(content_store: ContentStore = Depends(get_content_store)):
    """Get all products"""
    products = await content_store.get_products()

    logger.info("products_retrieved", count=len(products))
    return success(data=products, message=f"Retrieved {len(products)} products")


@router.get("/{product_id}", response_model=dict)
async def get_product(product_id: str, content_store: ContentStore = Depends(get_content_store)):
    product = await content_store.get_product(product_id)
    if product is None:
        raise ProductNotFound()

    logger.info("product_retrieved", product_id=product_id)
    return success(data=product, message="Product retrieved successfully")
