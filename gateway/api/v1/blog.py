import structlog
from fastapi import APIRouter, Depends

from gateway.api.deps import get_content_store
from gateway.core.exceptions import BlogPostNotFound
from gateway.services.directus import ContentStore
from gateway.utils.response import success

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=dict)
@router.get("/", response_model=dict)
async def get_blog_posts(content_store: ContentStore = Depends(get_content_store)):
    """Published blog posts, newest first"""
    posts = await content_store.get_blog_posts()

    logger.info("blog_posts_retrieved", count=len(posts))
    return success(data=posts, message=f"Retrieved {len(posts)} blog posts")


@router.get("/{slug}", response_model=dict)
async def get_blog_post(slug: str, content_store: ContentStore = Depends(get_content_store)):
    post = await content_store.get_blog_post(slug)
    if post is None:
        raise BlogPostNotFound()

    logger.info("blog_post_retrieved", slug=slug)
    return success(data=post, message="Blog post retrieved successfully")
