"""Category endpoints: CRUD, tree structure and distribution."""

from fastapi import APIRouter, Depends

from src.knowledge_pipeline.categorization_service import analyze_distribution
from src.knowledge_pipeline.category_tree import build_category_tree
from src.knowledge_pipeline.errors import InvalidInput
from src.knowledge_pipeline.schemas import CamelModel, Category, CategoryDistribution, CategoryNode

from ..deps import AppServices, get_services

router = APIRouter(prefix="/api/categories", tags=["categories"])


class CategoryCreate(CamelModel):
    name: str | None = None
    parent_id: str | None = None
    color: str | None = None
    icon: str | None = None


class CategoryUpdate(CamelModel):
    """Partial category update; only fields present in the body are applied."""

    name: str | None = None
    parent_id: str | None = None
    color: str | None = None
    icon: str | None = None


@router.post("", status_code=201)
async def create_category(
    body: CategoryCreate, services: AppServices = Depends(get_services)
) -> Category:
    if not body.name or not body.name.strip():
        raise InvalidInput("Category name is required")

    return await services.storage.create_category(
        body.name,
        parent_id=body.parent_id or None,
        color=body.color or None,
        icon=body.icon or None,
    )


@router.get("")
async def list_categories(services: AppServices = Depends(get_services)) -> list[Category]:
    """List categories by name with their video counts."""
    return await services.storage.list_categories()


@router.get("/tree/structure")
async def category_tree(services: AppServices = Depends(get_services)) -> list[CategoryNode]:
    """Return categories nested under their parents."""
    categories = await services.storage.list_categories()
    return build_category_tree(categories)


@router.get("/distribution")
async def category_distribution(
    services: AppServices = Depends(get_services),
) -> CategoryDistribution:
    """Count videos per category and list the uncategorized ones."""
    videos = await services.storage.list_all_videos()
    categories = await services.storage.list_categories()
    return analyze_distribution(videos, categories)


@router.get("/{category_id}")
async def get_category(category_id: str, services: AppServices = Depends(get_services)) -> Category:
    return await services.storage.get_category(category_id)


@router.put("/{category_id}")
async def update_category(
    category_id: str, body: CategoryUpdate, services: AppServices = Depends(get_services)
) -> Category:
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and not (updates["name"] or "").strip():
        raise InvalidInput("Category name cannot be empty")
    if updates.get("parent_id") == category_id:
        raise InvalidInput("A category cannot be its own parent")

    return await services.storage.update_category(category_id, updates)


@router.delete("/{category_id}")
async def delete_category(category_id: str, services: AppServices = Depends(get_services)):
    """Delete a category; its videos become uncategorized."""
    await services.storage.delete_category(category_id)
    return {"message": "Category deleted successfully"}


@router.get("/{category_id}/subcategories")
async def list_subcategories(
    category_id: str, services: AppServices = Depends(get_services)
) -> list[Category]:
    return await services.storage.list_subcategories(category_id)
