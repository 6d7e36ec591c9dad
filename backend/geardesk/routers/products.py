"""Products router (inspection catalog)."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from geardesk.core.database import get_db
from geardesk.core.security import require_admin, require_staff, AuthenticatedUser
from geardesk.models.enums import ProductType
from geardesk.models.product import Product, ProductQuestionTemplate
from geardesk.schemas.product import ProductCreate, ProductDetailResponse, ProductResponse

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
async def list_products(
    q: Optional[str] = None,
    product_type: Optional[ProductType] = None,
    active: Optional[bool] = True,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Search products by name, brand or model."""
    query = select(Product)

    if q:
        pattern = f"%{q}%"
        query = query.where(
            or_(Product.name.ilike(pattern), Product.brand.ilike(pattern), Product.model.ilike(pattern))
        )
    if product_type:
        query = query.where(Product.product_type == product_type)
    if active is not None:
        query = query.where(Product.active == active)

    result = await db.execute(query.order_by(Product.brand, Product.model).limit(100))
    return [ProductResponse.model_validate(p) for p in result.scalars().all()]


@router.post("", response_model=ProductDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Create a product with optional checklist questions."""
    existing = await db.execute(
        select(Product.id).where(
            Product.brand == data.brand,
            Product.model == data.model,
            Product.variant == data.variant,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A product with this brand, model and variant already exists",
        )

    product = Product(**data.model_dump(exclude={"questions"}))
    product.question_templates = [
        ProductQuestionTemplate(question=question, question_order=index)
        for index, question in enumerate(data.questions)
    ]
    db.add(product)
    await db.commit()
    await db.refresh(product)

    return ProductDetailResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_staff),
):
    """Get a product with its question and accessory templates."""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return ProductDetailResponse.model_validate(product)
