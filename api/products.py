from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from api.deps import Services, get_current_user, get_services, require_admin
from models.product import Category, Product, ProductCreate, ProductUpdate, Review, ReviewCreate, ReviewUpdate
from models.user import Actor
from services.export import products_to_csv

router = APIRouter()


@router.get("", response_model=List[Product])
def list_products(category: Optional[Category] = None, services: Services = Depends(get_services)):
    return services.products.list(category)


@router.get("/export/csv")
def export_products(admin: Actor = Depends(require_admin), services: Services = Depends(get_services)):
    return Response(
        content=products_to_csv(services.products.list()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="products.csv"'},
    )


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    admin: Actor = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.products.create(body)


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, services: Services = Depends(get_services)):
    return services.products.get(product_id)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: str,
    body: ProductUpdate,
    admin: Actor = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return services.products.update(product_id, body)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    admin: Actor = Depends(require_admin),
    services: Services = Depends(get_services),
):
    services.products.delete(product_id)
    return {"message": "Product removed"}


# --- Reviews ---

@router.get("/{product_id}/reviews", response_model=List[Review])
def list_reviews(product_id: str, services: Services = Depends(get_services)):
    return services.products.list_reviews(product_id)


@router.post("/{product_id}/reviews", response_model=Product, status_code=status.HTTP_201_CREATED)
def add_review(
    product_id: str,
    body: ReviewCreate,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.products.add_review(product_id, user, body)


@router.put("/{product_id}/reviews/{review_id}", response_model=Product)
def edit_review(
    product_id: str,
    review_id: str,
    body: ReviewUpdate,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.products.update_review(product_id, review_id, user, body)


@router.delete("/{product_id}/reviews/{review_id}", response_model=Product)
def delete_review(
    product_id: str,
    review_id: str,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.products.delete_review(product_id, review_id, user)
