from typing import List

from fastapi import APIRouter, Depends, status

from api.deps import Services, get_current_user, get_services
from models.product import Product
from models.user import (
    Actor,
    CartItem,
    CartItemRequest,
    CartKeyRequest,
    LoginRequest,
    ProfileUpdateRequest,
    PublicUser,
    RegisterRequest,
    TokenResponse,
    User,
    WishlistRequest,
)
from utils.security import create_token

auth_router = APIRouter()
router = APIRouter()


def _token_response(user: User, services: Services) -> TokenResponse:
    return TokenResponse(
        token=create_token(user.as_actor(), services.settings),
        user=PublicUser(id=user.id, name=user.name, email=user.email, role=user.role),
    )


# --- Auth ---

@auth_router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, services: Services = Depends(get_services)):
    user = services.users.create_user(body.name, body.email, body.password)
    return _token_response(user, services)


@auth_router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, services: Services = Depends(get_services)):
    user = services.users.authenticate(body.email, body.password)
    return _token_response(user, services)


# --- Profile ---

@router.put("/profile", response_model=PublicUser)
def update_profile(
    body: ProfileUpdateRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    updated = services.users.update_profile(user.id, body.name, body.email, body.password)
    return PublicUser(id=updated.id, name=updated.name, email=updated.email, role=updated.role)


# --- Cart ---

@router.get("/cart", response_model=List[CartItem])
def get_cart(user: Actor = Depends(get_current_user), services: Services = Depends(get_services)):
    return services.users.get_cart(user.id)


@router.post("/cart", response_model=List[CartItem])
def add_to_cart(
    body: CartItemRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.add_to_cart(user.id, body.product_id, body.quantity, body.size, body.color)


@router.put("/cart", response_model=List[CartItem])
def update_cart_item(
    body: CartItemRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.update_cart_item(user.id, body.product_id, body.quantity, body.size, body.color)


@router.delete("/cart", response_model=List[CartItem])
def remove_from_cart(
    body: CartKeyRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.remove_from_cart(user.id, body.product_id, body.size, body.color)


# --- Wishlist ---

@router.get("/wishlist", response_model=List[Product])
def get_wishlist(user: Actor = Depends(get_current_user), services: Services = Depends(get_services)):
    return services.users.get_wishlist(user.id)


@router.post("/wishlist", response_model=List[str])
def add_to_wishlist(
    body: WishlistRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.add_to_wishlist(user.id, body.product_id)


@router.delete("/wishlist", response_model=List[str])
def remove_from_wishlist(
    body: WishlistRequest,
    user: Actor = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return services.users.remove_from_wishlist(user.id, body.product_id)
