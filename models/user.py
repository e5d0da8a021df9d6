from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List, Optional, Tuple
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Actor(BaseModel):
    """Authenticated caller passed explicitly into every service operation."""
    id: str
    email: str
    name: str
    role: Role = Role.USER

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    size: Optional[str] = None
    color: Optional[str] = None
    price: float = Field(..., ge=0)

    @property
    def key(self) -> Tuple[str, Optional[str], Optional[str]]:
        return (self.product_id, self.size, self.color)


class User(BaseModel):
    id: str
    name: str
    email: str
    role: Role = Role.USER
    cart: List[CartItem] = Field(default_factory=list)
    wishlist: List[str] = Field(default_factory=list)
    created_at: datetime

    def as_actor(self) -> Actor:
        return Actor(id=self.id, email=self.email, name=self.name, role=self.role)


class PublicUser(BaseModel):
    id: str
    name: str
    email: str
    role: Role


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)

    model_config = ConfigDict(extra="forbid")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    model_config = ConfigDict(extra="forbid")


class TokenResponse(BaseModel):
    token: str
    user: PublicUser


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)

    model_config = ConfigDict(extra="forbid")


class CartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class CartKeyRequest(BaseModel):
    product_id: str
    size: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class WishlistRequest(BaseModel):
    product_id: str

    model_config = ConfigDict(extra="forbid")
