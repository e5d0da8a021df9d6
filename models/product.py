from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime
from enum import Enum
import uuid


class Category(str, Enum):
    SAREE = "Saree"
    KURTI = "Kurti"
    DRESS = "Dress"
    DUPATTA = "Dupatta"


class Review(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    name: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime


class Product(BaseModel):
    id: str
    name: str
    description: str
    price: float
    category: Category
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    fabric: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    stock: int = 0
    is_in_stock: bool = True
    rating: float = 0
    num_reviews: int = 0
    reviews: List[Review] = Field(default_factory=list)
    created_at: datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: Category
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    fabric: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    is_in_stock: bool = True

    model_config = ConfigDict(extra="forbid")


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[Category] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    fabric: Optional[str] = None
    images: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    is_in_stock: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
