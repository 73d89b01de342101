from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

# ---- Catalog request models ----
# Create models validate a full record; Update models accept any subset and
# are applied with exclude_unset, so omitted fields stay untouched.

class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    email: Optional[str] = Field(None, max_length=254)
    address: Optional[str] = Field(None, max_length=500)
    town: Optional[str] = Field(None, max_length=100)

class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    email: Optional[str] = Field(None, max_length=254)
    address: Optional[str] = Field(None, max_length=500)
    town: Optional[str] = Field(None, max_length=100)

class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field("", max_length=5000)
    price: float = Field(..., ge=0)
    images: List[str] = []
    stock: int = Field(0, ge=0)
    categoryId: Optional[str] = None
    isActive: bool = True

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    categoryId: Optional[str] = None
    isActive: Optional[bool] = None

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field("", max_length=1000)

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)

# ---- Order response model ----
# Request bodies for orders are validated by OrderReconciler, not pydantic,
# so each rule can produce its own rejection.

class OrderItemOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    productId: str
    quantity: int
    price: float

class OrderOut(BaseModel):
    id: str
    customerId: str
    items: List[OrderItemOut]
    total: float
    status: str
    deliveryType: str
    deliveryArea: str
    notes: str = ""
    createdAt: str
    updatedAt: str
