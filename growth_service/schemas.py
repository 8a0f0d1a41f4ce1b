# schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from growth_service.models import Role


# ------------------------- ACCOUNTS -------------------------
class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role
    name: str = ""
    business_type: Optional[str] = None
    phone: Optional[str] = None


class UserOut(BaseModel):
    id: str
    email: str
    role: str
    name: str
    business_type: Optional[str] = None
    phone: Optional[str] = None


# ------------------------- SHOPS -------------------------
class ShopIn(BaseModel):
    name: str = ""
    business_type: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class ShopCreate(BaseModel):
    user_id: str
    shop: ShopIn


# ------------------------- NOTIFICATIONS -------------------------
class NotificationIn(BaseModel):
    message: str
    type: str = "info"


class VendorNotificationCreate(BaseModel):
    vendor_id: str
    notification: NotificationIn


class NotificationRead(BaseModel):
    vendor_id: str
    notification_id: str


class AdminNotification(BaseModel):
    vendor_id: str
    message: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


# ------------------------- PRODUCTS -------------------------
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    stock: int = 0
    rating: float = 0
    reviews: int = 0
    features: List[str] = Field(default_factory=list)


class StockUpdate(BaseModel):
    product_id: Optional[str] = None
    quantity: Optional[int] = None


# ------------------------- INVESTORS -------------------------
class BusinessCreate(BaseModel):
    user_id: Optional[str] = None
    business: Optional[Dict[str, Any]] = None


# ------------------------- CART / CHECKOUT -------------------------
class CartItem(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0)


class CartUpdate(BaseModel):
    user_id: str
    cart: List[CartItem]


class CheckoutRequest(BaseModel):
    user_id: str
    cart: List[CartItem]
    order_code: Optional[str] = None
    vendor_id: Optional[str] = None
    shop_id: Optional[str] = None


# ------------------------- PLANS -------------------------
class PlanCreate(BaseModel):
    user_id: Optional[str] = None
    business_type: str = "business"
    inputs: Dict[str, Any] = Field(default_factory=dict)


# ------------------------- MESSAGING GATEWAY -------------------------
class WhatsAppSendRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    message: Optional[str] = None
