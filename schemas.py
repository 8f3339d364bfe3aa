import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Stored document shapes. Every record carries an application-generated
# string id, independent of MongoDB's own _id.


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str = Field(..., description="bcrypt hash, never the raw password")
    first_name: str
    last_name: str
    created_at: datetime = Field(default_factory=utcnow)


class UserPublic(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    created_at: Optional[datetime] = None


class ProductCategory(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., description="Trimmed, lowercased category name")


class DiscountType(str, Enum):
    percent = "percent"
    fixed = "fixed"
    user_point = "userPoint"


class Campaign(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    discount_type: DiscountType
    discount_value: float = Field(..., allow_inf_nan=False)
    campaign_category_id: str
    is_active: bool = True
    start_at: datetime
    end_at: datetime


class CampaignTargetCategory(BaseModel):
    campaign_id: str
    product_category_id: str


class CampaignsCategories(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""


# Request bodies. Text fields default to "" so a missing field and an empty
# one are rejected by the same check in the handler.

class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    first_name: str = ""
    last_name: str = ""


class ProductCategoryCreateRequest(BaseModel):
    name: str = ""


class CampaignCategoryCreateRequest(BaseModel):
    name: str = ""
    description: str = ""


class CampaignCreateRequest(BaseModel):
    name: str = ""
    description: str = ""
    discount_type: DiscountType
    discount_value: float = Field(..., allow_inf_nan=False)
    start_at: datetime
    end_at: datetime
    is_active: bool = True
    campaign_category_id: str = ""
    list_product_category_id: List[str] = Field(default_factory=list)

    @field_validator("discount_type", mode="before")
    @classmethod
    def accept_percentage_alias(cls, v):
        if isinstance(v, str) and v.lower() == "percentage":
            return DiscountType.percent
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Naive timestamps are taken as UTC so start and end always compare
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
