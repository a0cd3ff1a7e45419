"""Recipe schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class RecipeIngredientIn(BaseModel):
    inventory_item_id: int
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field("kg", min_length=1, max_length=20)


class RecipeIngredientResponse(RecipeIngredientIn):
    id: int

    model_config = {"from_attributes": True}


class RecipeBase(BaseModel):
    """Base recipe schema."""

    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field("main", max_length=100)
    prep_time: int = Field(0, ge=0)
    cook_time: int = Field(0, ge=0)
    servings: int = Field(1, ge=1)
    price: Decimal = Field(Decimal("0"), ge=0)
    instructions: Optional[str] = None
    image: Optional[str] = None
    is_active: bool = True


class RecipeCreate(RecipeBase):
    ingredients: List[RecipeIngredientIn] = []


class RecipeUpdate(BaseModel):
    """Recipe update schema; ``ingredients`` replaces all lines when given."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    servings: Optional[int] = Field(None, ge=1)
    price: Optional[Decimal] = Field(None, ge=0)
    instructions: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None
    ingredients: Optional[List[RecipeIngredientIn]] = None


class RecipeResponse(RecipeBase):
    id: int
    ingredients: List[RecipeIngredientResponse] = []
    created_at: datetime

    model_config = {"from_attributes": True}
