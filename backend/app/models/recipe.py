"""Recipe (menu dish) models."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.db.base import Base, TimestampMixin
from app.models.validators import non_negative, positive


class Recipe(Base, TimestampMixin):
    """A dish on the menu that orders refer to."""

    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), default="main", nullable=False)
    prep_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # minutes
    cook_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # minutes
    servings: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan",
        order_by="RecipeIngredient.id",
    )

    @validates("prep_time", "cook_time", "price")
    def _validate_non_negative(self, key, value):
        return non_negative(key, value)

    @validates("servings")
    def _validate_servings(self, key, value):
        return positive(key, value)


class RecipeIngredient(Base):
    """Amount of one inventory item a recipe uses."""

    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="kg", nullable=False)

    # Relationships
    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
    inventory_item: Mapped["InventoryItem"] = relationship("InventoryItem")

    @validates("quantity")
    def _validate_quantity(self, key, value):
        return positive(key, value)


# Forward references
from app.models.inventory import InventoryItem
