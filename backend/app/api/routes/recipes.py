"""Recipe routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from app.core.rate_limit import limiter
from app.core.rbac import CurrentUser, RequireManager
from app.db.session import DbSession
from app.models.inventory import InventoryItem
from app.models.order import OrderItem
from app.models.recipe import Recipe, RecipeIngredient
from app.schemas.recipe import RecipeCreate, RecipeResponse, RecipeUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_recipe(db, recipe_id: int) -> Recipe:
    recipe = db.query(Recipe).filter(Recipe.id == recipe_id).first()
    if not recipe:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")
    return recipe


def _ingredient_lines(db, ingredients) -> list[RecipeIngredient]:
    lines = []
    for ing in ingredients:
        if db.get(InventoryItem, ing.inventory_item_id) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Inventory item {ing.inventory_item_id} does not exist",
            )
        lines.append(RecipeIngredient(**ing.model_dump()))
    return lines


@router.get("/", response_model=list[RecipeResponse])
@limiter.limit("60/minute")
def list_recipes(request: Request, db: DbSession, current_user: CurrentUser, category: str | None = None):
    query = db.query(Recipe)
    if category:
        query = query.filter(Recipe.category == category)
    return query.order_by(Recipe.name).limit(500).all()


@router.get("/{recipe_id}", response_model=RecipeResponse)
@limiter.limit("60/minute")
def get_recipe(request: Request, recipe_id: int, db: DbSession, current_user: CurrentUser):
    return _get_recipe(db, recipe_id)


@router.post("/", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_recipe(request: Request, body: RecipeCreate, db: DbSession, current_user: CurrentUser):
    data = body.model_dump(exclude={"ingredients"})
    recipe = Recipe(**data, ingredients=_ingredient_lines(db, body.ingredients))
    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info(f"Recipe {recipe.id} '{recipe.name}' created with {len(recipe.ingredients)} ingredients")
    return recipe


@router.put("/{recipe_id}", response_model=RecipeResponse)
@limiter.limit("30/minute")
def update_recipe(request: Request, recipe_id: int, body: RecipeUpdate, db: DbSession, current_user: CurrentUser):
    """Update a recipe; sending ``ingredients`` replaces every line."""
    recipe = _get_recipe(db, recipe_id)

    update_data = body.model_dump(exclude_unset=True, exclude={"ingredients"})
    for field, value in update_data.items():
        setattr(recipe, field, value)
    if body.ingredients is not None:
        recipe.ingredients = _ingredient_lines(db, body.ingredients)

    db.commit()
    db.refresh(recipe)
    return recipe


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_recipe(request: Request, recipe_id: int, db: DbSession, current_user: RequireManager):
    """Delete a recipe that no order refers to; otherwise deactivate it instead."""
    recipe = _get_recipe(db, recipe_id)
    if db.query(OrderItem).filter(OrderItem.recipe_id == recipe_id).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Recipe is used by existing orders; set is_active to false instead",
        )
    db.delete(recipe)
    db.commit()
    logger.info(f"Recipe {recipe_id} deleted by {current_user.email}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
