from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from spendlog.core.errors import NotFoundError
from spendlog.db.dal import Database
from spendlog.models import Category, CategoryIn, CategoryUpdateIn, ColorToken
from spendlog.services.scope_context import get_db, get_scope_id

router = APIRouter(prefix="/categories", tags=["categories"])


class CategoryOut(BaseModel):
    id: str
    name: str
    kind: str
    color_token: ColorToken
    color_hex: str
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


def _to_out(category: Category) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        kind=category.kind,
        color_token=category.color_token,
        color_hex=category.color_hex,
        last_used_at=category.last_used_at,
        created_at=category.created_at,
    )


def _fetch(db: Database, scope_id: str, category_id: str) -> CategoryOut:
    category = db.get_category(scope_id, category_id)
    if category is None:
        raise NotFoundError("category", category_id)
    return _to_out(category)


@router.get("", response_model=List[CategoryOut], summary="List tags and banks")
async def list_categories(
    kind: Optional[Literal["tag", "bank"]] = Query(None, description="Only one kind"),
    order: Literal["name", "recent"] = Query(
        "name", description="Alphabetical or most recently used first"
    ),
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    return [_to_out(c) for c in db.list_categories(scope_id, kind=kind, order=order)]


@router.post(
    "", response_model=CategoryOut, status_code=201, summary="Create a tag or bank"
)
async def create_category(
    payload: CategoryIn,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    category_id = db.create_category(scope_id, payload.name, payload.kind)
    return _fetch(db, scope_id, category_id)


@router.patch("/{category_id}", response_model=CategoryOut, summary="Rename or recolor")
async def patch_category(
    category_id: str,
    payload: CategoryUpdateIn,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    db.update_category(
        scope_id, category_id, name=payload.name, color_token=payload.color_token
    )
    return _fetch(db, scope_id, category_id)


@router.delete(
    "/{category_id}",
    status_code=204,
    summary="Delete a category and detach it from expenses",
)
async def delete_category(
    category_id: str,
    scope_id: str = Depends(get_scope_id),
    db: Database = Depends(get_db),
):
    db.delete_category(scope_id, category_id)
    return Response(status_code=204)
