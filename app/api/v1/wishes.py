"""
Wish API endpoints: own wishes, import, the garden feed and watering
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user_id, get_optional_user_id
from app.application.wish_cache import fetch_wishes, water_wish
from app.application.wishes import (
    CreateWishUseCase, DeleteWishUseCase, SetWishVisibilityUseCase, ImportLocalWishesUseCase,
    list_user_wishes, serialize_wish,
)
from app.domain.wish import SORT_NEWEST


router = APIRouter(prefix="/api/v1", tags=["wishes"])


# === Request models ===

class CreateWishRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wish_text: str = Field(alias="wishText")
    category: str
    is_private: bool = Field(default=False, alias="isPrivate")


class VisibilityRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_private: bool = Field(alias="isPrivate")


class LocalWish(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    category: str
    is_private: bool = Field(default=False, alias="isPrivate")


class ImportWishesRequest(BaseModel):
    wishes: list[LocalWish]


# === Endpoints ===

@router.post("/wishes", status_code=201)
def create_wish(
    req: CreateWishRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    wish = CreateWishUseCase(db).execute(
        user_id=user_id,
        wish_text=req.wish_text,
        category=req.category,
        is_private=req.is_private,
    )
    return serialize_wish(wish)


@router.get("/wishes/mine")
def my_wishes(user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return {"wishes": list_user_wishes(db, user_id)}


@router.delete("/wishes/{wish_id}")
def delete_wish(wish_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    DeleteWishUseCase(db).execute(wish_id, user_id)
    return {"success": True}


@router.put("/wishes/{wish_id}/visibility")
def set_visibility(
    wish_id: str,
    req: VisibilityRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    wish = SetWishVisibilityUseCase(db).execute(wish_id, user_id, req.is_private)
    return serialize_wish(wish)


@router.post("/wishes/import")
def import_wishes(
    req: ImportWishesRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Store wishes drafted in the browser before sign-in"""
    drafts = [w.model_dump() for w in req.wishes]
    imported = ImportLocalWishesUseCase(db).execute(user_id, drafts)
    return {"imported": imported}


@router.get("/garden")
def garden(
    sort: str = SORT_NEWEST,
    category: str | None = None,
    search: str | None = None,
    page: int = 1,
    user_id: str | None = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Public wishes, cached per (sort, category, search)"""
    return {"wishes": fetch_wishes(db, user_id, sort, category, search, page)}


@router.post("/wishes/{wish_id}/water")
def water(wish_id: str, user_id: str = Depends(get_current_user_id), db: Session = Depends(get_db)):
    return water_wish(db, user_id, wish_id).to_dict()
