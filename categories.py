import logging

import pymongo
from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import (
    PRODUCT_CATEGORIES,
    LIST_TIMEOUT,
    NO_MONGO_ID,
    SHORT_TIMEOUT,
    create_document,
    get_db,
    get_documents,
)
from errors import ConflictError, InternalError, NotFoundError, ValidationError
from schemas import ProductCategory, ProductCategoryCreateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/product-categories", tags=["Products"])


def normalize_category_name(name: str) -> str:
    return name.strip().lower()


@router.post("", status_code=201)
def add_product_category(payload: ProductCategoryCreateRequest, db: Database = Depends(get_db)):
    """
    Create a product category.

    The name is stored trimmed and lowercased. The lookup below only gives a
    readable answer for the common case; the unique index on ``name`` decides
    when two requests race.
    """
    name = normalize_category_name(payload.name)
    if not name:
        raise ValidationError("Name is required")

    cat = ProductCategory(name=name)

    with pymongo.timeout(SHORT_TIMEOUT):
        try:
            existing = db[PRODUCT_CATEGORIES].find_one({"name": cat.name}, NO_MONGO_ID)
        except PyMongoError:
            logger.exception("Failed to check existing category %r", cat.name)
            raise InternalError("Failed to check existing category")
        if existing is not None:
            raise ConflictError("Category already exists")

        try:
            doc = create_document(db, PRODUCT_CATEGORIES, cat)
        except DuplicateKeyError:
            raise ConflictError("Category already exists")
        except PyMongoError:
            logger.exception("Failed to insert category %r", cat.name)
            raise InternalError("Failed to create category")

    logger.info("Created product category %s (%s)", cat.id, cat.name)
    return doc


@router.get("")
def get_product_categories(db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(LIST_TIMEOUT):
            return get_documents(db, PRODUCT_CATEGORIES)
    except PyMongoError:
        logger.exception("Failed to list product categories")
        raise InternalError("Failed to fetch categories")


@router.delete("/{category_id}")
def delete_product_category(category_id: str, db: Database = Depends(get_db)):
    if not category_id.strip():
        raise ValidationError("Category ID is required")

    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            res = db[PRODUCT_CATEGORIES].delete_one({"id": category_id})
    except PyMongoError:
        logger.exception("Failed to delete category %s", category_id)
        raise InternalError("Failed to delete category")

    if res.deleted_count == 0:
        raise NotFoundError("Category not found")
    logger.info("Deleted product category %s", category_id)
    return {"status": "Category deleted successfully"}
