"""
Campaign categories and discount campaigns.

A campaign belongs to one campaign category and targets any number of
product categories through CampaignTargetCategory link documents.
"""

import logging
from typing import List

import pymongo
from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import (
    CAMPAIGN_CATEGORIES,
    CAMPAIGN_TARGET_CATEGORIES,
    CAMPAIGNS,
    LIST_TIMEOUT,
    NO_MONGO_ID,
    PRODUCT_CATEGORIES,
    SHORT_TIMEOUT,
    create_document,
    get_db,
    get_documents,
)
from errors import InternalError, NotFoundError, ValidationError
from schemas import (
    Campaign,
    CampaignCategoryCreateRequest,
    CampaignCreateRequest,
    CampaignsCategories,
    CampaignTargetCategory,
    DiscountType,
)

logger = logging.getLogger(__name__)

category_router = APIRouter(prefix="/campaign-categories", tags=["Campaigns"])
router = APIRouter(prefix="/campaigns", tags=["Campaigns"])


# Campaign categories

@category_router.get("")
def get_campaign_categories(db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(LIST_TIMEOUT):
            return get_documents(db, CAMPAIGN_CATEGORIES)
    except PyMongoError:
        logger.exception("Failed to list campaign categories")
        raise InternalError("Failed to fetch campaign categories")


@category_router.post("", status_code=201)
def add_campaign_category(payload: CampaignCategoryCreateRequest, db: Database = Depends(get_db)):
    name = payload.name.strip()
    if not name:
        raise ValidationError("Name is required")

    cat = CampaignsCategories(name=name, description=payload.description.strip())
    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            doc = create_document(db, CAMPAIGN_CATEGORIES, cat)
    except PyMongoError:
        logger.exception("Failed to insert campaign category %r", name)
        raise InternalError("Failed to create campaign category")

    logger.info("Created campaign category %s", cat.id)
    return doc


@category_router.delete("/{category_id}")
def delete_campaign_category(category_id: str, db: Database = Depends(get_db)):
    if not category_id.strip():
        raise ValidationError("Category ID is required")
    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            res = db[CAMPAIGN_CATEGORIES].delete_one({"id": category_id})
    except PyMongoError:
        logger.exception("Failed to delete campaign category %s", category_id)
        raise InternalError("Failed to delete campaign category")

    if res.deleted_count == 0:
        raise NotFoundError("Campaign category not found")
    logger.info("Deleted campaign category %s", category_id)
    return {"status": "Campaign category deleted successfully"}


# Campaigns

def _validate_campaign(payload: CampaignCreateRequest) -> None:
    if not payload.name.strip():
        raise ValidationError("Name is required")
    if payload.discount_value < 0:
        raise ValidationError("Invalid discount value")
    if payload.discount_type == DiscountType.percent and payload.discount_value > 100:
        raise ValidationError("Invalid discount value")
    if payload.end_at <= payload.start_at:
        raise ValidationError("Campaign must end after it starts")
    if not payload.campaign_category_id.strip():
        raise ValidationError("Campaign category does not exist")


def _attach_targets(db: Database, campaigns: List[dict]) -> List[dict]:
    """Add a ``product_categories`` list of {id, name} to each campaign."""
    ids = [c["id"] for c in campaigns]
    links = get_documents(db, CAMPAIGN_TARGET_CATEGORIES, {"campaign_id": {"$in": ids}})
    cat_ids = list({link["product_category_id"] for link in links})
    names = {
        c["id"]: c["name"]
        for c in get_documents(db, PRODUCT_CATEGORIES, {"id": {"$in": cat_ids}})
    }
    for c in campaigns:
        c["product_categories"] = [
            {"id": link["product_category_id"], "name": names[link["product_category_id"]]}
            for link in links
            if link["campaign_id"] == c["id"] and link["product_category_id"] in names
        ]
    return campaigns


def _discard_campaign(db: Database, campaign_id: str) -> None:
    """Remove a partially written campaign and whatever links made it in."""
    try:
        db[CAMPAIGNS].delete_one({"id": campaign_id})
        db[CAMPAIGN_TARGET_CATEGORIES].delete_many({"campaign_id": campaign_id})
    except PyMongoError:
        logger.exception("Failed to clean up campaign %s", campaign_id)


@router.get("")
def get_campaigns(db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(LIST_TIMEOUT):
            return _attach_targets(db, get_documents(db, CAMPAIGNS))
    except PyMongoError:
        logger.exception("Failed to list campaigns")
        raise InternalError("Failed to fetch campaigns")


@router.post("", status_code=201)
def create_campaign(payload: CampaignCreateRequest, db: Database = Depends(get_db)):
    _validate_campaign(payload)
    target_ids = list(dict.fromkeys(payload.list_product_category_id))

    with pymongo.timeout(SHORT_TIMEOUT):
        try:
            category = db[CAMPAIGN_CATEGORIES].find_one({"id": payload.campaign_category_id}, NO_MONGO_ID)
            found = {
                c["id"]
                for c in db[PRODUCT_CATEGORIES].find({"id": {"$in": target_ids}}, NO_MONGO_ID)
            }
        except PyMongoError:
            logger.exception("Failed to look up categories for campaign %r", payload.name)
            raise InternalError("Failed to create campaign")

        if category is None:
            raise ValidationError("Campaign category does not exist")
        for cat_id in target_ids:
            if cat_id not in found:
                raise ValidationError(f"Unknown product category: {cat_id}")

        campaign = Campaign(
            name=payload.name.strip(),
            description=payload.description,
            discount_type=payload.discount_type,
            discount_value=payload.discount_value,
            campaign_category_id=payload.campaign_category_id,
            is_active=payload.is_active,
            start_at=payload.start_at,
            end_at=payload.end_at,
        )
        try:
            doc = create_document(db, CAMPAIGNS, campaign)
            links = [
                CampaignTargetCategory(campaign_id=campaign.id, product_category_id=cat_id).model_dump()
                for cat_id in target_ids
            ]
            if links:
                db[CAMPAIGN_TARGET_CATEGORIES].insert_many(links)
            doc = _attach_targets(db, [doc])[0]
        except PyMongoError:
            logger.exception("Failed to insert campaign %s", campaign.id)
            _discard_campaign(db, campaign.id)
            raise InternalError("Failed to create campaign")

    logger.info("Created campaign %s targeting %d categories", campaign.id, len(target_ids))
    return doc


@router.patch("/{campaign_id}/activate")
def activate_campaign(campaign_id: str, db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            doc = db[CAMPAIGNS].find_one_and_update(
                {"id": campaign_id},
                {"$set": {"is_active": True}},
                projection=NO_MONGO_ID,
                return_document=ReturnDocument.AFTER,
            )
            if doc is not None:
                doc = _attach_targets(db, [doc])[0]
    except PyMongoError:
        logger.exception("Failed to activate campaign %s", campaign_id)
        raise InternalError("Failed to activate campaign")

    if doc is None:
        raise NotFoundError("Campaign not found")
    logger.info("Activated campaign %s", campaign_id)
    return doc


@router.delete("/{campaign_id}")
def delete_campaign(campaign_id: str, db: Database = Depends(get_db)):
    try:
        with pymongo.timeout(SHORT_TIMEOUT):
            res = db[CAMPAIGNS].delete_one({"id": campaign_id})
            if res.deleted_count:
                db[CAMPAIGN_TARGET_CATEGORIES].delete_many({"campaign_id": campaign_id})
    except PyMongoError:
        logger.exception("Failed to delete campaign %s", campaign_id)
        raise InternalError("Failed to delete campaign")

    if res.deleted_count == 0:
        raise NotFoundError("Campaign not found")
    logger.info("Deleted campaign %s", campaign_id)
    return {"status": "Campaign deleted successfully"}
