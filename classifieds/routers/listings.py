from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from classifieds.core.tokens import Caller
from classifieds.routers.deps import current_caller
from classifieds.services.listing_display import listing_reference, listing_to_dict
from classifieds.services.listing_service import ListingService

router = APIRouter(prefix="/api/listings", tags=["listings"])
service = ListingService()


def _collection(message: str, listings) -> dict:
    items = [listing_to_dict(listing) for listing in listings]
    return {"message": message, "count": len(items), "listings": items}


@router.get("/")
def get_listings():
    return _collection("Listings fetched successfully", service.list_all())


@router.get("/featured")
def get_featured_listings():
    return _collection("Featured listings fetched successfully", service.list_featured())


@router.get("/mine")
def get_my_listings(caller: Optional[Caller] = Depends(current_caller)):
    return _collection("Listings fetched successfully", service.list_mine(caller))


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_listing(payload: dict = Body(...), caller: Optional[Caller] = Depends(current_caller)):
    listing = service.create(caller, payload)
    return {"message": "Listing created successfully", "listing": listing_to_dict(listing)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def save_listing(payload: dict = Body(...), caller: Optional[Caller] = Depends(current_caller)):
    listing = service.create(caller, payload)
    return {"message": "Listing added successfully", "listingId": listing.listing_id}


@router.get("/search")
@router.get("/search/{query}")
def search_listings(
    query: str = "",
    category: Optional[str] = None,
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
):
    listings = service.search(query, category=category, min_price=min_price, max_price=max_price)
    return _collection("Search results fetched successfully", listings)


@router.get("/id/{listing_pk}")
def get_listing_by_id(listing_pk: str):
    listing = service.view(listing_pk)
    return {"message": "Listing retrieved successfully", "listing": listing_to_dict(listing)}


@router.get("/{key}")
def get_listing(key: str):
    listing = service.get_by_key(key)
    return {"message": "Listing retrieved successfully", "listing": listing_to_dict(listing)}


@router.put("/{listing_pk}")
def update_listing(
    listing_pk: str,
    payload: dict = Body(...),
    caller: Optional[Caller] = Depends(current_caller),
):
    listing = service.update(caller, listing_pk, payload)
    return {"message": "Listing updated successfully", "listing": listing_to_dict(listing)}


@router.delete("/{listing_pk}")
def delete_listing(listing_pk: str, caller: Optional[Caller] = Depends(current_caller)):
    listing = service.delete(caller, listing_pk)
    return {"message": "Listing deleted successfully", "deletedListing": listing_reference(listing)}
