"""Shared test helpers for seeding listings and stock rows."""

import uuid
from datetime import datetime, timedelta

from auctionhouse.models import Bid, Category, Listing, User


def make_seller(db, **overrides):
    """Insert a seller and return it."""
    fields = {
        "name": "Card Shop",
        "email": f"seller-{uuid.uuid4().hex[:8]}@example.com",
        "image": "https://img.example.com/seller.png",
        "role": "SELLER",
    }
    fields.update(overrides)
    seller = User(**fields)
    db.add(seller)
    db.commit()
    return seller


def make_category(db, name="Pokemon"):
    category = Category(name=name)
    db.add(category)
    db.commit()
    return category


def make_listing(db, seller, category, **overrides):
    """Insert a listing and return it."""
    fields = {
        "title": "Charizard Holo 1st Edition",
        "category_id": category.id,
        "condition": "NEAR_MINT",
        "grade": "9",
        "grader": "PSA",
        "starting_price": 10,
        "current_price": 15,
        "end_time": datetime(2030, 1, 1),
        "status": "ACTIVE",
        "seller_id": seller.id,
        "images": ["https://img.example.com/front.jpg", "https://img.example.com/back.jpg"],
    }
    fields.update(overrides)
    listing = Listing(**fields)
    db.add(listing)
    db.commit()
    return listing


def add_bids(db, listing, bidder, count):
    for i in range(count):
        db.add(Bid(listing_id=listing.id, bidder_id=bidder.id, amount=listing.current_price + i))
    db.commit()


def stock_row(**overrides):
    """A spreadsheet row as the admin page's decoder produces it."""
    row = {
        "Title": "Booster Box",
        "Description": "Sealed",
        "Price": "129.99",
        "Stock Count": "12",
        "Category": "Sealed Product",
        "Condition": "NEW",
        "Low Stock Threshold": "3",
    }
    row.update(overrides)
    return row


def hours_from(base, hours):
    return base + timedelta(hours=hours)
