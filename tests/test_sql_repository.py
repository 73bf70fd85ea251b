"""
Repository tests against a temporary SQLite database.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from sqlalchemy import select

from classifieds.db.models import Listing, Sequence, new_id
from classifieds.db.session import get_session
from classifieds.repositories.sql_repository import SQLRepository


def _listing_data(title: str = "Mountain bike", **overrides) -> dict:
    data = {
        "title": title,
        "description": "Barely used",
        "price": 1500.0,
        "currency": "LKR",
        "category": "Hobbies",
        "images": [],
        "country": "Sri Lanka",
        "featured": False,
        "urgent": False,
        "badge": None,
    }
    data.update(overrides)
    return data


def _user(repo: SQLRepository, email: str = "alice@example.com"):
    return repo.create_user(email=email, password_hash="hash", first_name="Alice", last_name="Doe")


def _insert_raw_listing(owner_id: str, listing_id: str) -> None:
    now = datetime.now(timezone.utc)
    with get_session() as session:
        session.add(
            Listing(
                id=new_id(),
                listing_id=listing_id,
                slug=f"imported-{listing_id.lower()}",
                owner_id=owner_id,
                created_at=now,
                updated_at=now,
                **_listing_data("Imported"),
            )
        )
        session.commit()


def _create(repo: SQLRepository, owner_id: str, title: str = "Mountain bike"):
    return repo.create_listing(owner_id, _listing_data(title), prefix="LST", width=5, max_attempts=3)


def test_listing_ids_are_sequential_from_one(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    first = _create(repo, owner.id)
    second = _create(repo, owner.id, "Road bike")
    assert first.listing_id == "LST00001"
    assert second.listing_id == "LST00002"
    assert second.slug == "road-bike-lst00002"
    assert second.owner.email == "alice@example.com"
    assert repo.current_listing_sequence("LST") == 2


def test_listing_ids_are_not_reused_after_delete(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    _create(repo, owner.id)
    last = _create(repo, owner.id)
    repo.delete_listing(last.id)
    again = _create(repo, owner.id)
    assert again.listing_id == "LST00003"


def test_sequence_is_seeded_from_existing_listings(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    _insert_raw_listing(owner.id, "LST00551")
    _insert_raw_listing(owner.id, "LST00009")
    created = _create(repo, owner.id)
    assert created.listing_id == "LST00552"


def test_allocation_recovers_from_out_of_band_ids(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    _create(repo, owner.id)
    _insert_raw_listing(owner.id, "LST00002")
    created = _create(repo, owner.id)
    assert created.listing_id == "LST00003"
    assert repo.current_listing_sequence("LST") == 3


def test_width_grows_past_padding(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    _insert_raw_listing(owner.id, "LST99999")
    created = _create(repo, owner.id)
    assert created.listing_id == "LST100000"


def test_update_regenerates_slug_and_keeps_identity(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    listing = _create(repo, owner.id)
    updated = repo.update_listing(listing.id, {"title": "Carbon Road Bike", "price": 900.0})
    assert updated.listing_id == listing.listing_id
    assert updated.slug == "carbon-road-bike-lst00001"
    assert updated.price == 900.0
    assert repo.get_listing_by_slug("carbon-road-bike-lst00001").id == listing.id


def test_search_filters(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    repo.create_listing(owner.id, _listing_data("Toyota Corolla", category="Vehicles", price=5_000_000.0), prefix="LST", width=5)
    repo.create_listing(owner.id, _listing_data("Guitar 100% solid wood", price=40_000.0), prefix="LST", width=5)
    repo.create_listing(owner.id, _listing_data("Piano", price=250_000.0), prefix="LST", width=5)

    assert [l.title for l in repo.search_listings("toyota")] == ["Toyota Corolla"]
    assert [l.title for l in repo.search_listings("vehicles")] == ["Toyota Corolla"]
    assert [l.title for l in repo.search_listings("100%")] == ["Guitar 100% solid wood"]
    assert {l.title for l in repo.search_listings("", category="hobb")} == {"Guitar 100% solid wood", "Piano"}
    assert [l.title for l in repo.search_listings("", min_price=100_000, max_price=300_000)] == ["Piano"]


def test_views_increment(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    listing = _create(repo, owner.id)
    repo.increment_listing_views(listing.id)
    viewed = repo.increment_listing_views(listing.id)
    assert viewed.views == 2
    assert repo.increment_listing_views(new_id()) is None


def test_contacts_inbox(db_env):
    repo = SQLRepository()
    seller = _user(repo)
    buyer = _user(repo, "bob@example.com")
    listing = _create(repo, seller.id)
    repo.create_contact(sender_id=buyer.id, receiver_id=seller.id, listing_pk=listing.id, subject="Hi", message="Still available?")
    inbox = repo.list_contacts_for_receiver(seller.id)
    assert len(inbox) == 1
    assert inbox[0].sender.email == "bob@example.com"
    assert inbox[0].listing.listing_id == "LST00001"
    assert repo.list_contacts_for_receiver(buyer.id) == []


def test_sequence_row_is_named_per_prefix(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    _create(repo, owner.id)
    with get_session() as session:
        rows = session.execute(select(Sequence.name, Sequence.value)).all()
    assert [tuple(row) for row in rows] == [("listing:LST", 1)]


def test_concurrent_creates_get_unique_ids(db_env):
    repo = SQLRepository()
    owner = _user(repo)
    threads, per_thread = 8, 10

    def worker(n):
        return [_create(repo, owner.id, f"Bike {n}-{i}").listing_id for i in range(per_thread)]

    with ThreadPoolExecutor(max_workers=threads) as pool:
        batches = list(pool.map(worker, range(threads)))

    ids = [listing_id for batch in batches for listing_id in batch]
    assert len(ids) == threads * per_thread
    assert len(set(ids)) == threads * per_thread
    assert max(ids) == f"LST{threads * per_thread:05d}"
    assert repo.current_listing_sequence("LST") == threads * per_thread
