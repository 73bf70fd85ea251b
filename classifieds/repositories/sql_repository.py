"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from classifieds.db.models import Contact, Listing, Sequence, User, new_id
from classifieds.db.session import get_session
from classifieds.domain.listing_ids import format_listing_id, highest_number
from classifieds.domain.listings import listing_slug

logger = structlog.get_logger(__name__)


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.email == (email or "").strip().lower())
            return session.execute(stmt).scalar_one_or_none()

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        name: str | None = None,
        phone_number: str | None = None,
        role: str = "customer",
    ) -> User:
        now = datetime.now(timezone.utc)
        entity = User(
            id=new_id(),
            email=email.strip().lower(),
            name=name or f"{first_name} {last_name}".strip(),
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
            role=role,
            is_blocked=False,
            phone_number=phone_number,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def list_users(self) -> list[User]:
        with get_session() as session:
            stmt = select(User).order_by(User.created_at.desc())
            return list(session.execute(stmt).scalars().all())

    def set_user_role(self, user_id: str, role: str) -> None:
        with get_session() as session:
            stmt = update(User).where(User.id == user_id).values(role=role, updated_at=datetime.now(timezone.utc))
            session.execute(stmt)
            session.commit()

    def set_user_blocked(self, user_id: str, blocked: bool) -> None:
        with get_session() as session:
            stmt = update(User).where(User.id == user_id).values(is_blocked=blocked, updated_at=datetime.now(timezone.utc))
            session.execute(stmt)
            session.commit()

    def update_user_password(self, user_id: str, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    # -------------------------- sequences --------------------------
    def _highest_listing_number(self, session: Session, prefix: str) -> int:
        stmt = select(Listing.listing_id).where(Listing.listing_id.like(f"{prefix}%"))
        return highest_number(session.execute(stmt).scalars(), prefix=prefix)

    def _next_listing_number(self, session: Session, prefix: str) -> int:
        """Increment the listing counter inside the caller's transaction."""
        name = f"listing:{prefix}"
        result = session.execute(
            update(Sequence).where(Sequence.name == name).values(value=Sequence.value + 1)
        )
        if result.rowcount:
            stmt = select(Sequence.value).where(Sequence.name == name)
            return int(session.execute(stmt).scalar_one())
        # First allocation for this prefix: continue after whatever is already stored.
        number = self._highest_listing_number(session, prefix) + 1
        session.add(Sequence(name=name, value=number))
        session.flush()
        return number

    def _resync_listing_sequence(self, prefix: str) -> None:
        name = f"listing:{prefix}"
        with get_session() as session:
            highest = self._highest_listing_number(session, prefix)
            session.execute(
                update(Sequence)
                .where(Sequence.name == name, Sequence.value < highest)
                .values(value=highest)
            )
            session.commit()

    def current_listing_sequence(self, prefix: str) -> int:
        with get_session() as session:
            value = session.get(Sequence, f"listing:{prefix}")
            return int(value.value) if value else 0

    # -------------------------- listings --------------------------
    def _listing_query(self):
        return select(Listing).options(joinedload(Listing.owner))

    def get_listing(self, pk: str) -> Optional[Listing]:
        with get_session() as session:
            stmt = self._listing_query().where(Listing.id == pk)
            return session.execute(stmt).scalar_one_or_none()

    def get_listing_by_listing_id(self, listing_id: str) -> Optional[Listing]:
        with get_session() as session:
            stmt = self._listing_query().where(Listing.listing_id == (listing_id or "").strip().upper())
            return session.execute(stmt).scalar_one_or_none()

    def get_listing_by_slug(self, slug: str) -> Optional[Listing]:
        with get_session() as session:
            stmt = self._listing_query().where(Listing.slug == (slug or "").strip().lower())
            return session.execute(stmt).scalar_one_or_none()

    def list_listings(self, *, featured: bool | None = None, owner_id: str | None = None) -> list[Listing]:
        stmt = self._listing_query()
        if featured is not None:
            stmt = stmt.where(Listing.featured == featured)
        if owner_id is not None:
            stmt = stmt.where(Listing.owner_id == owner_id)
        stmt = stmt.order_by(Listing.created_at.desc(), Listing.id.desc())
        with get_session() as session:
            return list(session.execute(stmt).scalars().all())

    def search_listings(
        self,
        query: str = "",
        *,
        category: str | None = None,
        min_price: float | None = None,
        max_price: float | None = None,
    ) -> list[Listing]:
        stmt = self._listing_query()
        text = (query or "").strip()
        if text:
            pattern = _like_pattern(text)
            stmt = stmt.where(
                or_(
                    Listing.title.ilike(pattern, escape="\\"),
                    Listing.description.ilike(pattern, escape="\\"),
                    Listing.category.ilike(pattern, escape="\\"),
                )
            )
        if category and category.strip():
            stmt = stmt.where(Listing.category.ilike(_like_pattern(category.strip()), escape="\\"))
        if min_price is not None:
            stmt = stmt.where(Listing.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Listing.price <= max_price)
        stmt = stmt.order_by(Listing.created_at.desc(), Listing.id.desc())
        with get_session() as session:
            return list(session.execute(stmt).scalars().all())

    def create_listing(
        self,
        owner_id: str,
        data: dict,
        *,
        prefix: str,
        width: int,
        max_attempts: int = 3,
    ) -> Listing:
        """Allocate the next listing id and insert the row in one transaction."""
        attempt = 0
        while True:
            attempt += 1
            now = datetime.now(timezone.utc)
            with get_session() as session:
                try:
                    number = self._next_listing_number(session, prefix)
                    listing_id = format_listing_id(number, prefix=prefix, width=width)
                    entity = Listing(
                        id=new_id(),
                        listing_id=listing_id,
                        slug=listing_slug(data["title"], listing_id),
                        owner_id=owner_id,
                        views=0,
                        created_at=now,
                        updated_at=now,
                        **data,
                    )
                    session.add(entity)
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    logger.warning("listing.id_conflict", attempt=attempt, prefix=prefix)
                    if attempt >= max_attempts:
                        raise
                else:
                    stmt = (
                        self._listing_query()
                        .where(Listing.id == entity.id)
                        .execution_options(populate_existing=True)
                    )
                    return session.execute(stmt).scalar_one()
            self._resync_listing_sequence(prefix)

    def update_listing(self, pk: str, updates: dict) -> Optional[Listing]:
        with get_session() as session:
            entity = session.get(Listing, pk)
            if not entity:
                return None
            for field, value in updates.items():
                setattr(entity, field, value)
            if "title" in updates:
                entity.slug = listing_slug(entity.title, entity.listing_id)
            entity.updated_at = datetime.now(timezone.utc)
            session.commit()
            stmt = self._listing_query().where(Listing.id == pk).execution_options(populate_existing=True)
            return session.execute(stmt).scalar_one()

    def delete_listing(self, pk: str) -> None:
        with get_session() as session:
            session.execute(update(Contact).where(Contact.listing_pk == pk).values(listing_pk=None))
            session.execute(delete(Listing).where(Listing.id == pk))
            session.commit()

    def increment_listing_views(self, pk: str) -> Optional[Listing]:
        with get_session() as session:
            result = session.execute(update(Listing).where(Listing.id == pk).values(views=Listing.views + 1))
            session.commit()
            if not result.rowcount:
                return None
            stmt = self._listing_query().where(Listing.id == pk)
            return session.execute(stmt).scalar_one_or_none()

    # -------------------------- contacts --------------------------
    def create_contact(
        self,
        *,
        sender_id: str,
        receiver_id: str,
        listing_pk: str | None,
        subject: str | None,
        message: str,
    ) -> Contact:
        entity = Contact(
            id=new_id(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            listing_pk=listing_pk,
            subject=subject,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            stmt = (
                select(Contact)
                .options(joinedload(Contact.sender), joinedload(Contact.listing))
                .where(Contact.id == entity.id)
                .execution_options(populate_existing=True)
            )
            return session.execute(stmt).scalar_one()

    def list_contacts_for_receiver(self, receiver_id: str) -> list[Contact]:
        stmt = (
            select(Contact)
            .options(joinedload(Contact.sender), joinedload(Contact.listing))
            .where(Contact.receiver_id == receiver_id)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
        )
        with get_session() as session:
            return list(session.execute(stmt).scalars().all())
