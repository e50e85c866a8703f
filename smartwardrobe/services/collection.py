"""
Collection service: collection CRUD and smart collection synchronization
Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smartwardrobe.api.v1.schemas.collection import (
    CollectionCreate,
    CollectionRuleCreate,
    CollectionUpdate,
)
from smartwardrobe.core.database import utc_now
from smartwardrobe.core.exceptions import (
    InvalidRuleException,
    NotSmartCollectionException,
    ResourceNotFoundException,
    SmartCollectionMembershipException,
    WardrobeException,
)
from smartwardrobe.models.collection import Collection, CollectionGarment, CollectionRule
from smartwardrobe.models.garment import Garment
from smartwardrobe.services import rule_engine
from smartwardrobe.services.garment import GarmentService
from smartwardrobe.services.rule_engine import Rule, UnknownField

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Membership changes applied by one refresh"""

    collection_id: int
    added: list[int] = field(default_factory=list)
    removed: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


@dataclass
class CollectionRefreshOutcome:
    """Per-collection entry of a bulk refresh"""

    collection_id: int
    name: str
    success: bool
    added: int = 0
    removed: int = 0
    error: Optional[str] = None


@dataclass
class RefreshAllResult:
    outcomes: list[CollectionRefreshOutcome] = field(default_factory=list)

    @property
    def refreshed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


class CollectionService:
    """Service for managing collections and keeping smart collections in sync"""

    def __init__(self, garment_service: Optional[GarmentService] = None):
        self.garment_service = garment_service or GarmentService()

    # Loading

    def _with_members(self, query):
        """Eager-load everything a CollectionResponse reads"""
        return query.options(
            selectinload(Collection.rules),
            selectinload(Collection.memberships)
            .selectinload(CollectionGarment.garment)
            .selectinload(Garment.tags),
        ).execution_options(populate_existing=True)

    async def get_collection(
        self, db: AsyncSession, collection_id: int, user_id: str
    ) -> Optional[Collection]:
        """
        Get a collection by ID for a specific user, with rules and members loaded.

        Returns:
            Collection if found and owned by the user, None otherwise
        """
        result = await db.execute(
            self._with_members(
                select(Collection).where(
                    Collection.id == collection_id, Collection.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_collections(
        self, db: AsyncSession, user_id: str, smart_only: bool = False
    ) -> List[Collection]:
        """
        Get all collections of a user, newest first.

        Args:
            smart_only: Only return smart collections
        """
        query = select(Collection).where(Collection.user_id == user_id)
        if smart_only:
            query = query.where(Collection.is_smart_collection.is_(True))
        query = query.order_by(Collection.created_at.desc(), Collection.id.desc())
        result = await db.execute(self._with_members(query))
        return list(result.scalars().all())

    @staticmethod
    def _collection_query(collection_id: int, user_id: str, for_update: bool = False):
        query = select(Collection).where(
            Collection.id == collection_id, Collection.user_id == user_id
        )
        if for_update:
            # Serializes concurrent membership writes to the same collection (no-op on SQLite)
            # Reference: https://docs.sqlalchemy.org/en/20/orm/queryguide/query.html#sqlalchemy.orm.Query.with_for_update
            query = query.with_for_update()
        return query

    async def _require_collection(
        self, db: AsyncSession, collection_id: int, user_id: str, for_update: bool = False
    ) -> Collection:
        query = self._collection_query(collection_id, user_id, for_update=for_update)
        collection = (await db.execute(query)).scalar_one_or_none()
        if not collection:
            raise ResourceNotFoundException("Collection", collection_id)
        return collection

    # CRUD

    async def create_collection(
        self, db: AsyncSession, user_id: str, collection_data: CollectionCreate
    ) -> Collection:
        """
        Create an ordinary or smart collection.

        Ordinary collections are seeded with garment_ids; smart collections get
        their rules and an initial refresh.

        Raises:
            ResourceNotFoundException: If a seeded garment is not found for the user
        """
        collection = Collection(
            user_id=user_id,
            **collection_data.model_dump(
                exclude={"rules", "garment_ids"}, exclude_unset=False
            ),
        )
        db.add(collection)
        await db.flush()

        if collection.is_smart_collection:
            self._add_rules(db, collection.id, collection_data.rules)
            await db.flush()
            await self.refresh(db, collection.id, user_id)
        elif collection_data.garment_ids:
            await self._add_members(db, collection.id, collection_data.garment_ids, user_id)

        logger.info(
            f"Created {'smart ' if collection.is_smart_collection else ''}collection "
            f"'{collection.name}' for user: {user_id}"
        )
        return await self.get_collection(db, collection.id, user_id)

    async def update_collection(
        self,
        db: AsyncSession,
        collection_id: int,
        user_id: str,
        collection_data: CollectionUpdate,
    ) -> Collection:
        """
        Update collection metadata (partial update).

        Raises:
            ResourceNotFoundException: If the collection is not found for the user
        """
        collection = await self._require_collection(db, collection_id, user_id)

        update_data = collection_data.model_dump(exclude_unset=True)
        if update_data.get("name") is None:
            update_data.pop("name", None)
        for key, value in update_data.items():
            setattr(collection, key, value)

        await db.flush()
        logger.info(f"Updated collection {collection_id} for user: {user_id}")
        return await self.get_collection(db, collection_id, user_id)

    async def delete_collection(self, db: AsyncSession, collection_id: int, user_id: str) -> None:
        """
        Delete a collection with its rules and memberships; garments are untouched.

        Raises:
            ResourceNotFoundException: If the collection is not found for the user
        """
        collection = await self._require_collection(db, collection_id, user_id)
        await db.delete(collection)
        await db.flush()
        logger.info(f"Deleted collection {collection_id} for user: {user_id}")

    # Manual membership (ordinary collections only)

    async def _add_members(
        self, db: AsyncSession, collection_id: int, garment_ids: Sequence[int], user_id: str
    ) -> list[int]:
        owned = set(
            (
                await db.execute(
                    select(Garment.id).where(
                        Garment.id.in_(garment_ids), Garment.user_id == user_id
                    )
                )
            ).scalars().all()
        )
        missing = [garment_id for garment_id in garment_ids if garment_id not in owned]
        if missing:
            raise ResourceNotFoundException("Garment", ", ".join(str(m) for m in missing))

        current = await self._current_member_ids(db, collection_id)
        new_ids = [garment_id for garment_id in dict.fromkeys(garment_ids) if garment_id not in current]
        if new_ids:
            await db.execute(
                insert(CollectionGarment),
                [
                    {"collection_id": collection_id, "garment_id": garment_id, "added_at": utc_now()}
                    for garment_id in new_ids
                ],
            )
        return new_ids

    async def add_garments(
        self, db: AsyncSession, collection_id: int, garment_ids: Sequence[int], user_id: str
    ) -> Collection:
        """
        Add garments to an ordinary collection, skipping existing members.

        The collection row is locked first so overlapping adds of the same
        garment see each other's rows.

        Raises:
            ResourceNotFoundException: If the collection or a garment is not found for the user
            SmartCollectionMembershipException: If the collection is a smart collection
        """
        collection = await self._require_collection(db, collection_id, user_id, for_update=True)
        if collection.is_smart_collection:
            raise SmartCollectionMembershipException(collection_id)

        added = await self._add_members(db, collection_id, garment_ids, user_id)
        logger.info(
            f"Added {len(added)} garments to collection {collection_id} for user: {user_id}"
        )
        return await self.get_collection(db, collection_id, user_id)

    async def remove_garments(
        self, db: AsyncSession, collection_id: int, garment_ids: Sequence[int], user_id: str
    ) -> Collection:
        """
        Remove garments from an ordinary collection; IDs that are not members are ignored.

        Raises:
            ResourceNotFoundException: If the collection is not found for the user
            SmartCollectionMembershipException: If the collection is a smart collection
        """
        collection = await self._require_collection(db, collection_id, user_id, for_update=True)
        if collection.is_smart_collection:
            raise SmartCollectionMembershipException(collection_id)

        result = await db.execute(
            delete(CollectionGarment).where(
                CollectionGarment.collection_id == collection_id,
                CollectionGarment.garment_id.in_(garment_ids),
            )
        )
        logger.info(
            f"Removed {result.rowcount} garments from collection {collection_id} for user: {user_id}"
        )
        return await self.get_collection(db, collection_id, user_id)

    # Rules

    def _add_rules(
        self, db: AsyncSession, collection_id: int, rules: Sequence[CollectionRuleCreate]
    ) -> None:
        for rule in rules:
            db.add(
                CollectionRule(
                    collection_id=collection_id,
                    field=rule.field.value,
                    operator=rule.operator.value,
                    value=rule.value,
                )
            )

    async def replace_rules(
        self,
        db: AsyncSession,
        collection_id: int,
        rules: Sequence[CollectionRuleCreate],
        user_id: str,
    ) -> Collection:
        """
        Replace the rules of a smart collection and refresh its membership.

        Raises:
            ResourceNotFoundException: If the collection is not found for the user
            NotSmartCollectionException: If the collection is not a smart collection
        """
        collection = await self._require_collection(db, collection_id, user_id, for_update=True)
        if not collection.is_smart_collection:
            raise NotSmartCollectionException(collection_id)

        await db.execute(
            delete(CollectionRule).where(CollectionRule.collection_id == collection_id)
        )
        self._add_rules(db, collection_id, rules)
        await db.flush()

        logger.info(
            f"Replaced rules of collection {collection_id} ({len(rules)} rules) for user: {user_id}"
        )
        await self.refresh(db, collection_id, user_id)
        return await self.get_collection(db, collection_id, user_id)

    async def _load_rules(self, db: AsyncSession, collection_id: int) -> list[Rule]:
        """
        Load a collection's stored rules as typed rules, in creation order.

        Raises:
            InvalidRuleException: If a stored rule references an unknown field or operator
        """
        records = (
            await db.execute(
                select(CollectionRule)
                .where(CollectionRule.collection_id == collection_id)
                .order_by(CollectionRule.id)
            )
        ).scalars().all()

        rules = [Rule.from_record(record) for record in records]
        unknown = [rule.field.name for rule in rules if isinstance(rule.field, UnknownField)]
        if unknown:
            raise InvalidRuleException(
                f"Collection {collection_id} has rules on unknown fields: {', '.join(unknown)}"
            )
        return rules

    # Synchronization

    async def _current_member_ids(self, db: AsyncSession, collection_id: int) -> set[int]:
        result = await db.execute(
            select(CollectionGarment.garment_id).where(
                CollectionGarment.collection_id == collection_id
            )
        )
        return set(result.scalars().all())

    async def refresh(self, db: AsyncSession, collection_id: int, user_id: str) -> RefreshResult:
        """
        Recompute a smart collection's membership from its rules.

        Only the owner's garments are candidates. Membership is brought to
        exactly the matching set with one bulk insert and one bulk delete;
        nothing is written when it is already up to date. The collection row
        is locked first so overlapping refreshes of one collection run one
        after the other.

        Raises:
            ResourceNotFoundException: If the collection is not found for the user
            NotSmartCollectionException: If the collection is not a smart collection
            InvalidRuleException: If a stored rule cannot be evaluated
        """
        collection = await self._require_collection(db, collection_id, user_id, for_update=True)
        if not collection.is_smart_collection:
            raise NotSmartCollectionException(collection_id)

        rules = await self._load_rules(db, collection_id)
        garments = await self.garment_service.get_all_for_user(db, user_id)
        target = rule_engine.matching_ids(garments, rules)
        current = await self._current_member_ids(db, collection_id)

        result = RefreshResult(
            collection_id=collection_id,
            added=sorted(target - current),
            removed=sorted(current - target),
        )

        if result.removed:
            await db.execute(
                delete(CollectionGarment).where(
                    CollectionGarment.collection_id == collection_id,
                    CollectionGarment.garment_id.in_(result.removed),
                )
            )
        if result.added:
            added_at = utc_now()
            await db.execute(
                insert(CollectionGarment),
                [
                    {"collection_id": collection_id, "garment_id": garment_id, "added_at": added_at}
                    for garment_id in result.added
                ],
            )

        if result.changed:
            logger.info(
                f"Refreshed smart collection {collection_id} for user: {user_id} "
                f"(+{len(result.added)}/-{len(result.removed)})"
            )
        else:
            logger.debug(f"Smart collection {collection_id} already up to date")
        return result

    async def refresh_all(self, db: AsyncSession, user_id: str) -> RefreshAllResult:
        """
        Refresh every smart collection of a user.

        Each collection is refreshed inside its own SAVEPOINT. A failing
        collection is rolled back to its previous membership and reported in
        the result; the remaining collections are still refreshed.
        """
        smart_collections = (
            await db.execute(
                select(Collection.id, Collection.name)
                .where(
                    Collection.user_id == user_id,
                    Collection.is_smart_collection.is_(True),
                )
                .order_by(Collection.id)
            )
        ).all()

        outcome = RefreshAllResult()
        for collection_id, name in smart_collections:
            try:
                # Reference: https://docs.sqlalchemy.org/en/20/orm/session_transaction.html#using-savepoint
                async with db.begin_nested():
                    result = await self.refresh(db, collection_id, user_id)
            except WardrobeException as e:
                logger.warning(
                    f"Failed to refresh smart collection {collection_id} for user {user_id}: {e.message}"
                )
                outcome.outcomes.append(
                    CollectionRefreshOutcome(collection_id, name, success=False, error=e.message)
                )
            except Exception as e:
                logger.error(
                    f"Unexpected error refreshing smart collection {collection_id} for user {user_id}: "
                    f"{type(e).__name__}: {e}",
                    exc_info=True,
                )
                outcome.outcomes.append(
                    CollectionRefreshOutcome(
                        collection_id,
                        name,
                        success=False,
                        error="An unexpected error occurred while refreshing the collection",
                    )
                )
            else:
                outcome.outcomes.append(
                    CollectionRefreshOutcome(
                        collection_id,
                        name,
                        success=True,
                        added=len(result.added),
                        removed=len(result.removed),
                    )
                )

        logger.info(
            f"Refreshed {outcome.refreshed_count} of {len(smart_collections)} smart collections "
            f"for user: {user_id}"
        )
        return outcome
