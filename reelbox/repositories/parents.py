from __future__ import annotations

"""Parent entity repository.

Reads and writes the media columns (`poster_url`, `trailer_url`, `video_key`)
of the four catalog parents, walks the series → season → episode hierarchy,
and deletes whole parent trees.

Tree deletes are explicit bulk statements issued bottom-up (asset records,
then episodes, seasons, and finally series/movies) in a single transaction,
so the result never depends on the database honouring `ON DELETE CASCADE`.
"""

from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reelbox.core.exceptions import ParentNotFoundException
from reelbox.db.models import AssetRecord
from reelbox.schemas.enums import ParentKind
from reelbox.services.media.descriptors import ParentRef, descriptor_for, owner_descriptor

# Deepest kinds first
_DELETE_ORDER = (
    ParentKind.SEASON_EPISODE,
    ParentKind.SERIES_SEASON,
    ParentKind.SERIES_MOVIE,
    ParentKind.SINGLE_MOVIE,
)


# Protocol-like documentation for the expected interface.


class ParentStoreProtocol:
    async def get(self, ref: ParentRef) -> Optional[Any]:
        raise NotImplementedError

    async def update_columns(self, ref: ParentRef, values: Mapping[str, Optional[str]]) -> Any:
        raise NotImplementedError

    async def children(self, ref: ParentRef) -> List[ParentRef]:
        raise NotImplementedError

    async def parent_of(self, ref: ParentRef) -> Optional[ParentRef]:
        raise NotImplementedError

    async def delete_tree(self, refs: Sequence[ParentRef]) -> int:
        raise NotImplementedError


class SqlParentStore(ParentStoreProtocol):
    """SQLAlchemy-backed parent access."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, ref: ParentRef) -> Optional[Any]:
        model = descriptor_for(ref.kind).model
        async with self._session_factory() as db:
            return await db.get(model, ref.id)

    async def update_columns(self, ref: ParentRef, values: Mapping[str, Optional[str]]) -> Any:
        """Write the given media columns in one UPDATE and return the fresh row."""
        desc = descriptor_for(ref.kind)
        unknown = set(values) - set(desc.columns.values())
        if unknown:
            raise ValueError(f"{ref.kind.label} has no media column(s): {', '.join(sorted(unknown))}")

        model = desc.model
        async with self._session_factory() as db:
            if values:
                result = await db.execute(
                    update(model).where(model.id == ref.id).values(**dict(values))
                )
                await db.commit()
                if not result.rowcount:
                    raise ParentNotFoundException(kind=ref.kind.label, parent_id=ref.id)
            row = await db.get(model, ref.id, populate_existing=True)
        if row is None:
            raise ParentNotFoundException(kind=ref.kind.label, parent_id=ref.id)
        return row

    async def children(self, ref: ParentRef) -> List[ParentRef]:
        desc = descriptor_for(ref.kind)
        if desc.child_kind is None:
            return []
        child_model = descriptor_for(desc.child_kind).model
        fk = getattr(child_model, desc.child_fk)
        async with self._session_factory() as db:
            ids = (await db.execute(select(child_model.id).where(fk == ref.id).order_by(child_model.id))).scalars().all()
        return [ParentRef(desc.child_kind, child_id) for child_id in ids]

    async def parent_of(self, ref: ParentRef) -> Optional[ParentRef]:
        """The season or series owning `ref`; None for top-level kinds or a missing row."""
        owner = owner_descriptor(ref.kind)
        if owner is None:
            return None
        model = descriptor_for(ref.kind).model
        fk = getattr(model, owner.child_fk)
        async with self._session_factory() as db:
            owner_id = (await db.execute(select(fk).where(model.id == ref.id))).scalar_one_or_none()
        return None if owner_id is None else ParentRef(owner.kind, owner_id)

    async def delete_tree(self, refs: Sequence[ParentRef]) -> int:
        """
        Delete every parent in `refs` and any asset records still pointing at
        them. `refs[0]` is the root; ParentNotFoundException if it was already
        gone. Returns the number of parent rows removed.
        """
        if not refs:
            return 0
        root = refs[0]
        by_kind: Dict[ParentKind, List[int]] = defaultdict(list)
        for ref in refs:
            by_kind[ref.kind].append(ref.id)

        removed = 0
        root_removed = False
        async with self._session_factory() as db:
            for kind in _DELETE_ORDER:
                ids = by_kind.get(kind)
                if not ids:
                    continue
                desc = descriptor_for(kind)
                owner = getattr(AssetRecord, desc.owner_column)
                await db.execute(delete(AssetRecord).where(owner.in_(ids)))
                result = await db.execute(delete(desc.model).where(desc.model.id.in_(ids)))
                removed += result.rowcount or 0
                if kind is root.kind and result.rowcount:
                    root_removed = True
            if not root_removed:
                await db.rollback()
                raise ParentNotFoundException(kind=root.kind.label, parent_id=root.id)
            await db.commit()
        return removed
