from __future__ import annotations

"""
🧹 ReelBox • Orphan reconciliation
==================================

Queries the media coordinator uses to decide what must go before something
new is written:

- `find_live_asset` — the record currently filling one slot (update deletes
  it *before* uploading the replacement, so a slot never has two live assets)
- `list_live_assets` — everything a parent still owns
- `lineage` — a parent and its ancestors, root first (the locks a mutation takes)
- `collect_tree` / `purge_targets` — a parent plus its descendants and every
  live asset among them (remove purges these before any parent row goes)
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from reelbox.core.storage import tier_for
from reelbox.db.models import AssetRecord
from reelbox.repositories.asset_records import AssetRecordStoreProtocol
from reelbox.repositories.parents import ParentStoreProtocol
from reelbox.schemas.enums import FileType, StorageTier
from reelbox.services.media.descriptors import ParentRef


async def find_live_asset(
    records: AssetRecordStoreProtocol,
    parent: ParentRef,
    file_type: FileType,
) -> Optional[AssetRecord]:
    return await records.find_live(parent, file_type)


async def list_live_assets(records: AssetRecordStoreProtocol, parent: ParentRef) -> List[AssetRecord]:
    return await records.list_live(parent)


async def collect_tree(parents: ParentStoreProtocol, root: ParentRef) -> List[ParentRef]:
    """Root first, then descendants breadth-first."""
    tree = [root]
    frontier = [root]
    while frontier:
        next_level: List[ParentRef] = []
        for ref in frontier:
            next_level.extend(await parents.children(ref))
        tree.extend(next_level)
        frontier = next_level
    return tree


async def lineage(parents: ParentStoreProtocol, ref: ParentRef) -> List[ParentRef]:
    """`ref` and its ancestors, root first (series, season, episode)."""
    chain = [ref]
    owner = await parents.parent_of(ref)
    while owner is not None:
        chain.append(owner)
        owner = await parents.parent_of(owner)
    chain.reverse()
    return chain


async def purge_targets(
    records: AssetRecordStoreProtocol,
    tree: Iterable[ParentRef],
) -> List[Tuple[ParentRef, AssetRecord]]:
    targets: List[Tuple[ParentRef, AssetRecord]] = []
    for ref in tree:
        for record in await list_live_assets(records, ref):
            targets.append((ref, record))
    return targets


def partition_by_tier(
    targets: Iterable[Tuple[ParentRef, AssetRecord]],
) -> Dict[StorageTier, List[Tuple[ParentRef, AssetRecord]]]:
    """Split purge targets by the bucket each object lives in (video → private)."""
    tiers: Dict[StorageTier, List[Tuple[ParentRef, AssetRecord]]] = defaultdict(list)
    for node, record in targets:
        tiers[tier_for(record.file_type)].append((node, record))
    return dict(tiers)


__all__ = [
    "find_live_asset",
    "list_live_assets",
    "collect_tree",
    "lineage",
    "purge_targets",
    "partition_by_tier",
]
