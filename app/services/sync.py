"""
Reconciliation between the primary store and the relational mirror.
Reports divergence and rebuilds the mirror from the primary store.
"""

from dataclasses import dataclass, field
from typing import Dict, List
from app.documents import DocumentStore
from app.services.listing import LISTINGS_COLLECTION
from app.services.mirror import PropertyMirrorService, document_to_mirror
from app.models.property import MIRRORED_FIELDS
import logging

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Differences between the two stores."""

    only_in_primary: List[str] = field(default_factory=list)
    only_in_mirror: List[str] = field(default_factory=list)
    mismatched: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def in_sync(self) -> bool:
        return not (self.only_in_primary or self.only_in_mirror or self.mismatched)


@dataclass
class ResyncResult:
    upserted: int = 0
    pruned: int = 0


class MirrorReconciler:
    """
    Compares listing documents with mirror rows and repairs the mirror.
    """

    def __init__(self, store: DocumentStore, mirror: PropertyMirrorService):
        self.store = store
        self.mirror = mirror

    async def check(self) -> SyncReport:
        """
        Compare both stores.

        Returns:
            Ids present on one side only, and ids whose mirrored fields differ
            (with the differing wire field names)
        """
        documents = {doc.id: doc for doc in await self.store.query(LISTINGS_COLLECTION)}
        rows = {row.id: row for row in await self.mirror.property_repo.get_all()}

        report = SyncReport(
            only_in_primary=sorted(set(documents) - set(rows)),
            only_in_mirror=sorted(set(rows) - set(documents)),
        )

        for property_id in sorted(set(documents) & set(rows)):
            mirrored = rows[property_id].mirrored_values()
            data = documents[property_id].data
            differing = [wire for wire in MIRRORED_FIELDS.values() if mirrored.get(wire) != data.get(wire)]
            if differing:
                report.mismatched[property_id] = differing

        if report.in_sync:
            logger.info(f"Stores in sync: {len(documents)} properties")
        else:
            logger.warning(
                f"Stores diverge: {len(report.only_in_primary)} only in primary, "
                f"{len(report.only_in_mirror)} only in mirror, {len(report.mismatched)} mismatched"
            )
        return report

    async def resync(self, prune: bool = False) -> ResyncResult:
        """
        Write every listing document into the mirror.

        Args:
            prune: Also delete mirror rows that have no document

        Returns:
            Counts of rows written and rows removed
        """
        result = ResyncResult()
        documents = await self.store.query(LISTINGS_COLLECTION)

        for document in documents:
            await self.mirror.upsert_property(document_to_mirror(document))
            result.upserted += 1

        if prune:
            document_ids = {document.id for document in documents}
            for property_id in await self.mirror.property_repo.get_all_ids():
                if property_id not in document_ids:
                    await self.mirror.delete_property(property_id)
                    result.pruned += 1

        logger.info(f"Mirror resynced: {result.upserted} upserted, {result.pruned} pruned")
        return result
