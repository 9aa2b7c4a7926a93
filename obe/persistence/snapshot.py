"""
Immutable, call-scoped view of the record store.
"""

from typing import Dict, Mapping, Optional, Sequence, Tuple

from ..core.entities import AbstractEntity
from ..core.enums import Collection
from ..core.interfaces import RecordReader


class RecordSnapshot(RecordReader):
    """A frozen copy of every collection at one point in time.

    Collections are held as tuples of immutable records, so readers cannot
    alter the store through a snapshot and later writes to the store are not
    visible in it.
    """

    def __init__(self, collections: Mapping[Collection, Sequence[AbstractEntity]]):
        self._collections: Dict[Collection, Tuple[AbstractEntity, ...]] = {
            collection: tuple(collections.get(collection, ())) for collection in Collection
        }
        self._index: Dict[Collection, Dict[str, AbstractEntity]] = {}
        for collection, records in self._collections.items():
            index: Dict[str, AbstractEntity] = {}
            for record in records:
                # first record wins, as a linear scan would find it
                index.setdefault(record.id, record)
            self._index[collection] = index

    def list_all(self, collection: Collection) -> Tuple[AbstractEntity, ...]:
        return self._collections[collection]

    def find_by_id(self, collection: Collection, entity_id: str) -> Optional[AbstractEntity]:
        return self._index[collection].get(entity_id)

    def count(self, collection: Collection) -> int:
        return len(self._collections[collection])
