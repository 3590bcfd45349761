import logging
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from google.cloud.firestore_v1.base_query import FieldFilter

log = logging.getLogger(__name__)

WriteMode = Literal["overwrite", "merge"]
# (field, operator, value), e.g. ("role", "==", "student")
RecordFilter = Tuple[str, str, Any]


class FirestoreDocumentRepository:
    """Generic collection/document access on top of a firebase_admin Firestore client.

    Records are plain dicts. Every record returned carries its document id under "id".
    """

    def __init__(self, client):
        self.client = client

    def _doc(self, collection: str, record_id: str):
        return self.client.collection(collection).document(record_id)

    @staticmethod
    def _to_record(snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    def get_record(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._doc(collection, record_id).get()
        if not snapshot.exists:
            return None
        return self._to_record(snapshot)

    def set_record(self, collection: str, record_id: str, fields: Dict[str, Any], mode: WriteMode = "overwrite"):
        if mode not in ("overwrite", "merge"):
            raise ValueError(f"Unknown write mode: {mode}")
        self._doc(collection, record_id).set(fields, merge=(mode == "merge"))

    def create_record(self, collection: str, fields: Dict[str, Any]) -> str:
        _, doc_ref = self.client.collection(collection).add(fields)
        log.info(f"Created {collection}/{doc_ref.id}")
        return doc_ref.id

    def list_records(self, collection: str, filters: Iterable[RecordFilter] = ()) -> List[Dict[str, Any]]:
        query = self.client.collection(collection)
        for field_path, op, value in filters:
            query = query.where(filter=FieldFilter(field_path, op, value))
        return [self._to_record(snapshot) for snapshot in query.stream()]

    def update_fields(self, collection: str, record_id: str, fields: Dict[str, Any]):
        self._doc(collection, record_id).update(fields)

    def delete_record(self, collection: str, record_id: str):
        self._doc(collection, record_id).delete()
        log.info(f"Deleted {collection}/{record_id}")
