# store.py
import copy
import json
import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from errors import NotFoundError, ValidationError
from models import Booking, Customer, Room, RoomType

logger = logging.getLogger(__name__)

# collection name -> primary key field
COLLECTIONS = {
    "rooms": "room_id",
    "room_types": "room_type_id",
    "bookings": "booking_id",
    "customers": "customer_id",
    "booking_channels": "channel_id",
}


class JsonStore:
    """Records kept as plain JSON dicts, one list per collection.

    With ``path`` set, the whole document is loaded at start-up and written
    back after every mutation. Without it everything lives in memory.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._lock = threading.RLock()
        self._data: Dict[str, List[Dict[str, Any]]] = {name: [] for name in COLLECTIONS}
        if path and os.path.exists(path):
            with open(path, encoding="utf-8") as fh:
                self._load(json.load(fh))
            logger.info("Loaded data file %s", path)

    def _load(self, document: Dict[str, Any]):
        for name in COLLECTIONS:
            self._data[name] = list(document.get(name, []))

    def _flush(self):
        if not self.path:
            return
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)

    def _key(self, kind: str) -> str:
        try:
            return COLLECTIONS[kind]
        except KeyError:
            raise ValueError(f"Unknown collection {kind!r}") from None

    def _index(self, kind: str, record_id: int) -> int:
        key = self._key(kind)
        for i, rec in enumerate(self._data[kind]):
            if rec.get(key) == record_id:
                return i
        raise NotFoundError(f"{kind} {record_id} not found", {"kind": kind, "id": record_id})

    @contextmanager
    def transaction(self):
        """Hold the store lock across several calls, e.g. check then insert."""
        with self._lock:
            yield self

    def seed(self, document: Dict[str, Any]):
        with self._lock:
            self._load(copy.deepcopy(document))
            self._flush()

    def list(self, kind: str) -> List[Dict[str, Any]]:
        with self._lock:
            self._key(kind)
            return copy.deepcopy(self._data[kind])

    def get(self, kind: str, record_id: int) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._data[kind][self._index(kind, record_id)])

    def insert(self, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
        key = self._key(kind)
        with self._lock:
            rows = self._data[kind]
            record = dict(record)
            if record.get(key) is None:
                record[key] = max((r.get(key) or 0 for r in rows), default=0) + 1
            elif any(r.get(key) == record[key] for r in rows):
                raise ValidationError(f"{kind} {record[key]} already exists",
                                      {"kind": kind, "id": record[key]})
            rows.append(record)
            self._flush()
            return copy.deepcopy(record)

    def replace(self, kind: str, record_id: int, record: Dict[str, Any]) -> Dict[str, Any]:
        key = self._key(kind)
        with self._lock:
            idx = self._index(kind, record_id)
            record = dict(record)
            record[key] = record_id
            self._data[kind][idx] = record
            self._flush()
            return copy.deepcopy(record)

    def delete(self, kind: str, record_id: int):
        with self._lock:
            del self._data[kind][self._index(kind, record_id)]
            self._flush()

    # typed access for the booking workflow

    def rooms(self) -> List[Room]:
        return [Room.from_dict(r) for r in self.list("rooms")]

    def bookings(self) -> List[Booking]:
        return [Booking.from_dict(b) for b in self.list("bookings")]

    def room(self, room_id: int) -> Room:
        return Room.from_dict(self.get("rooms", room_id))

    def room_type(self, room_type_id: int) -> RoomType:
        return RoomType.from_dict(self.get("room_types", room_type_id))

    def booking(self, booking_id: int) -> Booking:
        return Booking.from_dict(self.get("bookings", booking_id))

    def customer(self, customer_id: int) -> Customer:
        return Customer.from_dict(self.get("customers", customer_id))
