from __future__ import annotations
from typing import Dict, List, Optional
import threading
import uuid

from app.models.items import FoundItemCreate, FoundItemReport, LostItemCreate, LostItemReport, Profile
from app.scripts.logging_config import get_logger
from config import settings

logger = get_logger("report_store")


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


class ReportStore:
    """In-memory lost/found report collections. Reports are append-only and
    listed in insertion order; ids are never reused within the process."""

    def __init__(self):
        self._lost: Dict[str, LostItemReport] = {}
        self._found: Dict[str, FoundItemReport] = {}
        self._lock = threading.Lock()

    def add_lost(self, item: LostItemCreate, item_id: Optional[str] = None) -> LostItemReport:
        report = LostItemReport(id=item_id or _new_id("lost"), **item.model_dump())
        with self._lock:
            if report.id in self._lost:
                raise ValueError(f"duplicate lost item id: {report.id}")
            self._lost[report.id] = report
            count = len(self._lost)
        logger.info("lost report added id=%s name=%r total=%d", report.id, report.item_name, count)
        return report

    def add_found(self, item: FoundItemCreate, item_id: Optional[str] = None) -> FoundItemReport:
        report = FoundItemReport(id=item_id or _new_id("found"), **item.model_dump())
        with self._lock:
            if report.id in self._found:
                raise ValueError(f"duplicate found item id: {report.id}")
            self._found[report.id] = report
            count = len(self._found)
        logger.info("found report added id=%s name=%r total=%d", report.id, report.item_name, count)
        return report

    def list_lost(self) -> List[LostItemReport]:
        with self._lock:
            return list(self._lost.values())

    def list_found(self) -> List[FoundItemReport]:
        with self._lock:
            return list(self._found.values())

    def get_lost(self, item_id: str) -> Optional[LostItemReport]:
        with self._lock:
            return self._lost.get(item_id)

    def get_found(self, item_id: str) -> Optional[FoundItemReport]:
        with self._lock:
            return self._found.get(item_id)

    def seed_demo(self) -> None:
        """Placeholder reports for demonstration."""
        self.add_lost(LostItemCreate(
            profile=Profile(full_name="Jane Doe", section_year="BSCS 4-B", contact_number="09123456789"),
            item_name="Jansport Backpack",
            date_lost="2023-10-26",
            last_known_location="University Library",
            description="Black Jansport backpack with a NASA patch and a water bottle in the side pocket.",
            image="https://picsum.photos/seed/backpack/400/400",
        ), item_id="lost-1")
        self.add_lost(LostItemCreate(
            profile=Profile(full_name="John Smith", section_year="BSME 2-A", contact_number="09987654321"),
            item_name="Hydro-Flask Bottle",
            date_lost="2023-10-25",
            last_known_location="Gym",
            description="Blue Hydro-Flask water bottle with several stickers on it, slightly dented at the bottom.",
            image="https://picsum.photos/seed/bottle/400/400",
        ), item_id="lost-2")
        self.add_found(FoundItemCreate(
            item_name="Backpack",
            image="https://picsum.photos/seed/backpack/400/400",
            description="A black backpack was left on a chair. It has a distinctive NASA patch.",
            location_found="Library",
            date_found="2023-10-26",
            finder_name="Library Staff",
            finder_contact="N/A",
        ), item_id="found-1")
        self.add_found(FoundItemCreate(
            item_name="Keys",
            image="https://picsum.photos/seed/keys/400/400",
            description="Set of keys on a blue lanyard with a car key.",
            location_found="Canteen",
            date_found="2023-10-27",
            finder_name="Mark",
            finder_contact="09112233445",
        ), item_id="found-2")


_store: Optional[ReportStore] = None


def get_store() -> ReportStore:
    global _store
    if _store is None:
        _store = ReportStore()
        if settings.SEED_DEMO_DATA:
            _store.seed_demo()
    return _store
