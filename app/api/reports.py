from fastapi import APIRouter, Depends
from typing import List

from app.models.items import FoundItemCreate, FoundItemReport, LostItemCreate, LostItemReport
from app.services.report_store import ReportStore, get_store

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/lost", response_model=List[LostItemReport])
def list_lost(store: ReportStore = Depends(get_store)):
    return store.list_lost()


@router.post("/lost", response_model=LostItemReport, status_code=201)
def create_lost(item: LostItemCreate, store: ReportStore = Depends(get_store)):
    return store.add_lost(item)


@router.get("/found", response_model=List[FoundItemReport])
def list_found(store: ReportStore = Depends(get_store)):
    return store.list_found()


@router.post("/found", response_model=FoundItemReport, status_code=201)
def create_found(item: FoundItemCreate, store: ReportStore = Depends(get_store)):
    return store.add_found(item)
