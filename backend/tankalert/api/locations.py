from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List

from tankalert.database import get_db
from tankalert.schemas import LocationResponse, LocationDetailResponse
from tankalert.services.registry import RegistryService

router = APIRouter()


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    include_disabled: bool = Query(False),
    db: Session = Depends(get_db)
):
    """List monitored sites."""
    return RegistryService(db).list_locations(include_disabled=include_disabled)


@router.get("/{location_id}", response_model=LocationDetailResponse)
async def get_location(location_id: int, db: Session = Depends(get_db)):
    """Get a site together with its tanks."""
    location = RegistryService(db).get_location(location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location
