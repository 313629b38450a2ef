"""Supported countries and currencies."""
from fastapi import APIRouter

from deployment_tracker_core.catalog import countries_by_region, currencies

router = APIRouter(prefix="/regions", tags=["regions"])


@router.get("")
def list_regions():
    """Countries grouped by region, plus every selectable currency."""
    return {
        "regions": [
            {
                "name": region,
                "countries": [c._asdict() for c in countries],
            }
            for region, countries in countries_by_region().items()
        ],
        "currencies": currencies(),
    }
