from fastapi import APIRouter
from services.locations import get_states

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get('/states')
def states():
    """Indian states, passed through from the location hub."""
    return get_states()
