from fastapi import APIRouter
from models.schemas import TimetableRequest, TimetableResponse, RebalanceRequest, RebalanceResponse
from service.timetable_engine import TimetableEngine

# Create a router instance
router = APIRouter()


@router.post("/timetable/generate", response_model=TimetableResponse)
async def generate_timetable(request: TimetableRequest):
    """
    Generate weekly schedules for every class of a school.

    Classes with malformed time configuration are skipped and reported;
    subjects that cannot receive all their periods are reported while the
    rest of the schedule is still returned.
    """
    engine = TimetableEngine()
    response = engine.generate(request)
    return response


@router.post("/timetable/rebalance", response_model=RebalanceResponse)
async def rebalance_day(request: RebalanceRequest):
    """
    Recompute a single class-day after its start time, breaks or forbidden
    windows changed. Other days and other classes are left untouched.
    """
    engine = TimetableEngine()
    response = engine.rebalance(request)
    return response
