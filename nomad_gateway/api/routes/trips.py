"""AI trip suggestion endpoint."""

from fastapi import APIRouter

from nomad_gateway.api.schemas import TripSuggestionRequest, TripSuggestionResponse
from nomad_gateway.services.trip_planner import TripPlannerService

router = APIRouter(prefix="/api/v1/trips", tags=["Trips"])


def get_trip_planner() -> TripPlannerService:
    return TripPlannerService()


@router.post("/suggestions", response_model=TripSuggestionResponse)
async def trip_suggestions(request: TripSuggestionRequest):
    """Generate a route description and highlights for a planned trip."""
    planner = get_trip_planner()
    suggestion = await planner.generate_trip_suggestion(
        trip_name=request.trip_name,
        start_date=request.start_date,
        end_date=request.end_date,
        transport_type=request.transport_type,
    )
    return TripSuggestionResponse(
        suggested_description=suggestion.suggested_description,
        highlights=suggestion.highlights,
    )
