"""
MotoNomad AI Gateway - AI Trip Planner
Asks the model for a route description and highlights for a planned trip
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from nomad_gateway.core.exceptions import GatewayError
from nomad_gateway.core.utils.config import get_settings
from nomad_gateway.core.utils.logging import get_logger_with_context
from nomad_gateway.infrastructure.llm.openrouter_client import OpenRouterClient, get_openrouter_client
from nomad_gateway.infrastructure.llm.schemas import CompletionRequest, Message

logger = get_logger_with_context(module="trip_planner")

SYSTEM_PROMPT = "You are a travel assistant. Respond in Polish."

USER_PROMPT_TEMPLATE = """Planuję wycieczkę {transport_type} '{trip_name}' od {start} do {end} ({duration} dni).
Zasugeruj:
1) Krótki opis trasy (3-5 zdań)
2) Top 3-5 miejsc do zobaczenia

Odpowiedz w następującym formacie:
OPIS:
[opis trasy]

ATRAKCJE:
- [atrakcja 1]
- [atrakcja 2]
- [atrakcja 3]
- [atrakcja 4]
- [atrakcja 5]"""

DESCRIPTION_HEADER = "OPIS:"
HIGHLIGHTS_HEADER = "ATRAKCJE:"
MAX_HIGHLIGHTS = 5


@dataclass
class TripSuggestion:
    suggested_description: str = ""
    highlights: List[str] = field(default_factory=list)


def build_prompt(trip_name: str, start_date: date, end_date: date, transport_type: str) -> List[Message]:
    duration = (end_date - start_date).days + 1
    user_prompt = USER_PROMPT_TEMPLATE.format(
        transport_type=transport_type,
        trip_name=trip_name,
        start=start_date.strftime("%d.%m.%Y"),
        end=end_date.strftime("%d.%m.%Y"),
        duration=duration,
    )
    return [Message.system(SYSTEM_PROMPT), Message.user(user_prompt)]


def parse_suggestion(text: str) -> TripSuggestion:
    """Pull the OPIS/ATRAKCJE sections out of a free-text reply."""
    suggestion = TripSuggestion()
    if not text or not text.strip():
        return suggestion

    lines = [line.strip() for line in text.split("\n")]
    section = None
    description: List[str] = []

    for line in lines:
        if not line:
            continue
        upper = line.upper()
        if upper.startswith(DESCRIPTION_HEADER):
            section = "description"
            continue
        if upper.startswith(HIGHLIGHTS_HEADER):
            section = "highlights"
            continue

        if section == "description":
            description.append(line)
        elif section == "highlights" and line.startswith("-"):
            highlight = line.lstrip("-").strip()
            if highlight:
                suggestion.highlights.append(highlight)

    suggestion.suggested_description = " ".join(description)
    suggestion.highlights = suggestion.highlights[:MAX_HIGHLIGHTS]
    return suggestion


class TripPlannerService:
    """Generates trip suggestions through the OpenRouter gateway."""

    def __init__(self, client: Optional[OpenRouterClient] = None, model: Optional[str] = None):
        self.client = client or get_openrouter_client()
        self.model = model or get_settings().trip_planner_model

    async def generate_trip_suggestion(
        self,
        trip_name: str,
        start_date: date,
        end_date: date,
        transport_type: str,
    ) -> TripSuggestion:
        duration = (end_date - start_date).days + 1
        logger.info(f"Generating trip suggestions for trip: {trip_name}, Duration: {duration} days")

        request = CompletionRequest(
            model=self.model,
            messages=build_prompt(trip_name, start_date, end_date, transport_type),
            temperature=0.7,
            max_tokens=500,
        )

        try:
            response = await self.client.send_completion(request)
        except GatewayError as e:
            logger.error(f"Failed to generate trip suggestions for: {trip_name}: {e}")
            raise

        suggestion = parse_suggestion(response.get_content())
        logger.info(f"Successfully generated trip suggestions for: {trip_name}")
        return suggestion
