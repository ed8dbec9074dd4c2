"""
MotoNomad AI Gateway - API Request/Response Schemas
Validated bodies for the HTTP surface; completion payloads reuse the wire models.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class TripSuggestionRequest(BaseModel):
    """Trip details the planner needs to build a prompt."""
    trip_name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    transport_type: str = Field(default="motocyklową", min_length=1, max_length=50)

    @model_validator(mode="after")
    def check_dates(self) -> "TripSuggestionRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripSuggestionResponse(BaseModel):
    """Parsed model reply."""
    suggested_description: str
    highlights: List[str]


class ValidateKeyRequest(BaseModel):
    api_key: str = ""


class ValidateKeyResponse(BaseModel):
    valid: bool


class ErrorResponse(BaseModel):
    """API error response."""
    error: str
    detail: Optional[str] = None
    retry_after_seconds: Optional[float] = None
