"""
Pydantic models used as the external data contracts of the record store.

Each class defines the structure of a payload handed to callers (or to an
HTTP layer sitting on top of the DAOs), ensuring validation and a stable JSON
shape.
"""

from pydantic import BaseModel, Field


class ErrorMessage(BaseModel):
    """
    Structured error payload returned instead of raising past the DAO boundary.
    """
    error_code: int = Field(..., description="Numeric code of the error kind.", examples=[7])
    error_description: str = Field(
        ...,
        description="Human readable description of what went wrong.",
        examples=["No data available on table app_user"],
    )
