"""
Strict Base Models for Request/Response Validation

Base classes with strict validation settings for data crossing the
service boundary.

Usage:
    # For inputs (strictest validation)
    class ItemCreate(StrictRequest):
        name: str

    # For outputs (allows extra fields from DB rows)
    class ItemResponse(StrictResponse):
        id: int
        name: str

Architecture:
    Caller input → StrictRequest (extra="forbid") → Service
    DB Model → StrictResponse (extra="ignore") → Caller
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for inputs with strict validation.

    Features:
        - extra="forbid": Unknown fields raise a ValidationError
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
        - from_attributes=True: Allows ORM model conversion
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """
    Base model for outputs.

    Still enforces type validation but ignores extra fields.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )
