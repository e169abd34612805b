"""
Strict Base Models for Domain and API Validation

This module provides base classes with strict validation settings. The same
models form the boundary between stored rows and domain objects: rows from the
durable store are validated into these models, never read field by field.

Usage:
    # For request bodies (strictest validation)
    class SubjectCreate(StrictRequest):
        name: str
        color: str

    # For domain objects and response bodies (row columns may exceed fields)
    class Subject(StrictResponse):
        id: str
        name: str

Architecture:
    API Request → StrictRequest (extra="forbid") → Route Handler
    DB Row → StrictResponse (extra="ignore") → Service / API Response
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """
    Base model for API request bodies with strict validation.

    Rejects any fields not explicitly declared in the model, catching
    client typos and mismatches at request time rather than runtime.

    Features:
        - extra="forbid": Unknown fields raise 422 Unprocessable Entity
        - validate_default=True: Validates default values
        - str_strip_whitespace=True: Trims whitespace from strings
    """

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown fields
        validate_default=True,  # Validate defaults
        str_strip_whitespace=True,  # Clean string inputs
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """
    Base model for domain objects and API responses.

    More lenient than StrictRequest about extra attributes (an ORM record
    carries user_id and other columns) but still enforces types.

    Features:
        - extra="ignore": Silently ignores extra fields
        - validate_default=True: Validates default values
        - from_attributes=True: Allows ORM model conversion
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )


class SuccessResponse(StrictResponse):
    """
    Simple success response for operations without complex output.

    Example usage:
        @router.delete("/subjects/{id}", response_model=SuccessResponse)
        async def delete_subject(id: str):
            # ... delete logic
            return SuccessResponse(message="Subject deleted")
    """

    success: bool = True
    message: str
