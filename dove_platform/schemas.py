"""
Pydantic schemas for the Dove Platform service boundary.

- CreateURLRequest: input of `URLManager.create_short_url`; carries the field
  rules (url required and well-formed; customAlias alphanumeric, 3-20 chars).
- URLResponse: view returned after creation, serialized with camelCase keys.
"""

import re
from datetime import datetime
from typing import Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

__all__ = ["CreateURLRequest", "URLResponse", "validation_details"]

CUSTOM_CODE_PATTERN = re.compile(r"[A-Za-z0-9]+")
CUSTOM_CODE_MIN = 3
CUSTOM_CODE_MAX = 20


class CreateURLRequest(BaseModel):
    """Request payload for creating a short URL."""

    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    custom_code: Optional[str] = Field(default=None, alias="customAlias")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> str:
        if not value:
            raise ValueError("url is required")
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("url must be a valid URL")
        return value

    @field_validator("custom_code")
    @classmethod
    def _check_custom_code(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            # Empty alias means "generate one"
            return None
        if not CUSTOM_CODE_PATTERN.fullmatch(value):
            raise ValueError("customAlias must contain only alphanumeric characters")
        if len(value) < CUSTOM_CODE_MIN:
            raise ValueError(f"customAlias must be at least {CUSTOM_CODE_MIN} characters long")
        if len(value) > CUSTOM_CODE_MAX:
            raise ValueError(f"customAlias must be at most {CUSTOM_CODE_MAX} characters long")
        return value


class URLResponse(BaseModel):
    """View of a freshly created short URL."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: int
    short_url: str
    short_code: str
    original_url: str
    clicks: int
    created_at: datetime
    updated_at: datetime


def validation_details(err: ValidationError) -> Dict[str, str]:
    """Flatten a pydantic ValidationError into {field: message}."""
    details: Dict[str, str] = {}
    for item in err.errors():
        field = str(item["loc"][0]) if item.get("loc") else "request"
        ctx_error = (item.get("ctx") or {}).get("error")
        message = str(ctx_error) if ctx_error is not None else f"{field} is invalid"
        details.setdefault(field, message)
    return details
