# =============================================================================
# core/models/base.py - Shared Model Configuration
# =============================================================================
# Request bodies arrive from a JavaScript front end in camelCase
# ({"userId": ...}) while older callers and scripts send snake_case.
# RequestModel accepts both spellings.
# =============================================================================

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    """Base for API request bodies: camelCase aliases, snake_case also accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RecordModel(BaseModel):
    """
    Base for rows mirrored from Supabase tables.

    Unknown columns are kept so that joined/embedded data survives a round trip.
    """

    model_config = ConfigDict(extra="allow", from_attributes=True)
