"""Request DTOs for API endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from telecleaner.entities import TimeRange


class SaveSessionRequest(BaseModel):
    """Request DTO for persisting a signed-in session.

    The handler will convert this to calls on the session store.
    """

    user_id: str = Field(..., description="Platform user identifier", min_length=1)
    session_string: str = Field(..., description="Opaque session string from sign-in", min_length=1)
    token: str | None = Field(None, description="Bearer token; omit to re-validate on first use")


class SelectionRequest(BaseModel):
    """Request DTO for projecting selected chats."""

    chat_ids: list[str] = Field(..., description="Selected chat ids", min_length=1)


class DeleteMessagesRequest(BaseModel):
    """Request DTO for bulk deletion."""

    chat_ids: list[str] = Field(..., description="Chats to clean", min_length=1)
    time_range: TimeRange = Field(TimeRange.ALL, description="Which messages to delete")
    start_date: datetime | None = Field(None, description="First day of a custom range")
    end_date: datetime | None = Field(None, description="Last day of a custom range")

    @model_validator(mode="after")
    def _check_custom_range(self) -> "DeleteMessagesRequest":
        if self.time_range is TimeRange.CUSTOM:
            if self.start_date is None or self.end_date is None:
                raise ValueError("custom time_range requires start_date and end_date")
            if self.start_date > self.end_date:
                raise ValueError("start_date must not be after end_date")
        return self
