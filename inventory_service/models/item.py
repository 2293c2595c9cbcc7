from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Item(BaseModel):
    """Persisted catalog record, one entry of the inventory document.

    Older documents used ``inventory_name`` and ``photoFilename``; both are
    accepted on load and rewritten under the current names on the next save.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., validation_alias=AliasChoices("name", "inventory_name"))
    description: str = ""
    photo_filename: str | None = Field(
        default=None,
        validation_alias=AliasChoices("photo_filename", "photoFilename"),
    )

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def photo_url(self) -> str | None:
        if not self.photo_filename:
            return None
        return f"/inventory/{self.id}/photo"
