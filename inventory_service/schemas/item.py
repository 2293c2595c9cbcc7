from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from inventory_service.models.item import Item


class ItemOut(BaseModel):
    """Public representation of an item."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str = ""
    photo_url: str | None = Field(default=None, serialization_alias="photoUrl")

    @classmethod
    def from_item(cls, item: Item) -> ItemOut:
        return cls(id=item.id, name=item.name, description=item.description, photo_url=item.photo_url)


class ItemUpdate(BaseModel):
    # Unset fields stay untouched; see CatalogService.update
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "inventory_name"))
    description: str | None = None


class DeleteResult(BaseModel):
    message: str = "Deleted"
    id: str


class SearchRequest(BaseModel):
    id: str
    has_photo: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: object) -> object:
        # Search forms post numeric-looking ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
