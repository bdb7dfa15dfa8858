"""Pydantic models for inbound request bodies."""

from pydantic import BaseModel, ConfigDict, Field


class IdentifyPhotoRequest(BaseModel):
    """Body of a photo identification request."""

    image: str


class EstimateRequest(BaseModel):
    """Body of a text nutrition estimate request."""

    model_config = ConfigDict(populate_by_name=True)

    food_description: str = Field(alias="foodDescription")


class UsdaSearchRequest(BaseModel):
    """Body of a database search proxied to FoodData Central."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    data_types: list[str] | None = Field(default=None, alias="dataTypes")
    page_size: int | None = Field(default=None, alias="pageSize")
