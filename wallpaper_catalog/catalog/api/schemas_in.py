from pydantic import BaseModel, ConfigDict, Field


class ListWallpapersQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_direction: str | None = Field(default=None, alias="sortDirection")
    page: int = 0
    limit: int = 10
    owner: str | None = None


class SearchWallpapersQuery(ListWallpapersQuery):
    query: str = ""


class CreateTagBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
