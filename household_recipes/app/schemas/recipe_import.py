from typing import Optional

from pydantic import BaseModel, Field


class ImportCreate(BaseModel):
    workspace_id: str = Field(min_length=1)
    url: str = Field(min_length=1)


class ImportCreated(BaseModel):
    import_id: str
    recipe_id: Optional[str] = None
    status: str


class ImportRunRequest(BaseModel):
    import_id: str = Field(min_length=1)


class ImportStatusOut(BaseModel):
    import_id: str
    status: str
    error: Optional[str] = None
    recipe_id: Optional[str] = None