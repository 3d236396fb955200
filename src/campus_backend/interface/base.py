from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class ListQuery(BaseModel):
    skip: Optional[int] = Field(0, ge=0)
    limit: Optional[int] = Field(100, ge=1, le=1000)

class BaseEntityList(BaseModel):
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

class BaseEntityGet(BaseEntityList):
    id: str

def apply_list_query(query, params: Optional[ListQuery]):
    if params is None:
        return query
    if params.skip:
        query = query.offset(params.skip)
    if params.limit:
        query = query.limit(params.limit)
    return query
