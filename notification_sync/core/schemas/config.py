from pydantic import BaseModel, Field

class PaginationSettings(BaseModel):
    page_size: int = Field(..., gt=0)

class AutoRefreshSettings(BaseModel):
    interval_ms: int = Field(..., gt=0)

class SyncSettings(BaseModel):
    pagination: PaginationSettings
    auto_refresh: AutoRefreshSettings
