from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class HarvestedItem(BaseModel):
    title: str
    link: str
    source: str

    published_at: Optional[datetime] = None
    content: Optional[str] = None
    cluster_key: Optional[str] = None


class StoredNewsRow(BaseModel):
    id: int
    link: str
    title: str
    source_id: str

    publish_date: Optional[datetime] = None
    content: Optional[str] = None
    created_at: datetime
    status: int = 0                    # 0 = unprocessed | 1 = processed/published
    cluster_key: str
