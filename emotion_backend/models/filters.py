from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

@dataclass
class Filter:
    column: str
    type: str  # eq, ne, gt, gte, lt, lte, like, in
    value: Any

@dataclass
class OrderBy:
    column: str
    order: str  # asc, desc

@dataclass
class GetListFilter:
    page: int = 1
    limit: int = 10
    filters: Optional[List[Filter]] = None
    order_by: Optional[List[OrderBy]] = None

@dataclass
class EmotionHistoryFilter:
    """History query: every field optional, results always in insertion order"""
    camera_id: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    limit: Optional[int] = None
    offset: int = 0
