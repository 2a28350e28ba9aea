"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel
from typing import Dict, List, Optional, Union


# ===== RECORD SCHEMAS =====

class RecordOut(BaseModel):
    """Normalized catalog record"""
    id: int
    name: str
    categories: List[str] = []
    numeric_attributes: Dict[str, Union[int, float]] = {}
    named_attribute_groups: Dict[str, List[str]] = {}
    images: Dict[str, Optional[str]] = {}


# ===== COLLECTION SCHEMAS =====

class ProgressOut(BaseModel):
    """Unique records gathered out of the requested total"""
    current: int
    total: int


class CollectionStateOut(BaseModel):
    """State a presentation layer binds to"""
    records: List[RecordOut]
    loading: bool
    error: Optional[str] = None
    progress: ProgressOut


class FetchMoreOut(BaseModel):
    """Result of appending more records"""
    added: int
    records: List[RecordOut]


# ===== CACHE SCHEMAS =====

class CacheStatsOut(BaseModel):
    """Advisory cache statistics"""
    memory_entries: int
    durable_entries: int
    approximate_hit_rate: float


class CacheCleanupOut(BaseModel):
    """Number of cache entries removed"""
    removed: int
