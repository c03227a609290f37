from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class SegmentFilterRules(BaseModel):
    strategy: Literal["flat", "interval"] = "flat"
    flat_ratio: float = Field(default=0.8, ge=0.0, le=1.0)
    seek_window_seconds: int = Field(default=3, ge=0)

class StudyTimeRules(BaseModel):
    interaction_timeout_seconds: int = Field(default=300, gt=0)
    continuity_gap_seconds: int = Field(default=120, gt=0)
    default_daily_limit_seconds: int = Field(default=28800, gt=0)
    daily_limit_cache_ttl_seconds: int = Field(default=300, ge=0)
    segment_filter: SegmentFilterRules = Field(default_factory=SegmentFilterRules)

class QualityRules(BaseModel):
    review_threshold: float = Field(default=6.0, ge=0.0, le=10.0)
    focus_threshold: float = Field(default=0.7, ge=0.0, le=1.0)

class BatchRules(BaseModel):
    size: int = Field(default=50, gt=0)
    deadline_seconds: float | None = Field(default=None, gt=0)

class NotificationRules(BaseModel):
    enabled: bool = True
    channel: Literal["inbox", "log"] = "inbox"

class LockRules(BaseModel):
    lease_seconds: float = Field(default=60.0, gt=0)
    acquire_timeout_seconds: float = Field(default=30.0, gt=0)
    poll_interval_seconds: float = Field(default=0.05, gt=0)

class OpsRules(BaseModel):
    data_dir_env: str = "STUDY_TIME_DATA_DIR"
    default_data_dir: str = "./data"

class Rules(BaseModel):
    project: ProjectRules
    study_time: StudyTimeRules = Field(default_factory=StudyTimeRules)
    quality: QualityRules = Field(default_factory=QualityRules)
    batch: BatchRules = Field(default_factory=BatchRules)
    notifications: NotificationRules = Field(default_factory=NotificationRules)
    locks: LockRules = Field(default_factory=LockRules)
    ops: OpsRules = Field(default_factory=OpsRules)
