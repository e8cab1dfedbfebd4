"""
Automation Data Models

Pydantic models for batch video generation.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.config import PipelineConfig


class BatchTask(BaseModel):
    """One video generation in a batch"""
    model_config = ConfigDict(frozen=True)

    id: str
    index: int = Field(ge=0)
    config: PipelineConfig

    @classmethod
    def create(cls, batch_id: str, index: int, base_config: PipelineConfig) -> "BatchTask":
        return cls(id=f"{batch_id}-{index}", index=index, config=base_config.model_copy(deep=True))


class TaskOutcome(BaseModel):
    """What a task runner reports once a task has finished"""
    task_id: str
    success: bool
    duration: float = 0.0  # seconds
    output: Optional[str] = None
    error: Optional[str] = None
    returncode: Optional[int] = None


class TaskResult(BaseModel):
    """Successful task record"""
    task_id: str
    duration: float
    output: Optional[str] = None


class TaskError(BaseModel):
    """Failed task record"""
    task_id: str
    error: str
    duration: float


class BatchStatus(BaseModel):
    """Snapshot of the controller bookkeeping"""
    queued: int = 0
    active: int = 0
    completed: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.queued + self.active + self.completed + self.errors


class BatchSummary(BaseModel):
    """Emitted once when every task has finished"""
    batch_id: str
    success_count: int = 0
    failure_count: int = 0
    total_duration: float = 0.0
    results: List[TaskResult] = Field(default_factory=list)
    errors: List[TaskError] = Field(default_factory=list)
