"""
Batch automation: concurrency-capped generation of many videos
"""

from .automation_models import (
    BatchStatus, BatchSummary, BatchTask, TaskError, TaskOutcome, TaskResult
)
from .batch_controller import BatchController
from .task_runner import (
    InProcessTaskRunner, SubprocessTaskRunner, TaskRunner, create_command_args
)

__all__ = [
    'BatchStatus',
    'BatchSummary',
    'BatchTask',
    'TaskError',
    'TaskOutcome',
    'TaskResult',
    'BatchController',
    'InProcessTaskRunner',
    'SubprocessTaskRunner',
    'TaskRunner',
    'create_command_args',
]
