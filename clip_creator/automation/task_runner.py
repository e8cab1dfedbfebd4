"""
Task runners

A runner starts one batch task (`submit`) and later reports how it went
(`wait`). The subprocess runner isolates every video in its own
interpreter; the in-process runner is used for tests and embedding.
"""

import asyncio
import json
import sys
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from ..utils.config import PipelineConfig
from ..utils.logger import LoggerMixin
from .automation_models import BatchTask, TaskOutcome

DEFAULT_TASK_TIMEOUT = 900.0  # seconds


def create_command_args(config: PipelineConfig) -> List[str]:
    """`create` arguments reproducing a configuration on the command line

    Values are attached with `=` so ones starting with a dash are not read
    as options. Lists are passed as a JSON array.
    """
    args = ["create"]
    for key, value in config.model_dump().items():
        if value is None or value == "" or value == []:
            continue
        flag = f"--{key.replace('_', '-')}"
        if isinstance(value, bool):
            if value:
                args.append(flag)
        elif isinstance(value, (list, tuple)):
            args.append(f"{flag}={json.dumps([str(v) for v in value])}")
        else:
            args.append(f"{flag}={value}")
    args.append("--batch-runner")
    return args


def extract_last_line(output: str) -> Optional[str]:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else None


class TaskRunner(ABC):
    """Starts tasks and reports their outcome"""

    def __init__(self, task_timeout: float = DEFAULT_TASK_TIMEOUT):
        self.task_timeout = task_timeout

    @abstractmethod
    async def submit(self, task: BatchTask) -> Any:
        """Start the task and return a handle for `wait`"""

    @abstractmethod
    async def wait(self, handle: Any) -> TaskOutcome:
        """Wait for the task behind `handle` to finish"""


@dataclass
class ProcessHandle:
    task: BatchTask
    process: asyncio.subprocess.Process
    started: float


class SubprocessTaskRunner(TaskRunner, LoggerMixin):
    """Runs each task as `python -m clip_creator create ... --batch-runner`"""

    def __init__(self, task_timeout: float = DEFAULT_TASK_TIMEOUT,
                 executable: Optional[str] = None):
        super().__init__(task_timeout)
        self.executable = executable or sys.executable

    def build_command(self, task: BatchTask) -> List[str]:
        return [self.executable, "-m", "clip_creator", *create_command_args(task.config)]

    async def submit(self, task: BatchTask) -> ProcessHandle:
        cmd = self.build_command(task)
        self.logger.debug(f"Executing task {task.id}: {cmd[0]} -m clip_creator create ...")
        started = time.monotonic()
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        return ProcessHandle(task=task, process=process, started=started)

    async def wait(self, handle: ProcessHandle) -> TaskOutcome:
        process = handle.process
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.task_timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            duration = round(time.monotonic() - handle.started, 2)
            self.logger.error(f"Task {handle.task.id} timed out after {self.task_timeout:g}s")
            return TaskOutcome(
                task_id=handle.task.id,
                success=False,
                duration=duration,
                error=f"Timed out after {self.task_timeout:g}s",
                returncode=process.returncode,
            )

        duration = round(time.monotonic() - handle.started, 2)
        error_output = stderr.decode(errors='replace').strip()
        if process.returncode == 0:
            return TaskOutcome(
                task_id=handle.task.id,
                success=True,
                duration=duration,
                output=extract_last_line(stdout.decode(errors='replace')),
                returncode=0,
            )

        if error_output:
            self.logger.error(f"Task {handle.task.id} stderr: {error_output}")
        return TaskOutcome(
            task_id=handle.task.id,
            success=False,
            duration=duration,
            error=f"Process failed after {duration}s (exit code {process.returncode})",
            returncode=process.returncode,
        )


@dataclass
class InProcessHandle:
    task: BatchTask
    future: "asyncio.Task"
    started: float


class InProcessTaskRunner(TaskRunner, LoggerMixin):
    """Runs each task as an asyncio task in the current event loop"""

    def __init__(self, video_factory: Optional[Callable[[PipelineConfig], Awaitable[Any]]] = None,
                 task_timeout: float = DEFAULT_TASK_TIMEOUT):
        super().__init__(task_timeout)
        if video_factory is None:
            from ..pipeline import create_video
            video_factory = create_video
        self.video_factory = video_factory

    async def submit(self, task: BatchTask) -> InProcessHandle:
        future = asyncio.ensure_future(self.video_factory(task.config))
        return InProcessHandle(task=task, future=future, started=time.monotonic())

    async def wait(self, handle: InProcessHandle) -> TaskOutcome:
        try:
            output = await asyncio.wait_for(handle.future, timeout=self.task_timeout)
        except asyncio.TimeoutError:
            duration = round(time.monotonic() - handle.started, 2)
            return TaskOutcome(task_id=handle.task.id, success=False, duration=duration,
                               error=f"Timed out after {self.task_timeout:g}s")
        except Exception as e:
            duration = round(time.monotonic() - handle.started, 2)
            self.logger.error(f"Task {handle.task.id} failed: {e}")
            return TaskOutcome(task_id=handle.task.id, success=False, duration=duration, error=str(e))

        duration = round(time.monotonic() - handle.started, 2)
        return TaskOutcome(task_id=handle.task.id, success=True, duration=duration,
                           output=str(output) if output is not None else None)
