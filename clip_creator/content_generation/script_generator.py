"""Script generation through an OpenAI-compatible chat completion endpoint"""

import asyncio
import json
import re
from typing import List, Optional

import jsonschema
import openai
from pydantic import ValidationError

from ..errors import ConfigurationError, ResponseValidationError, ScriptGenerationError
from ..llm.openai_client import choose_model, get_llm_client
from ..utils.config import DEFAULT_MODEL
from ..utils.logger import LoggerMixin
from .content_models import MIN_SEGMENTS, SCRIPT_SCHEMA, SEGMENT_DURATION, ScriptRequest, ScriptResult
from .prompt_templates import PromptTemplates

MAX_ATTEMPTS = 3
LLM_ERROR_MESSAGE = (
    "Failed to generate a script from the language model. "
    "Check your GROQ API key and try again."
)

# Transport problems and malformed generations are worth another attempt
RETRYABLE_ERRORS = (
    ResponseValidationError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
    openai.BadRequestError,
)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


class ScriptGenerator(LoggerMixin):
    """Generates segmented short video scripts"""

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL,
                 client: Optional[openai.AsyncOpenAI] = None,
                 retry_delay: float = 1.0):
        self.client = client or get_llm_client(api_key)
        self.model_name = choose_model(model_name)
        self.retry_delay = retry_delay
        self.prompt_templates = PromptTemplates()

    @staticmethod
    def validate_request(request: ScriptRequest) -> None:
        """Reject requests the model cannot satisfy, before any network call"""
        missing = [name for name in ("duration", "category", "tone") if not getattr(request, name)]
        if missing:
            raise ConfigurationError(f"Missing required fields: {', '.join(missing)}")

        if request.duration % SEGMENT_DURATION != 0:
            raise ConfigurationError(
                f"Duration must be a multiple of {SEGMENT_DURATION} seconds, got {request.duration}"
            )

        if request.duration // SEGMENT_DURATION < MIN_SEGMENTS:
            raise ConfigurationError(
                f"Duration must allow at least {MIN_SEGMENTS} segments "
                f"({MIN_SEGMENTS * SEGMENT_DURATION} seconds), got {request.duration}"
            )

    def build_messages(self, request: ScriptRequest) -> List[dict]:
        return [
            {"role": "system",
             "content": self.prompt_templates.get_system_prompt(request.require_fact_checking)},
            {"role": "user", "content": self.prompt_templates.get_user_prompt(request)},
        ]

    @staticmethod
    def validate_response(content: Optional[str], expected_segments: int) -> ScriptResult:
        """Parse and check one raw model response"""
        if not content or not content.strip():
            raise ResponseValidationError("Empty response from model")

        match = _FENCE_RE.match(content)
        if match:
            content = match.group(1)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ResponseValidationError(f"Invalid JSON response: {e}") from e

        if not data:
            raise ResponseValidationError("Empty response from model")

        try:
            jsonschema.validate(instance=data, schema=SCRIPT_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ResponseValidationError(f"Response does not match script schema: {e.message}") from e

        try:
            script = ScriptResult.model_validate(data)
        except ValidationError as e:
            raise ResponseValidationError(f"Invalid script structure: {e}") from e

        if len(script.segments) != expected_segments:
            raise ResponseValidationError(
                f"Expected {expected_segments} segments, got {len(script.segments)}"
            )
        return script

    def _backoff(self, attempt: int) -> float:
        return attempt * self.retry_delay

    async def _request_script(self, request: ScriptRequest) -> ScriptResult:
        completion = await self.client.chat.completions.create(
            model=self.model_name,
            messages=self.build_messages(request),
            temperature=1,
            max_tokens=2048,
            top_p=1,
            stream=False,
            response_format={"type": "json_object"},
        )
        if not completion.choices:
            raise ResponseValidationError("Empty response from model")
        return self.validate_response(completion.choices[0].message.content, request.segment_count)

    async def generate_script(self, request) -> ScriptResult:
        """Generate a validated script, retrying malformed or failed completions.

        Accepts a ScriptRequest or anything carrying the same fields, such as
        a PipelineConfig.
        """
        if not isinstance(request, ScriptRequest):
            request = ScriptRequest.from_config(request)
        self.validate_request(request)
        self.logger.info(
            f"Requesting {request.segment_count} segments for '{request.topic}' "
            f"({request.category}, {request.tone})"
        )

        last_error: Optional[Exception] = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                script = await self._request_script(request)
                self.logger.info(f"Script generated with {len(script.segments)} segments")
                return script
            except RETRYABLE_ERRORS as e:
                last_error = e
                self.logger.error(f"Attempt {attempt} failed: {e}")
                if attempt < MAX_ATTEMPTS:
                    await asyncio.sleep(self._backoff(attempt))
            except Exception as e:
                self.logger.error(f"Attempt {attempt} failed: {e}")
                raise ScriptGenerationError(LLM_ERROR_MESSAGE) from e

        raise ScriptGenerationError(LLM_ERROR_MESSAGE) from last_error
