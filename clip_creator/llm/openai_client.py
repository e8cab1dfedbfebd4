import os

from openai import AsyncOpenAI

from ..errors import ConfigurationError

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def get_llm_client(api_key: str) -> AsyncOpenAI:
    """Client for the Groq OpenAI-compatible completion endpoint"""
    if not api_key:
        raise ConfigurationError("API key is required to use the script generator")
    base_url = os.getenv("CLIP_CREATOR_LLM_BASE_URL", GROQ_BASE_URL)
    return AsyncOpenAI(api_key=api_key, base_url=base_url)


def choose_model(default: str) -> str:
    # Allow env override without changing config
    return os.getenv("CLIP_CREATOR_LLM_MODEL", default)
