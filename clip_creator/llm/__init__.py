"""Language model client helpers"""

from .openai_client import get_llm_client, choose_model

__all__ = ['get_llm_client', 'choose_model']
