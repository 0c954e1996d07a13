"""
LLM Adapter - Chat-completion access for intent extraction.

Usage:
    from mediadiscovery.adapters.llm import ChatCompletionClient

    llm = ChatCompletionClient(api_key="sk-...")
    data = await llm.generate_json("dark sci-fi like Blade Runner")
"""

from .service import ChatCompletionClient, LLMResponse

__all__ = ["ChatCompletionClient", "LLMResponse"]
