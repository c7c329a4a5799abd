from .openai_client import OpenAIClient


class OpenRouterClient(OpenAIClient):
    """
    OpenRouter client.

    OpenRouter exposes an OpenAI-compatible API, so the OpenAI SDK is reused
    with a custom base URL. Model names are OpenRouter slugs such as
    ``anthropic/claude-3.5-sonnet``.
    """

    provider_name = "openrouter"
    base_url = "https://openrouter.ai/api/v1"

    def __init__(self, api_key: str, model_name: str = "anthropic/claude-3.5-sonnet", **kwargs):
        super().__init__(api_key, model_name=model_name, **kwargs)
