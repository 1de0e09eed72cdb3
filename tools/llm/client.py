from abc import ABC, abstractmethod
from typing import Optional

from openai import AsyncOpenAI

from app.config import BASE_URL, MODEL_NAME
from infra.env import require_env


class CompletionService(ABC):
    """Text-generation provider used for intent classification."""

    @abstractmethod
    async def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        ...


class OpenAICompletionService(CompletionService):
    """Completion service backed by an OpenAI-compatible chat endpoint."""

    def __init__(self, client: AsyncOpenAI, model: str = MODEL_NAME):
        self.client = client
        self.model = model

    async def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def create_client(base_url: Optional[str] = BASE_URL) -> AsyncOpenAI:
    # The router enforces its own budget; SDK retries would only blow it
    return AsyncOpenAI(
        api_key=require_env("OPENAI_API_KEY"),
        base_url=base_url,
        max_retries=0,
    )


def create_completion_service(model: str = MODEL_NAME, base_url: Optional[str] = BASE_URL) -> OpenAICompletionService:
    return OpenAICompletionService(create_client(base_url), model=model)
