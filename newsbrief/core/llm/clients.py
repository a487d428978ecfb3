import asyncio
from dataclasses import dataclass

from anthropic import AsyncAnthropic
from google import genai
from google.genai import types
from openai import AsyncOpenAI

from newsbrief.core.config import Settings
from newsbrief.core.exceptions import LLMError
from newsbrief.core.llm.prompts import PromptAdapter


@dataclass(frozen=True)
class LLMCompletion:
    text: str
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


def provider_for(model: str) -> str:
    """Map a model id to the SDK that serves it."""
    if model.startswith("gpt-") or model.startswith("o"):
        return "openai"
    if model.startswith("claude-"):
        return "anthropic"
    if model.startswith("gemini-"):
        return "google"
    raise ValueError(f"Unknown model prefix: {model}")


class LLMClients:
    """Lazily built SDK clients for one configuration.

    Held by whoever needs completions and passed in explicitly, so tests can
    swap the whole object for a fake.
    """

    def __init__(
        self,
        *,
        anthropic_api_key: str = "",
        openai_api_key: str = "",
        google_api_key: str = "",
        timeout_s: float = 60.0,
    ):
        self._anthropic_api_key = anthropic_api_key
        self._openai_api_key = openai_api_key
        self._google_api_key = google_api_key
        self.timeout_s = timeout_s
        self._anthropic: AsyncAnthropic | None = None
        self._openai: AsyncOpenAI | None = None
        self._google: genai.Client | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClients":
        return cls(
            anthropic_api_key=settings.anthropic_api_key,
            openai_api_key=settings.openai_api_key,
            google_api_key=settings.google_ai_api_key,
            timeout_s=settings.llm_timeout_s,
        )

    def anthropic(self) -> AsyncAnthropic:
        if self._anthropic is None:
            self._anthropic = AsyncAnthropic(api_key=self._anthropic_api_key)
        return self._anthropic

    def openai(self) -> AsyncOpenAI:
        if self._openai is None:
            self._openai = AsyncOpenAI(api_key=self._openai_api_key)
        return self._openai

    def google(self) -> genai.Client:
        if self._google is None:
            self._google = genai.Client(api_key=self._google_api_key)
        return self._google

    async def complete(
        self,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float | None = None,
    ) -> LLMCompletion:
        """Single non-streaming completion, routed to the SDK by model prefix.

        Returns the generated text with provider-reported token usage.
        SDK failures and timeouts are raised as LLMError.
        """
        try:
            return await asyncio.wait_for(
                self._complete(model, system, prompt, max_tokens, temperature),
                timeout=self.timeout_s,
            )
        except TimeoutError as e:
            raise LLMError(f"{model} timed out after {self.timeout_s}s") from e
        except Exception as e:
            raise LLMError(f"{model} completion failed: {e}") from e

    async def _complete(
        self,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float | None,
    ) -> LLMCompletion:
        provider = provider_for(model)
        messages = [{"role": "user", "content": prompt}]

        if provider == "openai":
            extra = {}
            # Reasoning models (o1, o3, ...) reject a custom temperature
            if temperature is not None and model.startswith("gpt-"):
                extra["temperature"] = temperature
            resp = await self.openai().chat.completions.create(
                model=model,
                max_completion_tokens=max_tokens,
                **PromptAdapter.for_openai(system, messages),
                **extra,
            )
            usage = resp.usage
            return LLMCompletion(
                text=resp.choices[0].message.content or "",
                provider=provider,
                model=model,
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            )

        if provider == "anthropic":
            extra = {"temperature": temperature} if temperature is not None else {}
            resp = await self.anthropic().messages.create(
                model=model,
                max_tokens=max_tokens,
                **PromptAdapter.for_claude(system, messages),
                **extra,
            )
            text = "".join(
                block.text for block in resp.content if getattr(block, "type", "text") == "text"
            )
            return LLMCompletion(
                text=text,
                provider=provider,
                model=model,
                input_tokens=resp.usage.input_tokens or 0,
                output_tokens=resp.usage.output_tokens or 0,
            )

        resp = await self.google().aio.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=system,
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )
        meta = resp.usage_metadata
        return LLMCompletion(
            text=resp.text or "",
            provider=provider,
            model=model,
            input_tokens=getattr(meta, "prompt_token_count", 0) or 0,
            output_tokens=getattr(meta, "candidates_token_count", 0) or 0,
        )
