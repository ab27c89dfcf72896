"""
Model channel interface.

This module is the only place that *directly* calls an LLM.  Everything else (agent loop, tools,
fallback) stays model-agnostic and only relies on one contract::

    send(transcript) -> text    # raises ChannelFailure subclasses

We support three back-ends out of the box:

1. **Gemini / Gemma** via the Generative Language REST API (or the ``/api/gemini`` proxy served
   by :mod:`blackjack_agents.api.app`), using httpx.
2. **OpenAI** via the official SDK.
3. **Anthropic** via the official SDK.

Additional providers can be added by subclassing :class:`BaseModelChannel` and registering via
:func:`register_channel`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Sequence,
    Type,
)

import httpx

from blackjack_agents.config import settings
from blackjack_agents.core.errors import (
    ChannelFailure,
    ChannelHTTPError,
    ChannelNetworkError,
    ChannelTimeout,
    EmptyResponse,
    RateLimited,
)
from blackjack_agents.core.schema import ConversationMessage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_CHANNEL_REGISTRY: dict[str, Type["BaseModelChannel"]] = {}


def register_channel(name: str) -> Callable:
    """Decorator to register a channel class under *name*."""

    def wrapper(cls: Type["BaseModelChannel"]) -> Type["BaseModelChannel"]:
        _CHANNEL_REGISTRY[name] = cls
        return cls

    return wrapper


def load_channel(name: str | None = None, **kwargs: Any) -> "BaseModelChannel":
    """
    Factory that returns an instantiated channel.

    Fallback order:
    1. *name* arg
    2. ``settings.CHANNEL`` env option
    3. default: ``"gemini"``
    """

    target = name or getattr(settings, "CHANNEL", "gemini")
    cls = _CHANNEL_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Channel '{target}' is not registered.")
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BaseModelChannel(ABC):
    """Opaque request/response channel to a language model."""

    PROBE_PROMPT: ClassVar[str] = "Reply with: ok"

    def __init__(self, timeout: float | None = None, probe_timeout: float | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.probe_timeout = probe_timeout if probe_timeout is not None else settings.PROBE_TIMEOUT

    @abstractmethod
    def send(self, transcript: Sequence[ConversationMessage]) -> str:
        """Send the whole transcript and return the model's reply text."""

    def probe(self) -> bool:
        """Return *True* when the model answers a trivial prompt."""
        try:
            self.send([ConversationMessage.from_user(self.PROBE_PROMPT)])
        except ChannelFailure as exc:
            logger.warning("Model probe failed: %s", exc)
            return False
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Model probe raised %s: %s", type(exc).__name__, exc)
            return False
        return True


def _chat_messages(transcript: Sequence[ConversationMessage]) -> List[Dict[str, str]]:
    """Map transcript speakers onto chat-completion roles."""
    return [
        {"role": "user" if msg.speaker == "user" else "assistant", "content": msg.text}
        for msg in transcript
    ]


def _translate_sdk_error(sdk: Any, exc: Exception) -> ChannelFailure:
    """Map an OpenAI/Anthropic SDK exception onto the channel failure taxonomy."""
    if isinstance(exc, sdk.RateLimitError):
        return RateLimited(str(exc))
    if isinstance(exc, sdk.APITimeoutError):
        return ChannelTimeout(str(exc))
    if isinstance(exc, sdk.APIConnectionError):
        return ChannelNetworkError(str(exc))
    if isinstance(exc, sdk.APIStatusError):
        return ChannelHTTPError(exc.status_code, str(exc))
    return ChannelFailure(str(exc))


# ---------------------------------------------------------------------------
# Concrete channels
# ---------------------------------------------------------------------------
@register_channel("gemini")
class GeminiChannel(BaseModelChannel):
    """Gemini/Gemma ``generateContent`` over httpx."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        proxy_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.proxy_url = proxy_url if proxy_url is not None else settings.GEMINI_PROXY_URL
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.proxy_url or self.api_key)

    def _post(self, body: Dict[str, Any], timeout: float) -> httpx.Response:
        if not self.configured:
            raise ChannelFailure("GEMINI_API_KEY not set and no proxy configured")

        if self.proxy_url:
            url, params = self.proxy_url, {}
        else:
            url = f"{self.base_url}/models/{self.model}:generateContent"
            params = {"key": self.api_key}

        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                return client.post(url, params=params, json=body)
        except httpx.TimeoutException as exc:
            raise ChannelTimeout(f"Model API timeout after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise ChannelNetworkError(f"Model API unreachable: {exc}") from exc

    def send(self, transcript: Sequence[ConversationMessage]) -> str:
        body = {
            "contents": [
                {"role": msg.speaker, "parts": [{"text": msg.text}]} for msg in transcript
            ],
            "generationConfig": {
                "temperature": settings.TEMPERATURE,
                "maxOutputTokens": settings.MAX_OUTPUT_TOKENS,
            },
        }
        logger.debug("Calling model (multi-turn, %d messages)", len(transcript))
        response = self._post(body, self.timeout)

        if response.status_code == 429:
            logger.warning("Model API rate limited")
            raise RateLimited(response.text[:500])
        if not response.is_success:
            logger.warning("Model API error %d: %s", response.status_code, response.text[:500])
            raise ChannelHTTPError(response.status_code, response.text[:500])

        try:
            data = response.json()
        except ValueError as exc:
            raise ChannelFailure("Model API returned a non-JSON body") from exc

        candidates = data.get("candidates") or [{}]
        parts = candidates[0].get("content", {}).get("parts", [])
        text = "".join(part.get("text", "") for part in parts)
        logger.debug("Raw model response: %s", text)
        if not text:
            raise EmptyResponse("Empty response from model")
        return text

    def probe(self) -> bool:
        if not self.configured:
            logger.warning("Model API not configured - falling back to rule-based")
            return False

        body = {
            "contents": [{"parts": [{"text": self.PROBE_PROMPT}]}],
            "generationConfig": {"maxOutputTokens": 4},
        }
        try:
            response = self._post(body, self.probe_timeout)
        except ChannelFailure as exc:
            logger.warning("Model API unreachable - falling back to rule-based: %s", exc)
            return False

        if response.is_success:
            logger.info("Model API connected (%s) - LLM thinking enabled", self.model)
            return True
        logger.warning(
            "Model API returned %d - falling back to rule-based: %s",
            response.status_code,
            response.text[:200],
        )
        return False


@register_channel("openai")
class OpenAIChannel(BaseModelChannel):
    """OpenAI chat-completions channel."""

    def send(self, transcript: Sequence[ConversationMessage]) -> str:
        try:
            import openai  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise ChannelFailure("OpenAI SDK not installed. Run 'pip install openai'") from exc

        try:
            client = openai.OpenAI(api_key=settings.OPENAI_API_KEY, timeout=self.timeout)
            resp = client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=_chat_messages(transcript),  # type: ignore[arg-type]
                temperature=settings.TEMPERATURE,
                max_tokens=settings.MAX_OUTPUT_TOKENS,
            )
        except openai.OpenAIError as exc:
            raise _translate_sdk_error(openai, exc) from exc

        content = resp.choices[0].message.content
        if not content:
            raise EmptyResponse("Empty response from OpenAI")
        logger.debug("OpenAI response: %s", content)
        return content


@register_channel("anthropic")
class AnthropicChannel(BaseModelChannel):
    """Anthropic messages channel."""

    def send(self, transcript: Sequence[ConversationMessage]) -> str:
        try:
            import anthropic  # pylint: disable=import-outside-toplevel
        except ImportError as exc:
            raise ChannelFailure(
                "Anthropic SDK not installed. Run 'pip install anthropic'"
            ) from exc

        try:
            client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY, timeout=self.timeout)
            response = client.messages.create(
                model=settings.ANTHROPIC_MODEL,
                max_tokens=settings.MAX_OUTPUT_TOKENS,
                messages=_chat_messages(transcript),  # type: ignore[arg-type]
                temperature=settings.TEMPERATURE,
            )
        except anthropic.AnthropicError as exc:
            raise _translate_sdk_error(anthropic, exc) from exc

        # Handle different content block types from Anthropic API
        if not response.content:
            raise EmptyResponse("Empty response from Anthropic")
        block = response.content[0]
        content = block.text if block.type == "text" else str(block)
        logger.debug("Anthropic response: %s", content)
        return content
