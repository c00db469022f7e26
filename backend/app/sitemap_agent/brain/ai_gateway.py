"""
AI Gateway
==========

Thin gateway to the language-model service used for element
location. It:
- Sends chat requests to OpenAI or Anthropic over httpx
- Caches successful responses in memory
- Tracks usage metrics
- Turns every transport or API failure into an unsuccessful AIResponse
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-20250514",
}


class AIProvider(Enum):
    """Supported AI providers"""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class AIRequest:
    """A request for AI assistance"""
    request_type: str  # element_find
    prompt: str
    system: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    max_tokens: int = 500
    temperature: float = 0.3


@dataclass
class AIResponse:
    """Response from AI"""
    success: bool
    content: str
    tokens_used: int
    cached: bool = False
    latency_ms: int = 0
    error: Optional[str] = None


class AIGateway:
    """
    Gatekeeper for AI API calls.

    Responsibilities:
    - Provider selection and request shaping
    - Response caching
    - Usage metrics
    """

    def __init__(
        self,
        provider: AIProvider = AIProvider.OPENAI,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0
    ):
        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[provider.value]
        self.timeout = timeout

        # Response cache (in-memory)
        self.cache: Dict[str, AIResponse] = {}
        self.cache_max_size = 500

        # Statistics
        self.total_requests = 0
        self.cache_hits = 0
        self.api_calls = 0
        self.failures = 0
        self.total_tokens = 0

    @classmethod
    def from_settings(cls, settings) -> "AIGateway":
        """Build a gateway from AgentSettings"""
        try:
            provider = AIProvider(settings.ai_provider)
        except ValueError:
            logger.warning(f"[AI-GATE] Unknown provider '{settings.ai_provider}', using openai")
            provider = AIProvider.OPENAI
        api_key = settings.ai_api_key
        return cls(provider=provider, api_key=api_key, model=settings.ai_model)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_cache_key(self, request: AIRequest) -> str:
        """Generate cache key for a request"""
        data = f"{self.provider.value}|{self.model}|{request.request_type}|{request.system}|{request.prompt}|" \
               f"{json.dumps(request.context, sort_keys=True)}"
        return hashlib.md5(data.encode()).hexdigest()

    def check_cache(self, request: AIRequest) -> Optional[AIResponse]:
        key = self.get_cache_key(request)
        if key in self.cache:
            self.cache_hits += 1
            response = self.cache[key]
            response.cached = True
            return response
        return None

    def cache_response(self, request: AIRequest, response: AIResponse):
        if not response.success:
            return
        self.cache[self.get_cache_key(request)] = response

        if len(self.cache) > self.cache_max_size:
            # Drop the oldest quarter
            keys = list(self.cache.keys())
            for old_key in keys[:len(keys) // 4]:
                del self.cache[old_key]

    async def request(self, request: AIRequest) -> AIResponse:
        """
        Make an AI request with caching.

        This is the main entry point for AI calls. It never raises.
        """
        self.total_requests += 1
        start_time = time.time()

        cached = self.check_cache(request)
        if cached:
            logger.debug(f"[AI-GATE] Cache hit for {request.request_type}")
            return cached

        try:
            if self.provider == AIProvider.ANTHROPIC:
                response = await self._call_anthropic(request)
            else:
                response = await self._call_openai(request)
        except Exception as e:
            logger.error(f"[AI-GATE] API call failed: {e}")
            response = AIResponse(success=False, content="", tokens_used=0, error=str(e))

        if response.success:
            self.api_calls += 1
            self.total_tokens += response.tokens_used
            self.cache_response(request, response)
        else:
            self.failures += 1
            logger.warning(f"[AI-GATE] {request.request_type} request failed: {response.error}")

        response.latency_ms = int((time.time() - start_time) * 1000)
        return response

    async def _call_openai(self, request: AIRequest) -> AIResponse:
        """Call OpenAI chat completions"""
        if not self.api_key:
            return AIResponse(success=False, content="", tokens_used=0, error="OPENAI_API_KEY not set")

        messages = []
        if request.system:
            messages.append({"role": "system", "content": request.system})
        messages.append({"role": "user", "content": request.prompt})

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                OPENAI_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                json={
                    "model": self.model,
                    "messages": messages,
                    "max_tokens": request.max_tokens,
                    "temperature": request.temperature
                }
            )

        if response.status_code != 200:
            return AIResponse(
                success=False,
                content="",
                tokens_used=0,
                error=f"API error: {response.status_code}"
            )

        data = response.json()
        content = data["choices"][0]["message"]["content"]
        tokens = data.get("usage", {}).get("total_tokens", 0)
        return AIResponse(success=True, content=content, tokens_used=tokens)

    async def _call_anthropic(self, request: AIRequest) -> AIResponse:
        """Call Anthropic messages"""
        if not self.api_key:
            return AIResponse(success=False, content="", tokens_used=0, error="ANTHROPIC_API_KEY not set")

        payload = {
            "model": self.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}]
        }
        if request.system:
            payload["system"] = request.system

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                ANTHROPIC_URL,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json"
                },
                json=payload
            )

        if response.status_code != 200:
            return AIResponse(
                success=False,
                content="",
                tokens_used=0,
                error=f"API error: {response.status_code}"
            )

        data = response.json()
        content = data["content"][0]["text"]
        usage = data.get("usage", {})
        tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
        return AIResponse(success=True, content=content, tokens_used=tokens)

    def get_stats(self) -> Dict[str, Any]:
        """Get gateway statistics"""
        return {
            "provider": self.provider.value,
            "model": self.model,
            "total_requests": self.total_requests,
            "cache_hits": self.cache_hits,
            "cache_hit_rate": (self.cache_hits / max(1, self.total_requests)) * 100,
            "api_calls": self.api_calls,
            "failures": self.failures,
            "total_tokens": self.total_tokens,
        }

    def clear_cache(self):
        """Clear all cached responses"""
        self.cache.clear()
        logger.info("[AI-GATE] Cache cleared")
