"""
LLM Service - Handles interactions with different LLM providers
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import aiohttp


class LLMService:
    """Service for interacting with various LLM providers"""

    def __init__(self, config: dict[str, Any]):
        self.config = config
        self.provider = config.get("provider", "openai")

    # ========== Config Helpers ==========

    def _temperature(self) -> float:
        return self.config.get("formatting", {}).get("temperature", 0.7)

    def _get_openai_config(self) -> tuple[str, str, dict[str, str]]:
        """Get OpenAI config: (model, url, headers). Raises if api_key missing."""
        cfg = self.config.get("openai", {})
        api_key = cfg.get("apiKey")
        if not api_key:
            raise ValueError("OpenAI API key not configured")
        model = cfg.get("model", "gpt-4.1-mini")
        url = "https://api.openai.com/v1/chat/completions"
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        return model, url, headers

    def _get_gemini_config(self) -> tuple[str, str, str]:
        """Get Gemini config: (api_key, model, base_url). Raises if api_key missing."""
        cfg = self.config.get("gemini", {})
        api_key = cfg.get("apiKey")
        if not api_key:
            raise ValueError("Gemini API key not configured")
        model = cfg.get("model", "gemini-2.5-flash")
        base_url = f"https://generativelanguage.googleapis.com/v1beta/models/{model}"
        return api_key, model, base_url

    def _get_vllm_config(self) -> tuple[str, str, dict[str, str]]:
        """Get vLLM config: (model, url, headers)."""
        cfg = self.config.get("vllm", {})
        endpoint = cfg.get("endpoint", "http://localhost:8000")
        model = cfg.get("model", "default")
        url = f"{endpoint}/v1/chat/completions"
        headers = {"Content-Type": "application/json"}
        if cfg.get("apiKey"):
            headers["Authorization"] = f"Bearer {cfg['apiKey']}"
        return model, url, headers

    # ========== Message/Payload Builders ==========

    def _build_messages(self, prompt: str, instructions: str | None = None) -> list[dict[str, str]]:
        """Build OpenAI-style messages array"""
        messages = []
        if instructions:
            messages.append({"role": "system", "content": instructions})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _build_openai_payload(
        self,
        model: str,
        messages: list,
        max_tokens: int = 4096,
        json_output: bool = False,
    ) -> dict[str, Any]:
        """Build OpenAI-compatible request payload"""
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": self._temperature(),
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _build_gemini_payload(
        self,
        prompt: str,
        instructions: str | None = None,
        json_output: bool = False,
        max_output_tokens: int = 8192,
    ) -> dict[str, Any]:
        """Build Gemini API request payload"""
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self._temperature(),
                "maxOutputTokens": max_output_tokens,
            },
        }
        if instructions:
            payload["systemInstruction"] = {"parts": [{"text": instructions}]}
        if json_output:
            payload["generationConfig"]["responseMimeType"] = "application/json"
        return payload

    # ========== Transport ==========

    async def _retry_with_backoff(self, operation, max_retries: int = 3, provider: str = "API"):
        """Execute operation with exponential backoff retry logic"""
        for attempt in range(max_retries):
            last_attempt = attempt == max_retries - 1
            try:
                return await operation()
            except asyncio.TimeoutError:
                if last_attempt:
                    raise Exception(f"{provider} request timeout after {max_retries} retries")
                wait_time = (2**attempt) * 3
                print(
                    f"[LLMService] {provider} request timeout. Retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            except aiohttp.ClientError as e:
                if last_attempt:
                    raise
                wait_time = 2**attempt
                print(
                    f"[LLMService] Network error: {e}. Retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            except Exception as e:
                error_msg = str(e)
                retryable = "(429)" in error_msg or "(503)" in error_msg
                if not retryable or last_attempt:
                    raise
                wait_time = (2**attempt) * 5
                print(
                    f"[LLMService] {provider} busy. Retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
            await asyncio.sleep(wait_time)

    @asynccontextmanager
    async def _request(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout_seconds: int = 60,
        provider: str = "API",
    ):
        """Context manager for HTTP POST requests with automatic session cleanup"""
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, json=payload, headers=headers) as response:
                if response.status != 200:
                    error_text = await response.text()
                    print(f"[LLMService] {provider} API Error ({response.status}): {error_text}")
                    raise Exception(f"{provider} API error ({response.status}): {error_text}")
                yield response

    async def _request_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        provider: str = "API",
    ) -> dict[str, Any]:
        """Make request with retries and return JSON response"""

        async def _execute():
            async with self._request(url, payload, headers, provider=provider) as response:
                return await response.json()

        return await self._retry_with_backoff(_execute, provider=provider)

    # ========== Response Parsers ==========

    def _parse_openai_response(self, data: dict[str, Any]) -> str:
        """Parse OpenAI-compatible response format"""
        if "choices" in data and len(data["choices"]) > 0:
            choice = data["choices"][0]
            if "message" in choice and "content" in choice["message"]:
                return choice["message"]["content"]
            elif "text" in choice:
                return choice["text"]
        raise Exception("No valid response from API")

    def _parse_gemini_response(self, data: dict[str, Any]) -> str:
        """Parse Gemini API response format"""
        if "candidates" in data and len(data["candidates"]) > 0:
            candidate = data["candidates"][0]
            if "content" in candidate and "parts" in candidate["content"]:
                parts = candidate["content"]["parts"]
                if len(parts) > 0 and "text" in parts[0]:
                    return parts[0]["text"]
        raise Exception("No valid response from Gemini API")

    # ========== Providers ==========

    async def generate_response(
        self,
        prompt: str,
        instructions: str | None = None,
        json_output: bool = False,
    ) -> str:
        """Generate a response from the configured LLM provider"""
        if self.provider == "openai":
            return await self._call_openai(prompt, instructions, json_output)
        elif self.provider == "gemini":
            return await self._call_gemini(prompt, instructions, json_output)
        elif self.provider == "vllm":
            return await self._call_vllm(prompt, instructions, json_output)
        else:
            raise ValueError(f"Unsupported provider: {self.provider}")

    async def _call_openai(self, prompt: str, instructions: str | None, json_output: bool) -> str:
        """Call OpenAI API"""
        model, url, headers = self._get_openai_config()
        messages = self._build_messages(prompt, instructions)
        payload = self._build_openai_payload(model, messages, json_output=json_output)

        print(f"[LLMService] Calling OpenAI with model: {model}")
        data = await self._request_json(url, payload, headers, provider="OpenAI")
        return self._parse_openai_response(data)

    async def _call_gemini(self, prompt: str, instructions: str | None, json_output: bool) -> str:
        """Call Google Gemini API"""
        api_key, model, base_url = self._get_gemini_config()
        url = f"{base_url}:generateContent?key={api_key}"
        payload = self._build_gemini_payload(prompt, instructions, json_output)

        print(f"[LLMService] Calling Gemini with model: {model}")
        data = await self._request_json(url, payload, provider="Gemini")
        response_text = self._parse_gemini_response(data)
        print(f"[LLMService] Received response from {model} (length: {len(response_text)} chars)")
        return response_text

    async def _call_vllm(self, prompt: str, instructions: str | None, json_output: bool) -> str:
        """Call vLLM endpoint with OpenAI Compatible API"""
        model, url, headers = self._get_vllm_config()
        messages = self._build_messages(prompt, instructions)
        payload = self._build_openai_payload(model, messages, json_output=json_output)

        data = await self._request_json(url, payload, headers, provider="vLLM")
        return self._parse_openai_response(data)


async def call_llm(
    prompt: str,
    config: dict[str, Any],
    instructions: str | None = None,
    json_output: bool = False,
) -> str:
    """Convenience function to call LLM with the given config."""
    service = LLMService(config)
    return await service.generate_response(prompt, instructions, json_output)
