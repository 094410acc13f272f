"""Streaming chat client for OpenAI-compatible and Ollama endpoints."""

import asyncio
import json
from typing import Any, AsyncIterator, Optional

import httpx

from inkflow.models.config import LLMConfig
from inkflow.utils.logging import get_logger


logger = get_logger(__name__)

# Errors worth another attempt, as long as nothing has been yielded yet
TRANSIENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout)


def _openai_fragment(data: dict[str, Any]) -> Optional[str]:
    """Text carried by an OpenAI chunk: {"choices": [{"delta": {"content": ...}}]}."""
    try:
        return data["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


def _ollama_fragment(data: dict[str, Any]) -> Optional[str]:
    """Text carried by an Ollama /api/chat chunk: {"message": {"content": ...}}."""
    try:
        return data["message"].get("content")
    except (KeyError, TypeError, AttributeError):
        return None


class LLMClient:
    """
    Chat completion client that streams text fragments.

    The provider is detected once per client: endpoints answering
    /api/version are treated as Ollama (native /api/chat, NDJSON), anything
    else as OpenAI-compatible (/chat/completions, server-sent events).

    Example:
        >>> client = LLMClient(config.llm)
        >>> text = await client.complete("he go home", system_prompt="Fix grammar")
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self.timeout = httpx.Timeout(connect=10.0, read=60.0, write=10.0, pool=10.0)
        self._is_ollama: Optional[bool] = None

    def _base_url(self) -> str:
        """Endpoint without a trailing /v1, where Ollama's native API lives."""
        base_url = str(self.config.endpoint).rstrip("/")
        return base_url[:-3] if base_url.endswith("/v1") else base_url

    async def _detect_ollama(self) -> bool:
        if self._is_ollama is not None:
            return self._is_ollama

        version_url = f"{self._base_url()}/api/version"
        self._is_ollama = False
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(5.0)) as client:
                response = await client.get(version_url)
            self._is_ollama = response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("llm_provider_probe_failed", version_url=version_url, error=str(e))

        logger.info("llm_provider_detected", provider="ollama" if self._is_ollama else "openai")
        return self._is_ollama

    def _build_request(
        self,
        prompt: str,
        system_prompt: str,
        temperature: float,
        is_ollama: bool,
    ) -> tuple[str, dict[str, Any]]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "stream": True,
            "temperature": temperature,
        }
        if is_ollama:
            payload["options"] = {"num_ctx": self.config.num_ctx}
            return f"{self._base_url()}/api/chat", payload
        return f"{str(self.config.endpoint).rstrip('/')}/chat/completions", payload

    def _parse_line(self, line: str, is_ollama: bool, request_id: str) -> Optional[str]:
        """Extract the text fragment from one stream line, if it carries any."""
        if line.startswith("data: "):
            line = line[6:]
            if line == "[DONE]":
                return None
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            logger.error("llm_malformed_json", request_id=request_id, line=line, error=str(e))
            return None
        return _ollama_fragment(data) if is_ollama else _openai_fragment(data)

    async def stream_text(
        self,
        prompt: str,
        system_prompt: str,
        max_retries: int = 1,
        retry_delay: float = 2.0,
        temperature: float = 0.7,
        request_id: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream generated text fragments.

        Connection failures and timeouts are retried up to max_retries times,
        but only before the first fragment has been yielded: a stream that
        breaks midway raises, because fragments already handed to the caller
        cannot be taken back.

        Args:
            prompt: User prompt
            system_prompt: System prompt
            max_retries: Extra attempts after a transient failure
            retry_delay: Seconds to wait between attempts
            temperature: Sampling temperature
            request_id: Label used in log events

        Yields:
            Non-empty content fragments in arrival order

        Raises:
            httpx.HTTPError: On HTTP status errors, on transient errors once
                retries are used up, or when the stream breaks after output
        """
        request_id = request_id or "unknown"
        is_ollama = await self._detect_ollama()
        url, payload = self._build_request(prompt, system_prompt, temperature, is_ollama)
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        logger.info(
            "llm_request_started",
            request_id=request_id,
            model=self.config.model,
            provider="ollama" if is_ollama else "openai",
            prompt_length=len(prompt),
            temperature=temperature,
        )
        logger.debug("llm_request_payload", request_id=request_id, payload=payload)

        for attempt in range(max_retries + 1):
            fragment_count = 0
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    async with client.stream("POST", url, json=payload, headers=headers) as response:
                        response.raise_for_status()
                        async for line in response.aiter_lines():
                            if not line.strip():
                                continue
                            fragment = self._parse_line(line, is_ollama, request_id)
                            if fragment:
                                fragment_count += 1
                                yield fragment

                logger.info("llm_request_completed", request_id=request_id, fragment_count=fragment_count)
                return

            except TRANSIENT_ERRORS as e:
                if fragment_count:
                    logger.error(
                        "llm_stream_interrupted",
                        request_id=request_id,
                        fragment_count=fragment_count,
                        error=str(e),
                    )
                    raise
                if attempt >= max_retries:
                    logger.error("llm_request_failed", request_id=request_id, attempts=attempt + 1, error=str(e))
                    raise
                logger.warning(
                    "llm_request_retry",
                    request_id=request_id,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    error=str(e),
                )
                await asyncio.sleep(retry_delay)

            except httpx.HTTPStatusError as e:
                logger.error(
                    "llm_http_error",
                    request_id=request_id,
                    status_code=e.response.status_code,
                    error=str(e),
                )
                raise

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        temperature: float = 0.7,
        request_id: Optional[str] = None,
    ) -> str:
        """Run a prompt to completion and return the joined response text."""
        fragments = []
        async for fragment in self.stream_text(
            prompt=prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            request_id=request_id,
        ):
            fragments.append(fragment)
        return "".join(fragments)
