"""Generation Client
==================

Client for the code generation model, an OpenAI-compatible chat completions
endpoint (the v0 model API by default).

Two delivery modes:
- ``generate``: single-shot async call via aiohttp, returns the full text
- ``open_stream``: streamed call via requests, returns an iterator of text
  deltas parsed from server-sent events

The stream is opened and its status classified before the iterator is
handed back, so upstream failures surface before any byte reaches the
caller. Closing the iterator closes the upstream connection.

No retries happen here; ``UpstreamRateLimited`` is reported to the caller.
"""

import asyncio
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Optional

import aiohttp
import requests

from .prompt_composer import ComposedPrompt
from .service_base import (
    ConfigurationError,
    GenerationFailed,
    classify_upstream_failure,
    upstream_error_message,
)

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = 'data:'
SSE_DONE = '[DONE]'


class GenerationClient(ABC):
    """Narrow interface the pipeline depends on."""

    @abstractmethod
    async def generate(self, prompt: ComposedPrompt) -> str:
        """Return the complete raw completion text."""

    @abstractmethod
    def open_stream(self, prompt: ComposedPrompt) -> Iterator[str]:
        """Open a streamed completion and return an iterator of text chunks."""


def _message_text(data: Dict[str, Any]) -> str:
    """Extract the assistant text from a chat completion body."""
    try:
        content = data['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        raise GenerationFailed(f"Malformed completion response: {upstream_error_message(data)[:200]}")
    if isinstance(content, list):
        content = ''.join(part.get('text', '') for part in content if isinstance(part, dict))
    return content or ''


class ChunkStream:
    """Iterator over streamed text deltas that owns the upstream response.

    ``close()`` releases the connection even when no chunk was ever pulled,
    which a bare generator's ``close()`` would not do.
    """

    def __init__(self, chunks: Iterator[str], response: requests.Response):
        self._chunks = chunks
        self._response = response

    def __iter__(self) -> 'ChunkStream':
        return self

    def __next__(self) -> str:
        return next(self._chunks)

    def close(self) -> None:
        try:
            self._chunks.close()
        finally:
            self._response.close()


class V0GenerationClient(GenerationClient):
    """Client for the v0 chat completions API.

    Usage:
        client = V0GenerationClient(api_key=..., model='v0-1.0-md')
        text = await client.generate(prompt)
        for chunk in client.open_stream(prompt):
            ...
    """

    API_URL = 'https://api.v0.dev/v1/chat/completions'

    def __init__(
        self,
        api_key: Optional[str],
        api_url: str = API_URL,
        model: str = 'v0-1.0-md',
        max_tokens: int = 6000,
        temperature: float = 0.1,
        timeout: float = 120.0,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
        http_post: Callable[..., requests.Response] = requests.post,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._session_factory = session_factory
        self._http_post = http_post

        if not self.api_key:
            logger.warning("V0_API_KEY not set; generation requests will fail")

    def _require_key(self) -> None:
        if not self.api_key:
            raise ConfigurationError('Missing API key (V0_API_KEY)')

    def _headers(self) -> Dict[str, str]:
        """Build request headers."""
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
            'X-Request-ID': str(uuid.uuid4()),
        }

    def _payload(self, prompt: ComposedPrompt, stream: bool = False) -> Dict[str, Any]:
        """Build request payload."""
        return {
            'model': self.model,
            'messages': prompt.to_messages(),
            'max_tokens': self.max_tokens,
            'temperature': self.temperature,
            'stream': stream,
        }

    async def generate(self, prompt: ComposedPrompt) -> str:
        self._require_key()
        start_time = time.time()
        logger.info(f"API call -> {self.model} (single-shot)")

        try:
            async with self._session_factory() as session:
                async with session.post(
                    self.api_url,
                    json=self._payload(prompt),
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status_code = response.status
                    try:
                        data = await response.json(content_type=None)
                    except (aiohttp.ContentTypeError, ValueError):
                        text = await response.text()
                        data = {'error': f'Non-JSON response: {text[:200]}'}
        except asyncio.TimeoutError as e:
            logger.warning(f"Timeout after {self.timeout}s")
            raise GenerationFailed(f'Generation timed out after {self.timeout}s') from e
        except aiohttp.ClientError as e:
            logger.warning(f"Network error: {e}")
            raise GenerationFailed(f'Network error: {e}') from e

        if status_code != 200:
            message = upstream_error_message(data)
            logger.warning(f"API error {status_code} ({self.model}): {message}")
            raise classify_upstream_failure(status_code, message, GenerationFailed)

        if isinstance(data, dict) and data.get('error') and 'choices' not in data:
            raise classify_upstream_failure(None, upstream_error_message(data), GenerationFailed)

        text = _message_text(data)
        usage = data.get('usage') or {}
        logger.info(
            f"{self.model} in {time.time() - start_time:.1f}s "
            f"({usage.get('prompt_tokens', 0)}->{usage.get('completion_tokens', 0)} tokens)"
        )
        return text

    def open_stream(self, prompt: ComposedPrompt) -> Iterator[str]:
        self._require_key()
        logger.info(f"API call -> {self.model} (stream)")

        try:
            response = self._http_post(
                self.api_url,
                json=self._payload(prompt, stream=True),
                headers=self._headers(),
                stream=True,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(f"Timeout after {self.timeout}s")
            raise GenerationFailed(f'Generation timed out after {self.timeout}s') from e
        except requests.RequestException as e:
            logger.warning(f"Network error: {e}")
            raise GenerationFailed(f'Network error: {e}') from e

        if response.status_code != 200:
            try:
                try:
                    message = upstream_error_message(response.json())
                except ValueError:
                    message = response.text[:200]
            finally:
                response.close()
            logger.warning(f"API error {response.status_code} ({self.model}): {message}")
            raise classify_upstream_failure(response.status_code, message, GenerationFailed)

        return ChunkStream(self._iter_chunks(response), response)

    def _iter_chunks(self, response: requests.Response) -> Iterator[str]:
        """Yield content deltas from a server-sent-events body."""
        chunks = 0
        try:
            for raw_line in response.iter_lines():
                if not raw_line:
                    continue
                line = raw_line.decode('utf-8') if isinstance(raw_line, bytes) else raw_line
                if not line.startswith(SSE_DATA_PREFIX):
                    continue
                data = line[len(SSE_DATA_PREFIX):].strip()
                if data == SSE_DONE:
                    break
                try:
                    event = json.loads(data)
                except ValueError:
                    logger.debug(f"Skipping non-JSON stream event: {data[:80]}")
                    continue
                if not isinstance(event, dict):
                    logger.debug(f"Skipping non-object stream event: {data[:80]}")
                    continue
                if event.get('error'):
                    raise classify_upstream_failure(None, upstream_error_message(event), GenerationFailed)
                for choice in event.get('choices') or []:
                    content = (choice.get('delta') or {}).get('content')
                    if content:
                        chunks += 1
                        yield content
        except requests.RequestException as e:
            raise GenerationFailed(f'Stream interrupted: {e}') from e
        finally:
            response.close()
            logger.info(f"Stream from {self.model} closed after {chunks} chunks")
