import json
import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx

from alert_bridge.core.exceptions import CollaboratorError
from alert_bridge.core.interfaces.agent import IAgentInvoker
from alert_bridge.infrastructure.gateways.common import excerpt

logger = logging.getLogger(__name__)

_DONE = object()


class OpenAIChatAgent(IAgentInvoker):
    """
    Streams a chat completion from an OpenAI-compatible endpoint.
    Fragments are yielded as they arrive over server-sent events.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        temperature: float = 0.2,
        timeout_s: float = 45.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key.strip()
        self.model = model
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.temperature = temperature
        self.timeout = httpx.Timeout(timeout_s)
        self.transport = transport
        logger.info(f"OpenAIChatAgent initialized. URL: {self.url}, model: {self.model}")

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        if not self.api_key:
            raise CollaboratorError("OPENAI_API_KEY is not configured")

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "stream": True,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async with client.stream("POST", self.url, headers=headers, json=payload) as response:
                    if response.status_code >= 400:
                        body = await response.aread()
                        raise CollaboratorError(
                            f"Agent request failed (status={response.status_code}, "
                            f"body={excerpt(body.decode('utf-8', 'replace'))!r})"
                        )
                    async for line in response.aiter_lines():
                        fragment = self._parse_sse_line(line)
                        if fragment is _DONE:
                            return
                        if fragment:
                            yield fragment
        except httpx.HTTPError as e:
            raise CollaboratorError(f"Agent request failed: {e}") from e

    def _parse_sse_line(self, line: str):
        line = line.strip()
        if not line.startswith("data:"):
            return None
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return _DONE
        try:
            chunk = json.loads(data)
        except ValueError:
            logger.warning(f"Skipping malformed stream chunk: {excerpt(data, 120)!r}")
            return None
        if not isinstance(chunk, dict):
            return None
        if "error" in chunk:
            raise CollaboratorError(f"Agent stream error: {chunk['error']}")
        choices = chunk.get("choices") or []
        if not choices:
            return None
        return (choices[0].get("delta") or {}).get("content")
