"""Single sample request against a hosted Gemini model."""

import copy
import json
import logging
import time
from typing import Any, Optional

import httpx

from ..core.errors import (
    AuthError,
    CollaboratorMissing,
    SetupError,
    TransportError,
    UnexpectedResponseShape,
)
from ..core.models import DEFAULT_MODEL_ID, ApiProbeResult
from ..core.ports import CloudCliPort

logger = logging.getLogger(__name__)

ENDPOINT_TEMPLATE = (
    "https://{region}-aiplatform.googleapis.com/v1/projects/{project}"
    "/locations/{region}/publishers/google/models/{model}:generateContent"
)

GENERATION_CONFIG: dict[str, Any] = {
    "temperature": 0.7,
    "maxOutputTokens": 1024,
    "topK": 40,
    "topP": 0.95,
}

SEARCH_TOOL: dict[str, Any] = {"googleSearch": {}}
# Gemini 1.x only accepts the retrieval form of the search tool
LEGACY_SEARCH_TOOL: dict[str, Any] = {"googleSearchRetrieval": {}}


def build_endpoint(project_id: str, region: str, model_id: str) -> str:
    """Return the generateContent URL for a publisher model."""
    return ENDPOINT_TEMPLATE.format(project=project_id, region=region, model=model_id)


def search_tool_for(model_id: str) -> dict[str, Any]:
    """Return the search tool the given model accepts."""
    name = model_id.rsplit("/", 1)[-1]
    if name.startswith("gemini-1."):
        return copy.deepcopy(LEGACY_SEARCH_TOOL)
    return copy.deepcopy(SEARCH_TOOL)


def build_request_body(
    prompt: str, use_search_grounding: bool, model_id: str = DEFAULT_MODEL_ID
) -> dict[str, Any]:
    """
    Compose the generateContent body.

    The ``tools`` key is present only when search grounding is requested.
    """
    body: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": dict(GENERATION_CONFIG),
    }
    if use_search_grounding:
        body["tools"] = [search_tool_for(model_id)]
    return body


def extract_text(payload: Any) -> str:
    """
    Pull the generated text out of a generateContent response.

    Raises:
        UnexpectedResponseShape: If no candidate text is present
    """
    if not isinstance(payload, dict):
        raise UnexpectedResponseShape("response is not a JSON object")
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise UnexpectedResponseShape(
            "response has no candidates", detail=json.dumps(payload)[:500]
        )
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise UnexpectedResponseShape(
            "first candidate has no content parts", detail=json.dumps(payload)[:500]
        )
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    if not texts:
        raise UnexpectedResponseShape(
            "first candidate has no text part", detail=json.dumps(payload)[:500]
        )
    return "".join(texts)


def extract_grounding_sources(payload: dict[str, Any]) -> list[str]:
    """Collect search queries and web sources from grounding metadata."""
    candidates = payload.get("candidates") or []
    metadata = candidates[0].get("groundingMetadata") if candidates else None
    if not isinstance(metadata, dict):
        return []

    sources: list[str] = []
    for query in metadata.get("webSearchQueries") or []:
        sources.append(f"search: {query}")
    for chunk in metadata.get("groundingChunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if isinstance(web, dict) and web.get("uri"):
            title = web.get("title") or web["uri"]
            sources.append(f"{title} <{web['uri']}>")
    return sources


class ApiProbe:
    """Issues exactly one generateContent request per probe() call."""

    def __init__(
        self,
        cli: CloudCliPort,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cli = cli
        self.timeout = timeout
        self.transport = transport

    async def probe(
        self,
        endpoint: str,
        model_id: str,
        prompt: str,
        use_search_grounding: bool,
    ) -> ApiProbeResult:
        """
        Send the sample request and classify the outcome.

        Stage-local failures are returned in ``ApiProbeResult.error``; nothing
        is retried.

        Args:
            endpoint: Full generateContent URL
            model_id: Model the endpoint targets (for logging)
            prompt: User prompt text
            use_search_grounding: Attach the Google Search tool

        Returns:
            ApiProbeResult with either response_text or error set
        """
        body = build_request_body(prompt, use_search_grounding, model_id)
        result = ApiProbeResult(request_payload=body)

        try:
            token = await self.cli.mint_token()
        except CollaboratorMissing:
            raise
        except SetupError as e:
            if not isinstance(e, AuthError):
                e = AuthError("could not obtain an access token", detail=str(e))
            result.error = e
            return result

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        logger.debug("POST %s (model=%s, grounding=%s)", endpoint, model_id, use_search_grounding)
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), transport=self.transport
            ) as client:
                response = await client.post(endpoint, json=body, headers=headers)
        except httpx.TimeoutException as e:
            result.latency_seconds = time.perf_counter() - started
            result.error = TransportError(
                f"request timed out after {self.timeout:.0f}s", detail=str(e) or type(e).__name__
            )
            return result
        except httpx.HTTPError as e:
            result.latency_seconds = time.perf_counter() - started
            result.error = TransportError("request failed", detail=str(e) or type(e).__name__)
            return result

        result.latency_seconds = time.perf_counter() - started
        result.status_code = response.status_code
        logger.debug("HTTP %d in %.2fs", response.status_code, result.latency_seconds)

        if response.status_code in (401, 403):
            result.error = AuthError(
                f"API rejected credentials (HTTP {response.status_code})",
                detail=response.text,
                status_code=response.status_code,
            )
            return result
        if not response.is_success:
            result.error = TransportError(
                f"API request failed (HTTP {response.status_code})",
                detail=response.text,
                status_code=response.status_code,
            )
            return result

        try:
            payload = response.json()
        except ValueError:
            result.error = UnexpectedResponseShape(
                "response body is not JSON", detail=response.text[:500]
            )
            return result

        try:
            result.response_text = extract_text(payload)
        except UnexpectedResponseShape as e:
            result.error = e
            return result

        result.grounding_sources = extract_grounding_sources(payload)
        return result
