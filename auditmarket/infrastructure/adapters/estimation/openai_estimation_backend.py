"""Estimation backend for OpenAI-compatible chat-completions APIs.

The backend asks the model for a JSON estimate and returns the first JSON
object found in the reply. It does not validate ranges: the estimation
engine normalizes the response and falls back on anything it rejects.
Every failure is raised as EstimationBackendError.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
import structlog

from auditmarket.application.ports.estimation_backend import EstimationBackendError
from auditmarket.config.marketplace_config import EstimationConfig
from auditmarket.domain.models.estimation import RepositoryAnalysis

log = structlog.get_logger()

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = (
    "You are a senior smart contract security reviewer. You size Solidity "
    "audit engagements and answer with a single JSON object."
)

RESPONSE_SHAPE = """{
  "complexity": "Simple|Medium|Complex",
  "durationDays": number,
  "price": number,
  "minimumPrice": number,
  "reasoning": "short explanation",
  "riskFactors": ["..."],
  "recommendations": ["..."]
}"""


def build_prompt(repository_url: str, analysis: RepositoryAnalysis | None) -> str:
    """User prompt for one estimate request."""
    lines = [f"Repository: {repository_url}"]
    if analysis is not None:
        lines.append(f"Files in repository: {analysis.file_count}")
        lines.append(f"Solidity files: {analysis.solidity_file_count}")
        lines.append(f"Lines of Solidity: {analysis.total_lines}")
    lines.append("")
    lines.append(
        "Estimate the audit complexity, duration in days, recommended price in USD "
        "and the minimum acceptable price in USD. List the main risk factors and "
        "what the audit should focus on."
    )
    lines.append("")
    lines.append("Reply with JSON only, shaped like:")
    lines.append(RESPONSE_SHAPE)
    return "\n".join(lines)


def extract_json_object(content: str) -> dict[str, Any]:
    """Pull the outermost JSON object out of a model reply.

    Raises:
        EstimationBackendError: If no parseable JSON object is present.
    """
    match = _JSON_OBJECT_PATTERN.search(content or "")
    if match is None:
        raise EstimationBackendError("response contains no JSON object")
    try:
        parsed = json.loads(match.group(0))
    except ValueError as exc:
        raise EstimationBackendError(f"response JSON is malformed: {exc}") from exc
    if not isinstance(parsed, dict):
        raise EstimationBackendError("response JSON is not an object")
    return parsed


class OpenAIEstimationBackend:
    """EstimationBackendProtocol implementation over chat-completions.

    Args:
        config: Estimation configuration.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        config: EstimationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def is_configured(self) -> bool:
        return self._config.has_usable_key

    async def estimate(
        self,
        repository_url: str,
        analysis: RepositoryAnalysis | None = None,
    ) -> dict[str, Any]:
        if not self.is_configured():
            raise EstimationBackendError("no usable API key configured")

        body = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(repository_url, analysis)},
            ],
            "temperature": self._config.temperature,
        }
        url = f"{self._config.api_url.rstrip('/')}/chat/completions"

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.timeout_seconds,
        ) as client:
            try:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Authorization": f"Bearer {self._config.api_key}"},
                )
                response.raise_for_status()
                content = response.json()["choices"][0]["message"]["content"]
            except httpx.TimeoutException as exc:
                raise EstimationBackendError(
                    f"timed out after {self._config.timeout_seconds}s"
                ) from exc
            except httpx.HTTPStatusError as exc:
                raise EstimationBackendError(
                    f"HTTP {exc.response.status_code} from estimation API"
                ) from exc
            except httpx.HTTPError as exc:
                raise EstimationBackendError(f"estimation API unreachable: {exc}") from exc
            except (KeyError, IndexError, TypeError, ValueError) as exc:
                raise EstimationBackendError(f"unexpected response shape: {exc}") from exc

        log.debug("estimation_backend_replied", model=self._config.model, chars=len(content or ""))
        return extract_json_object(content)
