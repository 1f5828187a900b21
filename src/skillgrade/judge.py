"""LLM-as-a-judge for scoring skill quality."""

import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from skillgrade.config import Settings
from skillgrade.errors import ConfigError, JudgeError
from skillgrade.models import JudgeEvaluation, ParsedDocument

logger = logging.getLogger(__name__)


class Judge(Protocol):
    """Anything that can turn a skill's header and body into a JudgeEvaluation."""

    async def evaluate(self, header: dict[str, str | list[str]], body: str) -> JudgeEvaluation: ...


def build_judge_prompt(document: ParsedDocument) -> str:
    """Render the evaluation instructions for one skill document."""
    return f"""Analyze this Agent Skill for quality:

Name: {document.field("name")}
Description: {document.field("description")}
Tags: {document.field("tags")}
Author: {document.field("author")}
Version: {document.field("version")}

Content:
{document.body}

Evaluate on scale of 1-3 (3=excellent, 2=good, 1=needs improvement):

DESCRIPTION (4 criteria):
- specificity: Concrete actions vs vague language
- trigger_term_quality: Natural user language variations
- completeness: Covers "what" and "when"
- distinctiveness_conflict_risk: Clear scope differentiation

CONTENT (4 criteria):
- conciseness: Efficient, explains only what the agent wouldn't know
- actionability: Working code samples, verification commands
- workflow_clarity: Clear structure, decision trees
- progressive_disclosure: Overview with references for depth

STRUCTURE (4 criteria):
- frontmatter_quality: Required fields present, valid format
- trigger_clarity: Clear "Use when" conditions
- example_quality: Complete, tested code examples
- completeness: Edge cases, error handling covered

Calculate scores:
- Description: (sum / 12) x 100
- Content: (sum / 12) x 100
- Structure: (sum / 12) x 100
- Overall: average of all three

Respond ONLY with valid JSON (no markdown, no code blocks):
{{
  "description": {{ "specificity": 3, "trigger_term_quality": 3, "completeness": 3, "distinctiveness_conflict_risk": 3, "score": 100, "feedback": "..." }},
  "content": {{ "conciseness": 3, "actionability": 3, "workflow_clarity": 3, "progressive_disclosure": 3, "score": 100, "feedback": "..." }},
  "structure": {{ "frontmatter_quality": 3, "trigger_clarity": 3, "example_quality": 3, "completeness": 3, "score": 100, "feedback": "..." }},
  "overall_score": 100,
  "assessment": "Overall assessment...",
  "suggestions": ["Specific improvement 1", "Specific improvement 2"]
}}"""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` fence and a leading 'json' label, if present."""
    stripped = text.strip()

    if stripped.startswith("```"):
        lines = stripped.split("\n")
        if "```" in lines[0]:
            lines.pop(0)
        if lines and "```" in lines[-1]:
            lines.pop()
        stripped = "\n".join(lines).strip()

    if stripped.lower().startswith("json"):
        stripped = stripped[4:].strip()

    return stripped


def decode_judge_response(text: str) -> JudgeEvaluation:
    """
    Decode the judge's completion text into a JudgeEvaluation.

    Raises:
        JudgeError: If the text is not valid JSON or does not match the schema
    """
    if not isinstance(text, str):
        raise JudgeError("malformed judge response")

    try:
        data = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise JudgeError("malformed judge response") from e

    try:
        return JudgeEvaluation.model_validate(data)
    except ValidationError as e:
        raise JudgeError(f"malformed judge response: {e.error_count()} invalid field(s)") from e


def extract_completion_text(data: Any) -> str:
    """Pull the generated text out of a chat-completion response body."""
    text = None
    if isinstance(data, dict):
        choices = data.get("choices")
        if (
            isinstance(choices, list)
            and choices
            and isinstance(choices[0], dict)
            and isinstance(choices[0].get("message"), dict)
        ):
            text = choices[0]["message"].get("content")
            if text is None:
                text = "{}"
        elif data.get("content"):
            text = data["content"]
        elif data.get("response"):
            text = data["response"]

    # Content-part lists and other non-text payloads are not decodable.
    if isinstance(text, str):
        return text

    raise JudgeError("unexpected judge response format (set DEBUG_LLM=1 to inspect it)")


class JudgeClient:
    """Judge backed by an OpenAI-compatible chat-completions endpoint.

    Example usage:
        ```python
        judge = JudgeClient(base_url="https://api.groq.com/openai/v1", api_key="gsk-...")
        evaluation = await judge.evaluate(document.header, document.body)
        print(evaluation.overall_score)
        ```
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str = "openai/gpt-oss-20b",
        max_tokens: int = 2048,
        temperature: float = 0.3,
        timeout: float | None = None,
        debug: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the judge client.

        Args:
            base_url: Endpoint base URL; requests go to <base_url>/chat/completions
            api_key: Bearer credential for the endpoint
            model: Model identifier sent with each request
            max_tokens: Completion token limit
            temperature: Sampling temperature
            timeout: Request timeout in seconds, None to wait indefinitely
            debug: Log raw response bodies at DEBUG level
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.debug = debug
        self._transport = transport

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def _get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _build_request(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

    async def _complete(self, prompt: str) -> str:
        """Send one chat-completion request and return the generated text."""
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                response = await client.post(
                    self.completions_url,
                    headers=self._get_headers(),
                    json=self._build_request(prompt),
                )
            except httpx.RequestError as e:
                logger.debug(f"Judge request to {self.completions_url} failed: {e!r}")
                raise JudgeError(f"judge request failed: {e}") from e

        if response.status_code == 401:
            raise JudgeError("invalid credentials: check LLM_API_KEY")
        if not response.is_success:
            raise JudgeError(f"judge request failed: {response.status_code} {response.text}")

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise JudgeError("judge returned a non-JSON response body") from e

        if self.debug:
            logger.debug(f"LLM response: {json.dumps(data, indent=2)}")

        return extract_completion_text(data)

    async def evaluate(self, header: dict[str, str | list[str]], body: str) -> JudgeEvaluation:
        """
        Ask the judge model to score a skill.

        Args:
            header: Parsed metadata fields
            body: Skill document body

        Returns:
            JudgeEvaluation decoded from the model's reply

        Raises:
            JudgeError: On transport failure, non-success status or undecodable reply
        """
        prompt = build_judge_prompt(ParsedDocument(header=header, body=body))
        completion = await self._complete(prompt)
        return decode_judge_response(completion)


def create_judge(settings: Settings) -> JudgeClient:
    """
    Build a JudgeClient from settings.

    Raises:
        ConfigError: If the endpoint URL or API key is missing
    """
    missing = [
        name
        for name, value in (("OPEN_AI_LLM_URL", settings.open_ai_llm_url), ("LLM_API_KEY", settings.llm_api_key))
        if not value
    ]
    if missing:
        raise ConfigError(f"{' and '.join(missing)} must be set (environment or .env file) for llm mode")

    return JudgeClient(
        base_url=settings.open_ai_llm_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout,
        debug=settings.debug_llm,
    )
