"""LLM-backed analysis provider.

Wraps any async ``prompt -> str`` backend (see ``openai_backend``), asks it
for a JSON verdict, and turns the answer into an ``AnalysisResult``.
Models often wrap JSON in markdown fences or surround it with prose, so
the parser takes a fenced block first, then the outermost braces.
"""

from __future__ import annotations

import html
import json
import logging
import re
from collections.abc import Callable, Coroutine
from typing import Any

from ..core.exceptions import AnalysisParseError
from ..workflow.enums import Verdict
from ..workflow.models import AnalysisResult

logger = logging.getLogger(__name__)

Backend = Callable[[str], Coroutine[Any, Any, str]]

ANALYSIS_SYSTEM_PROMPT = """You are a medical fact-checking AI. Analyze health claims and respond ONLY with valid JSON.

Verdict types:
- "true": Supported by medical evidence
- "false": Contradicts medical science
- "misleading": Oversimplifies or misrepresents facts
- "uncertain": Insufficient evidence

Do NOT include any text before or after the JSON object."""

ANALYSIS_OUTPUT_SCHEMA = """{
  "verdict": "true|false|misleading|uncertain",
  "confidence": 0.85,
  "summary": "Brief evidence-based explanation",
  "sources": ["Medical source 1", "Medical source 2", "Medical source 3"]
}"""

DEFAULT_CONFIDENCE = 0.5
DEFAULT_SOURCES = ("General Medical Literature",)

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)
_BARE_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def build_analysis_prompt(claim_text: str, context: dict[str, Any] | None = None) -> str:
    """User prompt asking for a JSON verdict on ``claim_text``."""
    parts = [f'Analyze this health claim: "{claim_text}"']
    if context:
        parts.append(f"Context: {json.dumps(context, default=str)}")
    parts.append(
        "CRITICAL: Respond ONLY with valid JSON. No explanatory text before or after the JSON.\n\n"
        f"Required JSON format:\n{ANALYSIS_OUTPUT_SCHEMA}\n\n"
        "Your response must be parseable JSON only."
    )
    return "\n\n".join(parts)


def clean_text(text: str) -> str:
    """Strip HTML tags and entities and collapse whitespace."""
    if not text:
        return text
    text = _BR_RE.sub("\n", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    return _WS_RE.sub(" ", text).strip()


def extract_json(content: str) -> dict[str, Any]:
    """Pull the JSON object out of a model response.

    Raises:
        AnalysisParseError: If no JSON object can be decoded
    """
    match = _FENCED_JSON_RE.search(content) or _BARE_JSON_RE.search(content)
    json_text = match.group(1 if match.re is _FENCED_JSON_RE else 0) if match else content
    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError:
        logger.error(f"Failed to parse analysis JSON: {json_text[:500]!r}")
        raise AnalysisParseError(
            f'No valid JSON found in analysis response. Response started with: "{content[:100]}..."'
        ) from None
    if not isinstance(parsed, dict):
        raise AnalysisParseError("Analysis response is not a JSON object")
    return parsed


def parse_analysis(content: str) -> AnalysisResult:
    """Validate a model response into an ``AnalysisResult``.

    Unknown verdicts become ``uncertain``; confidence is clamped to
    [0, 1]. A missing verdict or summary is an error.
    """
    parsed = extract_json(content)
    if not parsed.get("verdict") or not parsed.get("summary"):
        raise AnalysisParseError("Invalid analysis response: missing verdict or summary")

    raw_verdict = str(parsed["verdict"]).strip().lower()
    try:
        verdict = Verdict(raw_verdict)
    except ValueError:
        logger.warning(f"Invalid verdict value {raw_verdict!r}, using uncertain")
        verdict = Verdict.UNCERTAIN

    raw_confidence = parsed.get("confidence")
    try:
        confidence = DEFAULT_CONFIDENCE if raw_confidence is None else float(raw_confidence)
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    confidence = max(0.0, min(1.0, confidence))

    sources = parsed.get("sources")
    if isinstance(sources, list):
        cleaned = tuple(clean_text(str(s)) for s in sources)
    else:
        cleaned = DEFAULT_SOURCES

    return AnalysisResult(
        verdict=verdict,
        confidence=confidence,
        summary=clean_text(str(parsed["summary"])),
        sources=cleaned,
    )


class LLMAnalysisProvider:
    """``AnalysisProvider`` over an async text-completion backend."""

    def __init__(self, backend: Backend | None):
        self.backend = backend

    async def analyze(self, claim_text: str, context: dict[str, Any] | None = None) -> AnalysisResult:
        if self.backend is None:
            raise AnalysisParseError("Analysis backend not configured")

        content = await self.backend(build_analysis_prompt(claim_text, context))
        logger.debug(f"Analysis response received ({len(content)} chars): {content[:200]!r}")
        result = parse_analysis(content)
        logger.info(f"Analysis complete: verdict={result.verdict.value} confidence={result.confidence:.2f}")
        return result

    async def health_check(self) -> bool:
        return self.backend is not None
