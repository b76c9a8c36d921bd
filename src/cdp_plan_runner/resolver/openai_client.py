"""Translator and resolver backed by an OpenAI-compatible chat completion API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from ..config import ResolverConfig
from ..errors import ResolverFailure
from ..models import Plan, SelectorInfo
from .base import ElementResolver, PlanTranslator
from .html import clean_html
from .json_parser import extract_json_object, parse_plan_text, parse_selector_info
from .retry import retry_with_backoff

LOGGER = logging.getLogger(__name__)

_PLAN_PROMPT = """You are a browser automation assistant. Convert the natural language command \
below into a structured automation plan.

Return a JSON object with a "task" field holding a brief description and a "steps" array.
Each step has:
- "action": one of [navigate, search, click, type, extract, wait, scroll, findSelector, pressEnter]
- "description": human-readable description of the step
- "params": {{"url", "text", "description", "selector", "duration", "direction", "amount", \
"instructions"}} as applicable

Guidelines:
1. Use "navigate" with a full URL to open a page.
2. Use "search" to fill a search box and submit it ("text" is the query).
3. Use "type" with "text" to fill form fields and "click" to press elements; describe the \
element in params.description.
4. Use "pressEnter" to submit the focused field.
5. Use "wait" with "duration" in milliseconds.
6. Use "scroll" with "direction" (up, down, left, right, top, bottom) and "amount" in pixels.
7. Use "extract" with "instructions" only when the user asks for data.
Generate only the steps the user explicitly requested.

Command: {command}"""

_SELECTOR_PROMPT = """You are an expert in HTML and CSS selectors. Analyse the HTML below and \
return the most precise CSS selector for the described element.

Description: {description}

Return only a JSON object:
{{"selector": "...", "confidence": 0.0-1.0, "explanation": "...", \
"submitSelector": "optional selector of the button submitting this field"}}

HTML:
{html}"""

_EXTRACT_PROMPT = """You are an expert in web data extraction. Analyse the HTML below and \
extract the requested data.

Instructions: {instructions}

Return only a JSON object using descriptive field names, arrays for repeated items and \
nested objects for related data.

HTML:
{html}"""

_DEFAULT_SYSTEM_PROMPT = (
    "You help automate a web browser. Always respond with a strict JSON object."
)


class OpenAIResolver(ElementResolver, PlanTranslator):
    """Call an OpenAI-compatible chat completion API for plans, selectors and data."""

    def __init__(
        self,
        config: ResolverConfig,
        *,
        client: Optional[httpx.Client] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        if not config.model:
            raise ValueError("Resolver model must be specified for OpenAIResolver")
        self._config = config
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        self._client = client or httpx.Client(
            base_url=config.base_url or "https://api.openai.com/v1",
            timeout=config.parameters.get("timeout", 60),
            headers=headers,
        )
        self._system_prompt = config.parameters.get("system_prompt", _DEFAULT_SYSTEM_PROMPT)
        self._temperature = config.parameters.get("temperature", 0.0)
        self._retry_kwargs: dict[str, Any] = {}
        if sleep is not None:
            self._retry_kwargs["sleep"] = sleep

    def translate(self, command: str) -> Plan:
        LOGGER.info("Processing command: %s", command)
        try:
            text = self._complete(_PLAN_PROMPT.format(command=command))
        except httpx.HTTPError as exc:
            raise ResolverFailure(f"Plan request failed: {exc}") from exc
        plan = parse_plan_text(text)
        LOGGER.info("Generated plan with %d steps for task: %s", len(plan.steps), plan.task)
        return plan

    def find_selector(self, html: str, description: str) -> SelectorInfo:
        prompt = _SELECTOR_PROMPT.format(
            description=description,
            html=clean_html(html, self._config.max_html_chars),
        )
        try:
            text = self._complete(prompt)
        except httpx.HTTPError as exc:
            raise ResolverFailure(f"Selector request failed: {exc}") from exc
        return parse_selector_info(text)

    def extract(self, html: str, instructions: str) -> dict[str, Any]:
        prompt = _EXTRACT_PROMPT.format(
            instructions=instructions,
            html=clean_html(html, self._config.max_html_chars),
        )
        try:
            text = self._complete(prompt)
            data = extract_json_object(text)
        except httpx.HTTPError as exc:
            raise ResolverFailure(f"Extraction request failed: {exc}") from exc
        except ValueError as exc:
            raise ResolverFailure(f"Failed to parse extraction response as JSON: {exc}") from exc
        return {
            "data": data,
            "metadata": {
                "extraction_timestamp": datetime.now(timezone.utc).isoformat(),
                "instructions": instructions,
                "source": "model extraction",
            },
        }

    def _complete(self, prompt: str) -> str:
        payload = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._temperature,
        }
        payload.update(
            {
                k: v
                for k, v in self._config.parameters.items()
                if k not in {"timeout", "system_prompt", "temperature", "responses"}
            }
        )

        def _post() -> dict[str, Any]:
            response = self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            return response.json()

        data = retry_with_backoff(
            _post,
            self._config.max_retries,
            self._config.retry_delay,
            **self._retry_kwargs,
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ResolverFailure(f"Unexpected response format: {data}") from exc
        LOGGER.debug("Model response: %s", content)
        return content
