"""AI gateway: prompt registry + provider call + JSON contract enforcement."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Protocol, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rfpdesk.core.config import AiGatewayConfig, get_config
from rfpdesk.core.exceptions import AiParseError, AiRateLimitError, AiUnavailableError
from rfpdesk.llm.client import LLMClient, LLMRequest, LLMResponse
from rfpdesk.llm.contracts import (
    OutreachEmail,
    ParsedProposal,
    ParsedRfp,
    ProposalEvaluation,
    Recommendation,
)
from rfpdesk.llm.prompt_templates.defaults import DEFAULT_PROMPT_REGISTRY
from rfpdesk.llm.validators.basic import extract_json_object, validate_non_empty_output

logger = logging.getLogger(__name__)

PromptRenderer = Callable[[dict], str]
ContractT = TypeVar("ContractT", bound=BaseModel)


class CompletionClient(Protocol):
    def generate(self, request: LLMRequest) -> LLMResponse: ...


class AiGateway:
    """Typed AI operations backed by a text completion provider.

    Only rate-limit failures are retried, following the configured backoff
    schedule (indexed by attempt, capped at its last entry). Any other provider
    failure propagates immediately as ``AiError``.
    """

    def __init__(
        self,
        client: CompletionClient | None = None,
        config: AiGatewayConfig | None = None,
        prompt_registry: dict[str, PromptRenderer] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client or LLMClient()
        self.config = config or get_config().ai_gateway()
        self.prompt_registry = prompt_registry or dict(DEFAULT_PROMPT_REGISTRY)
        self.sleep = sleep

    def _backoff_for(self, attempt: int) -> float:
        schedule = self.config.backoff_schedule_seconds
        return schedule[min(attempt, len(schedule) - 1)]

    def _complete(self, prompt_key: str, prompt: str) -> LLMResponse:
        request = LLMRequest(prompt_key=prompt_key, prompt=prompt, json_mode=True)
        max_attempts = self.config.max_attempts
        for attempt in range(max_attempts):
            try:
                return self.client.generate(request)
            except AiRateLimitError as exc:
                if attempt + 1 >= max_attempts:
                    logger.error(
                        "ai.rate_limit.exhausted",
                        extra={"event": "ai.rate_limit.exhausted", "prompt_key": prompt_key, "attempts": max_attempts},
                    )
                    raise AiUnavailableError(
                        f"AI provider still rate limited after {max_attempts} attempts."
                    ) from exc
                delay = self._backoff_for(attempt)
                logger.warning(
                    "ai.rate_limited.retrying",
                    extra={
                        "event": "ai.rate_limited.retrying",
                        "prompt_key": prompt_key,
                        "attempt": attempt + 1,
                        "attempts_total": max_attempts,
                        "delay_seconds": delay,
                    },
                )
                self.sleep(delay)
        raise AiUnavailableError("AI gateway made no attempts.")

    def generate(self, prompt_key: str, context: dict, contract: type[ContractT]) -> ContractT:
        """Render, call, extract JSON and validate it against ``contract``."""
        renderer = self.prompt_registry.get(prompt_key)
        if renderer is None:
            raise KeyError(f"Unknown prompt key: {prompt_key}")

        response = self._complete(prompt_key, renderer(context))

        ok, reason = validate_non_empty_output(response.text)
        if not ok:
            raise AiParseError(f"{prompt_key}: {reason}")

        payload = extract_json_object(response.text)
        if payload is None:
            logger.warning("ai.output.unparseable", extra={"event": "ai.output.unparseable", "prompt_key": prompt_key})
            raise AiParseError(f"{prompt_key}: output did not contain a JSON object.")

        try:
            return contract.model_validate(payload)
        except PydanticValidationError as exc:
            logger.warning(
                "ai.output.contract_violation",
                extra={"event": "ai.output.contract_violation", "prompt_key": prompt_key, "errors": exc.error_count()},
            )
            raise AiParseError(f"{prompt_key}: output did not match the expected shape.") from exc

    def parse_request(self, text: str) -> ParsedRfp:
        return self.generate("rfp.parse_request", {"text": text}, ParsedRfp)

    def parse_response(
        self,
        email_body: str,
        attachment_texts: list[str],
        rfp_context: dict[str, Any],
    ) -> ParsedProposal:
        context = {"email_body": email_body, "attachment_texts": attachment_texts, "rfp": rfp_context}
        return self.generate("proposal.parse_response", context, ParsedProposal)

    def evaluate_proposal(self, proposal: ParsedProposal, rfp_context: dict[str, Any]) -> ProposalEvaluation:
        context = {"proposal": proposal.model_dump(by_alias=True, exclude_none=True), "rfp": rfp_context}
        return self.generate("proposal.evaluate", context, ProposalEvaluation)

    def recommend(
        self,
        proposals: list[dict[str, Any]],
        rfp_context: dict[str, Any],
        priorities: list[str] | None = None,
    ) -> Recommendation:
        context = {"proposals": proposals, "rfp": rfp_context, "priorities": priorities or []}
        return self.generate("proposal.recommend", context, Recommendation)

    def generate_outreach_email(self, rfp_context: dict[str, Any], vendor_name: str) -> OutreachEmail:
        context = {"rfp": rfp_context, "vendor_name": vendor_name}
        return self.generate("rfp.outreach_email", context, OutreachEmail)
