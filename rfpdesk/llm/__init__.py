"""AI gateway package: provider client, prompt templates and JSON contracts."""

from rfpdesk.llm.gateway import AiGateway

__all__ = ["AiGateway"]
