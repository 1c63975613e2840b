"""Default prompt templates used by the AI gateway.

Each renderer takes a plain context dict and returns the full prompt text.
"""

from __future__ import annotations

import json
from typing import Any


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _or(value: Any, fallback: str) -> str:
    return str(value) if value not in (None, "", []) else fallback


def render_parse_request_prompt(context: dict) -> str:
    return (
        "You are an expert procurement assistant. Turn the procurement request below into a structured RFP.\n\n"
        "REQUEST TEXT:\n"
        f"\"{context.get('text', '')}\"\n\n"
        "Return a JSON object with exactly this structure:\n"
        "{\n"
        '  "title": "short RFP title",\n'
        '  "description": "what is being procured",\n'
        '  "budget": number or null,\n'
        '  "currency": "ISO currency code as stated by the user (USD, EUR, GBP, INR, ...)" or null,\n'
        '  "deadline": "YYYY-MM-DD" or null,\n'
        '  "deliveryDays": number or null,\n'
        '  "paymentTerms": "string" or null,\n'
        '  "warrantyTerms": "string" or null,\n'
        '  "items": [\n'
        '    {"name": "item name", "description": "item description", "quantity": number,\n'
        '     "unit": "units/pieces/etc", "specifications": {"key": "value"}}\n'
        "  ],\n"
        '  "additionalRequirements": {"key": "value"} or null,\n'
        '  "summary": "short professional summary suitable for vendors"\n'
        "}\n\n"
        "Capture every specification mentioned. Convert currency symbols to ISO codes "
        "($=USD, ₹=INR, €=EUR, £=GBP, ¥=JPY). If no currency is mentioned, use null.\n"
        "Return ONLY the JSON object."
    )


def render_parse_response_prompt(context: dict) -> str:
    rfp = context.get("rfp", {})
    attachments = context.get("attachment_texts") or []
    attachment_block = ""
    if attachments:
        attachment_block = "ATTACHMENT CONTENTS:\n" + "\n\n---\n\n".join(attachments) + "\n\n"
    return (
        "You are an expert procurement analyst. Extract structured data from this vendor proposal.\n\n"
        "RFP CONTEXT:\n"
        f"Title: \"{rfp.get('title', '')}\"\n"
        f"Budget: {_or(rfp.get('budget'), 'Not specified')}\n"
        f"Items Required:\n{_json(rfp.get('items', []))}\n\n"
        "VENDOR EMAIL:\n"
        f"{context.get('email_body', '')}\n\n"
        f"{attachment_block}"
        "Return a JSON object with this structure:\n"
        "{\n"
        '  "totalPrice": number or null,\n'
        '  "currency": "ISO currency code used in the proposal" or null,\n'
        '  "deliveryDays": number or null,\n'
        '  "paymentTerms": "string" or null,\n'
        '  "warrantyTerms": "string" or null,\n'
        '  "validityPeriod": "string" or null,\n'
        '  "items": [\n'
        '    {"name": "string", "description": "string", "quantity": number,\n'
        '     "unitPrice": number or null, "totalPrice": number or null, "specifications": {"key": "value"}}\n'
        "  ],\n"
        '  "additionalTerms": {"key": "value"} or null,\n'
        '  "summary": "short summary of the proposal",\n'
        '  "confidence": number from 0 to 100 describing how sure you are of the extraction\n'
        "}\n\n"
        "Match proposal items to RFP items where possible. Return ONLY the JSON object."
    )


def render_evaluate_prompt(context: dict) -> str:
    rfp = context.get("rfp", {})
    delivery = rfp.get("delivery_days")
    return (
        "You are an expert procurement evaluator. Score the vendor proposal against the RFP requirements.\n\n"
        "RFP REQUIREMENTS:\n"
        f"Title: {rfp.get('title', '')}\n"
        f"Budget: {_or(rfp.get('budget'), 'Not specified')}\n"
        f"Required Delivery: {f'{delivery} days' if delivery else 'Not specified'}\n"
        f"Payment Terms: {_or(rfp.get('payment_terms'), 'Not specified')}\n"
        f"Warranty Required: {_or(rfp.get('warranty_terms'), 'Not specified')}\n"
        f"Items: {_json(rfp.get('items', []))}\n\n"
        "VENDOR PROPOSAL:\n"
        f"{_json(context.get('proposal', {}))}\n\n"
        "Score each criterion from 0 to 100:\n"
        "1. priceScore: competitiveness against the budget\n"
        "2. deliveryScore: fit with the delivery timeline\n"
        "3. termsScore: acceptability of payment and warranty terms\n"
        "4. completenessScore: coverage of all requested items\n"
        "5. complianceScore: overall compliance with the RFP\n\n"
        "Return a JSON object:\n"
        "{\n"
        '  "overallScore": number (weighted average, 0-100),\n'
        '  "scoreBreakdown": {"priceScore": number, "deliveryScore": number, "termsScore": number,\n'
        '                     "completenessScore": number, "complianceScore": number},\n'
        '  "strengths": ["..."],\n'
        '  "weaknesses": ["..."],\n'
        '  "recommendation": "short recommendation"\n'
        "}\n\n"
        "Return ONLY the JSON object."
    )


def render_recommend_prompt(context: dict) -> str:
    rfp = context.get("rfp", {})
    priorities = context.get("priorities") or []
    priorities_line = f"Priorities: {', '.join(priorities)}\n" if priorities else ""
    return (
        "You are an expert procurement advisor. Compare the vendor proposals below and recommend one.\n\n"
        f"RFP: {rfp.get('title', '')}\n"
        f"Budget: {_or(rfp.get('budget'), 'Not specified')}\n"
        f"{priorities_line}\n"
        "PROPOSALS AND EVALUATIONS:\n"
        f"{_json(context.get('proposals', []))}\n\n"
        "Explain which vendor to choose and why, summarize how all vendors compare, and rank them.\n\n"
        "Return a JSON object:\n"
        "{\n"
        '  "recommendedVendor": "vendor name",\n'
        '  "reasoning": "detailed reasoning",\n'
        '  "comparisonSummary": "summary of the comparison",\n'
        '  "rankings": [{"vendorName": "name", "rank": 1, "summary": "short summary"}]\n'
        "}\n\n"
        "Return ONLY the JSON object."
    )


def render_outreach_email_prompt(context: dict) -> str:
    rfp = context.get("rfp", {})
    budget = rfp.get("budget")
    delivery = rfp.get("delivery_days")
    lines = []
    for index, item in enumerate(rfp.get("items", []), start=1):
        line = f"{index}. {item.get('name')} - Qty: {item.get('quantity')}"
        if item.get("specifications"):
            line += f" - Specs: {json.dumps(item['specifications'], ensure_ascii=False)}"
        lines.append(line)
    budget_line = f"{rfp.get('currency') or ''} {budget}".strip() if budget else "To be quoted"
    extra = rfp.get("additional_requirements")
    extra_line = f"Additional Requirements: {json.dumps(extra, ensure_ascii=False)}\n" if extra else ""
    return (
        f"Write a professional RFP email addressed to {context.get('vendor_name', 'the vendor')}.\n\n"
        "RFP DETAILS:\n"
        f"Title: {rfp.get('title', '')}\n"
        f"Description: {_or(rfp.get('description'), '')}\n"
        f"Budget: {budget_line}\n"
        f"Deadline: {_or(rfp.get('deadline'), 'As soon as possible')}\n"
        f"Delivery Required: {f'Within {delivery} days' if delivery else 'To be proposed'}\n"
        f"Payment Terms: {_or(rfp.get('payment_terms'), 'Standard terms acceptable')}\n"
        f"Warranty Required: {_or(rfp.get('warranty_terms'), 'Please specify')}\n\n"
        "Items Required:\n"
        + "\n".join(lines)
        + "\n\n"
        + extra_line
        + "\nKeep it clear and complete. Never use placeholders such as [Your Name].\n\n"
        "Return a JSON object:\n"
        '{"subject": "email subject line", "body": "full email body"}\n\n'
        "Return ONLY the JSON object."
    )


DEFAULT_PROMPT_REGISTRY = {
    "rfp.parse_request": render_parse_request_prompt,
    "proposal.parse_response": render_parse_response_prompt,
    "proposal.evaluate": render_evaluate_prompt,
    "proposal.recommend": render_recommend_prompt,
    "rfp.outreach_email": render_outreach_email_prompt,
}
