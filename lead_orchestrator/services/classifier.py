"""
AI-powered lead classification.

Uses an Azure OpenAI chat deployment to decide the inquirer's persona, the
intent of the inquiry and a lead score, and to write personalised WhatsApp
replies. Any failure degrades to fixed fallback values so intake never stops
because the model is unavailable.
"""

import json
import logging
import re
from typing import Optional

import httpx
from pydantic import BaseModel

from lead_orchestrator.core.config import settings
from lead_orchestrator.models.lead import Persona, Intent
from lead_orchestrator.schemas.classification import (
    Classification,
    ExtractedEntities,
    FALLBACK_CLASSIFICATION,
)

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = (
    "Thank you for your inquiry! Our team will get back to you shortly "
    "with the information you need."
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)

CLASSIFICATION_PROMPT = """You are an expert lead qualification system for material brands (flooring, laminates, lighting) in India.

Analyze this inquiry and classify the lead:

Name: {name}
Email: {email}
Phone: {phone}
Inquiry: {inquiry}
Material Type: {material_type}

PERSONA DEFINITIONS:
- HOMEOWNER: Individual buying for personal use, single project, residential focus
- ARCHITECT: Professional specifying materials for multiple projects, B2B influencer
- CONTRACTOR: Bulk procurement, execution-focused, commercial or residential
- DEALER: Reseller or distributor looking for partnership
- UNKNOWN: Cannot determine from available information

INTENT CATEGORIES:
- PRICE_INQUIRY: Asking about pricing, quotes, discounts
- SAMPLE_REQUEST: Wants physical samples or swatches
- TECHNICAL_SPECS: Needs specifications, CAD files, technical documentation
- DESIGN_HELP: Seeking design inspiration, color matching, aesthetic guidance
- INSTALLATION_QUERY: Questions about installation process, contractors
- DEALER_LOCATOR: Looking for nearby dealers or showrooms
- COMPLAINT: Issue with product or service
- GENERAL_INQUIRY: Exploratory, not specific intent

LEAD SCORING (0-1):
- 0.9-1.0: Architect with large project, clear budget, immediate need
- 0.7-0.89: Contractor with bulk order, or architect with smaller project
- 0.5-0.69: Homeowner with clear intent and budget
- 0.3-0.49: Exploratory inquiry, no clear budget or timeline
- 0.0-0.29: Very vague, likely spam, or no purchase intent

ENTITY EXTRACTION:
Extract location, project size (sq ft or units), budget range, material type and urgency (LOW, MEDIUM or HIGH) from the inquiry.

Return ONLY a JSON object of this shape:
{{
  "persona": "...",
  "intent": "...",
  "lead_score": 0.0,
  "reasoning": "detailed reasoning for the classification",
  "extracted_entities": {{
    "location": null,
    "project_size": null,
    "budget": null,
    "material_type": null,
    "urgency": null
  }}
}}"""

MESSAGE_PROMPT = """Generate a warm, professional WhatsApp message for a {persona} with {intent} intent.

Lead Name: {name}
Context: {context}

Requirements:
- Keep it under 150 words
- Use conversational tone suitable for WhatsApp
- Address their specific intent
- Include a clear next step
- Use Indian English conventions
- Be helpful and not pushy

Do not include greetings like "Hi" or "Hello" - start directly with the message content.
Return ONLY a JSON object: {{"message": "..."}}"""


class _GeneratedMessage(BaseModel):
    message: str


class LeadClassifier:
    """Classifies leads and drafts replies through Azure OpenAI."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        deployment: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.AZURE_OPENAI_API_KEY if api_key is None else api_key
        self.endpoint = (settings.AZURE_OPENAI_ENDPOINT if endpoint is None else endpoint).rstrip("/")
        self.deployment = deployment or settings.AZURE_OPENAI_CHAT_DEPLOYMENT
        self.api_version = api_version or settings.AZURE_OPENAI_API_VERSION
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.endpoint)

    async def classify(
        self,
        name: str,
        email: str,
        phone: str,
        inquiry: str,
        material_type: Optional[str] = None,
    ) -> Classification:
        """Classify a lead. Never raises; returns the fallback on any error."""
        if not self.configured:
            logger.warning("Azure OpenAI not configured - using fallback classification for %s", email)
            return FALLBACK_CLASSIFICATION.model_copy(deep=True)

        logger.info("Starting AI classification for %s", email)
        prompt = CLASSIFICATION_PROMPT.format(
            name=name,
            email=email,
            phone=phone,
            inquiry=inquiry,
            material_type=material_type or "Not specified",
        )
        try:
            data = await self._complete_json(prompt, max_tokens=700)
            classification = Classification.model_validate(data)
        except Exception as e:
            logger.error("AI classification failed for %s: %s", email, e)
            return FALLBACK_CLASSIFICATION.model_copy(deep=True)

        logger.info(
            "AI classification completed for %s: persona=%s intent=%s score=%.2f",
            email,
            classification.persona.value,
            classification.intent.value,
            classification.lead_score,
        )
        return classification

    async def generate_message(
        self,
        persona: Persona,
        intent: Intent,
        name: str,
        entities: ExtractedEntities,
    ) -> str:
        """Draft a WhatsApp reply for the lead, or the fixed fallback text."""
        if not self.configured:
            return FALLBACK_MESSAGE

        prompt = MESSAGE_PROMPT.format(
            persona=persona.value,
            intent=intent.value,
            name=name,
            context=entities.model_dump_json(exclude_none=True),
        )
        try:
            data = await self._complete_json(prompt, max_tokens=400)
            return _GeneratedMessage.model_validate(data).message
        except Exception as e:
            logger.error("Message generation failed: %s", e)
            return FALLBACK_MESSAGE

    async def _complete_json(self, prompt: str, max_tokens: int) -> dict:
        """Run one chat completion and parse the reply as a JSON object."""
        url = (
            f"{self.endpoint}/openai/deployments/{self.deployment}/chat/completions"
            f"?api-version={self.api_version}"
        )
        headers = {
            "api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": 0.1,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()

        content = response.json()["choices"][0]["message"]["content"].strip()
        return json.loads(_CODE_FENCE.sub("", content))


# Global instance
classifier = LeadClassifier()
