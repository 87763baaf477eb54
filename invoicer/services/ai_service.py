"""Generative AI client for product descriptions and sales insights."""
from typing import Any, Dict, Optional
import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI service is not available."
DESCRIPTION_FAILED_MESSAGE = "Failed to generate description."
INSIGHTS_FAILED_MESSAGE = "Failed to generate insights."

INSIGHTS_SYSTEM_INSTRUCTION = "You are a business analyst expert in retail and wholesale markets."


class GeminiClient:
    """Client for the Google Generative Language REST API."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, api_key: str, base_url: Optional[str] = None, timeout: int = 30):
        """
        Initialize Gemini client.

        Args:
            api_key: Generative Language API key
            base_url: API root, overridable for proxies and tests
            timeout: Seconds to wait for a completion
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required")

        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.timeout = timeout
        self.headers = {
            'x-goog-api-key': api_key,
            'Content-Type': 'application/json'
        }

    def generate_content(self, model: str, prompt: str, system_instruction: Optional[str] = None) -> str:
        """
        Run a single-turn text completion.

        Returns:
            The concatenated text parts of the first candidate

        Raises:
            requests.HTTPError: If the API returns an error status
            ValueError: If the response carries no text
        """
        url = f"{self.base_url}/models/{model}:generateContent"

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}]
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        logger.info(f"[AI] Requesting completion from {model}")

        try:
            response = requests.post(url, json=payload, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            logger.error(f"[AI] Error from {model}: {e.response.text if e.response is not None else e}")
            raise

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get('candidates') or []
        if not candidates:
            raise ValueError(f"No candidates in response: {data.get('promptFeedback')}")

        parts = (candidates[0].get('content') or {}).get('parts') or []
        text = ''.join(part.get('text', '') for part in parts).strip()
        if not text:
            raise ValueError("Empty completion")
        return text


def get_client() -> Optional[GeminiClient]:
    """Build a client from app config, or None when AI is not configured."""
    api_key = current_app.config.get('GEMINI_API_KEY')
    if not api_key:
        return None
    return GeminiClient(
        api_key,
        base_url=current_app.config.get('GEMINI_BASE_URL'),
        timeout=current_app.config.get('GEMINI_TIMEOUT', 30)
    )


def generate_product_description(product_name: str) -> str:
    """Short catalog description for a product. Never raises."""
    client = get_client()
    if client is None:
        _record_ai_metric('description', 'unavailable')
        return UNAVAILABLE_MESSAGE

    prompt = (
        f'Generate a short, catchy, and professional product description for: "{product_name}". '
        'Keep it under 15 words.'
    )
    try:
        text = client.generate_content(current_app.config['GEMINI_DESCRIPTION_MODEL'], prompt)
    except Exception as e:
        logger.error(f"Error generating product description: {e}")
        _record_ai_metric('description', 'failed')
        return DESCRIPTION_FAILED_MESSAGE

    _record_ai_metric('description', 'ok')
    return text


def get_sales_insights(sales_data: str) -> str:
    """Three actionable insights over a JSON sales summary. Never raises."""
    client = get_client()
    if client is None:
        _record_ai_metric('insights', 'unavailable')
        return UNAVAILABLE_MESSAGE

    prompt = (
        'Analyze the following sales data and provide 3 actionable insights to improve sales. '
        f'Be concise. Data: {sales_data}'
    )
    try:
        text = client.generate_content(
            current_app.config['GEMINI_INSIGHTS_MODEL'],
            prompt,
            system_instruction=INSIGHTS_SYSTEM_INSTRUCTION
        )
    except Exception as e:
        logger.error(f"Error generating sales insights: {e}")
        _record_ai_metric('insights', 'failed')
        return INSIGHTS_FAILED_MESSAGE

    _record_ai_metric('insights', 'ok')
    return text


def _record_ai_metric(kind: str, outcome: str):
    try:
        from invoicer.blueprints.metrics import ai_requests_total
        ai_requests_total.labels(kind=kind, outcome=outcome).inc()
    except Exception as e:
        logger.debug(f"Could not record AI metric: {e}")
