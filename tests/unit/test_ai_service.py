"""
Unit tests for the generative AI client and its fallbacks.
"""

import pytest
import requests

from invoicer.services import ai_service


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error', response=self)

    def json(self):
        return self._payload


def _completion(text):
    return {'candidates': [{'content': {'parts': [{'text': text}]}}]}


@pytest.fixture
def ai_app(app, session):
    """Application context with an API key configured."""
    app.config['GEMINI_API_KEY'] = 'test-key'
    yield app
    app.config['GEMINI_API_KEY'] = None


class TestGeminiClient:

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            ai_service.GeminiClient('')

    def test_generate_content_request(self, monkeypatch):
        calls = []

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
            return FakeResponse(_completion(' Sleek and silent typing. '))

        monkeypatch.setattr(ai_service.requests, 'post', fake_post)
        client = ai_service.GeminiClient('k', base_url='https://ai.example/v1beta/', timeout=5)

        text = client.generate_content('gemini-2.5-pro', 'Describe', system_instruction='Be brief')

        assert text == 'Sleek and silent typing.'
        assert calls[0]['url'] == 'https://ai.example/v1beta/models/gemini-2.5-pro:generateContent'
        assert calls[0]['headers']['x-goog-api-key'] == 'k'
        assert calls[0]['timeout'] == 5
        assert calls[0]['json']['systemInstruction'] == {'parts': [{'text': 'Be brief'}]}

    def test_empty_response_is_an_error(self, monkeypatch):
        monkeypatch.setattr(ai_service.requests, 'post', lambda *a, **kw: FakeResponse({'candidates': []}))
        client = ai_service.GeminiClient('k')

        with pytest.raises(ValueError):
            client.generate_content('m', 'p')


class TestFallbacks:

    def test_unavailable_without_key(self, session):
        assert ai_service.generate_product_description('Keyboard') == 'AI service is not available.'
        assert ai_service.get_sales_insights('[]') == 'AI service is not available.'

    def test_description(self, ai_app, monkeypatch):
        captured = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            captured['url'] = url
            captured['prompt'] = json['contents'][0]['parts'][0]['text']
            return FakeResponse(_completion('Type in comfort.'))

        monkeypatch.setattr(ai_service.requests, 'post', fake_post)

        assert ai_service.generate_product_description('Wireless Keyboard') == 'Type in comfort.'
        assert 'gemini-2.5-flash' in captured['url']
        assert 'Wireless Keyboard' in captured['prompt']
        assert 'under 15 words' in captured['prompt']

    def test_description_failure(self, ai_app, monkeypatch):
        monkeypatch.setattr(ai_service.requests, 'post', lambda *a, **kw: FakeResponse({}, status_code=503))
        assert ai_service.generate_product_description('Keyboard') == 'Failed to generate description.'

    def test_insights_network_failure(self, ai_app, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.ConnectionError('unreachable')

        monkeypatch.setattr(ai_service.requests, 'post', fake_post)
        assert ai_service.get_sales_insights('[]') == 'Failed to generate insights.'

    def test_insights_use_analyst_instruction(self, ai_app, monkeypatch):
        captured = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            captured['url'] = url
            captured['json'] = json
            return FakeResponse(_completion('1. Stock more monitors.'))

        monkeypatch.setattr(ai_service.requests, 'post', fake_post)

        assert ai_service.get_sales_insights('[{"total": 81.0}]') == '1. Stock more monitors.'
        assert 'gemini-2.5-pro' in captured['url']
        assert captured['json']['systemInstruction']['parts'][0]['text'] == ai_service.INSIGHTS_SYSTEM_INSTRUCTION
        assert '3 actionable insights' in captured['json']['contents'][0]['parts'][0]['text']
