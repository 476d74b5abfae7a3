"""
Thin client for an OpenAI-compatible chat completions endpoint.

Only ``classify`` is exposed: send text plus a JSON schema description, get
a parsed JSON object back. Every failure surfaces as ``ProviderError``.
"""
import json
import re

import requests

from ..errors import ProviderError

_FENCE_OPEN = re.compile(r'^```(?:json)?\s*')
_FENCE_CLOSE = re.compile(r'\s*```$')
_JSON_OBJECT = re.compile(r'\{[\s\S]*\}')


def parse_json_reply(text):
    """Pull the first JSON object out of a model reply, tolerating code fences."""
    if not text:
        raise ProviderError('Empty reply from LLM provider')
    text = _FENCE_CLOSE.sub('', _FENCE_OPEN.sub('', text.strip()))
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ProviderError('No JSON object found in LLM reply')
    try:
        data = json.loads(match.group(0))
    except ValueError as e:
        raise ProviderError(f'Malformed JSON in LLM reply: {e}') from e
    if not isinstance(data, dict):
        raise ProviderError('LLM reply is not a JSON object')
    return data


class OpenAIChatProvider:
    SYSTEM_PROMPT = (
        "You are an intent detection engine for a community fitness app. "
        "Return ONLY valid JSON exactly matching this schema (no markdown):\n{schema}"
    )

    def __init__(self, api_key, base_url='https://api.openai.com/v1', model='gpt-4o-mini', timeout=15):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        """Returns None when no API key is configured."""
        if not config.get('LLM_API_KEY'):
            return None
        return cls(
            api_key=config['LLM_API_KEY'],
            base_url=config.get('LLM_BASE_URL', 'https://api.openai.com/v1'),
            model=config.get('LLM_MODEL', 'gpt-4o-mini'),
            timeout=config.get('LLM_TIMEOUT', 15)
        )

    def classify(self, text, schema):
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT.format(schema=schema)},
                {"role": "user", "content": text}
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0
        }

        try:
            response = requests.post(url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ProviderError(f'LLM request failed: {e}') from e
        except ValueError as e:
            raise ProviderError(f'LLM response is not JSON: {e}') from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError('Unexpected LLM response shape') from e
        return parse_json_reply(content)
