from typing import List, Mapping, Optional, Tuple
import os
import json
import re
import sys

import httpx

from .layouts import effective_area_names
from .sanitize import sanitize

SYSTEM_PROMPT = (
    "You sort shopping list items based on store layout. "
    "Respond only with valid JSON in the requested shape."
)

DEFAULT_OPENROUTER_URL = 'https://openrouter.ai/api/v1'
DEFAULT_OPENROUTER_MODEL = 'gpt-4o-mini'
DEFAULT_GEMINI_MODEL = 'gemini-2.5-flash'

DEBUG = bool(os.getenv('ORGANIZE_DEBUG'))


class SortingError(Exception):
    """Base class for failures while asking the model to sort a list."""


class ConfigurationError(SortingError):
    pass


class ProviderError(SortingError):
    def __init__(self, provider: str, status, body: str):
        self.provider = provider
        self.status = status
        self.body = body
        super().__init__(f'{provider} error {status}: {body}')


class ResponseParseError(SortingError):
    pass


def _float_env(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def build_prompt(shop_name: Optional[str], areas: List[str], items: List[Mapping]) -> str:
    area_list = ' -> '.join(areas)
    lines = []
    for item in items:
        qty = f", qty:{item['quantity']}" if item.get('quantity') else ''
        lines.append(f"- {item['name']} (id:{item['id']}{qty})")
    item_list = '\n'.join(lines)

    return (
        "You are a shopping assistant. Sort the provided items in the order a shopper walks through the store.\n"
        f"- Shop name: {shop_name or 'Unknown'}\n"
        f"- Store areas in order from entrance to exit: {area_list}\n"
        "- Only use the given area names. If an item does not fit, assign it to \"Other\".\n"
        "- Do not invent, split, or merge items.\n"
        "- Return JSON only in this shape:\n"
        "{\"sorted\":[{\"id\":\"<id>\",\"area_name\":\"<area from list or Other>\","
        "\"order_index\":<integer order starting at 1>}]}\n"
        "\n"
        "Items:\n"
        f"{item_list}"
    )


def parse_sorted_content(content) -> list:
    """Decode the model's content string into the raw `sorted` candidate list.

    Accepts bare JSON or JSON wrapped in a ```json fence. Anything that
    decodes but has no `sorted` list yields an empty candidate list; text
    that does not decode raises ResponseParseError.
    """
    if not isinstance(content, str):
        raise ResponseParseError('Unable to parse model response as JSON')
    text = content.strip()
    match = re.search(r'```(?:json)?\s*(.*?)```', text, re.DOTALL | re.IGNORECASE)
    if match:
        text = match.group(1).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError('Unable to parse model response as JSON') from e

    if isinstance(data, dict) and isinstance(data.get('sorted'), list):
        return data['sorted']
    return []


def _call_openrouter(prompt: str, timeout: float, temperature: float) -> str:
    api_key = os.getenv('OPENROUTER_API_KEY')
    if not api_key:
        raise ConfigurationError('OPENROUTER_API_KEY is not set')

    model = os.getenv('OPENROUTER_MODEL', DEFAULT_OPENROUTER_MODEL)
    base_url = os.getenv('OPENROUTER_BASE_URL', DEFAULT_OPENROUTER_URL).rstrip('/')

    try:
        response = httpx.post(
            f'{base_url}/chat/completions',
            headers={
                'Authorization': f'Bearer {api_key}',
                'X-Title': 'Smart Shopping Layout Sorter',
            },
            json={
                'model': model,
                'messages': [
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                'temperature': temperature,
            },
            timeout=timeout,
        )
    except httpx.TimeoutException as e:
        raise ProviderError('OpenRouter', 'timeout', f'no response within {timeout}s') from e
    except httpx.RequestError as e:
        raise ProviderError('OpenRouter', 'network', type(e).__name__) from e

    if response.status_code >= 300 or response.status_code < 200:
        raise ProviderError('OpenRouter', response.status_code, response.text)

    if DEBUG:
        print('\n[DEBUG] OpenRouter response:', file=sys.stderr)
        print(response.text, file=sys.stderr)

    try:
        payload = response.json()
    except ValueError as e:
        raise ResponseParseError('Unable to parse OpenRouter response envelope as JSON') from e

    try:
        content = payload['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        content = ''
    return content or ''


def _call_gemini(prompt: str, timeout: float, temperature: float) -> str:
    api_key = os.getenv('GEMENI_FREE_API')
    if not api_key:
        raise ConfigurationError('GEMENI_FREE_API is not set')

    model = os.getenv('GEMENI_PRIMARY_MODEL', DEFAULT_GEMINI_MODEL)

    # Imported at call time so tests can swap in a fake `google.genai`.
    from google import genai

    client = genai.Client(api_key=api_key, http_options={'timeout': int(timeout * 1000)})
    try:
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config={
                'system_instruction': SYSTEM_PROMPT,
                'temperature': temperature,
                'response_mime_type': 'application/json',
            },
        )
    except genai.errors.APIError as e:
        raise ProviderError('Gemini', e.code, e.message) from e
    except httpx.TimeoutException as e:
        raise ProviderError('Gemini', 'timeout', f'no response within {timeout}s') from e
    except httpx.RequestError as e:
        raise ProviderError('Gemini', 'network', type(e).__name__) from e

    if DEBUG:
        print(f'\n[DEBUG] Gemini response for model {model}:', file=sys.stderr)
        print(response.text, file=sys.stderr)
    return response.text or ''


PROVIDERS = {
    'openrouter': _call_openrouter,
    'gemini': _call_gemini,
}


def call_llm(prompt: str) -> str:
    """Send one sort prompt to the configured provider and return its content text."""
    provider = os.getenv('SORT_LLM_PROVIDER', 'openrouter').strip().lower()
    call = PROVIDERS.get(provider)
    if call is None:
        raise ConfigurationError(f"Unknown SORT_LLM_PROVIDER '{provider}'")
    timeout = _float_env('SORT_LLM_TIMEOUT_S', 30.0) or 30.0
    temperature = _float_env('SORT_TEMPERATURE', 0.2)
    return call(prompt, timeout, temperature)


def sort_by_layout(shop_name: Optional[str], items: List[Mapping], layout: List[Mapping]) -> Tuple[List[dict], List[str]]:
    """Order `items` by the store's walking path.

    Input:
    shop_name: str - Shop name shown to the model (may be None)
    items: list of {"id", "name", "quantity"?}
    layout: list of {"area_name", "sequence"}; empty means the fallback layout

    Returns (sorted, areas):
    (
        [{"id": "a1", "area_name": "Produce", "order_index": 1}, ...],
        ["Produce", "Bakery", ...]
    )

    Raises SortingError subclasses when the model cannot be reached or its
    output cannot be decoded. Callers fall back to sanitize(items, areas, []).
    """
    areas = effective_area_names(layout)
    if not items:
        return [], areas

    prompt = build_prompt(shop_name, areas, items)
    if DEBUG:
        print(f'[DEBUG] Sorting {len(items)} items for shop {shop_name!r} across {len(areas)} areas', file=sys.stderr)
    content = call_llm(prompt)
    candidates = parse_sorted_content(content)
    if DEBUG:
        print(f'[DEBUG] Model returned {len(candidates)} candidate rows', file=sys.stderr)
    return sanitize(items, areas, candidates), areas
