"""
Title enrichment providers.

Each provider answers enrich(rom_names, platform_name) with a list of
EnrichmentResult in input order: result[i] belongs to rom_names[i]. A provider
may return fewer items than it was given.
"""

import json
import logging
import re
from typing import Dict, List, Optional

import requests

from .errors import ConfigurationError, ParseError, ProviderError, ProviderTimeout
from .models import EnrichmentResult
from .shared_config import (
    DEFAULT_GEMINI_MODEL, PROVIDER_GEMINI, PROVIDER_MOCK, PROVIDER_PLACEHOLDER,
)

logger = logging.getLogger(__name__)


class EnrichmentProvider:
    """Base class for enrichment backends"""

    id = ''
    source = ''

    @classmethod
    def from_config(cls, config) -> 'EnrichmentProvider':
        return cls()

    def enrich(self, rom_names: List[str], platform_name: str) -> List[EnrichmentResult]:
        raise NotImplementedError


class MockProvider(EnrichmentProvider):
    """Deterministic provider for tests and offline use"""

    id = PROVIDER_MOCK
    source = 'Mock'

    def __init__(self, canned: Optional[Dict[str, str]] = None):
        self.canned = dict(canned or {})

    def enrich(self, rom_names: List[str], platform_name: str) -> List[EnrichmentResult]:
        return [
            EnrichmentResult(
                original_name=name,
                suggested_title=self.canned.get(name, name),
                genre='Mock Genre',
                release_date='2024-01-01',
                description=f'Mock description for {name}. This is a test.',
            )
            for name in rom_names
        ]


# "(USA)", "(Rev 1)", "[!]", "[b1]" and similar dump tags
_TAG_RE = re.compile(r'\s*(\([^)]*\)|\[[^\]]*\])')
_SEPARATOR_RE = re.compile(r'[_.]+')
_SPACE_RE = re.compile(r'\s+')
_ROMAN_NUMERALS = {'ii', 'iii', 'iv', 'vi', 'vii', 'viii', 'ix', 'xi', 'xii', 'xiii'}


def clean_title(name: str) -> str:
    """Turn a raw ROM file name into a readable title."""
    title = _TAG_RE.sub('', name)
    title = _SEPARATOR_RE.sub(' ', title)
    title = _SPACE_RE.sub(' ', title).strip(' -')
    if not title:
        return name.strip()

    words = []
    for word in title.split(' '):
        if word.lower() in _ROMAN_NUMERALS:
            words.append(word.upper())
        elif word.isupper() and len(word) > 1:
            words.append(word)
        else:
            words.append(word[:1].upper() + word[1:])
    return ' '.join(words)


class PlaceholderProvider(EnrichmentProvider):
    """Rule based cleanup of file names, no network"""

    id = PROVIDER_PLACEHOLDER
    source = 'Placeholder'

    def enrich(self, rom_names: List[str], platform_name: str) -> List[EnrichmentResult]:
        return [
            EnrichmentResult(
                original_name=name,
                suggested_title=clean_title(name),
                genre=None,
                release_date=None,
                description=None,
            )
            for name in rom_names
        ]


_FENCE_RE = re.compile(r'^\s*```[A-Za-z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$', re.S)


def strip_code_fence(text: str) -> str:
    """Remove one enclosing markdown code fence, if present."""
    match = _FENCE_RE.match(text or '')
    if match:
        return match.group(1).strip()
    return (text or '').strip()


def parse_enrichment_json(text: str) -> List[EnrichmentResult]:
    """Parse generated text into results; the text must be a JSON array."""
    body = strip_code_fence(text)
    try:
        data = json.loads(body)
    except ValueError as e:
        raise ParseError(f'Failed to parse game enrichment data: {e}')
    if not isinstance(data, list):
        raise ParseError('Failed to parse game enrichment data: expected a JSON array')

    results = []
    for item in data:
        if not isinstance(item, dict):
            raise ParseError('Failed to parse game enrichment data: array items must be objects')
        results.append(EnrichmentResult.from_dict(item))
    return results


def build_prompt(rom_names: List[str], platform_name: str) -> str:
    names = '\n'.join(f'{i + 1}. {name}' for i, name in enumerate(rom_names))
    platform = platform_name or 'an unknown platform'
    return (
        f'The following are ROM file names for {platform}:\n'
        f'{names}\n\n'
        'For each file name, identify the game and return its official title. '
        'Return the data as a pure valid JSON array with exactly one object per file name, '
        'in the same order as the list above. Each object must have the fields '
        '"original_name" (the file name exactly as given), "suggested_title", "genre", '
        '"release_date" and "description" (one short sentence). '
        'You must NOT return anything other than valid JSON that can be used directly. '
        'No extra characters or words or labelling it "json".'
    )


class GeminiProvider(EnrichmentProvider):
    """Generative text completion through the Gemini REST API"""

    id = PROVIDER_GEMINI
    source = 'Gemini'
    BASE_URL = 'https://generativelanguage.googleapis.com/v1beta/models'

    def __init__(self, api_key: str, model: str = DEFAULT_GEMINI_MODEL,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigurationError('Gemini API key is not configured on the server.')
        self.api_key = api_key
        self.model = model or DEFAULT_GEMINI_MODEL
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'RomLibrary/1.0 (title enrichment)',
            'Accept': 'application/json',
        })

    @classmethod
    def from_config(cls, config) -> 'GeminiProvider':
        return cls(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            timeout=config.api_timeout_s,
        )

    def _url(self) -> str:
        return f'{self.BASE_URL}/{self.model}:generateContent'

    @staticmethod
    def _error_message(resp) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            err = data.get('error')
            if isinstance(err, dict) and err.get('message'):
                return str(err['message'])
            if isinstance(err, str) and err:
                return err
        return resp.reason or f'HTTP {resp.status_code}'

    @staticmethod
    def _generated_text(data) -> str:
        try:
            return data['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError):
            raise ParseError('No enrichment data returned from Gemini.')

    def enrich(self, rom_names: List[str], platform_name: str) -> List[EnrichmentResult]:
        if not rom_names:
            return []

        payload = {'contents': [{'parts': [{'text': build_prompt(rom_names, platform_name)}]}]}
        try:
            resp = self.session.post(
                self._url(),
                params={'key': self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise ProviderTimeout('Gateway Timeout: No response from Gemini API.')
        except requests.RequestException as e:
            raise ProviderError(f'Error calling Gemini API: {e}')

        if resp.status_code >= 400:
            raise ProviderError(f'Error from Gemini API: {self._error_message(resp)}')

        try:
            data = resp.json()
        except ValueError:
            raise ParseError('Gemini returned a non-JSON response.')

        text = self._generated_text(data)
        results = parse_enrichment_json(text)
        if len(results) != len(rom_names):
            logger.warning('gemini returned %d results for %d names', len(results), len(rom_names))
        return results


PROVIDER_CLASSES = {
    PROVIDER_MOCK: MockProvider,
    PROVIDER_PLACEHOLDER: PlaceholderProvider,
    PROVIDER_GEMINI: GeminiProvider,
}


def build_provider(config) -> EnrichmentProvider:
    """Create the provider named by config.enrichment_provider."""
    provider_id = config.enrichment_provider
    try:
        cls = PROVIDER_CLASSES[provider_id]
    except KeyError:
        raise ConfigurationError(f'Unknown AI provider: {provider_id}')
    return cls.from_config(config)
