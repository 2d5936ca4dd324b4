"""
Game metadata catalogs - TheGamesDB and RAWG search clients.
"""

import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

import requests

from .errors import ConfigurationError, ParseError, ProviderError, ProviderTimeout
from .models import CatalogGame, ExternalPlatformRef, RawgGame

logger = logging.getLogger(__name__)


def load_platform_map(filepath: str) -> Dict[int, ExternalPlatformRef]:
    """
    Load the TheGamesDB platform list ({"data": {"platforms": {id: {...}}}}).

    A missing or malformed file yields an empty map; searches then report
    placeholder platform names.
    """
    if not filepath or not os.path.exists(filepath):
        logger.warning('TheGamesDB platform map not found: %s', filepath)
        return {}
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        platforms = data['data']['platforms']
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error('TheGamesDB platform map unreadable (%s): %s', filepath, e)
        return {}

    mapping = {}
    for key, entry in platforms.items():
        try:
            mapping[int(key)] = ExternalPlatformRef(name=entry['name'], alias=entry.get('alias'))
        except (KeyError, ValueError, TypeError, AttributeError):
            continue
    logger.info('Loaded %d TheGamesDB platforms', len(mapping))
    return mapping


class CatalogClient:
    """Shared HTTP plumbing for the catalog clients"""

    name = ''

    # Rate limiting: minimum seconds between requests
    MIN_REQUEST_INTERVAL = 0.5

    def __init__(self, api_key: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigurationError(f'{self.name} API key is not configured on the server.')
        self.api_key = api_key
        self.timeout = timeout
        self._last_request_time = 0.0
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'RomLibrary/1.0 (library import)',
            'Accept': 'application/json',
        })

    def _rate_limit(self):
        """Enforce rate limiting between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < self.MIN_REQUEST_INTERVAL:
            time.sleep(self.MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.time()

    @staticmethod
    def _error_detail(resp) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.reason
        if isinstance(data, dict):
            return data.get('status') or data.get('error') or data.get('detail') or resp.reason
        return resp.reason

    def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        self._rate_limit()
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout:
            raise ProviderTimeout(f'Gateway Timeout: No response from {self.name}.')
        except requests.RequestException as e:
            raise ProviderError(f'Error calling {self.name}: {e}')

        if resp.status_code >= 400:
            raise ProviderError(f'Error from {self.name}: {self._error_detail(resp)}')

        try:
            return resp.json()
        except ValueError:
            raise ParseError(f'{self.name} returned a non-JSON response.')


class TheGamesDbClient(CatalogClient):
    """Search TheGamesDB by game name."""

    name = 'TheGamesDB'
    BASE_URL = "https://api.thegamesdb.net/v1.1"
    DEFAULT_FIELDS = 'platform,overview,players,publishers,genres,last_updated,rating,coop,youtube,alternates'
    DEFAULT_INCLUDE = 'boxart,platform'

    def __init__(self, api_key: str, platform_map: Optional[Dict[int, ExternalPlatformRef]] = None,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        super().__init__(api_key, timeout=timeout, session=session)
        self.platform_map = platform_map or {}

    @classmethod
    def from_config(cls, config) -> 'TheGamesDbClient':
        return cls(
            api_key=config.thegamesdb_api_key,
            platform_map=load_platform_map(config.tgdb_platforms_path),
            timeout=config.api_timeout_s,
        )

    def platform_for(self, platform_id) -> ExternalPlatformRef:
        try:
            ref = self.platform_map.get(int(platform_id))
        except (TypeError, ValueError):
            ref = None
        if ref is None:
            return ExternalPlatformRef(name=f'Unknown TGDB ID: {platform_id}',
                                       alias=f'unknown-tgdb-{platform_id}')
        return ref

    @staticmethod
    def _front_boxart(payload: dict, game_id) -> Optional[str]:
        boxart = (payload.get('include') or {}).get('boxart') or {}
        entries = (boxart.get('data') or {}).get(str(game_id)) or []
        base = (boxart.get('base_url') or {}).get('medium', '')
        for entry in entries:
            if entry.get('side') == 'front' and entry.get('filename'):
                return f"{base}{entry['filename']}"
        return None

    def search_by_name(self, name: str, page: Optional[int] = None) -> List[CatalogGame]:
        """
        Search games by title.

        Returns CatalogGame hits whose platform carries the catalog's name and alias.
        """
        params = {
            'apikey': self.api_key,
            'name': name,
            'fields': self.DEFAULT_FIELDS,
            'include': self.DEFAULT_INCLUDE,
        }
        if page:
            params['page'] = page

        payload = self._get_json(f'{self.BASE_URL}/Games/ByGameName', params)
        try:
            games = payload['data']['games']
        except (KeyError, TypeError):
            raise ParseError('Unexpected response structure from TheGamesDB.')

        results = []
        for game in games:
            results.append(CatalogGame(
                id=game.get('id'),
                title=game.get('game_title', ''),
                platform=self.platform_for(game.get('platform')),
                release_date=game.get('release_date') or '',
                overview=game.get('overview') or '',
                boxart_url=self._front_boxart(payload, game.get('id')),
            ))
        return results


def _names(entries, key: Optional[str] = None) -> List[str]:
    """Pull display names out of RAWG's nested lists ([{"platform": {"name": ...}}, ...])."""
    names = []
    for entry in entries or []:
        node = entry.get(key) if key else entry
        if isinstance(node, dict) and node.get('name'):
            names.append(node['name'])
    return names


class RawgClient(CatalogClient):
    """Search the RAWG games database."""

    name = 'RAWG'
    BASE_URL = 'https://api.rawg.io/api'

    @classmethod
    def from_config(cls, config) -> 'RawgClient':
        return cls(api_key=config.rawg_api_key, timeout=config.api_timeout_s)

    def search_games(self, search: str, page: Optional[int] = None,
                     page_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Search games by free text.

        Returns {count, next, previous, games} with games as RawgGame.
        """
        params = {'key': self.api_key, 'search': search}
        if page:
            params['page'] = page
        if page_size:
            params['page_size'] = page_size

        payload = self._get_json(f'{self.BASE_URL}/games', params)
        try:
            rows = payload['results']
            games = [
                RawgGame(
                    id=row.get('id'),
                    title=row.get('name', ''),
                    slug=row.get('slug') or '',
                    released=row.get('released'),
                    rating=row.get('rating'),
                    metacritic=row.get('metacritic'),
                    background_image=row.get('background_image'),
                    platforms=_names(row.get('platforms'), 'platform'),
                    genres=_names(row.get('genres')),
                    stores=_names(row.get('stores'), 'store'),
                )
                for row in rows
            ]
        except (KeyError, TypeError, AttributeError):
            raise ParseError('Unexpected response structure from RAWG.')

        return {
            'count': payload.get('count', len(games)),
            'next': payload.get('next'),
            'previous': payload.get('previous'),
            'games': games,
        }
