"""
Web API for the ROM library importer (Flask).
Folder browsing, scanning, enrichment, import and the library data files.
"""

import logging
from typing import List, Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from . import __version__
from .browser import DirectoryLister
from .catalog import RawgClient, TheGamesDbClient
from .enrichment import EnrichmentGateway
from .errors import NotFoundError, RomLibraryError, ValidationError
from .importer import LibraryImporter
from .library import LibraryStore
from .models import GameDraft, Game, PlatformRecord, ScanRequest
from .monitor import monitor_action, setup_runtime_monitor
from .pathing import PathResolver
from .platforms import PlatformMatcher
from .scanner import RomScanner
from .settings import AppConfig, load_config
from .shared_config import PROVIDERS

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


class Services:
    """Pipeline components built from one AppConfig"""

    def __init__(self, config: AppConfig, gateway: Optional[EnrichmentGateway] = None,
                 catalog: Optional[TheGamesDbClient] = None, rawg: Optional[RawgClient] = None):
        self.config = config
        self.resolver = PathResolver(config.sandbox_root)
        self.lister = DirectoryLister(self.resolver)
        self.scanner = RomScanner(self.resolver, config.ignored_extensions)
        self.store = LibraryStore(config.data_dir)
        self.importer = LibraryImporter(self.resolver, self.store)
        self.matcher = PlatformMatcher(source='TheGamesDB')
        self._gateway = gateway
        self._catalog = catalog
        self._rawg = rawg

    @property
    def gateway(self) -> EnrichmentGateway:
        # built on first use so a missing API key is reported per request, not at startup
        if self._gateway is None:
            self._gateway = EnrichmentGateway.from_config(self.config)
        return self._gateway

    @property
    def catalog(self) -> TheGamesDbClient:
        if self._catalog is None:
            self._catalog = TheGamesDbClient.from_config(self.config)
        return self._catalog

    @property
    def rawg(self) -> RawgClient:
        if self._rawg is None:
            self._rawg = RawgClient.from_config(self.config)
        return self._rawg


def _services() -> Services:
    return current_app.extensions['romlibrary']


def _json_body(expected=dict):
    data = request.get_json(silent=True)
    if not isinstance(data, expected):
        kind = 'an object' if expected is dict else 'an array'
        raise ValidationError(f'Invalid data format. Expected {kind}.')
    return data


def _string_list(value) -> Optional[List[str]]:
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(v, str) and v.strip() for v in value):
        return None
    return value


# ── Filesystem API ─────────────────────────────────────────────

@api.route('/fs/list', methods=['GET'])
def fs_list():
    """List directories and files for the folder browser."""
    path = request.args.get('path', '')
    listing = _services().lister.list(path)
    return jsonify(listing.to_dict())


# ── Scan ───────────────────────────────────────────────────────

@api.route('/scan-roms', methods=['POST'])
def scan_roms():
    data = _json_body()
    # an empty folderPath is the sandbox root, as returned by /fs/list
    if not isinstance(data.get('folderPath'), str):
        raise ValidationError('Missing required fields: platformId or folderPath.')
    scan_request = ScanRequest.from_dict(data)
    if not scan_request.platform_id:
        raise ValidationError('Missing required fields: platformId or folderPath.')
    monitor_action(f'scan: platform={scan_request.platform_id} folder={scan_request.root_relative_path}')
    roms = _services().scanner.scan_request(scan_request)
    return jsonify([r.to_dict() for r in roms])


# ── Enrichment ─────────────────────────────────────────────────

@api.route('/enrich-roms', methods=['POST'])
def enrich_roms():
    data = _json_body()
    names = _string_list(data.get('romNames'))
    if names is None:
        raise ValidationError('Request body must contain a non-empty "romNames" array of strings.')
    platform_name = data.get('platformName') or ''
    if not isinstance(platform_name, str):
        raise ValidationError('"platformName" must be a string.')

    gateway = _services().gateway
    monitor_action(f'enrich: {len(names)} names via {gateway.provider.id}')
    outcome = gateway.enrich_in_batches(names, platform_name)
    errors = [f.to_dict() for f in outcome.failures]

    if outcome.all_failed:
        return jsonify({
            'error': outcome.failures[-1].message,
            'errors': errors,
        }), gateway.failure_status(outcome)

    enriched = []
    for name, result in zip(names, outcome.results):
        if result is None:
            enriched.append({'original_name': name, 'suggested_title': None,
                             'genre': None, 'release_date': None, 'description': None})
            continue
        row = result.to_dict()
        row['original_name'] = name
        enriched.append(row)

    return jsonify({
        'source': gateway.source,
        'enriched_roms': enriched,
        'errors': errors,
    })


# ── Import ─────────────────────────────────────────────────────

@api.route('/import-roms', methods=['POST'])
def import_roms():
    data = _json_body()
    platform_id = str(data.get('platformId') or '').strip()
    folder_path = data.get('folderPath')
    raw_drafts = data.get('drafts')
    if not platform_id or not isinstance(folder_path, str) or not isinstance(raw_drafts, list):
        raise ValidationError('Missing required fields: platformId, folderPath or drafts.')
    try:
        drafts = [GameDraft.from_dict(d) for d in raw_drafts]
    except (KeyError, TypeError, AttributeError):
        raise ValidationError('Every draft needs a "fileName".')

    monitor_action(f'import: platform={platform_id} drafts={len(drafts)}')
    summary = _services().importer.import_drafts(platform_id, folder_path, drafts)
    return jsonify(summary.to_dict())


# ── Library data files ─────────────────────────────────────────

@api.route('/data/platforms', methods=['GET'])
def get_platforms():
    return jsonify([p.to_dict() for p in _services().store.load_platforms()])


@api.route('/data/platforms', methods=['POST'])
def save_platforms():
    rows = _json_body(expected=list)
    try:
        platforms = [PlatformRecord.from_dict(r) for r in rows]
    except (KeyError, TypeError, AttributeError):
        raise ValidationError('Invalid data format. Every platform needs an "id".')
    _services().store.save_platforms(platforms)
    return jsonify({'message': 'Platforms saved successfully.'})


@api.route('/data/games', methods=['GET'])
def get_games():
    return jsonify([g.to_dict() for g in _services().store.load_games()])


@api.route('/data/games', methods=['POST'])
def save_games():
    rows = _json_body(expected=list)
    try:
        games = [Game.from_dict(r) for r in rows]
    except (KeyError, TypeError, AttributeError):
        raise ValidationError('Invalid data format. Every game needs an "id".')
    _services().store.save_games(games)
    return jsonify({'message': 'Games saved successfully.'})


# ── Platform matching & catalog search ─────────────────────────

@api.route('/platforms/match', methods=['POST'])
def match_platform():
    data = _json_body()
    name = data.get('name') or None
    alias = data.get('alias') or None
    if not name and not alias:
        raise ValidationError('Request body must contain "name" or "alias".')
    services = _services()
    platform = services.matcher.match(name, alias, services.store.load_platforms())
    if platform is None:
        raise NotFoundError(services.matcher.unmatched_message(name, alias))
    return jsonify({'platform': platform.to_dict()})


@api.route('/search/thegamesdb/bygamename', methods=['GET'])
def search_thegamesdb():
    name = (request.args.get('name') or '').strip()
    if not name:
        raise ValidationError('Query parameter "name" is required.')
    page = request.args.get('page', type=int)

    services = _services()
    hits = services.catalog.search_by_name(name, page=page)
    local = services.store.load_platforms()

    games = []
    for hit in hits:
        row = hit.to_dict()
        platform = services.matcher.match(hit.platform.name, hit.platform.alias, local)
        row['matchedPlatformId'] = platform.id if platform else None
        row['platformError'] = None if platform else services.matcher.unmatched_message(
            hit.platform.name, hit.platform.alias)
        games.append(row)

    return jsonify({'source': 'TheGamesDB', 'count': len(games), 'games': games})


@api.route('/search/rawg/games', methods=['GET'])
def search_rawg():
    search = (request.args.get('search') or '').strip()
    if not search:
        raise ValidationError('Query parameter "search" is required for RAWG.')
    page = request.args.get('page', type=int)
    page_size = request.args.get('page_size', type=int)

    found = _services().rawg.search_games(search, page=page, page_size=page_size)
    return jsonify({
        'source': 'RAWG',
        'count': found['count'],
        'next': found['next'],
        'previous': found['previous'],
        'games': [g.to_dict() for g in found['games']],
    })


# ── Config endpoint ────────────────────────────────────────────

@api.route('/config')
def get_config():
    cfg = _services().config.to_public_dict()
    cfg['version'] = __version__
    cfg['providers'] = PROVIDERS
    return jsonify(cfg)


# ── Errors ─────────────────────────────────────────────────────

def _handle_library_error(e: RomLibraryError):
    level = logging.ERROR if e.status_code >= 500 else logging.WARNING
    logger.log(level, '%s %s -> %d %s: %s', request.method, request.path,
               e.status_code, type(e).__name__, e.message)
    return jsonify(e.to_dict()), e.status_code


def _handle_unexpected(e: Exception):
    if isinstance(e, HTTPException):
        return jsonify({'error': e.description}), e.code
    logger.exception('%s %s failed', request.method, request.path)
    return jsonify({'error': 'Internal Server Error while processing the request.'}), 500


def create_app(config: Optional[AppConfig] = None, *,
               gateway: Optional[EnrichmentGateway] = None,
               catalog: Optional[TheGamesDbClient] = None,
               rawg: Optional[RawgClient] = None) -> Flask:
    """Build the Flask app around one configuration."""
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = 16 * 1024 * 1024
    services = Services(config or load_config(), gateway=gateway, catalog=catalog, rawg=rawg)
    app.extensions['romlibrary'] = services
    app.register_blueprint(api)
    app.register_error_handler(RomLibraryError, _handle_library_error)
    app.register_error_handler(Exception, _handle_unexpected)
    return app


def run_server(host='127.0.0.1', port=5000, debug=False, config: Optional[AppConfig] = None):
    """Run the web server"""
    config = config or load_config()
    logger = setup_runtime_monitor(config.log_dir)
    monitor_action(f"run_server called: host={host} port={port} debug={debug}", logger=logger)
    print("ROM Library - Web API")
    print("=" * 50)
    print(f"Sandbox root: {config.sandbox_root}")
    print(f"Enrichment provider: {config.enrichment_provider}")
    print(f"Listening on: http://{host}:{port}")
    print("Press Ctrl+C to stop")
    print()

    app = create_app(config)
    app.run(host=host, port=port, debug=debug, threaded=True)
