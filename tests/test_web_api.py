import os
import tempfile
import unittest

from romlibrary.enrichment import EnrichmentGateway
from romlibrary.errors import ParseError, ProviderTimeout
from romlibrary.library import LibraryStore
from romlibrary.models import CatalogGame, ExternalPlatformRef, PlatformRecord, RawgGame
from romlibrary.providers import EnrichmentProvider, MockProvider
from romlibrary.settings import AppConfig
from romlibrary.web import create_app


class ScriptedProvider(EnrichmentProvider):
    id = 'scripted'
    source = 'Scripted'

    def __init__(self, errors_by_call):
        self.errors_by_call = list(errors_by_call)

    def enrich(self, rom_names, platform_name):
        error = self.errors_by_call.pop(0)
        if error is not None:
            raise error
        return MockProvider().enrich(rom_names, platform_name)


class FakeCatalog:
    def __init__(self, hits):
        self.hits = hits
        self.queries = []

    def search_by_name(self, name, page=None):
        self.queries.append((name, page))
        return self.hits


class FakeRawg:
    def __init__(self, games):
        self.games = games
        self.queries = []

    def search_games(self, search, page=None, page_size=None):
        self.queries.append((search, page, page_size))
        return {'count': len(self.games), 'next': None, 'previous': None, 'games': self.games}


class WebApiTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        base = os.path.realpath(self._tmp.name)
        self.root = os.path.join(base, 'roms')
        os.makedirs(os.path.join(self.root, 'nes'))
        for name in ('mario.nes', 'zelda.nes', 'notes.txt'):
            with open(os.path.join(self.root, 'nes', name), 'wb') as f:
                f.write(b'NES\x1a')
        self.config = AppConfig(sandbox_root=self.root, data_dir=os.path.join(base, 'data'),
                                log_dir=os.path.join(base, 'logs'), ignored_extensions=['.txt'])
        self.store = LibraryStore(self.config.data_dir)
        self.store.save_platforms([
            PlatformRecord(id='nes', name='Nintendo Entertainment System', alias='nes'),
            PlatformRecord(id='snes', name='Super Nintendo', alias='snes'),
        ])

    def tearDown(self):
        self._tmp.cleanup()

    def client(self, **kwargs):
        return create_app(self.config, **kwargs).test_client()


class ScanEndpointTests(WebApiTestCase):
    def test_scan(self):
        resp = self.client().post('/api/scan-roms', json={'platformId': 'nes', 'folderPath': 'nes'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), [
            {'displayName': 'mario', 'fileName': 'mario.nes'},
            {'displayName': 'zelda', 'fileName': 'zelda.nes'},
        ])

    def test_scan_validation(self):
        client = self.client()
        self.assertEqual(client.post('/api/scan-roms', json={'folderPath': 'nes'}).status_code, 400)
        self.assertEqual(client.post('/api/scan-roms', json={'platformId': 'nes'}).status_code, 400)
        self.assertEqual(client.post('/api/scan-roms', data='null',
                                     content_type='application/json').status_code, 400)

    def test_scan_folder_selected_at_root(self):
        with open(os.path.join(self.root, 'contra.nes'), 'wb') as f:
            f.write(b'NES\x1a')
        client = self.client()

        selected = client.get('/api/fs/list').get_json()['currentPath']
        resp = client.post('/api/scan-roms', json={'platformId': 'nes', 'folderPath': selected})

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), [{'displayName': 'contra', 'fileName': 'contra.nes'}])

        resp = client.post('/api/import-roms', json={
            'platformId': 'nes', 'folderPath': selected,
            'drafts': [{'originalName': 'contra', 'fileName': 'contra.nes', 'userTitle': 'Contra'}],
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['added'][0]['romPath'], self.root + '/contra.nes')

    def test_folder_path_must_be_a_string(self):
        client = self.client()
        resp = client.post('/api/scan-roms', json={'platformId': 'nes', 'folderPath': 3})
        self.assertEqual(resp.status_code, 400)
        resp = client.post('/api/import-roms', json={'platformId': 'nes', 'folderPath': None,
                                                     'drafts': []})
        self.assertEqual(resp.status_code, 400)

    def test_scan_errors(self):
        client = self.client()
        resp = client.post('/api/scan-roms', json={'platformId': 'nes', 'folderPath': '../etc'})
        self.assertEqual(resp.status_code, 400)
        resp = client.post('/api/scan-roms', json={'platformId': 'nes', 'folderPath': 'gba'})
        self.assertEqual(resp.status_code, 404)
        self.assertIn('gba', resp.get_json()['error'])


class EnrichEndpointTests(WebApiTestCase):
    def test_enrich_with_mock(self):
        gateway = EnrichmentGateway(MockProvider(canned={'mario': 'Super Mario Bros.'}))
        resp = self.client(gateway=gateway).post('/api/enrich-roms', json={
            'romNames': ['mario', 'zelda'], 'platformName': 'NES'})

        self.assertEqual(resp.status_code, 200)
        payload = resp.get_json()
        self.assertEqual(payload['source'], 'Mock')
        self.assertEqual([r['suggested_title'] for r in payload['enriched_roms']],
                         ['Super Mario Bros.', 'zelda'])
        self.assertEqual(payload['errors'], [])

    def test_partial_failure_keeps_alignment(self):
        gateway = EnrichmentGateway(ScriptedProvider([ParseError('garbled'), None]), batch_size=1)
        resp = self.client(gateway=gateway).post('/api/enrich-roms', json={
            'romNames': ['mario', 'zelda'], 'platformName': 'NES'})

        self.assertEqual(resp.status_code, 200)
        payload = resp.get_json()
        rows = payload['enriched_roms']
        self.assertEqual([r['original_name'] for r in rows], ['mario', 'zelda'])
        self.assertIsNone(rows[0]['suggested_title'])
        self.assertEqual(rows[1]['suggested_title'], 'zelda')
        self.assertEqual(payload['errors'][0]['kind'], 'ParseError')

    def test_total_failure_returns_provider_status(self):
        gateway = EnrichmentGateway(ScriptedProvider([ProviderTimeout('Gateway Timeout: slow')]))
        resp = self.client(gateway=gateway).post('/api/enrich-roms', json={
            'romNames': ['mario'], 'platformName': 'NES'})

        self.assertEqual(resp.status_code, 504)
        self.assertEqual(resp.get_json()['error'], 'Gateway Timeout: slow')

    def test_rom_names_must_be_strings(self):
        client = self.client(gateway=EnrichmentGateway(MockProvider()))
        for body in ({}, {'romNames': []}, {'romNames': 'mario'}, {'romNames': ['ok', 3]}):
            with self.subTest(body=body):
                self.assertEqual(client.post('/api/enrich-roms', json=body).status_code, 400)

    def test_missing_gemini_key_is_a_server_error(self):
        self.config.enrichment_provider = 'gemini'
        resp = self.client().post('/api/enrich-roms', json={'romNames': ['mario']})
        self.assertEqual(resp.status_code, 500)
        self.assertIn('API key', resp.get_json()['error'])


class ImportEndpointTests(WebApiTestCase):
    def _drafts(self):
        return [
            {'originalName': 'mario', 'fileName': 'mario.nes', 'userTitle': 'Super Mario Bros.',
             'selectedForImport': True},
            {'originalName': 'zelda', 'fileName': 'zelda.nes', 'userTitle': 'Zelda',
             'selectedForImport': False},
        ]

    def test_import_then_reimport(self):
        client = self.client()
        body = {'platformId': 'nes', 'folderPath': 'nes', 'drafts': self._drafts()}

        first = client.post('/api/import-roms', json=body).get_json()
        second = client.post('/api/import-roms', json=body).get_json()

        self.assertEqual(first['addedCount'], 1)
        self.assertEqual(first['added'][0]['title'], 'Super Mario Bros.')
        self.assertEqual(first['added'][0]['romPath'], os.path.join(self.root, 'nes') + '/mario.nes')
        self.assertEqual(second['addedCount'], 0)
        self.assertEqual(second['skipped'], 1)

        games = client.get('/api/data/games').get_json()
        self.assertEqual(len(games), 1)

    def test_import_errors(self):
        client = self.client()
        resp = client.post('/api/import-roms', json={'platformId': 'gba', 'folderPath': 'nes',
                                                     'drafts': self._drafts()})
        self.assertEqual(resp.status_code, 404)
        resp = client.post('/api/import-roms', json={'platformId': 'nes', 'folderPath': 'nes',
                                                     'drafts': [{'userTitle': 'x'}]})
        self.assertEqual(resp.status_code, 400)


class DataEndpointTests(WebApiTestCase):
    def test_platforms_round_trip(self):
        client = self.client()
        rows = [{'id': 'gb', 'name': 'Game Boy', 'alias': 'gb', 'emulators': []}]

        resp = client.post('/api/data/platforms', json=rows)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(client.get('/api/data/platforms').get_json(), rows)

    def test_save_requires_array(self):
        client = self.client()
        self.assertEqual(client.post('/api/data/games', json={'id': '1'}).status_code, 400)
        self.assertEqual(client.post('/api/data/platforms', json=[{'name': 'x'}]).status_code, 400)

    def test_corrupt_file_is_reported(self):
        with open(self.store.games_path, 'w', encoding='utf-8') as f:
            f.write('{"id": 1}')
        resp = self.client().get('/api/data/games')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('Expected an array', resp.get_json()['error'])


class PlatformEndpointTests(WebApiTestCase):
    def test_match(self):
        client = self.client()
        resp = client.post('/api/platforms/match', json={'name': 'snes'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()['platform']['id'], 'snes')

        resp = client.post('/api/platforms/match', json={'name': 'Sega Genesis'})
        self.assertEqual(resp.status_code, 404)
        self.assertIn('Please select manually', resp.get_json()['error'])

        self.assertEqual(client.post('/api/platforms/match', json={}).status_code, 400)

    def test_catalog_search_matches_platforms(self):
        catalog = FakeCatalog([
            CatalogGame(id=1, title='Super Metroid',
                        platform=ExternalPlatformRef('Super Nintendo (SNES)', 'snes')),
            CatalogGame(id=2, title='Sonic', platform=ExternalPlatformRef('Sega Genesis', 'genesis')),
        ])
        resp = self.client(catalog=catalog).get('/api/search/thegamesdb/bygamename',
                                                query_string={'name': 'metroid', 'page': '2'})

        self.assertEqual(resp.status_code, 200)
        games = resp.get_json()['games']
        self.assertEqual(games[0]['matchedPlatformId'], 'snes')
        self.assertIsNone(games[0]['platformError'])
        self.assertIsNone(games[1]['matchedPlatformId'])
        self.assertIn('Sega Genesis', games[1]['platformError'])
        self.assertEqual(catalog.queries, [('metroid', 2)])

    def test_catalog_search_needs_name(self):
        resp = self.client(catalog=FakeCatalog([])).get('/api/search/thegamesdb/bygamename')
        self.assertEqual(resp.status_code, 400)

    def test_rawg_search(self):
        rawg = FakeRawg([RawgGame(id=4020, title='Super Metroid', slug='super-metroid',
                                  platforms=['SNES'], genres=['Action'])])
        resp = self.client(rawg=rawg).get('/api/search/rawg/games', query_string={
            'search': 'metroid', 'page': '2', 'page_size': '10'})

        self.assertEqual(resp.status_code, 200)
        payload = resp.get_json()
        self.assertEqual(payload['source'], 'RAWG')
        self.assertEqual(payload['count'], 1)
        self.assertIsNone(payload['next'])
        self.assertEqual(payload['games'][0]['title'], 'Super Metroid')
        self.assertEqual(payload['games'][0]['platforms'], ['SNES'])
        self.assertEqual(rawg.queries, [('metroid', 2, 10)])

    def test_rawg_search_needs_search_term(self):
        resp = self.client(rawg=FakeRawg([])).get('/api/search/rawg/games')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()['error'], 'Query parameter "search" is required for RAWG.')

    def test_rawg_without_key_is_a_server_error(self):
        resp = self.client().get('/api/search/rawg/games', query_string={'search': 'metroid'})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.get_json()['error'], 'RAWG API key is not configured on the server.')


class MiscEndpointTests(WebApiTestCase):
    def test_config(self):
        payload = self.client().get('/api/config').get_json()
        self.assertEqual(payload['provider'], 'mock')
        self.assertEqual(payload['version'], '1.0.0')
        self.assertIn('mock', [p['id'] for p in payload['providers']])

    def test_unknown_route_is_json(self):
        resp = self.client().get('/api/nothing-here')
        self.assertEqual(resp.status_code, 404)
        self.assertIn('error', resp.get_json())


if __name__ == '__main__':
    unittest.main()
