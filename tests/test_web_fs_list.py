import os
import tempfile
import unittest

from romlibrary.settings import AppConfig
from romlibrary.web import create_app


class FsListEndpointTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        base = os.path.realpath(self._tmp.name)
        self.root = os.path.join(base, 'roms')
        os.makedirs(os.path.join(self.root, 'alpha'))
        with open(os.path.join(self.root, 'beta.nes'), 'w', encoding='utf-8') as f:
            f.write('ok')
        config = AppConfig(sandbox_root=self.root, data_dir=os.path.join(base, 'data'),
                           log_dir=os.path.join(base, 'logs'))
        self.client = create_app(config).test_client()

    def tearDown(self):
        self._tmp.cleanup()

    def test_fs_list_defaults_to_root(self):
        resp = self.client.get('/api/fs/list')
        self.assertEqual(resp.status_code, 200)
        payload = resp.get_json()
        self.assertEqual(payload['currentPath'], '')
        self.assertIsNone(payload['parentPath'])
        self.assertEqual([i['name'] for i in payload['items']], ['alpha', 'beta.nes'])

    def test_fs_list_lists_explicit_directory(self):
        resp = self.client.get('/api/fs/list', query_string={'path': 'alpha'})
        self.assertEqual(resp.status_code, 200)
        payload = resp.get_json()
        self.assertEqual(payload['currentPath'], 'alpha')
        self.assertEqual(payload['parentPath'], '')
        self.assertEqual(payload['items'], [])

    def test_fs_list_rejects_escape(self):
        for bad in ('..', '/etc', '%2e%2e'):
            with self.subTest(path=bad):
                resp = self.client.get('/api/fs/list', query_string={'path': bad})
                self.assertEqual(resp.status_code, 400)
                self.assertIn('error', resp.get_json())

    def test_fs_list_missing_and_file(self):
        resp = self.client.get('/api/fs/list', query_string={'path': 'gamma'})
        self.assertEqual(resp.status_code, 404)
        resp = self.client.get('/api/fs/list', query_string={'path': 'beta.nes'})
        self.assertEqual(resp.status_code, 400)


if __name__ == '__main__':
    unittest.main()
