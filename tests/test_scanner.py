import os
import tempfile
import unittest

from romlibrary.errors import NotFoundError, PathSecurityViolation, PermissionDenied, ValidationError
from romlibrary.models import ScannedRom, ScanRequest
from romlibrary.pathing import PathResolver
from romlibrary.scanner import RomScanner, display_name_for


def _touch(path):
    with open(path, 'wb') as f:
        f.write(b'\x00')


class RomScannerTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = os.path.realpath(self._tmp.name)
        self.folder = os.path.join(self.root, 'nes')
        os.makedirs(self.folder)
        self.scanner = RomScanner(PathResolver(self.root), ignored_extensions={'.txt'})

    def tearDown(self):
        self._tmp.cleanup()

    def _files(self, *names):
        for name in names:
            _touch(os.path.join(self.folder, name))

    def test_hidden_and_ignored_entries_are_skipped(self):
        self._files('a.nes', '.hidden', '.DS_Store', 'notes.txt', 'b.smc')

        result = self.scanner.scan('nes', 'nes')

        self.assertEqual(result, [
            ScannedRom(display_name='a', file_name='a.nes'),
            ScannedRom(display_name='b', file_name='b.smc'),
        ])

    def test_order_is_alphabetical(self):
        self._files('zelda.nes', 'Contra.nes', 'metroid.nes')
        names = [r.file_name for r in self.scanner.scan('nes', 'nes')]
        self.assertEqual(names, ['Contra.nes', 'metroid.nes', 'zelda.nes'])

    def test_subdirectories_are_not_scanned(self):
        self._files('a.nes')
        os.makedirs(os.path.join(self.folder, 'more'))
        _touch(os.path.join(self.folder, 'more', 'deep.nes'))

        names = [r.file_name for r in self.scanner.scan('nes', 'nes')]
        self.assertEqual(names, ['a.nes'])

    def test_ignore_set_is_case_insensitive(self):
        self._files('README.TXT', 'game.NES')
        names = [r.file_name for r in self.scanner.scan('nes', 'nes')]
        self.assertEqual(names, ['game.NES'])

    def test_missing_platform_or_folder(self):
        with self.assertRaises(ValidationError):
            self.scanner.scan('', 'nes')
        with self.assertRaises(ValidationError):
            self.scanner.scan('nes', None)

    def test_empty_folder_path_scans_the_root(self):
        _touch(os.path.join(self.root, 'top.nes'))
        _touch(os.path.join(self.root, '.hidden.nes'))

        for folder in ('', '.'):
            with self.subTest(folder=folder):
                self.assertEqual([r.file_name for r in self.scanner.scan('nes', folder)], ['top.nes'])

    def test_missing_folder(self):
        with self.assertRaises(NotFoundError):
            self.scanner.scan('nes', 'snes')

    def test_file_instead_of_folder(self):
        self._files('a.nes')
        with self.assertRaises(ValidationError):
            self.scanner.scan('nes', 'nes/a.nes')

    def test_escape_rejected(self):
        with self.assertRaises(PathSecurityViolation):
            self.scanner.scan('nes', '../nes')

    @unittest.skipIf(os.name == 'nt' or (hasattr(os, 'geteuid') and os.geteuid() == 0),
                     'permission bits are not enforced')
    def test_permission_denied(self):
        os.chmod(self.folder, 0)
        try:
            with self.assertRaises(PermissionDenied):
                self.scanner.scan('nes', 'nes')
        finally:
            os.chmod(self.folder, 0o755)

    def test_scan_request(self):
        self._files('a.nes')
        request = ScanRequest.from_dict({'platformId': 'nes', 'folderPath': 'nes'})
        self.assertEqual([r.file_name for r in self.scanner.scan_request(request)], ['a.nes'])

    def test_default_ignore_set(self):
        scanner = RomScanner(PathResolver(self.root))
        self._files('a.nes', 'cover.png', 'info.nfo')
        self.assertEqual([r.file_name for r in scanner.scan('nes', 'nes')], ['a.nes'])


def test_display_name_drops_only_the_last_extension():
    assert display_name_for('mario.nes') == 'mario'
    assert display_name_for('Final Fantasy v1.1.sfc') == 'Final Fantasy v1.1'
    assert display_name_for('README') == 'README'
    assert display_name_for('trailing.') == 'trailing'
