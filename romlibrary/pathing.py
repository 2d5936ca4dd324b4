"""
Sandboxed path resolution.

Every user supplied path is resolved below one configured root. Browsing,
scanning and importing all go through PathResolver; nothing else touches the
filesystem with a raw user path.
"""

import os
import posixpath
import re
from pathlib import PureWindowsPath
from typing import Optional
from urllib.parse import unquote

from .errors import PathSecurityViolation

_SEPARATORS = re.compile(r'[\\/]+')


def _normalize_separators(path: str) -> str:
    return _SEPARATORS.sub('/', path)


def _is_absolute(path: str) -> bool:
    if path.startswith(('/', '\\')):
        return True
    win = PureWindowsPath(path)
    return bool(win.drive or win.root)


def _has_parent_segment(path: str) -> bool:
    return '..' in _normalize_separators(path).split('/')


class PathResolver:
    """Resolves root-relative paths to absolute paths inside the sandbox root"""

    def __init__(self, root: str):
        if not root:
            raise ValueError('sandbox root is required')
        self.root = os.path.realpath(os.path.abspath(os.path.expanduser(root)))

    def _check(self, user_path: str) -> str:
        # Web query values arrive already decoded, so this is a second decode.
        # It catches double-encoded parents and also refuses real folder names
        # such as "%2e%2e" that decode to one.
        for form in {user_path, unquote(user_path)}:
            if '\x00' in form:
                raise PathSecurityViolation('Path contains a NUL byte')
            if _is_absolute(form):
                raise PathSecurityViolation(f'Absolute paths are not allowed: {user_path}')
            if _has_parent_segment(form):
                raise PathSecurityViolation(f'Parent directory segments are not allowed: {user_path}')
        return posixpath.normpath(_normalize_separators(user_path))

    def resolve(self, user_path: Optional[str]) -> str:
        """Return the absolute path for user_path, or raise PathSecurityViolation."""
        if user_path is None or user_path.strip() in ('', '.'):
            return self.root

        relative = self._check(user_path)
        if relative == '.':
            return self.root

        candidate = os.path.realpath(os.path.join(self.root, *relative.split('/')))
        # symlinks are followed by realpath, so the prefix test also catches links out of the root
        if not self.contains(candidate):
            raise PathSecurityViolation(f'Path escapes the sandbox root: {user_path}')
        return candidate

    def contains(self, absolute_path: str) -> bool:
        try:
            return os.path.commonpath([self.root, absolute_path]) == self.root
        except ValueError:
            # different drives on Windows
            return False

    def relative_to_root(self, absolute_path: str) -> str:
        """Root-relative POSIX form of an absolute path inside the root ('' for the root)."""
        if not self.contains(absolute_path):
            raise PathSecurityViolation(f'Path is outside the sandbox root: {absolute_path}')
        rel = os.path.relpath(absolute_path, self.root)
        if rel == '.':
            return ''
        return rel.replace(os.sep, '/')

    def is_root(self, absolute_path: str) -> bool:
        return os.path.normcase(absolute_path) == os.path.normcase(self.root)


def resolve(root: str, user_path: Optional[str]) -> str:
    """Resolve user_path below root. See PathResolver.resolve."""
    return PathResolver(root).resolve(user_path)
