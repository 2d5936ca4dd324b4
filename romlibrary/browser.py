"""
Directory listing for the folder browser.
"""

import logging
import os
import posixpath
from typing import Optional

from .errors import NotFoundError, PermissionDenied, ValidationError
from .models import DirectoryItem, DirectoryListing
from .pathing import PathResolver

logger = logging.getLogger(__name__)


class DirectoryLister:
    """Lists one directory below the sandbox root"""

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    def list(self, relative_path: Optional[str] = '') -> DirectoryListing:
        """
        List the entries of a directory.

        Directories come first, then files, each sorted case-insensitively.
        Hidden entries are left out. parent_path is None only at the root.
        """
        path = self.resolver.resolve(relative_path)

        if not os.path.exists(path):
            raise NotFoundError(f'Folder not found: {relative_path}')
        if not os.path.isdir(path):
            raise ValidationError(f'Specified path is not a directory: {relative_path}')

        current = self.resolver.relative_to_root(path)
        parent = None if self.resolver.is_root(path) else posixpath.dirname(current)

        items = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    if entry.name.startswith('.'):
                        continue
                    try:
                        is_dir = entry.is_dir()
                    except OSError:
                        logger.debug('skipping unreadable entry %s', entry.path)
                        continue
                    items.append(DirectoryItem(
                        name=entry.name,
                        is_directory=is_dir,
                        path=posixpath.join(current, entry.name) if current else entry.name,
                    ))
        except PermissionError:
            raise PermissionDenied(f'Permission denied for folder: {relative_path}')

        # Sort: Directories first, then files
        items.sort(key=lambda x: (not x.is_directory, x.name.lower(), x.name))

        return DirectoryListing(current_path=current, parent_path=parent, items=items)
