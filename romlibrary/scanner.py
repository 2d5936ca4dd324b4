"""
Flat folder scanner for candidate ROM files
"""

import logging
import os
from typing import Iterable, List, Optional

from .errors import NotFoundError, PermissionDenied, ValidationError
from .models import ScannedRom, ScanRequest
from .pathing import PathResolver
from .shared_config import IGNORED_ROM_EXTENSIONS

logger = logging.getLogger(__name__)


def display_name_for(file_name: str) -> str:
    """File name without its final extension; names without a dot stay unchanged."""
    if '.' not in file_name:
        return file_name
    return file_name.rsplit('.', 1)[0]


class RomScanner:
    """Lists ROM candidates in a single folder (no recursion)"""

    def __init__(self, resolver: PathResolver,
                 ignored_extensions: Optional[Iterable[str]] = None):
        self.resolver = resolver
        if ignored_extensions is None:
            ignored_extensions = IGNORED_ROM_EXTENSIONS
        self.ignored_extensions = {e.lower() for e in ignored_extensions}

    def _is_candidate(self, name: str) -> bool:
        """Check if a file should be offered for import"""
        if name.startswith('.'):
            return False
        ext = os.path.splitext(name)[1].lower()
        return ext not in self.ignored_extensions

    def scan(self, platform_id: str, folder_path: str) -> List[ScannedRom]:
        """
        Scan one folder for candidate ROM files.

        Args:
            platform_id: Platform the files are scanned for
            folder_path: Folder relative to the sandbox root ("" for the root)

        Returns:
            ScannedRom list ordered by file name
        """
        if not platform_id or not str(platform_id).strip():
            raise ValidationError('Missing required fields: platformId or folderPath.')
        # "" is the sandbox root itself
        if not isinstance(folder_path, str):
            raise ValidationError('Missing required fields: platformId or folderPath.')

        path = self.resolver.resolve(folder_path)
        if not os.path.exists(path):
            raise NotFoundError(f'Folder not found: {folder_path}')
        if not os.path.isdir(path):
            raise ValidationError(f'Specified path is not a directory: {folder_path}')

        results = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    if not self._is_candidate(entry.name):
                        continue
                    try:
                        if not entry.is_file():
                            continue
                    except OSError:
                        continue
                    results.append(ScannedRom(
                        display_name=display_name_for(entry.name),
                        file_name=entry.name,
                    ))
        except PermissionError:
            raise PermissionDenied(f'Permission denied for folder: {folder_path}')

        results.sort(key=lambda r: (r.file_name.lower(), r.file_name))
        logger.info('scan: platform=%s folder=%s found=%d', platform_id, folder_path, len(results))
        return results

    def scan_request(self, request: ScanRequest) -> List[ScannedRom]:
        return self.scan(request.platform_id, request.root_relative_path)
