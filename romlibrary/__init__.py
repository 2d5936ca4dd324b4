"""
ROM Library - import ROM folders into a game library

Sandboxed folder browsing, flat scanning, batched title enrichment and
duplicate-safe import.
"""

__version__ = '1.0.0'
__author__ = 'ROM Library'

from .errors import (
    RomLibraryError, PathSecurityViolation, ValidationError, NotFoundError,
    PermissionDenied, ConfigurationError, ProviderTimeout, ProviderError, ParseError,
)
from .models import (
    ScanRequest, ScannedRom, EnrichmentResult, GameDraft, DirectoryItem,
    DirectoryListing, EmulatorConfig, PlatformRecord, ExternalPlatformRef, Game,
)
from .pathing import PathResolver
from .browser import DirectoryLister
from .scanner import RomScanner
from .enrichment import EnrichmentGateway
from .reconciler import TitleReconciler
from .platforms import PlatformMatcher
from .importer import ImportDeduplicator, LibraryImporter
from .session import ImportSession
from .settings import AppConfig, load_config


__all__ = [
    'RomLibraryError',
    'PathSecurityViolation',
    'ValidationError',
    'NotFoundError',
    'PermissionDenied',
    'ConfigurationError',
    'ProviderTimeout',
    'ProviderError',
    'ParseError',
    'ScanRequest',
    'ScannedRom',
    'EnrichmentResult',
    'GameDraft',
    'DirectoryItem',
    'DirectoryListing',
    'EmulatorConfig',
    'PlatformRecord',
    'ExternalPlatformRef',
    'Game',
    'PathResolver',
    'DirectoryLister',
    'RomScanner',
    'EnrichmentGateway',
    'TitleReconciler',
    'PlatformMatcher',
    'ImportDeduplicator',
    'LibraryImporter',
    'ImportSession',
    'AppConfig',
    'load_config',
]
