"""
Data models for the ROM library importer
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ScanRequest:
    """One scan action: a platform and a folder below the sandbox root"""
    platform_id: str
    root_relative_path: str

    @classmethod
    def from_dict(cls, d: Dict) -> 'ScanRequest':
        return cls(
            platform_id=str(d.get('platformId') or '').strip(),
            root_relative_path=str(d.get('folderPath') or ''),
        )


@dataclass
class ScannedRom:
    """A candidate ROM file found by a scan"""
    display_name: str
    file_name: str

    def to_dict(self) -> Dict:
        return {
            'displayName': self.display_name,
            'fileName': self.file_name,
        }


@dataclass
class EnrichmentResult:
    """Provider answer for one ROM name"""
    original_name: str
    suggested_title: str
    genre: Optional[str] = None
    release_date: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'original_name': self.original_name,
            'suggested_title': self.suggested_title,
            'genre': self.genre,
            'release_date': self.release_date,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'EnrichmentResult':
        def _opt(key):
            value = d.get(key)
            return str(value) if value not in (None, '') else None

        return cls(
            original_name=str(d.get('original_name') or ''),
            suggested_title=str(d.get('suggested_title') or ''),
            genre=_opt('genre'),
            release_date=_opt('release_date'),
            description=_opt('description'),
        )


@dataclass
class GameDraft:
    """An editable import candidate, keyed by file_name"""
    original_name: str
    file_name: str
    user_title: str
    suggested_title: Optional[str] = None
    selected_for_import: bool = True
    genre: Optional[str] = None
    release_date: Optional[str] = None
    description: Optional[str] = None

    def rename(self, title: str) -> None:
        self.user_title = title

    def to_dict(self) -> Dict:
        return {
            'originalName': self.original_name,
            'suggestedTitle': self.suggested_title,
            'fileName': self.file_name,
            'userTitle': self.user_title,
            'selectedForImport': self.selected_for_import,
            'genre': self.genre,
            'releaseDate': self.release_date,
            'description': self.description,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'GameDraft':
        original = str(d.get('originalName') or '')
        return cls(
            original_name=original,
            file_name=str(d['fileName']),
            user_title=str(d.get('userTitle') or original),
            suggested_title=d.get('suggestedTitle') or None,
            selected_for_import=bool(d.get('selectedForImport', True)),
            genre=d.get('genre') or None,
            release_date=d.get('releaseDate') or None,
            description=d.get('description') or None,
        )


@dataclass
class DirectoryItem:
    name: str
    is_directory: bool
    path: str

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'isDirectory': self.is_directory,
            'path': self.path,
        }


@dataclass
class DirectoryListing:
    """One directory below the sandbox root; parent_path is None at the root"""
    current_path: str
    parent_path: Optional[str]
    items: List[DirectoryItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'currentPath': self.current_path,
            'parentPath': self.parent_path,
            'items': [i.to_dict() for i in self.items],
        }


@dataclass
class EmulatorConfig:
    id: str
    name: str
    executable_path: str = ""
    args: str = ""

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'executablePath': self.executable_path,
            'args': self.args,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'EmulatorConfig':
        return cls(
            id=str(d['id']),
            name=d.get('name', ''),
            executable_path=d.get('executablePath', ''),
            args=d.get('args', ''),
        )


@dataclass
class PlatformRecord:
    """A locally configured platform"""
    id: str
    name: str
    alias: Optional[str] = None
    icon_url: Optional[str] = None
    emulators: List[EmulatorConfig] = field(default_factory=list)

    def to_dict(self) -> Dict:
        d = {
            'id': self.id,
            'name': self.name,
            'emulators': [e.to_dict() for e in self.emulators],
        }
        if self.alias:
            d['alias'] = self.alias
        if self.icon_url:
            d['iconUrl'] = self.icon_url
        return d

    @classmethod
    def from_dict(cls, d: Dict) -> 'PlatformRecord':
        return cls(
            id=str(d['id']),
            name=d.get('name', ''),
            alias=d.get('alias') or None,
            icon_url=d.get('iconUrl') or None,
            emulators=[EmulatorConfig.from_dict(e) for e in d.get('emulators', [])],
        )


@dataclass
class ExternalPlatformRef:
    """Platform name and alias as reported by an external catalog"""
    name: str
    alias: Optional[str] = None

    def to_dict(self) -> Dict:
        return {'name': self.name, 'alias': self.alias}


@dataclass
class Game:
    """A library entry"""
    id: str
    title: str
    platform_id: str
    rom_path: str
    cover_image_url: str = ""
    description: str = ""
    genre: str = ""
    release_date: str = ""

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'platformId': self.platform_id,
            'romPath': self.rom_path,
            'coverImageUrl': self.cover_image_url,
            'description': self.description,
            'genre': self.genre,
            'releaseDate': self.release_date,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'Game':
        return cls(
            id=str(d['id']),
            title=d.get('title', ''),
            platform_id=str(d.get('platformId', '')),
            rom_path=d.get('romPath', ''),
            cover_image_url=d.get('coverImageUrl', ''),
            description=d.get('description', ''),
            genre=d.get('genre', ''),
            release_date=d.get('releaseDate', ''),
        )


@dataclass
class CatalogGame:
    """A metadata catalog search hit"""
    id: int
    title: str
    platform: ExternalPlatformRef
    release_date: str = ""
    overview: str = ""
    boxart_url: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'release_date': self.release_date,
            'overview': self.overview,
            'boxart_url': self.boxart_url,
            'sourcePlatform': self.platform.to_dict(),
        }


@dataclass
class RawgGame:
    """A RAWG search hit; platforms, genres and stores are plain names"""
    id: int
    title: str
    slug: str = ""
    released: Optional[str] = None
    rating: Optional[float] = None
    metacritic: Optional[int] = None
    background_image: Optional[str] = None
    platforms: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    stores: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'released': self.released,
            'rating': self.rating,
            'metacritic': self.metacritic,
            'background_image': self.background_image,
            'platforms': list(self.platforms),
            'genres': list(self.genres),
            'stores': list(self.stores),
        }
