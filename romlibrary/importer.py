"""
Duplicate-safe import of drafts into the library.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import NotFoundError, ValidationError
from .library import LibraryStore
from .models import Game, GameDraft
from .pathing import PathResolver
from .utils import join_path_segments

logger = logging.getLogger(__name__)


def rom_path_for(folder_path: str, file_name: str) -> str:
    return join_path_segments(folder_path, file_name)


class ImportDeduplicator:
    """Drops candidates whose ROM is already in the library for the platform"""

    def filter_new(self, platform_id: str, candidate_drafts: Sequence[GameDraft],
                   existing_games: Iterable[Game],
                   folder_path: str) -> Tuple[List[GameDraft], int]:
        """
        Split candidates into (accepted, skipped_count).

        A candidate's rom path is folder_path joined with its file name. It is
        skipped when a game of the same platform already has that exact path,
        or when an earlier candidate in this call claimed it.
        """
        seen = {g.rom_path for g in existing_games if g.platform_id == str(platform_id)}
        accepted = []
        skipped = 0
        for draft in candidate_drafts:
            path = rom_path_for(folder_path, draft.file_name)
            if path in seen:
                skipped += 1
                continue
            seen.add(path)
            accepted.append(draft)
        return accepted, skipped


@dataclass
class ImportSummary:
    added: List[Game] = field(default_factory=list)
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            'added': [g.to_dict() for g in self.added],
            'addedCount': len(self.added),
            'skipped': self.skipped,
        }


class LibraryImporter:
    """Turns selected drafts into library games"""

    def __init__(self, resolver: PathResolver, store: LibraryStore,
                 deduplicator: Optional[ImportDeduplicator] = None):
        self.resolver = resolver
        self.store = store
        self.deduplicator = deduplicator or ImportDeduplicator()

    @staticmethod
    def _game_from_draft(platform_id: str, folder: str, draft: GameDraft) -> Game:
        return Game(
            id=f'{platform_id}-{uuid.uuid4().hex[:12]}',
            title=(draft.user_title or '').strip() or draft.original_name,
            platform_id=str(platform_id),
            rom_path=rom_path_for(folder, draft.file_name),
            description=draft.description or '',
            genre=draft.genre or '',
            release_date=draft.release_date or '',
        )

    def import_drafts(self, platform_id: str, folder_path: str,
                      drafts: Sequence[GameDraft]) -> ImportSummary:
        if not platform_id:
            raise ValidationError('Missing required field: platformId.')
        if self.store.get_platform(platform_id) is None:
            raise NotFoundError(f'Platform not found: {platform_id}')

        folder = self.resolver.resolve(folder_path)
        selected = [d for d in drafts if d.selected_for_import]
        if not selected:
            return ImportSummary()

        accepted, skipped = self.deduplicator.filter_new(
            platform_id, selected, self.store.load_games(), folder)
        games = [self._game_from_draft(platform_id, folder, d) for d in accepted]
        if games:
            self.store.add_games(games)
        logger.info('import: platform=%s added=%d skipped=%d', platform_id, len(games), skipped)
        return ImportSummary(added=games, skipped=skipped)
