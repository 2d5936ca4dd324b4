"""
Library persistence - platforms and games as whole JSON files.

Every save rewrites the complete file. There is no concurrency check; two
writers racing on the same file is an accepted limitation.
"""

import json
import logging
import os
from typing import List

from .errors import ValidationError
from .models import Game, PlatformRecord
from .shared_config import GAMES_FILE, PLATFORMS_FILE

logger = logging.getLogger(__name__)


class LibraryStore:
    """Reads and writes platforms.json and games.json in one data directory."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.platforms_path = os.path.join(data_dir, PLATFORMS_FILE)
        self.games_path = os.path.join(data_dir, GAMES_FILE)

    def _read_list(self, filepath: str) -> List[dict]:
        if not os.path.exists(filepath):
            return []
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValidationError(f'Invalid data format in {filepath}. Expected an array.')
        return data

    def _write_list(self, filepath: str, rows: List[dict]) -> None:
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=2, ensure_ascii=False)

    def load_platforms(self) -> List[PlatformRecord]:
        return [PlatformRecord.from_dict(d) for d in self._read_list(self.platforms_path)]

    def save_platforms(self, platforms: List[PlatformRecord]) -> None:
        self._write_list(self.platforms_path, [p.to_dict() for p in platforms])
        logger.info('saved %d platforms to %s', len(platforms), self.platforms_path)

    def load_games(self) -> List[Game]:
        return [Game.from_dict(d) for d in self._read_list(self.games_path)]

    def save_games(self, games: List[Game]) -> None:
        self._write_list(self.games_path, [g.to_dict() for g in games])
        logger.info('saved %d games to %s', len(games), self.games_path)

    def get_platform(self, platform_id: str):
        for platform in self.load_platforms():
            if platform.id == str(platform_id):
                return platform
        return None

    def add_games(self, new_games: List[Game]) -> List[Game]:
        """Append games and save the whole file. Returns the full list."""
        games = self.load_games()
        games.extend(new_games)
        self.save_games(games)
        return games
