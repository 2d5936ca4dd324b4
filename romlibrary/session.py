"""Scan-to-import session for one selected platform."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from .enrichment import BatchedEnrichment, EnrichmentGateway
from .errors import RomLibraryError, ValidationError
from .importer import ImportSummary, LibraryImporter
from .models import GameDraft, ScannedRom
from .reconciler import TitleReconciler, draft_from_rom
from .scanner import RomScanner

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = 'idle'
    SCANNING = 'scanning'
    SCANNED = 'scanned'
    ENRICHING = 'enriching'
    ENRICHED = 'enriched'
    IMPORTING = 'importing'


class ImportSession:
    """
    Idle -> Scanning -> Scanned -> (Enriching -> Enriched)? -> Importing -> Idle.

    Switching platform resets to Idle and drops every draft. A failed scan
    returns to Idle, a failed enrichment returns to Scanned; either way the
    message stays in ``error``.
    """

    def __init__(self, scanner: RomScanner, gateway: EnrichmentGateway,
                 importer: LibraryImporter, platform_id: str = '', platform_name: str = '',
                 reconciler: Optional[TitleReconciler] = None):
        self.scanner = scanner
        self.gateway = gateway
        self.importer = importer
        self.reconciler = reconciler or TitleReconciler()
        self.platform_id = platform_id
        self.platform_name = platform_name
        self._reset()

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.folder_path: str = ''
        self.scanned: List[ScannedRom] = []
        self.drafts: List[GameDraft] = []
        self.error: Optional[str] = None
        self.last_enrichment: Optional[BatchedEnrichment] = None

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ', '.join(s.value for s in states)
            raise ValidationError(f'Action not allowed while {self.state.value} (expected {allowed})')

    def switch_platform(self, platform_id: str, platform_name: str = '') -> None:
        logger.info('session: switch platform %s -> %s', self.platform_id, platform_id)
        self.platform_id = platform_id
        self.platform_name = platform_name
        self._reset()

    def scan(self, folder_path: str) -> List[GameDraft]:
        self._require(SessionState.IDLE, SessionState.SCANNED, SessionState.ENRICHED)
        self.state = SessionState.SCANNING
        self.error = None
        self.drafts = []
        try:
            self.scanned = self.scanner.scan(self.platform_id, folder_path)
        except RomLibraryError as e:
            logger.warning('session: scan failed: %s', e.message)
            self.scanned = []
            self.state = SessionState.IDLE
            self.error = e.message
            return []
        self.folder_path = folder_path
        self.drafts = self.reconciler.drafts_from_scan(self.scanned)
        self.state = SessionState.SCANNED
        if not self.scanned:
            self.error = 'No ROM files found in the specified directory. Check the path and ignored extensions.'
        return self.drafts

    def _draft(self, file_name: str) -> GameDraft:
        for draft in self.drafts:
            if draft.file_name == file_name:
                return draft
        raise ValidationError(f'No draft for file: {file_name}')

    def rename(self, file_name: str, title: str) -> None:
        self._require(SessionState.SCANNED, SessionState.ENRICHED)
        self._draft(file_name).rename(title)

    def set_selected(self, file_name: str, selected: bool) -> None:
        self._require(SessionState.SCANNED, SessionState.ENRICHED)
        self._draft(file_name).selected_for_import = selected

    def select_all(self, selected: bool = True) -> None:
        self._require(SessionState.SCANNED, SessionState.ENRICHED)
        for draft in self.drafts:
            draft.selected_for_import = selected

    @property
    def selected_drafts(self) -> List[GameDraft]:
        return [d for d in self.drafts if d.selected_for_import]

    def enrich(self) -> List[GameDraft]:
        """
        Enrich the selected drafts and rebuild the draft list.

        Previous drafts (and their edits) are discarded. Unselected ROMs are
        carried over unenriched and stay unselected. When every batch fails
        the drafts are left untouched and the session goes back to Scanned.
        """
        self._require(SessionState.SCANNED, SessionState.ENRICHED)
        selected_names = {d.file_name for d in self.selected_drafts}
        targets = [r for r in self.scanned if r.file_name in selected_names]
        if not targets:
            raise ValidationError('No ROMs selected for enrichment.')

        self.state = SessionState.ENRICHING
        self.error = None
        try:
            outcome = self.gateway.enrich_in_batches(
                [r.display_name for r in targets], self.platform_name)
        except RomLibraryError as e:
            logger.warning('session: enrichment failed: %s', e.message)
            self.state = SessionState.SCANNED
            self.error = e.message
            return self.drafts

        self.last_enrichment = outcome
        if outcome.all_failed:
            # nothing came back, so the current drafts and their edits stay
            logger.warning('session: every enrichment batch failed')
            self.state = SessionState.SCANNED
            self.error = '; '.join(f.message for f in outcome.failures)
            return self.drafts

        merged = {d.file_name: d for d in self.reconciler.merge(targets, outcome.results)}
        self.drafts = [
            merged.get(r.file_name) or draft_from_rom(r, selected=False)
            for r in self.scanned
        ]
        if outcome.failures:
            self.error = '; '.join(f.message for f in outcome.failures)
        self.state = SessionState.ENRICHED
        return self.drafts

    def run_import(self) -> ImportSummary:
        self._require(SessionState.SCANNED, SessionState.ENRICHED)
        if not self.selected_drafts:
            raise ValidationError('No ROMs selected for import.')
        previous = self.state
        self.state = SessionState.IMPORTING
        try:
            summary = self.importer.import_drafts(self.platform_id, self.folder_path, self.drafts)
        except RomLibraryError as e:
            self.state = previous
            self.error = e.message
            raise
        self._reset()
        return summary
