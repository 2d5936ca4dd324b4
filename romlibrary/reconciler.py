"""
Merges scan results with enrichment output into editable drafts.
"""

from typing import List, Optional, Sequence

from .models import EnrichmentResult, GameDraft, ScannedRom


def draft_from_rom(rom: ScannedRom, selected: bool = True) -> GameDraft:
    """A draft with no suggestion; the title starts as the display name."""
    return GameDraft(
        original_name=rom.display_name,
        file_name=rom.file_name,
        user_title=rom.display_name,
        selected_for_import=selected,
    )


def drafts_from_scan(scanned_roms: Sequence[ScannedRom]) -> List[GameDraft]:
    return [draft_from_rom(rom) for rom in scanned_roms]


def merge(scanned_roms: Sequence[ScannedRom],
          enrichment_results: Sequence[Optional[EnrichmentResult]]) -> List[GameDraft]:
    """
    Build one draft per scanned ROM.

    Results are matched by position: enrichment_results[i] belongs to
    scanned_roms[i]. ROMs past the end of the results, or whose result is
    None, still get a draft whose user_title is the original name.
    """
    bound = min(len(scanned_roms), len(enrichment_results))
    drafts = []
    for i, rom in enumerate(scanned_roms):
        result = enrichment_results[i] if i < bound else None
        suggestion = (result.suggested_title or '').strip() if result else ''
        if not suggestion:
            drafts.append(draft_from_rom(rom))
            continue
        drafts.append(GameDraft(
            original_name=rom.display_name,
            file_name=rom.file_name,
            user_title=suggestion,
            suggested_title=suggestion,
            selected_for_import=True,
            genre=result.genre,
            release_date=result.release_date,
            description=result.description,
        ))
    return drafts


class TitleReconciler:
    """Thin object wrapper so the reconciler can be injected like the other components"""

    def merge(self, scanned_roms, enrichment_results) -> List[GameDraft]:
        return merge(scanned_roms, enrichment_results)

    def drafts_from_scan(self, scanned_roms) -> List[GameDraft]:
        return drafts_from_scan(scanned_roms)
