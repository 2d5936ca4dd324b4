from romlibrary.models import EnrichmentResult, ScannedRom
from romlibrary.reconciler import TitleReconciler, drafts_from_scan, merge


def _roms(*names):
    return [ScannedRom(display_name=n, file_name=f'{n}.nes') for n in names]


def test_missing_results_still_produce_drafts():
    scanned = _roms('smb', 'zelda', 'metroid')
    results = [
        EnrichmentResult('smb', 'Super Mario Bros.', 'Platformer', '1985', 'Plumbers.'),
        EnrichmentResult('zelda', 'The Legend of Zelda'),
    ]

    drafts = merge(scanned, results)

    assert len(drafts) == 3
    assert drafts[0].user_title == 'Super Mario Bros.'
    assert drafts[0].suggested_title == 'Super Mario Bros.'
    assert drafts[0].genre == 'Platformer'
    assert drafts[0].release_date == '1985'
    assert drafts[1].user_title == 'The Legend of Zelda'
    assert drafts[2].user_title == 'metroid'
    assert drafts[2].suggested_title is None
    assert all(d.selected_for_import for d in drafts)


def test_alignment_is_positional_not_by_name():
    scanned = _roms('a', 'b')
    results = [EnrichmentResult('b', 'Title For A'), EnrichmentResult('a', 'Title For B')]

    drafts = merge(scanned, results)

    assert [(d.file_name, d.user_title) for d in drafts] == [
        ('a.nes', 'Title For A'),
        ('b.nes', 'Title For B'),
    ]


def test_none_and_blank_suggestions_fall_back_to_original_name():
    scanned = _roms('a', 'b', 'c')
    results = [None, EnrichmentResult('b', '   '), EnrichmentResult('c', 'C')]

    drafts = merge(scanned, results)

    assert [d.user_title for d in drafts] == ['a', 'b', 'C']
    assert drafts[0].suggested_title is None
    assert drafts[1].suggested_title is None


def test_extra_results_are_ignored():
    drafts = merge(_roms('a'), [EnrichmentResult('a', 'A'), EnrichmentResult('x', 'X')])
    assert [d.user_title for d in drafts] == ['A']


def test_drafts_from_scan_are_unenriched_and_selected():
    drafts = drafts_from_scan(_roms('a', 'b'))
    assert [(d.original_name, d.user_title, d.selected_for_import) for d in drafts] == [
        ('a', 'a', True),
        ('b', 'b', True),
    ]


def test_reconciler_object_delegates():
    reconciler = TitleReconciler()
    assert reconciler.merge(_roms('a'), []) == drafts_from_scan(_roms('a'))
