"""
Command-line interface for the ROM library importer
"""

import argparse
import sys
from typing import Callable, Optional

from .browser import DirectoryLister
from .enrichment import EnrichmentGateway
from .errors import RomLibraryError
from .importer import LibraryImporter
from .library import LibraryStore
from .monitor import monitor_action, setup_runtime_monitor
from .pathing import PathResolver
from .platforms import PlatformMatcher
from .scanner import RomScanner
from .session import ImportSession, SessionState
from .settings import DEFAULT_SETTINGS_PATH, load_config
from .shared_config import PROVIDERS
from .utils import truncate_string


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        prog='romlibrary',
        description='ROM Library - import ROM folders into your game library',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s --web --port 3001
  %(prog)s --browse snes
  %(prog)s --scan snes --platform snes
  %(prog)s --scan snes --platform snes --enrich --exclude "zelda.sfc" --import
  %(prog)s --match "Super Nintendo (SNES)" --alias snes
        '''
    )

    parser.add_argument('--web', action='store_true', help='Start the web API')
    parser.add_argument('--host', default='127.0.0.1', help='Web API host (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=5000, help='Web API port (default: 5000)')

    config_group = parser.add_argument_group('Configuration')
    config_group.add_argument('--settings', default=DEFAULT_SETTINGS_PATH,
                              help='Settings file (default: ~/.romlibrary/settings.json)')
    config_group.add_argument('--root', help='Sandbox root for all folders')
    config_group.add_argument('--data-dir', help='Folder holding platforms.json and games.json')
    config_group.add_argument('--provider', choices=[p['id'] for p in PROVIDERS],
                              help='Enrichment provider')

    ops = parser.add_argument_group('Operations')
    ops.add_argument('--browse', nargs='?', const='', metavar='FOLDER',
                     help='Browse folders below the sandbox root interactively')
    ops.add_argument('--scan', metavar='FOLDER', help='Folder to scan, relative to the sandbox root')
    ops.add_argument('--platform', '-p', help='Platform id the ROMs belong to')
    ops.add_argument('--enrich', action='store_true', help='Suggest titles with the enrichment provider')
    ops.add_argument('--exclude', action='append', default=[], metavar='FILE',
                     help='File name to leave out of the import (repeatable)')
    ops.add_argument('--import', dest='do_import', action='store_true',
                     help='Import the selected ROMs into the library')
    ops.add_argument('--list-platforms', action='store_true', help='List configured platforms')
    ops.add_argument('--match', metavar='NAME', help='Find the local platform for an external name')
    ops.add_argument('--alias', help='External platform alias used with --match')
    ops.add_argument('--quiet', '-q', action='store_true', help='Suppress progress output')
    ops.add_argument('--verbose', '-v', action='store_true', help='Echo log lines to stderr')

    return parser


def _config_from_args(args):
    overrides = {}
    if args.root:
        overrides['sandbox_root'] = args.root
    if args.data_dir:
        overrides['data_dir'] = args.data_dir
    if args.provider:
        overrides['enrichment'] = {'provider': args.provider}
    return load_config(args.settings, overrides=overrides)


def browse_interactive(lister: DirectoryLister, start: str = '',
                       input_fn: Callable[[str], str] = input,
                       output: Callable[[str], None] = print) -> Optional[str]:
    """
    Walk folders with a numbered menu.

    A number opens that folder, "u" goes up, "s" selects the current folder
    and returns its path, "q" quits without a selection.
    """
    listing = lister.list(start)
    while True:
        output(f"\n/{listing.current_path}")
        folders = [i for i in listing.items if i.is_directory]
        for n, item in enumerate(folders, 1):
            output(f"  [{n}] {item.name}/")
        for item in listing.items:
            if not item.is_directory:
                output(f"      {item.name}")
        choice = input_fn("Folder number, [u]p, [s]elect, [q]uit: ").strip().lower()

        if choice == 's':
            return listing.current_path
        if choice == 'q':
            return None
        if choice == 'u':
            if listing.parent_path is None:
                output("Already at the sandbox root.")
                continue
            listing = lister.list(listing.parent_path)
            continue
        if choice.isdigit() and 1 <= int(choice) <= len(folders):
            try:
                listing = lister.list(folders[int(choice) - 1].path)
            except RomLibraryError as e:
                output(f"Error: {e.message}")
            continue
        output("Unknown choice.")


def _print_drafts(session: ImportSession, log) -> None:
    for draft in session.drafts:
        mark = 'x' if draft.selected_for_import else ' '
        title = truncate_string(draft.user_title, 48)
        hint = f"  (was {draft.original_name})" if draft.user_title != draft.original_name else ''
        log(f"  [{mark}] {draft.file_name:<40} {title}{hint}")


def _run_scan(args, config, log) -> int:
    if not args.platform:
        print("\nError: --platform is required with --scan.", file=sys.stderr)
        return 1

    resolver = PathResolver(config.sandbox_root)
    store = LibraryStore(config.data_dir)
    platform = store.get_platform(args.platform)
    if platform is None:
        print(f"Error: platform not found: {args.platform}", file=sys.stderr)
        return 1

    session = ImportSession(
        scanner=RomScanner(resolver, config.ignored_extensions),
        gateway=EnrichmentGateway.from_config(config),
        importer=LibraryImporter(resolver, store),
        platform_id=platform.id,
        platform_name=platform.name,
    )

    log(f"Scanning {args.scan} for {platform.name}...")
    session.scan(args.scan)
    if session.state is SessionState.IDLE:
        print(f"Error: {session.error}", file=sys.stderr)
        return 1
    if not session.drafts:
        log(session.error or "No ROM files found.")
        return 0
    log(f"Found {len(session.drafts)} potential ROMs")

    for file_name in args.exclude:
        try:
            session.set_selected(file_name, False)
        except RomLibraryError as e:
            print(f"Warning: {e.message}", file=sys.stderr)

    if args.enrich:
        log(f"Enriching {len(session.selected_drafts)} ROMs "
            f"(provider: {config.enrichment_provider}, batch size: {config.batch_size})...")
        session.enrich()
        if session.error:
            print(f"Warning: {session.error}", file=sys.stderr)

    _print_drafts(session, log)

    if not args.do_import:
        log("\nDry run - use --import to add the selected ROMs to the library.")
        return 0

    summary = session.run_import()
    log(f"\nImported {len(summary.added)} game(s), skipped {summary.skipped} already in the library.")
    return 0


def run_cli(args=None):
    """Run CLI mode"""
    parser = create_parser()
    args = parser.parse_args(args)

    def log(msg):
        if not args.quiet:
            print(msg)

    try:
        config = _config_from_args(args)
    except RomLibraryError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    logger = setup_runtime_monitor(config.log_dir, echo=args.verbose)

    if args.web:
        from .web import run_server
        run_server(args.host, args.port, config=config)
        return 0

    try:
        if args.browse is not None:
            monitor_action('cli: browse', logger=logger)
            selected = browse_interactive(DirectoryLister(PathResolver(config.sandbox_root)), args.browse)
            if selected is None:
                return 1
            print(selected)
            return 0

        if args.list_platforms:
            for platform in LibraryStore(config.data_dir).load_platforms():
                alias = f" ({platform.alias})" if platform.alias else ''
                print(f"{platform.id:<16} {platform.name}{alias}")
            return 0

        if args.match:
            matcher = PlatformMatcher(source='the command line')
            platform = matcher.match(args.match, args.alias, LibraryStore(config.data_dir).load_platforms())
            if platform is None:
                print(matcher.unmatched_message(args.match, args.alias), file=sys.stderr)
                return 1
            print(f"{platform.id}\t{platform.name}")
            return 0

        if args.scan is not None:
            monitor_action(f'cli: scan {args.scan}', logger=logger)
            return _run_scan(args, config, log)
    except RomLibraryError as e:
        logger.warning('cli failed: %s', e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


def main():
    sys.exit(run_cli())


if __name__ == '__main__':
    main()
