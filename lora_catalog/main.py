"""
LoRA Catalog - Main Application
===============================

Wires scanner, catalog, reconciliation and file operations together and
exposes them on the command line.
"""

import argparse
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from lora_catalog.config import Config
from lora_catalog.identity import ContentFingerprinter
from lora_catalog.discovery import PathScanner, TreeBuilder, TreeNode, fuzzy_search
from lora_catalog.catalog import CatalogStore
from lora_catalog.reconciliation import ReconciliationEngine, ValidityState, Verdict
from lora_catalog.actions import FileOperations, GalleryManager
from lora_catalog.monitoring import LibraryWatcher
from lora_catalog.utils.logging_config import setup_logging, get_logger, LoggingConfig, LogContext
from lora_catalog.utils.exceptions import LoraCatalogError

logger = get_logger(__name__)

STATE_LABELS = {
    ValidityState.VALID: "OK",
    ValidityState.ID_UNSET: "WARNING: File ID is missing or unknown",
    ValidityState.ID_MISMATCH: "WARNING: File ID does not match the file",
    ValidityState.MISSING_ENTRY_FILE_EXISTS: "WARNING: File is not in the catalog",
    ValidityState.FILE_MISSING: "WARNING: File does not exist",
    ValidityState.NEW_UNCATALOGED: "No file and no catalog entry",
}


class LoraCatalogApp:
    """Owns one catalog store and the components working on it."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize the application.

        Args:
            config: Loaded configuration; defaults when omitted.
        """
        self.config = config or Config()
        library = self.config.library

        self.fingerprinter = ContentFingerprinter(self.config.fingerprint.chunk_size)
        self.scanner = PathScanner(library.model_extension)
        self.tree_builder = TreeBuilder(self.scanner)
        self.store = CatalogStore(
            catalog_path=self.config.catalog.catalog_path,
            models_directory=library.models_directory,
            extension=library.model_extension,
            fingerprinter=self.fingerprinter,
            indent=self.config.catalog.indent,
        )
        self.engine = ReconciliationEngine(self.store, self.fingerprinter)
        self.gallery = GalleryManager(self.config.catalog.gallery_directory, library.image_extensions)
        self.file_ops = FileOperations(self.store, self.gallery, self.scanner)

    def load(self) -> None:
        """Load the catalog.

        Raises:
            CorruptCatalogError: If the catalog cannot be parsed and
                ``abort_on_corrupt`` is set.
        """
        try:
            self.store.load()
        except LoraCatalogError:
            if self.config.catalog.abort_on_corrupt:
                raise
            logger.error("Catalog could not be loaded, continuing with an empty catalog")

    def scan(self) -> List[str]:
        return self.scanner.scan(self.config.library.models_directory)

    def tree(self) -> List[TreeNode]:
        return self.tree_builder.build(self.scan(), self.config.library.models_directory)

    def search(self, query: str) -> List[str]:
        return fuzzy_search(self.scan(), query)

    def check(self, logical_path: str) -> Verdict:
        return self.engine.evaluate(logical_path)

    def accept(self, logical_path: str) -> Verdict:
        """Accept the live fingerprint and persist the catalog."""
        verdict = self.engine.accept_live_fingerprint(logical_path)
        self.store.save()
        return verdict

    def verify(self) -> List[Verdict]:
        return self.engine.evaluate_all(self.scan())

    def import_model(self, source: Path, target_folder: str = "") -> Verdict:
        """Copy a model into the library and catalog it."""
        result = self.file_ops.import_file(source, target_folder)
        verdict = self.engine.register(result.new_path)
        self.store.save()
        return verdict

    def watch(self) -> LibraryWatcher:
        """Start a watcher that re-scans the library after changes."""
        def on_change():
            paths = self.scan()
            logger.info(f"Library changed, {len(paths)} model files")

        watcher = LibraryWatcher(
            self.config.library.models_directory,
            on_change,
            extension=self.config.library.model_extension,
            debounce_seconds=self.config.watcher.debounce_seconds,
        )
        watcher.start()
        return watcher


def print_tree(nodes: List[TreeNode], indent: int = 0) -> None:
    for node in nodes:
        marker = "" if node.is_file else "/"
        print(f"{'  ' * indent}{node.name}{marker}")
        print_tree(node.children, indent + 1)


def print_verdict(verdict: Verdict) -> None:
    print(f"{verdict.logical_path}: {STATE_LABELS[verdict.state]}")
    if verdict.live_fingerprint:
        print(f"  live:   {verdict.live_fingerprint}")
    if verdict.record is not None:
        print(f"  stored: {verdict.stored_fingerprint}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lora-catalog",
        description="LoRA Catalog - keep model files and their metadata in sync"
    )
    parser.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='Path to config.yaml'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    sub = parser.add_subparsers(dest='command', required=True)
    sub.add_parser('scan', help='List model files as logical paths')
    sub.add_parser('tree', help='Show the folder hierarchy')

    search = sub.add_parser('search', help='Fuzzy search logical paths')
    search.add_argument('query')

    check = sub.add_parser('check', help='Show the validity state of one path')
    check.add_argument('path')

    accept = sub.add_parser('accept', help='Accept the current file fingerprint')
    accept.add_argument('path')

    sub.add_parser('verify', help='Check every cataloged and scanned path')

    import_cmd = sub.add_parser('import', help='Copy a model file into the library')
    import_cmd.add_argument('source', type=Path)
    import_cmd.add_argument('--folder', default='', help='Target folder (logical path)')

    sub.add_parser('watch', help='Watch the library and report changes')
    return parser


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command; returns the exit status."""
    app = LoraCatalogApp(Config.load(args.config))
    app.load()

    if args.command == 'scan':
        for path in app.scan():
            print(path)
    elif args.command == 'tree':
        print_tree(app.tree())
    elif args.command == 'search':
        for path in app.search(args.query):
            print(path)
    elif args.command == 'check':
        print_verdict(app.check(args.path))
    elif args.command == 'accept':
        print_verdict(app.accept(args.path))
    elif args.command == 'verify':
        verdicts = app.verify()
        problems = [v for v in verdicts if not v.is_valid]
        for verdict in problems:
            print_verdict(verdict)
        print(f"\n{len(verdicts) - len(problems)} valid, {len(problems)} need attention")
        return 1 if problems else 0
    elif args.command == 'import':
        print_verdict(app.import_model(args.source, args.folder))
    elif args.command == 'watch':
        watcher = app.watch()

        def signal_handler(sig, frame):
            watcher.stop()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            watcher.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with CLI support."""
    args = build_parser().parse_args(argv)
    setup_logging(LoggingConfig(
        level="DEBUG" if args.verbose else "WARNING",
        file_output=False,
    ))

    with LogContext(logger, command=args.command):
        try:
            return run(args)
        except LoraCatalogError as e:
            logger.error(str(e))
            print(f"Error: {e.message}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
