"""
Command-line interface for photoavif.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import Progress

from .constants import PROGRAM, AVIF_QUALITY, AVIF_SPEED, default_workers, get_console
from .conversion import avif_supported
from .core import PhotoConverter
from .progress import ProgressContext


def parse_workers(value: str) -> int:
    """Convert a worker count argument to a positive integer."""
    try:
        workers = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid worker count: {value}")
    if workers < 1:
        raise argparse.ArgumentTypeError(f"Worker count must be at least 1: {value}")
    return workers


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Rename photos by capture time and convert them to AVIF in place",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Converted files are written next to their originals as
"YYYY年MM月DD日 HH-mm-ss.avif" and the originals are deleted.

Examples:
  {PROGRAM}
  {PROGRAM} ~/Pictures/Scans --dry-run
  {PROGRAM} -j 4 ~/Pictures
        """
    )

    parser.add_argument(
        "root", nargs="?",
        help="Directory to process recursively (default: current directory)"
    )
    parser.add_argument(
        "--workers", "-j", type=parse_workers, metavar="N",
        help=f"Number of parallel conversions (default: {default_workers()})"
    )
    parser.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Decode, encode and name every photo without writing or deleting anything"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def show_processing_plan(root: Path, workers: int, dry_run: bool, console: Console) -> None:
    """Display the processing plan before execution."""
    mode = "DRY RUN" if dry_run else "CONVERT"

    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Directory:       [blue]{root}[/blue] (recursive)")
    console.print(f"  Processing Mode: [cyan]{mode}[/cyan]")
    console.print(f"  Output:          [cyan]AVIF quality {AVIF_QUALITY}, speed {AVIF_SPEED}[/cyan]")
    console.print(f"  Workers:         [cyan]{workers}[/cyan]")
    if not dry_run:
        console.print("  [yellow]Originals are deleted after successful conversion[/yellow]")
    console.print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(__version__)
        return 0

    root = Path(args.root).expanduser().resolve() if args.root else Path.cwd()
    console = get_console()

    # Validate root
    if not root.exists():
        console.print(f"[red]Error: Directory does not exist: {root}[/red]")
        return 1

    if not root.is_dir():
        console.print(f"[red]Error: Not a directory: {root}[/red]")
        return 1

    if not avif_supported():
        console.print("[red]Error: the installed Pillow cannot write AVIF files[/red]")
        return 1

    workers = args.workers or default_workers()
    show_processing_plan(root, workers, args.dry_run, console)

    converter = PhotoConverter(root=root, workers=workers, dry_run=args.dry_run,
                               verbose=args.verbose)

    try:
        files = converter.find_source_files()
    except OSError as e:
        console.print(f"[red]Error: Cannot scan {root}: {e}[/red]")
        return 1

    if not files:
        console.print("[yellow]No photos found in directory[/yellow]")
        converter.print_summary()
        return 0

    console.print(f"Found {len(files)} photos to convert")

    with Progress(console=console) as progress:
        task = progress.add_task("Converting photos...", total=len(files))
        result = converter.process_files(files, ProgressContext(progress, task))

    converter.print_summary()

    if result.interrupted:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1

    if result.has_errors():
        console.print(f"\n[yellow]Finished with {result.failed} failed files[/yellow]")
        return 2

    console.print("\n[green]✓ Processing completed successfully![/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
