"""
Command-line interface for folderize.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import Config
from .constants import PROGRAM, get_console
from .core import Folderizer


def positive_int(value: str) -> int:
    """Parse a strictly positive integer option."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1: {value}")
    return number


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_source = config.get_last_source()
    last_dest = config.get_last_dest()

    source_help = "Source directory containing files to organize"
    dest_help = "Destination root for the YYYY/YYYY-MM folders"
    if last_source:
        source_help += f" (default: {last_source})"
    if last_dest:
        dest_help += f" (default: {last_dest})"

    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Move files into year/year-month folders by capture date",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} ~/Dropbox/Camera\\ Uploads ~/Pictures/Photos
  {PROGRAM} ~/Dropbox/Camera\\ Uploads ~/Pictures/Photos continuous
  {PROGRAM} --dry-run
        """
    )

    parser.add_argument(
        "source", nargs="?",
        help=source_help
    )
    parser.add_argument(
        "dest", nargs="?",
        help=dest_help
    )
    parser.add_argument(
        "mode", nargs="?", choices=["continuous"],
        help="Run unattended, repeating the pass on a fixed interval"
    )
    parser.add_argument(
        "--continuous", action="store_true",
        help="Same as the 'continuous' mode argument"
    )
    parser.add_argument(
        "--interval", "-i", type=positive_int, metavar="MINUTES",
        help=f"Minutes between passes in continuous mode (default: {config.get_interval_minutes()})"
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Skip confirmation prompts (empty folders are kept unless --cleanup)"
    )
    parser.add_argument(
        "--cleanup", action="store_true",
        help="Remove empty source folders after a single pass without asking"
    )
    parser.add_argument(
        "--dry-run", "-n", action="store_true",
        help="Preview operations without making changes"
    )
    parser.add_argument(
        "--workers", "-w", type=positive_int, metavar="N",
        help=f"Threads used to read file metadata (default: {config.get_workers()})"
    )
    parser.add_argument(
        "--log-dir", type=str, metavar="DIR",
        help=f"Directory for run logs (default: {config.get_log_dir()})"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Show every move on the console"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def show_processing_plan(source: Path, dest: Path, dry_run: bool, continuous: bool,
                         interval: int, log_dir: Path, console: Console) -> None:
    """Display the processing plan before execution."""
    mode = "DRY RUN" if dry_run else ("CONTINUOUS" if continuous else "SINGLE PASS")

    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Source:          [blue]{source}[/blue]")
    console.print(f"  Destination:     [blue]{dest}/{{year}}/{{year-month}}[/blue]")
    console.print(f"  Processing Mode: [cyan]{mode}[/cyan]")
    if continuous:
        console.print(f"  Interval:        [cyan]{interval} minutes[/cyan]")
    console.print(f"  Logs:            [cyan]{log_dir}[/cyan]")
    console.print()


def confirm(console: Console, message: str) -> bool:
    """Ask a yes/no question; anything but yes is no."""
    try:
        response = console.input(f"{message} [y/N]: ").strip().lower()
        return response in ['y', 'yes']
    except (EOFError, KeyboardInterrupt):
        console.print("\n[red]Operation cancelled[/red]")
        return False


def validate_directory(path: Path, label: str) -> Optional[str]:
    """Return an error message if path is not an existing directory."""
    if not path.exists():
        return f"Error: {label} directory does not exist: {path}"
    if not path.is_dir():
        return f"Error: {label} is not a directory: {path}"
    return None


def run_continuous(sorter: Folderizer, interval_minutes: int, console: Console) -> None:
    """Repeat passes until SIGINT or SIGTERM, finishing the current pass first."""
    stop_event = threading.Event()

    def request_stop(signum, frame):
        if not stop_event.is_set():
            console.print("\n[yellow]Stopping after the current pass...[/yellow]")
        stop_event.set()

    previous = {}
    if threading.current_thread() is threading.main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, request_stop)

    try:
        sorter.run_continuous(interval_minutes * 60, stop_event)
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def main(config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args()

    if args.version:
        from . import __version__, __copyright__
        if args.verbose:
            print(f"{PROGRAM} version {__version__} {__copyright__}")
            print(f"Config:  {config.config_path}")
            print(f"Logs:    {config.get_log_dir()}")
            return 0
        print(__version__)
        return 0

    # Determine source and destination
    source_path = args.source or config.get_last_source()
    dest_path = args.dest or config.get_last_dest()
    if not source_path or not dest_path:
        parser.error("Source and destination directories are required")

    source = Path(source_path).expanduser().resolve()
    dest = Path(dest_path).expanduser().resolve()

    # Validate paths before anything is touched
    for path, label in ((source, "Source"), (dest, "Destination")):
        error = validate_directory(path, label)
        if error:
            print(error)
            return 1

    # Nesting either way is allowed; discovery and pruning skip the destination
    if source == dest:
        print("Error: Source and destination are the same folder:")
        print(f" - Source:      {source}")
        print(f" - Destination: {dest}")
        return 1

    continuous = args.continuous or args.mode == "continuous"

    # Command-line values override and replace saved settings
    config.update_paths(str(source), str(dest))
    if args.interval:
        config.update_interval(args.interval)
    if args.workers:
        config.update_workers(args.workers)
    if args.log_dir:
        config.update_log_dir(args.log_dir)
    interval = config.get_interval_minutes()
    workers = config.get_workers()
    log_dir = config.get_log_dir()

    console = get_console()
    show_processing_plan(source, dest, args.dry_run, continuous, interval, log_dir, console)

    if not continuous and not args.yes and not args.dry_run:
        if not confirm(console, f'Are you sure you want to move all files from "{source}" '
                                f'to "{dest}/{{year}}/{{year-month}}"?'):
            return 0

    try:
        sorter = Folderizer(
            source=source,
            dest=dest,
            log_dir=log_dir,
            dry_run=args.dry_run,
            workers=workers,
            continuous=continuous,
            verbose=args.verbose,
            console=console
        )
    except OSError as e:
        print(f"Error: Cannot create log folder {log_dir}: {e}")
        return 1

    try:
        if continuous:
            run_continuous(sorter, interval, console)
            sorter.print_summary()
            return 0

        outcomes = sorter.run_pass()
        if not outcomes:
            console.print("[yellow]No files found in source directory[/yellow]")
        sorter.print_summary()

        if not args.dry_run:
            should_prune = args.cleanup or (
                not args.yes and confirm(console, f'Would you like to remove empty folders from "{source}"?'))
            if should_prune:
                removed = sorter.prune_source()
                console.print(f"Removed {len(removed)} empty folders")

        console.print(f"\n[green]✓ Folderize complete.[/green] Log: {sorter.run_log.session_log}")
        return 0

    except KeyboardInterrupt:
        console.print("\n[red]Operation cancelled by user[/red]")
        return 1
    finally:
        sorter.close()


if __name__ == "__main__":
    sys.exit(main())
