#!/usr/bin/env python3
"""
Asset Cleanup - Drop intermediate files once the conversions are done

Commands:
    prune-3d        delete 3D.png sources, promote the currentColor SVGs
    prune-animated  delete Animated.png and Animated_256.webp
    promote-svg     delete the original HighContrast.svg, promote the currentColor SVGs

Usage:
    python asset_cleanup.py prune-3d --dry-run
"""
import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from rich.console import Console

from asset_finder import find_files, relative_label
from config import DEFAULT_CLEANUP_CONFIG, CleanupConfig

console = Console()


@dataclass
class CleanupPlan:
    """Files to delete, then files to rename (old, new)"""
    deletes: List[Path] = field(default_factory=list)
    renames: List[Tuple[Path, Path]] = field(default_factory=list)


def plan_cleanup(
    root: Path,
    delete_names: Iterable[str],
    rename_source: Optional[str] = None,
    rename_target: Optional[str] = None,
) -> CleanupPlan:
    """Collect every target before touching anything"""
    delete_names = list(delete_names)
    names = set(delete_names)
    if rename_source:
        names.add(rename_source)

    plan = CleanupPlan()
    for path in find_files(root, names):
        if path.name in delete_names:
            plan.deletes.append(path)
        elif path.name == rename_source:
            plan.renames.append((path, path.parent / rename_target))
    return plan


def apply_cleanup(plan: CleanupPlan, root: Path, dry_run: bool = False) -> Tuple[int, int]:
    """Deletions first, renames second. Returns (deleted, renamed)"""
    prefix = "[dim](dry run)[/dim] " if dry_run else ""

    for path in plan.deletes:
        if not dry_run:
            path.unlink()
        console.print(f"{prefix}[red]🗑️  Deleted:[/red] {relative_label(path, root)}")

    for old, new in plan.renames:
        if not dry_run:
            old.replace(new)
        console.print(f"{prefix}[cyan]🔄 Renamed:[/cyan] {relative_label(old, root)} -> {new.name}")

    return len(plan.deletes), len(plan.renames)


def run_command(command: str, config: CleanupConfig = DEFAULT_CLEANUP_CONFIG, dry_run: bool = False) -> Tuple[int, int]:
    root = config.assets_dir

    if command == "prune-3d":
        plan = plan_cleanup(root, config.static_sources, config.recolored_svg, config.original_svg)
    elif command == "prune-animated":
        plan = plan_cleanup(root, config.animated_files)
    elif command == "promote-svg":
        plan = plan_cleanup(root, [config.original_svg], config.recolored_svg, config.original_svg)
    else:
        raise ValueError(f"Unknown cleanup command: {command}")

    console.print(f"[bold]🚀 {command} in: {root}[/bold]")
    deleted, renamed = apply_cleanup(plan, root, dry_run=dry_run)
    console.print(f"\n[green]✅ Done! Removed {deleted} files and renamed {renamed}.[/green]")
    return deleted, renamed


def main():
    parser = argparse.ArgumentParser(description="Remove intermediate emoji assets")
    parser.add_argument("command", choices=["prune-3d", "prune-animated", "promote-svg"])
    parser.add_argument("--assets", default=None, help="Assets directory")
    parser.add_argument("--dry-run", action="store_true", help="List targets without changing anything")
    args = parser.parse_args()

    config = DEFAULT_CLEANUP_CONFIG
    if args.assets:
        config = config.model_copy(update={"assets_dir": Path(args.assets)})

    if not config.assets_dir.is_dir():
        console.print(f'[red]❌ Error: The "{config.assets_dir}" directory was not found.[/red]')
        sys.exit(1)

    try:
        run_command(args.command, config, dry_run=args.dry_run)
    except OSError as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
