#!/usr/bin/env python3
"""
SVG Recolor - Write a currentColor copy of every HighContrast.svg
so the icons pick up the surrounding text color.
"""
import argparse
import re
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from asset_finder import find_files, relative_label
from config import DEFAULT_SVG_CONFIG, SvgRecolorConfig

console = Console()


def recolor(content: str, old_color: str, new_color: str) -> Optional[str]:
    """Replace old_color (case-insensitive) with new_color, None if it never occurs"""
    pattern = re.compile(re.escape(old_color), re.IGNORECASE)
    if not pattern.search(content):
        return None
    return pattern.sub(lambda _m: new_color, content)


class SvgColorSwapper:
    def __init__(self, config: SvgRecolorConfig = DEFAULT_SVG_CONFIG):
        self.config = config
        self.processed_count = 0
        self.skipped_count = 0
        self.error_count = 0

    def swap_file(self, path: Path) -> bool:
        """Create the recolored copy next to path; False if the color is absent"""
        root = self.config.search_dir
        updated = recolor(path.read_text(encoding="utf-8"), self.config.old_color, self.config.new_color)

        if updated is None:
            console.print(f"[dim]- Skipped (Color not found in): {relative_label(path, root)}[/dim]")
            self.skipped_count += 1
            return False

        new_path = path.parent / self.config.output_filename
        new_path.write_text(updated, encoding="utf-8")

        console.print(f"[green]✓ Created: {relative_label(new_path, root)}[/green]")
        self.processed_count += 1
        return True

    def process(self) -> bool:
        search_dir = self.config.search_dir
        if not search_dir.is_dir():
            console.print(f"[red]Directory not found: {search_dir}[/red]")
            return False

        console.print(f"[cyan]Searching for {self.config.target_filename} files...[/cyan]")
        files = find_files(search_dir, [self.config.target_filename])

        if not files:
            console.print("[yellow]No matching files found.[/yellow]")
            return False

        console.print(f"Found {len(files)} files. Creating copies with updates...\n")
        for path in files:
            try:
                self.swap_file(path)
            except (OSError, UnicodeDecodeError) as e:
                label = relative_label(path, search_dir)
                console.print(f"[red]✗ Error processing {label}: {escape(str(e))}[/red]")
                self.error_count += 1

        self.print_summary()
        return True

    def print_summary(self):
        console.print(Panel.fit(
            f"[bold]PROCESS COMPLETE[/bold]\n"
            f"Total source files: {self.processed_count + self.skipped_count + self.error_count}\n"
            f"New files created:  {self.processed_count}\n"
            f"Files ignored:      {self.skipped_count}\n"
            f"[red]Errors:             {self.error_count}[/red]",
            title="Summary"
        ))


def main():
    parser = argparse.ArgumentParser(description="Create currentColor copies of HighContrast SVGs")
    parser.add_argument("--assets", default=None, help="Directory to search")
    parser.add_argument("--old-color", default=None, help="Color to replace (default #212121)")
    args = parser.parse_args()

    updates = {}
    if args.assets:
        updates["search_dir"] = Path(args.assets)
    if args.old_color:
        updates["old_color"] = args.old_color

    SvgColorSwapper(DEFAULT_SVG_CONFIG.model_copy(update=updates)).process()


if __name__ == "__main__":
    main()
