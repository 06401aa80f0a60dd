#!/usr/bin/env python3
"""
Emoji Reorganizer - Move loose files of non-skintone emojis into Default/
so every emoji folder has the same shape as the skintone ones.
"""
import argparse
import shutil
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from config import DEFAULT_REORGANIZE_CONFIG, ReorganizeConfig
from emoji_downloader import load_metadata

console = Console()


class EmojiReorganizer:
    """Moves files of plain-style emojis into a default subfolder"""

    def __init__(self, config: ReorganizeConfig = DEFAULT_REORGANIZE_CONFIG):
        self.config = config
        self.moved_count = 0
        self.skipped_count = 0
        self.error_count = 0

    def move_to_default(self, emoji_dir: Path) -> int:
        """Move every regular file in emoji_dir into the default folder"""
        try:
            files = [p for p in sorted(emoji_dir.iterdir()) if p.is_file()]

            if not files:
                console.print("  [dim]⊘ No files to move (already organized or skintone-based)[/dim]")
                self.skipped_count += 1
                return 0

            default_dir = emoji_dir / self.config.default_folder
            default_dir.mkdir(parents=True, exist_ok=True)

            for path in files:
                shutil.move(str(path), str(default_dir / path.name))

            console.print(f"  [green]✓ Moved {len(files)} file(s) to {self.config.default_folder}/[/green]")
            self.moved_count += 1
            return len(files)

        except OSError as e:
            console.print(f"  [red]✗ Error: {e}[/red]")
            self.error_count += 1
            return 0

    def reorganize(self) -> bool:
        console.print("[cyan]Loading metadata...[/cyan]")
        metadata = load_metadata(self.config.metadata_file)

        downloads_dir = self.config.downloads_dir
        if not downloads_dir.is_dir():
            console.print(f"[red]Downloads directory not found: {downloads_dir}[/red]")
            return False

        console.print(f"\n[cyan]Reorganizing emojis in: {downloads_dir}[/cyan]\n")

        for entry in metadata.values():
            emoji_dir = downloads_dir / entry.cldr
            if not emoji_dir.is_dir():
                continue

            # Only plain-style emojis; skintone ones are already split by folder
            if entry.styles and not entry.skintones:
                console.print(f"Processing: {entry.cldr}")
                self.move_to_default(emoji_dir)

        self.print_summary()
        return True

    def print_summary(self):
        console.print(Panel.fit(
            f"[bold]REORGANIZATION SUMMARY[/bold]\n"
            f"[green]✓ Moved to {self.config.default_folder}/: {self.moved_count} emojis[/green]\n"
            f"[dim]⊘ Skipped: {self.skipped_count} emojis[/dim]\n"
            f"[red]✗ Errors: {self.error_count} emojis[/red]",
            title="Summary"
        ))


def main():
    parser = argparse.ArgumentParser(description="Move plain emoji files into Default/ subfolders")
    parser.add_argument("--assets", default=None, help="Downloaded assets directory")
    parser.add_argument("--metadata", default=None, help="Metadata catalog JSON")
    args = parser.parse_args()

    updates = {}
    if args.assets:
        updates["downloads_dir"] = Path(args.assets)
    if args.metadata:
        updates["metadata_file"] = Path(args.metadata)

    EmojiReorganizer(DEFAULT_REORGANIZE_CONFIG.model_copy(update=updates)).reorganize()


if __name__ == "__main__":
    main()
