#!/usr/bin/env python3
"""
PNG to WebP - Render every 3D.png as square transparent WebP icons
at each configured resolution (3D_80.webp, 3D_88.webp, ...).
"""
import argparse
from pathlib import Path
from typing import Dict, List

from PIL import Image, ImageOps
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from asset_finder import find_files, relative_label
from batch_engine import positive_int, run_in_batches
from config import DEFAULT_WEBP_CONFIG, WebpConfig
from failure_ledger import FailureLedger

console = Console()


def render_webp(image: Image.Image, size: int, output_path: Path, quality: int = 100, alpha_quality: int = 100):
    """Fit image inside size x size, centre it on a transparent canvas and save as WebP"""
    fitted = ImageOps.contain(image, (size, size), Image.Resampling.LANCZOS)

    canvas = Image.new('RGBA', (size, size), (0, 0, 0, 0))
    x = (size - fitted.width) // 2
    y = (size - fitted.height) // 2
    canvas.alpha_composite(fitted, (x, y))

    canvas.save(
        output_path,
        format="WEBP",
        quality=quality,
        alpha_quality=alpha_quality,
        lossless=False,
    )


class ImageConverter:
    """
    Converts 3D PNG renders to multi-resolution WebP.

    Usage:
        converter = ImageConverter()
        converter.convert_all()
    """

    def __init__(self, config: WebpConfig = DEFAULT_WEBP_CONFIG):
        self.config = config
        self.processed_count = 0
        self.error_count = 0
        self.total_images = 0
        self.errors = FailureLedger()

    def output_path(self, image_path: Path, size: int) -> Path:
        return image_path.parent / self.config.output_pattern.format(size=size)

    def convert_image(self, image_path: Path) -> List[Dict]:
        """
        Convert one image at every resolution.

        Returns:
            Per-size failures, empty on success
        """
        console.print(f"\n[cyan]Processing: {relative_label(image_path, self.config.assets_dir)}[/cyan]")

        try:
            with Image.open(image_path) as img:
                source = img.convert("RGBA")
        except OSError as e:
            console.print(f"  [red]✗ Cannot open image: {escape(str(e))}[/red]")
            return [{"size": size, "error": str(e)} for size in self.config.resolutions]

        failures = []
        for size in self.config.resolutions:
            try:
                render_webp(
                    source, size, self.output_path(image_path, size),
                    quality=self.config.quality,
                    alpha_quality=self.config.alpha_quality,
                )
                console.print(f"  [green]✓ {size}x{size}[/green]")
            except (OSError, ValueError) as e:
                console.print(f"  [red]✗ {size}x{size}: {escape(str(e))}[/red]")
                failures.append({"size": size, "error": str(e)})

        return failures

    def _record(self, image_path: Path, failures: List[Dict]):
        if failures:
            self.errors.record(image=str(image_path), failures=failures)
            self.error_count += 1
        else:
            self.processed_count += 1

    def convert_images(self, images: List[Path]):
        self.total_images = len(images)

        console.print(Panel.fit(
            f"[bold cyan]PNG → WebP[/bold cyan]\n"
            f"Images: {len(images)}\n"
            f"Resolutions: {', '.join(str(s) for s in self.config.resolutions)}px\n"
            f"Quality: {self.config.quality}\n"
            f"Concurrent conversions: {self.config.concurrent_conversions}",
            title="Starting Conversion"
        ))

        outcomes = run_in_batches(
            images,
            self.convert_image,
            self.config.concurrent_conversions,
            label="images",
        )
        for outcome in outcomes:
            if outcome.ok:
                self._record(outcome.item, outcome.result)
            else:
                self._record(outcome.item, [{"size": None, "error": outcome.error}])

        self.print_summary()

    def convert_all(self) -> bool:
        assets_dir = self.config.assets_dir
        if not assets_dir.is_dir():
            console.print(f"[red]Downloads directory not found: {assets_dir}[/red]")
            return False

        console.print(f"[cyan]Searching for {self.config.source_filename} files...[/cyan]")
        images = find_files(assets_dir, [self.config.source_filename])

        if not images:
            console.print(f"[yellow]No {self.config.source_filename} files found.[/yellow]")
            return False

        self.convert_images(images)
        return True

    def retry_failed(self) -> bool:
        log = self.config.errors_log
        if not FailureLedger.exists(log):
            console.print("[yellow]No conversion errors log found.[/yellow]")
            return False

        images = [Path(entry["image"]) for entry in FailureLedger.load(log)]
        images = [p for p in images if p.is_file()]
        if not images:
            console.print("[yellow]None of the logged images exist anymore.[/yellow]")
            return False

        self.convert_images(images)
        return True

    def print_summary(self):
        console.print(Panel.fit(
            f"[bold]CONVERSION SUMMARY[/bold]\n"
            f"Total images found: {self.total_images}\n"
            f"[green]✓ Successfully processed: {self.processed_count}[/green]\n"
            f"[red]✗ Errors: {self.error_count}[/red]\n"
            f"Total WebP files created: {self.processed_count * len(self.config.resolutions)}",
            title="Summary"
        ))

        log = self.config.errors_log
        if self.errors:
            console.print("\n[red]Errors occurred in the following images:[/red]")
            for entry in self.errors:
                console.print(f"\n{entry['image']}")
                for failure in entry["failures"]:
                    size = failure["size"]
                    where = f"{size}x{size}" if size else "image"
                    console.print(f"  - {where}: {failure['error']}", markup=False)

            self.errors.save(log)
            console.print(f"\n[yellow]Errors saved to: {log}[/yellow]")
        else:
            if FailureLedger.exists(log):
                Path(log).unlink()
            console.print("\n[bold green]🎉 All conversions completed successfully![/bold green]")


def main():
    parser = argparse.ArgumentParser(description="Convert 3D.png renders to multi-resolution WebP")
    parser.add_argument("--assets", default=None, help="Assets directory")
    parser.add_argument("--retry", action="store_true", help="Only re-run images from the errors log")
    parser.add_argument("--sizes", type=int, nargs="+", default=None, help="Output resolutions in px")
    parser.add_argument("--quality", type=int, default=None, help="WebP quality (0-100)")
    parser.add_argument("--concurrency", "-c", type=positive_int, default=None, help="Images per batch")
    args = parser.parse_args()

    updates = {}
    if args.assets:
        updates["assets_dir"] = Path(args.assets)
    if args.sizes:
        updates["resolutions"] = args.sizes
    if args.quality is not None:
        updates["quality"] = args.quality
    if args.concurrency is not None:
        updates["concurrent_conversions"] = args.concurrency

    converter = ImageConverter(DEFAULT_WEBP_CONFIG.model_copy(update=updates))
    if args.retry:
        converter.retry_failed()
    else:
        converter.convert_all()


if __name__ == "__main__":
    main()
