#!/usr/bin/env python3
"""
APNG to WebP - Convert every Animated.png to an animated WebP with ffmpeg.
Output lands next to the source unless --output mirrors the tree elsewhere.
"""
import argparse
import subprocess
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from asset_finder import find_files, relative_label
from batch_engine import positive_int, retry_call, run_in_batches
from config import DEFAULT_ANIMATED_CONFIG, AnimatedConfig
from failure_ledger import FailureLedger

console = Console()


class ConversionError(RuntimeError):
    """ffmpeg exited non-zero"""

    def __init__(self, exit_code: int, stderr: str):
        super().__init__(f"FFmpeg exited with code {exit_code}")
        self.exit_code = exit_code
        self.stderr = stderr


def check_ffmpeg() -> bool:
    """Return True if ffmpeg runs"""
    try:
        ok = subprocess.run(["ffmpeg", "-version"], capture_output=True, text=True).returncode == 0
    except OSError:
        ok = False

    if not ok:
        console.print("[red]ERROR: ffmpeg is not installed or not in PATH.[/red]")
        console.print("[dim]Please install ffmpeg: https://ffmpeg.org/download.html[/dim]")
    return ok


def build_ffmpeg_command(input_path: Path, output_path: Path, options: Dict[str, str]) -> List[str]:
    cmd = ["ffmpeg", "-y", "-i", str(input_path)]
    for name in ("lossless", "compression_level", "quality", "loop"):
        if name in options:
            cmd += [f"-{name}", str(options[name])]
    cmd.append(str(output_path))
    return cmd


def convert_file(input_path: Path, output_path: Path, options: Dict[str, str], timeout: Optional[float] = None):
    """Run a single ffmpeg conversion, raising ConversionError on failure"""
    cmd = build_ffmpeg_command(input_path, output_path, options)
    result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    if result.returncode != 0:
        raise ConversionError(result.returncode, result.stderr)


class AnimatedImageConverter:
    """
    Batch converter for animated PNGs.

    Usage:
        if check_ffmpeg():
            AnimatedImageConverter().convert_all()
    """

    def __init__(self, config: AnimatedConfig = DEFAULT_ANIMATED_CONFIG):
        self.config = config
        self.processed_count = 0
        self.error_count = 0
        self.total_images = 0
        self.errors = FailureLedger()

    def output_path(self, image_path: Path) -> Path:
        if self.config.output_dir is None:
            return image_path.parent / self.config.output_filename
        rel_dir = image_path.parent.relative_to(self.config.assets_dir)
        return self.config.output_dir / rel_dir / self.config.output_filename

    def _announce_retry(self, attempt: int, max_retries: int, error: BaseException):
        console.print(f"  [yellow]Retrying... ({attempt}/{max_retries})[/yellow] [dim]{escape(str(error))}[/dim]")

    def convert_image(self, image_path: Path) -> Optional[Dict]:
        """
        Convert one animated PNG.

        Returns:
            Failure entry for the ledger, None on success
        """
        label = relative_label(image_path, self.config.assets_dir)
        output_path = self.output_path(image_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        console.print(f"\n[cyan]Processing: {label}[/cyan]")
        start = time.time()

        try:
            retry_call(
                lambda: convert_file(image_path, output_path, self.config.ffmpeg_options, self.config.timeout),
                max_retries=self.config.max_retries,
                delay=self.config.retry_delay,
                on_retry=self._announce_retry,
            )
        except ConversionError as e:
            console.print(f"  [red]✗ {label}: conversion failed (exit code {e.exit_code})[/red]")
            return {"image": str(image_path), "error": e.stderr, "exitCode": e.exit_code}
        except (OSError, subprocess.SubprocessError) as e:
            console.print(f"  [red]✗ {label}: failed to run ffmpeg: {escape(str(e))}[/red]")
            return {"image": str(image_path), "error": str(e)}

        console.print(f"  [green]✓ {label} ({time.time() - start:.2f}s)[/green]")
        return None

    def convert_images(self, images: List[Path]):
        self.total_images = len(images)
        options = self.config.ffmpeg_options

        console.print(Panel.fit(
            f"[bold cyan]APNG → WebP[/bold cyan]\n"
            f"Animated images: {len(images)}\n"
            f"Lossless: {options.get('lossless')} | Compression level: {options.get('compression_level')}\n"
            f"Quality: {options.get('quality')} | Loop: {options.get('loop')}\n"
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
            failure = outcome.result if outcome.ok else {"image": str(outcome.item), "error": outcome.error}
            if failure:
                self.errors.record(**failure)
                self.error_count += 1
            else:
                self.processed_count += 1

        self.print_summary()

    def convert_all(self) -> bool:
        assets_dir = self.config.assets_dir
        if not assets_dir.is_dir():
            console.print(f"[red]Assets directory not found: {assets_dir}[/red]")
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
            console.print("[yellow]No animated conversion errors log found.[/yellow]")
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
            f"[red]✗ Errors: {self.error_count}[/red]",
            title="Summary"
        ))

        log = self.config.errors_log
        if self.errors:
            console.print("\n[red]Errors occurred in the following images:[/red]")
            for entry in self.errors:
                console.print(f"\n{entry['image']}")
                detail = entry.get("error") or f"Exit code {entry.get('exitCode')}"
                console.print(f"  Error: {detail.strip()[-500:]}", markup=False)

            self.errors.save(log)
            console.print(f"\n[yellow]Errors saved to: {log}[/yellow]")
        else:
            if FailureLedger.exists(log):
                Path(log).unlink()
            console.print("\n[bold green]🎉 All conversions completed successfully![/bold green]")


def main():
    parser = argparse.ArgumentParser(description="Convert Animated.png files to animated WebP with ffmpeg")
    parser.add_argument("--assets", default=None, help="Assets directory")
    parser.add_argument("--output", "-o", default=None, help="Mirror output into this directory")
    parser.add_argument("--retry", action="store_true", help="Only re-run images from the errors log")
    parser.add_argument("--concurrency", "-c", type=positive_int, default=None, help="Images per batch")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds per ffmpeg attempt")
    args = parser.parse_args()

    if not check_ffmpeg():
        sys.exit(1)

    updates = {}
    if args.assets:
        updates["assets_dir"] = Path(args.assets)
    if args.output:
        updates["output_dir"] = Path(args.output)
    if args.concurrency is not None:
        updates["concurrent_conversions"] = args.concurrency
    if args.timeout is not None:
        updates["timeout"] = args.timeout

    converter = AnimatedImageConverter(DEFAULT_ANIMATED_CONFIG.model_copy(update=updates))
    if args.retry:
        converter.retry_failed()
    else:
        converter.convert_all()


if __name__ == "__main__":
    main()
