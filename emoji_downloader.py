#!/usr/bin/env python3
"""
Emoji Downloader - Fetch every style/skintone image listed in the metadata catalog

Layout:
    <output>/<cldr>/<style>.<ext>                 plain emojis
    <output>/<cldr>/<skintone>/<style>.<ext>      skintone emojis

Failed files go to a JSON ledger; run again with --retry to fetch only those.

Usage:
    python emoji_downloader.py
    python emoji_downloader.py --retry
"""
import argparse
import json
import re
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import requests
from pydantic import BaseModel
from requests.adapters import HTTPAdapter
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from batch_engine import positive_int, retry_call, run_in_batches
from config import DEFAULT_DOWNLOAD_CONFIG, DownloadConfig
from failure_ledger import FailureLedger

console = Console()

_EXTENSION_RE = re.compile(r"\.(png|svg|jpg|jpeg|gif)(\?|$)", re.IGNORECASE)


class DownloadError(RuntimeError):
    """Server answered with something other than 200"""


class EmojiEntry(BaseModel):
    """One catalog entry; extra catalog fields are ignored"""
    cldr: str
    styles: Optional[Dict[str, str]] = None
    skintones: Optional[Dict[str, Dict[str, str]]] = None


@dataclass
class DownloadTask:
    """A single file to fetch"""
    emoji: str
    cldr: str
    style: str
    url: str
    output_path: Path
    skintone: Optional[str] = None

    @property
    def label(self) -> str:
        if self.skintone:
            return f"{self.skintone}/{self.style}"
        return self.style

    def failure(self, error: str) -> Dict[str, str]:
        entry = {"emoji": self.emoji, "cldr": self.cldr}
        if self.skintone:
            entry["skintone"] = self.skintone
        entry.update(style=self.style, url=self.url, error=error)
        return entry


def get_extension(url: str) -> str:
    """File extension from URL, png when unknown"""
    match = _EXTENSION_RE.search(url)
    return match.group(1) if match else "png"


def load_metadata(path: Path) -> Dict[str, EmojiEntry]:
    """Load the emoji catalog"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return {name: EmojiEntry.model_validate(entry) for name, entry in data.items()}


def plan_downloads(name: str, entry: EmojiEntry, output_dir: Path) -> List[DownloadTask]:
    """Expand one catalog entry into file downloads"""
    emoji_dir = output_dir / entry.cldr
    tasks = []

    for style, url in (entry.styles or {}).items():
        tasks.append(DownloadTask(
            emoji=name,
            cldr=entry.cldr,
            style=style,
            url=url,
            output_path=emoji_dir / f"{style}.{get_extension(url)}",
        ))

    for skintone, styles in (entry.skintones or {}).items():
        for style, url in styles.items():
            tasks.append(DownloadTask(
                emoji=name,
                cldr=entry.cldr,
                style=style,
                url=url,
                output_path=emoji_dir / skintone / f"{style}.{get_extension(url)}",
                skintone=skintone,
            ))

    return tasks


def group_failures(ledger: FailureLedger) -> Dict[str, EmojiEntry]:
    """Rebuild per-emoji catalog entries from ledger records"""
    grouped: Dict[str, EmojiEntry] = {}
    for item in ledger:
        entry = grouped.get(item["emoji"])
        if entry is None:
            entry = EmojiEntry(cldr=item["cldr"], styles={}, skintones={})
            grouped[item["emoji"]] = entry

        if item.get("skintone"):
            entry.skintones.setdefault(item["skintone"], {})[item["style"]] = item["url"]
        else:
            entry.styles[item["style"]] = item["url"]
    return grouped


class EmojiDownloader:
    """
    Downloads catalog images in batches of emojis.

    Usage:
        downloader = EmojiDownloader()
        downloader.download_all()
    """

    def __init__(
        self,
        config: DownloadConfig = DEFAULT_DOWNLOAD_CONFIG,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session or self._make_session()
        self.failed = FailureLedger()
        self.success_count = 0
        self.fail_count = 0
        self._lock = threading.Lock()

    def _make_session(self) -> requests.Session:
        session = requests.Session()
        pool = max(10, self.config.concurrent_downloads * self.config.file_concurrency)
        adapter = HTTPAdapter(pool_connections=pool, pool_maxsize=pool)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def reset(self):
        self.failed = FailureLedger()
        self.success_count = 0
        self.fail_count = 0

    def _fetch(self, url: str, output_path: Path):
        """One attempt: GET (redirects followed) and stream to disk"""
        response = self.session.get(
            url,
            stream=True,
            timeout=self.config.request_timeout,
            allow_redirects=True,
        )
        with response:
            if response.status_code != 200:
                raise DownloadError(f"HTTP {response.status_code}: {response.reason}")

            try:
                with open(output_path, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                        if chunk:
                            f.write(chunk)
            except (OSError, requests.RequestException):
                output_path.unlink(missing_ok=True)
                raise

    def _announce_retry(self, attempt: int, max_retries: int, error: BaseException):
        console.print(f"  [yellow]Retrying... ({attempt}/{max_retries})[/yellow] [dim]{escape(str(error))}[/dim]")

    def download_file(self, url: str, output_path: Path):
        """Download a single file with fixed-delay retries"""
        retry_call(
            lambda: self._fetch(url, output_path),
            max_retries=self.config.max_retries,
            delay=self.config.retry_delay,
            on_retry=self._announce_retry,
        )

    def _run_task(self, task: DownloadTask) -> bool:
        try:
            task.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.download_file(task.url, task.output_path)
        except Exception as e:
            console.print(f"  [red]✗ {task.cldr}: {task.label}: {escape(str(e))}[/red]")
            with self._lock:
                self.failed.record(**task.failure(str(e)))
                self.fail_count += 1
            return False

        console.print(f"  [green]✓ {task.cldr}: {task.label}[/green]")
        with self._lock:
            self.success_count += 1
        return True

    def download_emoji(self, name: str, entry: EmojiEntry) -> int:
        """
        Download all styles (and skintone styles) of one emoji.

        Returns:
            Number of files that failed
        """
        console.print(f"\n[cyan]Downloading: {entry.cldr}[/cyan]")
        tasks = plan_downloads(name, entry, self.config.output_dir)
        (self.config.output_dir / entry.cldr).mkdir(parents=True, exist_ok=True)
        if not tasks:
            return 0

        workers = min(self.config.file_concurrency, len(tasks))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self._run_task, tasks))
        return results.count(False)

    def _download_entries(self, entries: Dict[str, EmojiEntry]):
        outcomes = run_in_batches(
            list(entries.items()),
            lambda pair: self.download_emoji(*pair),
            self.config.concurrent_downloads,
            label="emojis",
        )
        for outcome in outcomes:
            if outcome.ok:
                continue
            name, entry = outcome.item
            console.print(f"[red]✗ {name}: {escape(str(outcome.error))}[/red]")
            # Nothing of this emoji was attempted, so every file goes to the ledger
            for task in plan_downloads(name, entry, self.config.output_dir):
                self.failed.record(**task.failure(outcome.error))
                self.fail_count += 1

    def download_all(self, metadata: Optional[Dict[str, EmojiEntry]] = None):
        """Download the whole catalog"""
        if metadata is None:
            metadata = load_metadata(self.config.metadata_file)

        console.print(Panel.fit(
            f"[bold cyan]Emoji Downloader[/bold cyan]\n"
            f"Emojis: {len(metadata)}\n"
            f"Output: {self.config.output_dir}\n"
            f"Concurrent downloads: {self.config.concurrent_downloads}",
            title="Starting Download"
        ))

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        self._download_entries(metadata)
        self.print_summary()

    def retry_failed(self) -> bool:
        """Re-download only the files listed in the failure ledger"""
        log = self.config.failed_log
        if not FailureLedger.exists(log):
            console.print("[yellow]No failed downloads log found.[/yellow]")
            return False

        previous = FailureLedger.load(log)
        console.print(f"[cyan]Retrying {len(previous)} failed downloads...[/cyan]\n")

        self.reset()
        self._download_entries(group_failures(previous))
        self.print_summary()
        return True

    def print_summary(self):
        """Print summary and persist failures"""
        console.print(Panel.fit(
            f"[bold]DOWNLOAD SUMMARY[/bold]\n"
            f"[green]✓ Successful: {self.success_count}[/green]\n"
            f"[red]✗ Failed: {self.fail_count}[/red]",
            title="Summary"
        ))

        log = self.config.failed_log
        if self.failed:
            self.failed.save(log)
            console.print(f"\n[yellow]Failed downloads logged to: {log}[/yellow]")
            console.print("[dim]Run again with --retry to fetch only the failed files.[/dim]")
        else:
            if FailureLedger.exists(log):
                Path(log).unlink()
            console.print("\n[bold green]🎉 All downloads completed successfully![/bold green]")


def main():
    parser = argparse.ArgumentParser(description="Download emoji images listed in the metadata catalog")
    parser.add_argument("--retry", action="store_true", help="Retry only the downloads in the failure log")
    parser.add_argument("--metadata", default=None, help="Metadata catalog JSON")
    parser.add_argument("--output", "-o", default=None, help="Output directory")
    parser.add_argument("--concurrency", "-c", type=positive_int, default=None, help="Emojis per batch")
    parser.add_argument("--retries", type=int, default=None, help="Extra attempts per file")
    parser.add_argument("--failed-log", default=None, help="Failure log path")

    args = parser.parse_args()

    updates = {}
    if args.metadata:
        updates["metadata_file"] = Path(args.metadata)
    if args.output:
        updates["output_dir"] = Path(args.output)
    if args.concurrency is not None:
        updates["concurrent_downloads"] = args.concurrency
    if args.retries is not None:
        updates["max_retries"] = args.retries
    if args.failed_log:
        updates["failed_log"] = Path(args.failed_log)
    config = DEFAULT_DOWNLOAD_CONFIG.model_copy(update=updates)

    downloader = EmojiDownloader(config)

    if args.retry:
        downloader.retry_failed()
        return

    if not config.metadata_file.exists():
        console.print(f"[red]Error: Metadata file not found: {config.metadata_file}[/red]")
        sys.exit(1)

    downloader.download_all()


if __name__ == "__main__":
    main()
