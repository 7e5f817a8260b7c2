from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Article:
    uid: str
    title: str
    link: str
    author: str
    published: str
    updated: str
    summary: str = ""
    body_xhtml: str = ""


@dataclass
class EntriesDocument:
    header_title: str = ""
    articles: list[Article] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.articles)


@dataclass(frozen=True)
class Release:
    date: str
    version: str
    min_version: str
    min_java_version: str
    torrent_uri: str
    update_urls: tuple[str, ...]


@dataclass
class FeedConfig:
    urn_id: str
    title: str
    subtitle: str
    site_url: str
    main_feed_url: str
    entries_path: str
    releases_path: str
    generation_time: datetime
    backup_feed_url: str = ""
    language: str = ""
    base_entries_path: str | None = None
    blocklist_path: str | None = None


@dataclass(frozen=True)
class FeedSources:
    platform: str
    channel: str
    data_dir: str
    entries_path: str
    releases_path: str
    blocklist_path: str | None
    translations_dir: str
    canonical_entries_path: str

    def base_entries_for(self, entries_path: str) -> str | None:
        if entries_path == self.canonical_entries_path:
            return None
        return self.canonical_entries_path


@dataclass
class BuildReport:
    written: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class SignReport:
    signed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed
