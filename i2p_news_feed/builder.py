##########################################################################################
#
# Script name: builder.py
#
# Description: Walks the (platform, channel) x locale matrix and writes one Atom feed
#              per combination under the build directory.
#
##########################################################################################

import logging
import os
import uuid
from datetime import datetime

from .config import BuildSettings
from .errors import InputAbsentError, InputMalformedError, OutputError
from .feed import build_feed
from .locales import detect_translation_files, locale_from_path
from .models import BuildReport, FeedConfig, FeedSources
from .platforms import expand_build_matrix, normalize_platform
from .sources import ENTRIES_FILE, TRANSLATIONS_DIR, resolve_sources
from .utils import utc_now


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def output_filename(entries_path: str, news_root: str) -> str:
    base = os.path.basename(entries_path)
    try:
        relative = os.path.relpath(entries_path, news_root)
    except ValueError:
        relative = base
    if relative == os.curdir or relative.split(os.sep)[0] == os.pardir:
        relative = base

    name = relative.replace('.html', '.atom.xml').replace('entries.', 'news_')
    parts = [part for part in name.split(os.sep) if part and part != TRANSLATIONS_DIR]
    return os.path.join(*parts).replace('news_atom', 'news.atom')


def output_filename_for_platform(entries_path: str, news_root: str, platform: str, channel: str) -> str:
    name = output_filename(entries_path, news_root)
    if not normalize_platform(platform):
        return name
    return os.path.join(platform, channel, name)


def _feed_config(
    settings: BuildSettings,
    entries_path: str,
    releases_path: str,
    blocklist_path: str | None,
    base_entries_path: str | None,
    generated_at: datetime,
) -> FeedConfig:
    return FeedConfig(
        urn_id=settings.feed_uuid or str(uuid.uuid4()),
        title=settings.feed_title,
        subtitle=settings.feed_subtitle,
        site_url=settings.feed_site,
        main_feed_url=settings.feed_main,
        backup_feed_url=settings.feed_backup,
        language=locale_from_path(entries_path),
        entries_path=entries_path,
        base_entries_path=base_entries_path,
        releases_path=releases_path,
        blocklist_path=blocklist_path,
        generation_time=generated_at,
    )


def write_feed(path: str, feed: bytes) -> None:
    try:
        os.makedirs(os.path.dirname(path) or os.curdir, exist_ok=True)
        with open(path, 'wb') as handle:
            handle.write(feed)
    except OSError as exc:
        raise OutputError('write_feed', path, exc) from exc


def _build_one(config: FeedConfig, output_path: str, report: BuildReport) -> None:
    try:
        feed = build_feed(config)
    except (InputAbsentError, InputMalformedError) as exc:
        log.error('Build error for %s: %s', output_path, exc)
        report.failed[output_path] = str(exc)
        return
    write_feed(output_path, feed)
    report.written.append(output_path)
    log.info('Wrote %s (%s).', output_path, config.language)


def _entries_files(sources: FeedSources) -> list[str]:
    return [sources.entries_path] + detect_translation_files(sources.translations_dir)


def build_platform(settings: BuildSettings, platform: str, channel: str, report: BuildReport, generated_at: datetime) -> None:
    sources = resolve_sources(
        settings.news_file,
        platform,
        channel,
        releases_path=settings.release_json,
        blocklist_path=settings.block_list,
        translations_dir=settings.translations_dir,
    )
    if sources is None:
        report.skipped.append((platform, channel))
        return

    for entries_path in _entries_files(sources):
        relative = output_filename_for_platform(entries_path, sources.data_dir, platform, channel)
        config = _feed_config(
            settings,
            entries_path,
            sources.releases_path,
            sources.blocklist_path,
            sources.base_entries_for(entries_path),
            generated_at,
        )
        _build_one(config, os.path.join(settings.build_dir, relative), report)


def build_single_file(settings: BuildSettings, report: BuildReport, generated_at: datetime) -> None:
    entries_path = settings.news_file
    sibling = os.path.join(os.path.dirname(entries_path), ENTRIES_FILE)
    base_entries_path = None
    if os.path.basename(entries_path) != ENTRIES_FILE and os.path.isfile(sibling):
        base_entries_path = sibling
    config = _feed_config(
        settings,
        entries_path,
        settings.release_json,
        settings.block_list or None,
        base_entries_path,
        generated_at,
    )
    relative = output_filename(entries_path, entries_path)
    _build_one(config, os.path.join(settings.build_dir, relative), report)


def build_feeds(settings: BuildSettings) -> BuildReport:
    report = BuildReport()
    generated_at = settings.timestamp or utc_now()

    if os.path.isfile(settings.news_file):
        build_single_file(settings, report, generated_at)
        return report
    if not os.path.isdir(settings.news_file):
        log.warning('News data root %s does not exist.', settings.news_file)

    for platform, channel in expand_build_matrix(settings.platform, settings.status):
        build_platform(settings, platform, channel, report, generated_at)

    log.info(
        'Build finished: %d written, %d failed, %d tuple(s) skipped.',
        len(report.written),
        len(report.failed),
        len(report.skipped),
    )
    return report
