##########################################################################################
#
# Script name: sources.py
#
# Description: Resolves the input files for one (platform, channel) tuple, applying
#              per-platform overrides with fallback to the global data tree.
#
##########################################################################################

import logging
import os

from .models import FeedSources
from .platforms import normalize_platform, platform_data_dir


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

ENTRIES_FILE = 'entries.html'
RELEASES_FILE = 'releases.json'
BLOCKLIST_FILE = 'blocklist.xml'
TRANSLATIONS_DIR = 'translations'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def resolve_override_file(platform_path: str, global_path: str) -> str:
    if os.path.isfile(platform_path):
        return platform_path
    return global_path


def resolve_sources(
    data_root: str,
    platform: str,
    channel: str,
    releases_path: str,
    blocklist_path: str | None = None,
    translations_dir: str = '',
) -> FeedSources | None:
    '''
    Work out which entries, releases, blocklist and translations feed one
    (platform, channel) tuple. Returns None when the tuple must be skipped:
    a named platform without a data directory, no usable releases.json, or
    no entries file.
    '''
    platform = normalize_platform(platform)
    data_dir = platform_data_dir(data_root, platform, channel)
    canonical_entries = os.path.join(data_root, ENTRIES_FILE)

    if platform and not os.path.isdir(data_dir):
        log.debug('No data directory %s; %s/%s is not configured.', data_dir, platform, channel)
        return None

    if platform:
        releases = resolve_override_file(os.path.join(data_dir, RELEASES_FILE), releases_path)
        blocklist = resolve_override_file(os.path.join(data_dir, BLOCKLIST_FILE), blocklist_path or '')
        entries = resolve_override_file(os.path.join(data_dir, ENTRIES_FILE), canonical_entries)
        platform_translations = os.path.join(data_dir, TRANSLATIONS_DIR)
        if os.path.isdir(platform_translations):
            translations = platform_translations
        else:
            translations = os.path.join(data_root, TRANSLATIONS_DIR)
    else:
        releases = releases_path
        blocklist = blocklist_path or ''
        entries = canonical_entries
        translations = translations_dir or os.path.join(data_root, TRANSLATIONS_DIR)

    label = f'{platform}/{channel}' if platform else 'default'
    if not os.path.isfile(releases):
        log.warning('Skipping %s feeds: releases file %s does not exist.', label, releases)
        return None
    if not os.path.isfile(entries):
        log.warning('Skipping %s feeds: entries file %s does not exist.', label, entries)
        return None

    log.debug('Resolved %s: entries=%s releases=%s blocklist=%s translations=%s',
              label, entries, releases, blocklist or '-', translations)
    return FeedSources(
        platform=platform,
        channel=channel,
        data_dir=data_dir,
        entries_path=entries,
        releases_path=releases,
        blocklist_path=blocklist or None,
        translations_dir=translations,
        canonical_entries_path=canonical_entries,
    )
