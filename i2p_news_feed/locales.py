##########################################################################################
#
# Script name: locales.py
#
# Description: Locale detection for translated entries files (entries.<locale>.html).
#
##########################################################################################

import logging
import os

import langcodes


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

DEFAULT_LOCALE = 'en'
ENTRIES_PREFIX = 'entries'
ENTRIES_SUFFIX = 'html'

# Locales shipped by the I2P news translations.
CANONICAL_LOCALES = [
    'ar', 'az', 'ca', 'cs', 'da', 'de', 'el', 'en', 'es', 'es-AR', 'et', 'fa',
    'fi', 'fr', 'gl', 'he', 'hu', 'id', 'it', 'ja', 'ko', 'nb', 'nl', 'pl',
    'pt', 'pt-BR', 'ro', 'ru', 'sk', 'sv', 'tk', 'tr', 'uk', 'zh', 'zh-TW',
]


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _split_entries_name(name: str) -> tuple[str, str, str] | None:
    parts = name.split('.', 2)
    if len(parts) != 3:
        return None
    return parts[0], parts[1], parts[2]


def _locale_segment(name: str) -> str:
    parts = _split_entries_name(name)
    if parts is None:
        return ''
    prefix, locale, suffix = parts
    if prefix != ENTRIES_PREFIX or suffix != ENTRIES_SUFFIX:
        return ''
    return locale


def locale_from_path(path: str | os.PathLike) -> str:
    '''
    Return the BCP 47 tag for an entries file, "en" for the canonical
    entries.html. Tags that do not validate are returned as written (with
    "_" turned into "-") so new locales still show up in the output.
    '''
    raw = _locale_segment(os.path.basename(os.fspath(path)))
    if not raw:
        return DEFAULT_LOCALE
    raw = raw.replace('_', '-')
    try:
        return langcodes.standardize_tag(raw)
    except ValueError:
        log.debug('Locale %r is not a valid BCP 47 tag; using it verbatim.', raw)
        return raw


def is_translation_file(name: str) -> bool:
    return bool(_locale_segment(name))


def detect_translation_files(directory: str | os.PathLike) -> list[str]:
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return []
    paths = []
    for name in names:
        if not is_translation_file(name):
            continue
        path = os.path.join(directory, name)
        if not os.path.isfile(path):
            continue
        paths.append(path)
    return paths
