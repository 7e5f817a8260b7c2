##########################################################################################
#
# Script name: config.py
#
# Description: Defaults and settings for the build and sign commands. Values come from
#              command-line flags, NEWSGO_* environment variables, or a YAML file.
#
##########################################################################################

import os
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Mapping

import yaml
from dateutil import parser as date_parser

from .utils import to_utc


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

ENV_PREFIX = 'NEWSGO_'
DEFAULT_CONFIG_FILE = os.path.join(os.path.expanduser('~'), '.newsgo.yaml')

DEFAULT_NEWS_FILE = 'data'
DEFAULT_RELEASE_JSON = 'data/releases.json'
DEFAULT_BLOCK_LIST = 'data/blocklist.xml'
DEFAULT_BUILD_DIR = 'build'
DEFAULT_FEED_TITLE = 'I2P News'
DEFAULT_FEED_SUBTITLE = 'News feed, and router updates'
DEFAULT_FEED_SITE = 'http://i2p-projekt.i2p'
DEFAULT_FEED_MAIN = 'http://tc73n4kivdroccekirco7rhgxdg5f3cjvbaapabupeyzrqwv5guq.b32.i2p/news.atom.xml'
DEFAULT_FEED_BACKUP = 'http://dn3tvalnjz432qkqsvpfdqrwpqkw3ye4n4i2uyfr4jexvo3sp5ka.b32.i2p/news/news.atom.xml'
DEFAULT_SIGNER_ID = 'null@example.i2p'
DEFAULT_SIGNING_KEY = 'signing_key.pem'


@dataclass
class BuildSettings:
    news_file: str = DEFAULT_NEWS_FILE
    release_json: str = DEFAULT_RELEASE_JSON
    block_list: str = DEFAULT_BLOCK_LIST
    translations_dir: str = ''
    build_dir: str = DEFAULT_BUILD_DIR
    feed_title: str = DEFAULT_FEED_TITLE
    feed_subtitle: str = DEFAULT_FEED_SUBTITLE
    feed_site: str = DEFAULT_FEED_SITE
    feed_main: str = DEFAULT_FEED_MAIN
    feed_backup: str = DEFAULT_FEED_BACKUP
    feed_uuid: str = ''
    platform: str = ''
    status: str = ''
    timestamp: datetime | None = None


@dataclass
class SignSettings:
    build_dir: str = DEFAULT_BUILD_DIR
    signer_id: str = DEFAULT_SIGNER_ID
    signing_key: str = DEFAULT_SIGNING_KEY
    keystore_pass: str = ''
    key_entry_pass: str = ''
    key_alias: str = ''


# Config-file / flag key -> settings attribute.
BUILD_KEYS = {
    'newsfile': 'news_file',
    'releasejson': 'release_json',
    'blockfile': 'block_list',
    'translationsdir': 'translations_dir',
    'builddir': 'build_dir',
    'feedtitle': 'feed_title',
    'feedsubtitle': 'feed_subtitle',
    'feedsite': 'feed_site',
    'feedmain': 'feed_main',
    'feedbackup': 'feed_backup',
    'feeduri': 'feed_uuid',
    'platform': 'platform',
    'status': 'status',
    'timestamp': 'timestamp',
}

SIGN_KEYS = {
    'builddir': 'build_dir',
    'signerid': 'signer_id',
    'signingkey': 'signing_key',
    'keystorepass': 'keystore_pass',
    'keyentrypass': 'key_entry_pass',
    'keyalias': 'key_alias',
}


# ****************************************************************************************
# Functions
# ****************************************************************************************


def load_config_file(path: str | None = None) -> dict[str, Any]:
    explicit = path is not None
    config_path = path or DEFAULT_CONFIG_FILE
    if not os.path.exists(config_path):
        if explicit:
            raise FileNotFoundError(f'Config file not found: {config_path}')
        return {}
    try:
        with open(config_path, 'r', encoding='utf-8') as handle:
            payload = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f'Invalid YAML in config file {config_path}: {exc}') from exc
    if not isinstance(payload, dict):
        raise ValueError(f'Config file {config_path} must contain a mapping')
    return {str(key).lower(): value for key, value in payload.items()}


def env_overrides(keys: list[str], environ: Mapping[str, str] | None = None) -> dict[str, str]:
    environ = os.environ if environ is None else environ
    values = {}
    for key in keys:
        env_name = ENV_PREFIX + key.upper().replace('-', '_')
        if env_name in environ:
            values[key] = environ[env_name]
    return values


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    try:
        return to_utc(date_parser.isoparse(str(value)))
    except (ValueError, OverflowError) as exc:
        raise ValueError(f'Invalid timestamp {value!r}: {exc}') from exc


def _merge(keys: dict[str, str], cli_values: Mapping[str, Any], config_path: str | None,
           environ: Mapping[str, str] | None) -> dict[str, Any]:
    file_values = load_config_file(config_path)
    env_values = env_overrides(list(keys), environ)
    merged: dict[str, Any] = {}
    for key, attr in keys.items():
        for source in (cli_values, env_values, file_values):
            value = source.get(key)
            if value is not None:
                merged[attr] = value
                break
    return merged


def _coerce(settings_cls, merged: dict[str, Any]) -> dict[str, Any]:
    for item in fields(settings_cls):
        if item.name in merged and item.name != 'timestamp':
            merged[item.name] = str(merged[item.name])
    return merged


def resolve_build_settings(cli_values: Mapping[str, Any], config_path: str | None = None,
                           environ: Mapping[str, str] | None = None) -> BuildSettings:
    merged = _coerce(BuildSettings, _merge(BUILD_KEYS, cli_values, config_path, environ))
    if 'timestamp' in merged:
        merged['timestamp'] = parse_timestamp(merged['timestamp'])
    return BuildSettings(**merged)


def resolve_sign_settings(cli_values: Mapping[str, Any], config_path: str | None = None,
                          environ: Mapping[str, str] | None = None) -> SignSettings:
    merged = _coerce(SignSettings, _merge(SIGN_KEYS, cli_values, config_path, environ))
    return SignSettings(**merged)
