##########################################################################################
#
# Script name: releases.py
#
# Description: Decodes releases.json and renders the <i2p:release> fragment.
#
##########################################################################################

import json
import logging
from typing import Any

from .errors import InputAbsentError, InputMalformedError
from .models import Release
from .utils import escape


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)
OPERATION = 'decode_release'


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _fail(message: str) -> InputMalformedError:
    return InputMalformedError(f'{OPERATION}: {message}')


def _require_object(container: dict, key: str, field_path: str) -> dict:
    value = container.get(key)
    if value is None:
        raise _fail(f'missing field "{field_path}"')
    if not isinstance(value, dict):
        raise _fail(f'field "{field_path}" is not an object')
    return value


def _require_str(container: dict, key: str, field_path: str) -> str:
    value = container.get(key)
    if value is None:
        raise _fail(f'missing field "{field_path}"')
    if not isinstance(value, str):
        raise _fail(f'field "{field_path}" is not a string (got {type(value).__name__})')
    return value


def _require_urls(su3: dict) -> tuple[str, ...]:
    field_path = 'updates.su3.url'
    value = su3.get('url')
    if value is None:
        raise _fail(f'missing field "{field_path}"')
    if not isinstance(value, list):
        raise _fail(f'field "{field_path}" is not an array')
    if not value:
        raise _fail(f'field "{field_path}" is empty')
    for idx, url in enumerate(value):
        if not isinstance(url, str):
            raise _fail(f'{field_path}[{idx}] is not a string (got {type(url).__name__})')
    return tuple(value)


def decode_release(payload: Any) -> Release:
    if not isinstance(payload, list):
        raise _fail('releases JSON must be an array')
    if not payload:
        raise _fail('releases JSON array is empty')
    release = payload[0]
    if not isinstance(release, dict):
        raise _fail('releases JSON element [0] is not an object')

    date = _require_str(release, 'date', 'date')
    version = _require_str(release, 'version', 'version')
    min_version = _require_str(release, 'minVersion', 'minVersion')
    min_java_version = _require_str(release, 'minJavaVersion', 'minJavaVersion')
    updates = _require_object(release, 'updates', 'updates')
    su3 = _require_object(updates, 'su3', 'updates.su3')
    torrent = _require_str(su3, 'torrent', 'updates.su3.torrent')
    urls = _require_urls(su3)
    return Release(
        date=date,
        version=version,
        min_version=min_version,
        min_java_version=min_java_version,
        torrent_uri=torrent,
        update_urls=urls,
    )


def load_release(path: str) -> Release:
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise InputAbsentError('load_release', path, exc) from exc
    except OSError as exc:
        raise InputMalformedError(f'load_release: {path}: {exc}') from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InputMalformedError(f'load_release: {path}: invalid JSON: {exc}') from exc
    release = decode_release(payload)
    log.debug('Release %s (%s) loaded from %s.', release.version, release.date, path)
    return release


def release_to_xml(release: Release) -> str:
    urls = ''.join(f'<i2p:url href="{escape(url)}"/>' for url in release.update_urls)
    return (
        f'<i2p:release date="{escape(release.date)}" minVersion="{escape(release.min_version)}" '
        f'minJavaVersion="{escape(release.min_java_version)}">'
        f'<i2p:version>{escape(release.version)}</i2p:version>'
        '<i2p:update type="su3">'
        f'<i2p:torrent href="{escape(release.torrent_uri)}"/>'
        f'{urls}'
        '</i2p:update>'
        '</i2p:release>'
    )
