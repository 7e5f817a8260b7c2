##########################################################################################
#
# Script name: conftest.py
#
# Description: Shared fixtures: an on-disk news data tree with releases and entries.
#
##########################################################################################

import json
import os
from datetime import datetime, timezone

import pytest


ENTRIES_HTML = (
    '<html><body>'
    '<header>Test Feed</header>'
    '<article id="urn:test:1" title="Title" href="http://example.com" author="Author" '
    'published="2024-01-01" updated="2024-01-02">'
    '<details><summary>Summary</summary></details>'
    '<p>Body</p>'
    '</article>'
    '</body></html>'
)

RELEASES = [
    {
        'date': '2022-11-21',
        'version': '2.0.0',
        'minVersion': '0.9.9',
        'minJavaVersion': '1.8',
        'updates': {
            'su3': {
                'torrent': 'magnet:?xt=urn:btih:abc123',
                'url': [
                    'http://stats.i2p/i2p/i2pupdate.su3',
                    'http://example.b32.i2p/i2pupdate.su3',
                ],
            }
        },
    }
]

FIXED_TIME = datetime(2024, 3, 4, 5, 6, 7, 890000, tzinfo=timezone.utc)


def article_html(uid: str, title: str, body: str = '<p>Body</p>') -> str:
    return (
        f'<article id="{uid}" title="{title}" href="http://example.com/{uid}" author="Author" '
        f'published="2024-01-01" updated="2024-01-02">'
        f'<details><summary>{title} summary</summary></details>{body}</article>'
    )


def write_file(path, content) -> str:
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    mode = 'wb' if isinstance(content, bytes) else 'w'
    encoding = None if isinstance(content, bytes) else 'utf-8'
    with open(path, mode, encoding=encoding) as handle:
        handle.write(content)
    return str(path)


def write_releases(path, releases=None) -> str:
    return write_file(path, json.dumps(RELEASES if releases is None else releases))


@pytest.fixture
def news_root(tmp_path):
    root = tmp_path / 'data'
    write_file(root / 'entries.html', ENTRIES_HTML)
    write_releases(root / 'releases.json')
    return root
