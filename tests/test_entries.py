##########################################################################################
#
# Script name: test_entries.py
#
# Description: Entries HTML parsing and overlay merge tests.
#
##########################################################################################

import pytest
from lxml import etree

from i2p_news_feed.entries import load_entries, load_feed_entries, merge_overlay, parse_entries
from i2p_news_feed.errors import InputAbsentError
from i2p_news_feed.models import Article, EntriesDocument

from conftest import ENTRIES_HTML, article_html, write_file


def test_parse_entries_reads_header_and_article() -> None:
    document = parse_entries(ENTRIES_HTML)

    assert document.header_title == 'Test Feed'
    assert len(document) == 1
    article = document.articles[0]
    assert article.uid == 'urn:test:1'
    assert article.title == 'Title'
    assert article.link == 'http://example.com'
    assert article.author == 'Author'
    assert article.published == '2024-01-01'
    assert article.updated == '2024-01-02'
    assert article.summary == 'Summary'
    assert article.body_xhtml == '<p>Body</p>'


def test_parse_entries_without_header_or_details() -> None:
    document = parse_entries('<article id="a" title="T"><p>One</p><p>Two</p></article>')

    assert document.header_title == ''
    article = document.articles[0]
    assert article.summary == ''
    assert article.body_xhtml == '<p>One</p><p>Two</p>'
    assert article.link == ''


def test_parse_entries_body_is_well_formed_xhtml() -> None:
    html = '<article id="a"><p>Fish &amp; chips<br>tonight <img src="x.png"></p></article>'
    body = parse_entries(html).articles[0].body_xhtml

    assert '<br/>' in body
    assert '<img src="x.png"/>' in body
    assert 'Fish &amp; chips' in body
    etree.fromstring(f'<div>{body}</div>')


def test_parse_entries_drops_comments() -> None:
    html = '<article id="a"><!-- draft -- not yet --><p>Body<!-- note --> text</p></article>'
    body = parse_entries(html).articles[0].body_xhtml

    assert '<!--' not in body
    assert '<p>Body text</p>' in body
    etree.fromstring(f'<div>{body}</div>')


def test_parse_entries_drops_attributes_xml_cannot_name() -> None:
    html = '<article id="a"><p @click="go()" :class="c" id="k" data-x="1">Body</p></article>'
    body = parse_entries(html).articles[0].body_xhtml

    paragraph = etree.fromstring(body)
    assert paragraph.get('id') == 'k'
    assert paragraph.get('data-x') == '1'
    assert '@click' not in body
    assert ':class' not in body


def test_parse_entries_strips_control_characters() -> None:
    html = (
        '<article id="a" title="A\x0cB"><details><summary>S\x01um</summary></details>'
        '<p title="x\x0by">B\x0cody</p></article>'
    )
    article = parse_entries(html).articles[0]

    assert '\x0c' not in article.title
    assert article.title.startswith('A')
    assert '\x01' not in article.summary
    assert '\x0c' not in article.body_xhtml
    assert '\x0b' not in article.body_xhtml
    etree.fromstring(f'<div>{article.body_xhtml}</div>')


def test_parse_entries_keeps_article_order() -> None:
    html = article_html('urn:1', 'First') + article_html('urn:2', 'Second') + article_html('urn:3', 'Third')
    titles = [article.title for article in parse_entries(html).articles]

    assert titles == ['First', 'Second', 'Third']


def test_parse_entries_empty_input() -> None:
    assert parse_entries(b'') == EntriesDocument()
    assert parse_entries('   ') == EntriesDocument()


def test_parse_entries_is_forgiving() -> None:
    document = parse_entries('<header>Broken<article id="x" title="Unclosed"><p>text')
    assert [article.uid for article in document.articles] == ['x']


def test_merge_overlay_puts_overlay_first_and_keeps_base_title() -> None:
    overlay = EntriesDocument('Titel', [Article('urn:de', 'DE', '', '', '', '')])
    base = EntriesDocument('Title', [Article('urn:en', 'EN', '', '', '', '')])

    merged = merge_overlay(overlay, base)

    assert merged.header_title == 'Title'
    assert [article.uid for article in merged.articles] == ['urn:de', 'urn:en']


def test_load_entries_missing_file_keeps_os_detail(tmp_path) -> None:
    with pytest.raises(InputAbsentError) as excinfo:
        load_entries(str(tmp_path / 'entries.html'))

    message = str(excinfo.value)
    assert message.startswith('load_entries:')
    assert 'No such file' in message
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_load_feed_entries_merges_baseline(tmp_path) -> None:
    overlay = write_file(tmp_path / 'translations' / 'entries.de.html',
                         '<header>Deutsch</header>' + article_html('urn:de', 'Neu'))
    base = write_file(tmp_path / 'entries.html', '<header>English</header>' + article_html('urn:en', 'New'))

    document = load_feed_entries(overlay, base)

    assert document.header_title == 'English'
    assert [article.uid for article in document.articles] == ['urn:de', 'urn:en']
