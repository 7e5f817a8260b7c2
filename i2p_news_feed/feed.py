##########################################################################################
#
# Script name: feed.py
#
# Description: Assembles the I2P Atom news feed from entries, release and blocklist.
#
##########################################################################################

import logging

from lxml import etree

from .blocklist import I2P_NAMESPACE, load_blocklist
from .entries import load_feed_entries
from .errors import InputMalformedError
from .locales import DEFAULT_LOCALE
from .models import Article, EntriesDocument, FeedConfig
from .releases import load_release, release_to_xml
from .utils import escape, format_timestamp


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

ATOM_NAMESPACE = 'http://www.w3.org/2005/Atom'
XHTML_NAMESPACE = 'http://www.w3.org/1999/xhtml'
XML_DECLARATION = "<?xml version='1.0' encoding='UTF-8'?>"
GENERATOR = '<generator uri="http://idk.i2p/newsgo" version="0.1.0">newsgo</generator>'
XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def render_header(config: FeedConfig, title: str) -> str:
    lang = config.language or DEFAULT_LOCALE
    parts = [
        XML_DECLARATION,
        f'<feed xmlns:i2p="{I2P_NAMESPACE}" xmlns="{ATOM_NAMESPACE}" xml:lang="{escape(lang)}">',
        f'<id>urn:uuid:{escape(config.urn_id)}</id>',
        f'<title>{escape(title)}</title>',
        f'<updated>{format_timestamp(config.generation_time)}</updated>',
        f'<link href="{escape(config.site_url)}"/>',
        f'<link href="{escape(config.main_feed_url)}" rel="self"/>',
    ]
    if config.backup_feed_url:
        parts.append(f'<link href="{escape(config.backup_feed_url)}" rel="alternate"/>')
    parts.append(GENERATOR)
    parts.append(f'<subtitle>{escape(config.subtitle)}</subtitle>')
    return ''.join(parts)


def render_entry(article: Article) -> str:
    # body_xhtml is markup and goes in as-is; everything else is escaped.
    return (
        '<entry>'
        f'<id>{escape(article.uid)}</id>'
        f'<title>{escape(article.title)}</title>'
        f'<updated>{escape(article.updated)}</updated>'
        f'<author><name>{escape(article.author)}</name></author>'
        f'<link href="{escape(article.link)}" rel="alternate"/>'
        f'<published>{escape(article.published)}</published>'
        f'<summary>{escape(article.summary)}</summary>'
        '<content type="xhtml">'
        f'<div xmlns="{XHTML_NAMESPACE}">{article.body_xhtml}</div>'
        '</content>'
        '</entry>'
    )


def assemble_feed(config: FeedConfig, document: EntriesDocument, release_xml: str, blocklist_xml: str = '') -> str:
    title = config.title or document.header_title
    parts = [render_header(config, title)]
    if blocklist_xml:
        parts.append(blocklist_xml)
    parts.append(release_xml)
    parts.extend(render_entry(article) for article in document.articles)
    parts.append('</feed>')
    return ''.join(parts)


def pretty_print(document: str) -> bytes:
    try:
        root = etree.fromstring(document.encode('utf-8'), parser=XML_PARSER)
    except etree.XMLSyntaxError as exc:
        raise InputMalformedError(f'pretty_print: assembled feed is not well-formed XML: {exc}') from exc
    # Elements holding text keep their content untouched; only element-only
    # nodes get indented.
    return etree.tostring(root, xml_declaration=True, encoding='UTF-8', pretty_print=True)


def build_feed(config: FeedConfig, pretty: bool = True) -> bytes:
    document = load_feed_entries(config.entries_path, config.base_entries_path)
    blocklist_xml = load_blocklist(config.blocklist_path)
    release_xml = release_to_xml(load_release(config.releases_path))
    raw = assemble_feed(config, document, release_xml, blocklist_xml)
    log.debug(
        'Assembled %s feed from %s with %d article(s).',
        config.language or DEFAULT_LOCALE,
        config.entries_path,
        len(document),
    )
    if not pretty:
        return raw.encode('utf-8')
    return pretty_print(raw)
