##########################################################################################
#
# Script name: entries.py
#
# Description: Parses entries HTML files (<header> plus <article> blocks) into articles.
#
##########################################################################################

import logging
import re

import lxml.html
from lxml import etree

from .errors import InputAbsentError, InputMalformedError
from .models import Article, EntriesDocument
from .utils import escape, strip_invalid_xml_chars


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

# Entries files are author-edited UTF-8; never let libxml2 guess the charset.
HTML_PARSER = lxml.html.HTMLParser(encoding='utf-8')

# Tag and attribute names the XML serializer will accept.
XML_NAME = re.compile(r'^[^\W\d][\w.\-]*$')


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _first_descendant(element, tag: str):
    for node in element.iterdescendants(tag):
        return node
    return None


def _summary_text(article) -> str:
    details = _first_descendant(article, 'details')
    if details is None:
        return ''
    summary = _first_descendant(details, 'summary')
    if summary is None:
        return ''
    return summary.text_content()


def _clean_tree(article) -> None:
    # Comments and processing instructions never reach the feed; "--" inside
    # a comment is fine for HTML but not for XML.
    etree.strip_elements(article, etree.Comment, etree.ProcessingInstruction, with_tail=False)
    for element in article.iter(etree.Element):
        if not XML_NAME.match(element.tag):
            element.tag = 'span'
        attributes = list(element.attrib.items())
        element.attrib.clear()
        for name, value in attributes:
            if XML_NAME.match(name):
                element.set(name, strip_invalid_xml_chars(value))
            else:
                log.debug('Dropping attribute %r from <%s>.', name, element.tag)
        if element.text:
            element.text = strip_invalid_xml_chars(element.text)
        if element.tail:
            element.tail = strip_invalid_xml_chars(element.tail)


def _body_xhtml(article) -> str:
    parts = []
    if article.text:
        parts.append(escape(article.text))
    for child in article:
        if child.tag == 'details':
            # The <details><summary> block is already captured as the summary.
            if child.tail:
                parts.append(escape(child.tail))
            continue
        parts.append(etree.tostring(child, method='xml', encoding='unicode', with_tail=True))
    return ''.join(parts)


def _parse_article(article) -> Article:
    _clean_tree(article)
    attrs = article.attrib
    return Article(
        uid=attrs.get('id', ''),
        title=attrs.get('title', ''),
        link=attrs.get('href', ''),
        author=attrs.get('author', ''),
        published=attrs.get('published', ''),
        updated=attrs.get('updated', ''),
        summary=_summary_text(article),
        body_xhtml=_body_xhtml(article),
    )


def parse_entries(html: bytes | str) -> EntriesDocument:
    data = html.encode('utf-8') if isinstance(html, str) else html
    if not data or not data.strip():
        return EntriesDocument()
    try:
        root = lxml.html.document_fromstring(data, parser=HTML_PARSER)
    except (etree.ParserError, ValueError) as exc:
        log.warning('Entries HTML could not be parsed (%s); treating it as empty.', exc)
        return EntriesDocument()

    header = _first_descendant(root, 'header')
    header_title = header.text_content() if header is not None else ''
    articles = [_parse_article(node) for node in root.iter('article')]
    return EntriesDocument(header_title=header_title, articles=articles)


def merge_overlay(primary: EntriesDocument, base: EntriesDocument) -> EntriesDocument:
    # Overlay articles come first; the canonical baseline keeps the feed identity.
    return EntriesDocument(
        header_title=base.header_title,
        articles=list(primary.articles) + list(base.articles),
    )


def load_entries(path: str) -> EntriesDocument:
    try:
        with open(path, 'rb') as handle:
            data = handle.read()
    except FileNotFoundError as exc:
        raise InputAbsentError('load_entries', path, exc) from exc
    except OSError as exc:
        raise InputMalformedError(f'load_entries: {path}: {exc}') from exc
    document = parse_entries(data)
    log.debug('Parsed %d article(s) from %s.', len(document), path)
    return document


def load_feed_entries(entries_path: str, base_entries_path: str | None = None) -> EntriesDocument:
    document = load_entries(entries_path)
    if base_entries_path:
        document = merge_overlay(document, load_entries(base_entries_path))
    return document
