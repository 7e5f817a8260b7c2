##########################################################################################
#
# Script name: blocklist.py
#
# Description: Reads and validates the blocklist XML fragment spliced into each feed.
#
##########################################################################################

import logging

from lxml import etree

from .errors import InputMalformedError


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

I2P_NAMESPACE = 'http://geti2p.net/en/docs/spec/updates'
WRAPPER_OPEN = f'<_root xmlns:i2p="{I2P_NAMESPACE}">'.encode('utf-8')
WRAPPER_CLOSE = b'</_root>'
XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)


# ****************************************************************************************
# Functions
# ****************************************************************************************


def validate_blocklist(content: bytes) -> bytes:
    if not content:
        return b''
    # The feed carries the only XML declaration allowed in the document.
    if content.lstrip().startswith(b'<?xml'):
        raise InputMalformedError('validate_blocklist: blocklist must not contain an XML declaration')
    try:
        etree.fromstring(WRAPPER_OPEN + content + WRAPPER_CLOSE, parser=XML_PARSER)
    except etree.XMLSyntaxError as exc:
        raise InputMalformedError(f'validate_blocklist: malformed XML fragment: {exc}') from exc
    return content


def read_blocklist(path: str | None) -> bytes:
    if not path:
        return b''
    try:
        with open(path, 'rb') as handle:
            return handle.read()
    except FileNotFoundError:
        log.debug('Blocklist %s does not exist; building without one.', path)
        return b''
    except OSError as exc:
        raise InputMalformedError(f'read_blocklist: {path}: {exc}') from exc


def load_blocklist(path: str | None) -> str:
    content = validate_blocklist(read_blocklist(path))
    try:
        return content.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise InputMalformedError(f'load_blocklist: {path}: not UTF-8: {exc}') from exc
