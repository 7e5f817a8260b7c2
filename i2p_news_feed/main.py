##########################################################################################
#
# Script name: main.py
#
# Description: CLI entrypoint for building the I2P news feeds and signing them as su3.
#
##########################################################################################

import argparse
import logging
import os
import sys
from datetime import date

from .builder import build_feeds
from .config import BUILD_KEYS, SIGN_KEYS, resolve_build_settings, resolve_sign_settings
from .errors import OutputError
from .signer import sign_build_dir


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)
log.propagate = False
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s'
)

# File handler for logging
fh = logging.FileHandler('i2p_news_feed.log', mode='w')
fh.setLevel(logging.DEBUG)
fh.setFormatter(formatter)
if not any(isinstance(handler, logging.FileHandler) for handler in log.handlers):
    log.addHandler(fh)

root_log = logging.getLogger()
root_log.setLevel(logging.DEBUG)
if not any(isinstance(handler, logging.FileHandler) for handler in root_log.handlers):
    root_log.addHandler(fh)

BUILD_HELP = {
    'newsfile': 'Data root holding entries.html, or a single entries file to build.',
    'releasejson': 'Path to releases.json.',
    'blockfile': 'Path to the blocklist XML fragment.',
    'translationsdir': 'Directory of entries.<locale>.html translations.',
    'builddir': 'Directory the feeds are written to.',
    'feedtitle': 'Feed title.',
    'feedsubtitle': 'Feed subtitle.',
    'feedsite': 'Site URL linked from the feed.',
    'feedmain': 'Primary URL of the feed.',
    'feedbackup': 'Backup URL of the feed.',
    'feeduri': 'Feed UUID; a fresh one per file when unset.',
    'platform': 'Build only this platform.',
    'status': 'Build only this release channel.',
    'timestamp': 'ISO-8601 instant used as the feed <updated> time.',
}

SIGN_HELP = {
    'builddir': 'Directory of .atom.xml feeds, or a single feed to sign.',
    'signerid': 'Signer ID written into the su3 header.',
    'signingkey': 'PEM private key, PKCS#12 keystore or JKS keystore.',
    'keystorepass': 'Password for the key file or keystore (keystores default to changeit).',
    'keyentrypass': 'Password for the JKS key entry; defaults to the keystore password.',
    'keyalias': 'JKS alias of the signing key; defaults to the first private key.',
}


# ****************************************************************************************
# Functions
# ****************************************************************************************


def run_build(args: argparse.Namespace) -> int:
    cli_values = {key: getattr(args, key) for key in BUILD_KEYS}
    settings = resolve_build_settings(cli_values, config_path=args.config)
    log.debug('Build settings: %s', settings)
    try:
        report = build_feeds(settings)
    except OutputError as exc:
        log.error('Build aborted: %s', exc)
        return 1
    if not report.ok:
        log.error('%d feed(s) failed to build.', len(report.failed))
        return 1
    log.info('Built %d feed(s) in %s', len(report.written), settings.build_dir)
    return 0


def run_sign(args: argparse.Namespace) -> int:
    cli_values = {key: getattr(args, key) for key in SIGN_KEYS}
    settings = resolve_sign_settings(cli_values, config_path=args.config)
    log.debug('Signing %s as %s with %s', settings.build_dir, settings.signer_id, settings.signing_key)
    report = sign_build_dir(
        settings.build_dir,
        settings.signer_id,
        settings.signing_key,
        password=settings.keystore_pass or None,
        entry_password=settings.key_entry_pass or None,
        alias=settings.key_alias or None,
    )
    if not report.ok:
        log.error('%d feed(s) failed to sign.', len(report.failed))
        return 1
    return 0


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************


def _add_options(parser: argparse.ArgumentParser, help_text: dict[str, str]) -> None:
    for key, text in help_text.items():
        parser.add_argument(f'--{key}', dest=key, default=None, help=text)
    parser.add_argument('--config', default=None, help='YAML config file (default ~/.newsgo.yaml).')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output to stdout.')
    parser.add_argument('-q', '--quiet', action='store_true', help='Minimal stdout.')


def handle_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Build and sign the I2P news feeds.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    build_parser = subparsers.add_parser('build', help='Build Atom feeds for every platform and locale.')
    _add_options(build_parser, BUILD_HELP)
    build_parser.set_defaults(handler=run_build)

    sign_parser = subparsers.add_parser('sign', help='Sign built feeds into su3 files.')
    _add_options(sign_parser, SIGN_HELP)
    sign_parser.set_defaults(handler=run_sign)

    args = parser.parse_args(argv)

    # Configure stdout logging based on arguments
    for logger in (log, root_log):
        for handler in list(logger.handlers):
            if type(handler) is logging.StreamHandler:
                logger.removeHandler(handler)
    ch = logging.StreamHandler(sys.stdout)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)
    root_log.addHandler(ch)

    log.debug('Checking script requirements...')
    if not args.verbose and not args.quiet:
        log.debug('No output level specified. Defaulting to INFO.')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info('+  %s %s', os.path.basename(sys.argv[0]), args.command)
    log.info('+  Python Version: %s', sys.version.split()[0])
    log.info('+  Today is: %s', date.today())
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    return args


# ****************************************************************************************
# Main
# ****************************************************************************************


def main(argv: list[str] | None = None) -> int:
    args = handle_args(argv)
    try:
        return args.handler(args)
    except (FileNotFoundError, ValueError) as exc:
        log.error('Configuration error: %s', exc)
        return 2


if __name__ == '__main__':
    sys.exit(main())
