##########################################################################################
#
# Script name: signer.py
#
# Description: Loads the signing key, picks the su3 signature type for it and wraps
#              every built .atom.xml feed into a signed .su3 file next to it.
#
##########################################################################################

import logging
import os

import jks
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from .errors import SignerConfigError
from .models import SignReport
from .su3 import (
    CONTENT_TYPE_NEWS,
    FILE_TYPE_XML,
    SIG_TYPE_ECDSA_SHA256_P256,
    SIG_TYPE_ECDSA_SHA384_P384,
    SIG_TYPE_ECDSA_SHA512_P521,
    SIG_TYPE_EDDSA_SHA512_ED25519PH,
    SIG_TYPE_RSA_SHA512_4096,
    SU3Error,
    SU3File,
)


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

log = logging.getLogger(__name__)

ATOM_SUFFIX = '.atom.xml'
SU3_SUFFIX = '.su3'
DEFAULT_KEYSTORE_PASSWORD = 'changeit'
RSA_KEY_SIZES = (2048, 3072, 4096)

_EC_SIGNATURE_TYPES = {
    'secp256r1': SIG_TYPE_ECDSA_SHA256_P256,
    'secp384r1': SIG_TYPE_ECDSA_SHA384_P384,
    'secp521r1': SIG_TYPE_ECDSA_SHA512_P521,
}

PEM_MARKER = b'-----BEGIN'
JKS_MAGIC = b'\xfe\xed\xfe\xed'
DER_SEQUENCE = 0x30


# ****************************************************************************************
# Functions
# ****************************************************************************************


def signature_type_for_key(key) -> int:
    if isinstance(key, rsa.RSAPrivateKey):
        if key.key_size not in RSA_KEY_SIZES:
            raise SignerConfigError(
                f'signature_type_for_key: RSA key of {key.key_size} bits is not supported '
                f'(use one of {", ".join(str(size) for size in RSA_KEY_SIZES)})'
            )
        return SIG_TYPE_RSA_SHA512_4096
    if isinstance(key, ec.EllipticCurvePrivateKey):
        try:
            return _EC_SIGNATURE_TYPES[key.curve.name]
        except KeyError:
            raise SignerConfigError(
                f'signature_type_for_key: elliptic curve {key.curve.name} is not supported'
            ) from None
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return SIG_TYPE_EDDSA_SHA512_ED25519PH
    raise SignerConfigError(f'signature_type_for_key: unsupported key type {type(key).__name__}')


def _load_jks(data: bytes, store_password: str, entry_password: str | None, alias: str | None):
    try:
        keystore = jks.KeyStore.loads(data, store_password)
    except jks.KeystoreSignatureException:
        if not entry_password or entry_password == store_password:
            raise
        # Store and entry passwords are easy to swap on the command line.
        keystore = jks.KeyStore.loads(data, entry_password)

    entries = keystore.private_keys
    if alias:
        # Java lower-cases aliases when it writes a keystore.
        entry = entries.get(alias) or entries.get(alias.lower())
        if entry is None:
            raise ValueError(f'JKS keystore has no private key entry {alias!r}')
    elif entries:
        entry = next(iter(entries.values()))
    else:
        raise ValueError('JKS keystore holds no private key')

    if not entry.is_decrypted():
        entry.decrypt(entry_password or store_password)
    log.debug('Using JKS key entry %r.', entry.alias)
    return serialization.load_der_private_key(entry.pkey_pkcs8, password=None)


def _load_pkcs12(data: bytes, secret: bytes | None):
    try:
        key, _cert, _extra = pkcs12.load_key_and_certificates(data, secret or DEFAULT_KEYSTORE_PASSWORD.encode('utf-8'))
    except ValueError as pkcs12_error:
        # Not a keystore after all, or the wrong password for one.
        try:
            return serialization.load_der_private_key(data, password=secret)
        except (ValueError, TypeError, UnsupportedAlgorithm):
            raise ValueError(
                f'PKCS#12 keystore could not be opened (wrong keystore password?): {pkcs12_error}'
            ) from pkcs12_error
    if key is None:
        raise ValueError('PKCS#12 keystore holds no private key')
    return key


def _load_key_bytes(data: bytes, password: str | None, entry_password: str | None = None, alias: str | None = None):
    secret = password.encode('utf-8') if password else None
    if PEM_MARKER in data[:4096]:
        return serialization.load_pem_private_key(data, password=secret)
    if data.startswith(JKS_MAGIC):
        return _load_jks(data, password or DEFAULT_KEYSTORE_PASSWORD, entry_password, alias)
    if data[:1] == bytes([DER_SEQUENCE]):
        return _load_pkcs12(data, secret)
    raise SignerConfigError('load_signing_key: unrecognised key file format')


def load_signing_key(path: str, password: str | None = None, entry_password: str | None = None,
                     alias: str | None = None):
    '''
    Read a private key from a PEM file (PKCS#1 or PKCS#8, optionally
    encrypted), a PKCS#12 keystore or a Java JKS keystore. Keystores
    without an explicit store password are opened with "changeit". A JKS
    key entry is unlocked with entry_password, falling back to the store
    password; alias picks the entry, otherwise the first private key wins.
    '''
    try:
        with open(path, 'rb') as handle:
            data = handle.read()
    except OSError as exc:
        raise SignerConfigError(f'load_signing_key: {path}: {exc.strerror or exc}') from exc
    try:
        key = _load_key_bytes(data, password, entry_password, alias)
    except jks.KeystoreException as exc:
        raise SignerConfigError(f'load_signing_key: {path}: JKS: {exc}') from exc
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SignerConfigError(f'load_signing_key: {path}: {exc}') from exc
    log.debug('Loaded %s signing key from %s.', type(key).__name__, path)
    return key


def su3_path_for(atom_path: str) -> str:
    if not atom_path.endswith(ATOM_SUFFIX):
        raise SignerConfigError(f'create_su3: {atom_path}: source file must end in {ATOM_SUFFIX}')
    return atom_path[:-len(ATOM_SUFFIX)] + SU3_SUFFIX


def create_su3(atom_path: str, signer_id: str, key, version: str | None = None) -> str:
    su3_path = su3_path_for(atom_path)
    signature_type = signature_type_for_key(key)
    with open(atom_path, 'rb') as handle:
        content = handle.read()

    su3 = SU3File(
        signature_type=signature_type,
        signer_id=signer_id.encode('utf-8'),
        content=content,
        file_type=FILE_TYPE_XML,
        content_type=CONTENT_TYPE_NEWS,
        version=version.encode('utf-8') if version else b'',
    )
    try:
        su3.sign(key)
    except (SU3Error, ValueError, TypeError) as exc:
        raise SignerConfigError(f'create_su3: {atom_path}: {exc}') from exc

    with open(su3_path, 'wb') as handle:
        handle.write(su3.to_bytes())
    log.debug('Signed %s as %s (type %d, version %s).', atom_path, su3_path, signature_type, su3.version_string)
    return su3_path


def _atom_files(build_dir: str) -> list[str]:
    if os.path.isfile(build_dir):
        return [build_dir]
    found = []
    for dirpath, dirnames, filenames in os.walk(build_dir):
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(ATOM_SUFFIX):
                found.append(os.path.join(dirpath, name))
    return found


def sign_build_dir(build_dir: str, signer_id: str, key_path: str, password: str | None = None,
                   entry_password: str | None = None, alias: str | None = None) -> SignReport:
    report = SignReport()
    if not os.path.exists(build_dir):
        log.error('Build directory %s does not exist; nothing to sign.', build_dir)
        report.failed[build_dir] = f'sign_build_dir: {build_dir}: does not exist'
        return report

    for atom_path in _atom_files(build_dir):
        try:
            # Loaded per file so a bad key is reported against every feed.
            key = load_signing_key(key_path, password, entry_password, alias)

            su3_path = create_su3(atom_path, signer_id, key)
        except (SignerConfigError, OSError) as exc:
            log.error('Signing error for %s: %s', atom_path, exc)
            report.failed[atom_path] = str(exc)
            continue
        report.signed.append(su3_path)
        log.info('Signed %s', su3_path)

    log.info('Signing finished: %d signed, %d failed.', len(report.signed), len(report.failed))
    return report
