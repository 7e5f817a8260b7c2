##########################################################################################
#
# Script name: su3.py
#
# Description: I2P su3 signed container: header layout, serialization, signing and
#              signature verification.
#
##########################################################################################

from __future__ import annotations

import hashlib
import struct
import time
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature


# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

MAGIC = b"I2Psu3"
FORMAT_VERSION = 0
MIN_VERSION_LENGTH = 16
MAX_SHORT_FIELD = 255

# magic, unused, format version, signature type, signature length, unused,
# version length, unused, signer id length, content length, unused, file type,
# unused, content type, 12 unused bytes.
HEADER = struct.Struct(">6sBBHHBBBBQBBBB12s")

SIG_TYPE_DSA_SHA1 = 0
SIG_TYPE_ECDSA_SHA256_P256 = 1
SIG_TYPE_ECDSA_SHA384_P384 = 2
SIG_TYPE_ECDSA_SHA512_P521 = 3
SIG_TYPE_RSA_SHA256_2048 = 4
SIG_TYPE_RSA_SHA384_3072 = 5
SIG_TYPE_RSA_SHA512_4096 = 6
SIG_TYPE_EDDSA_SHA512_ED25519 = 7
SIG_TYPE_EDDSA_SHA512_ED25519PH = 8

FILE_TYPE_ZIP = 0
FILE_TYPE_XML = 1
FILE_TYPE_HTML = 2
FILE_TYPE_XML_GZ = 3
FILE_TYPE_TXT_GZ = 4
FILE_TYPE_DMG = 5
FILE_TYPE_EXE = 6

CONTENT_TYPE_UNKNOWN = 0
CONTENT_TYPE_ROUTER = 1
CONTENT_TYPE_PLUGIN = 2
CONTENT_TYPE_RESEED = 3
CONTENT_TYPE_NEWS = 4
CONTENT_TYPE_BLOCKLIST = 5

_RSA_HASHES = {
    SIG_TYPE_RSA_SHA256_2048: hashes.SHA256,
    SIG_TYPE_RSA_SHA384_3072: hashes.SHA384,
    SIG_TYPE_RSA_SHA512_4096: hashes.SHA512,
}

_ECDSA_CURVES = {
    SIG_TYPE_ECDSA_SHA256_P256: (ec.SECP256R1, hashes.SHA256),
    SIG_TYPE_ECDSA_SHA384_P384: (ec.SECP384R1, hashes.SHA384),
    SIG_TYPE_ECDSA_SHA512_P521: (ec.SECP521R1, hashes.SHA512),
}


class SU3Error(ValueError):
    pass


# ****************************************************************************************
# Functions
# ****************************************************************************************


def _curve_bytes(curve: ec.EllipticCurve) -> int:
    return (curve.key_size + 7) // 8


def signature_length(signature_type: int, key) -> int:
    if signature_type in _RSA_HASHES:
        return (key.key_size + 7) // 8
    if signature_type in _ECDSA_CURVES:
        return 2 * _curve_bytes(key.curve)
    if signature_type in (SIG_TYPE_EDDSA_SHA512_ED25519, SIG_TYPE_EDDSA_SHA512_ED25519PH):
        return 64
    raise SU3Error(f"unsupported su3 signature type {signature_type}")


def _sign_bytes(signature_type: int, key, data: bytes) -> bytes:
    if signature_type in _RSA_HASHES:
        return key.sign(data, padding.PKCS1v15(), _RSA_HASHES[signature_type]())
    if signature_type in _ECDSA_CURVES:
        curve_cls, hash_cls = _ECDSA_CURVES[signature_type]
        if not isinstance(key.curve, curve_cls):
            raise SU3Error(f"su3 signature type {signature_type} needs curve {curve_cls.name}")
        r, s = decode_dss_signature(key.sign(data, ec.ECDSA(hash_cls())))
        size = _curve_bytes(key.curve)
        return r.to_bytes(size, "big") + s.to_bytes(size, "big")
    if signature_type == SIG_TYPE_EDDSA_SHA512_ED25519PH:
        # I2P's Ed25519ph signs the SHA-512 digest with plain Ed25519.
        return key.sign(hashlib.sha512(data).digest())
    if signature_type == SIG_TYPE_EDDSA_SHA512_ED25519:
        return key.sign(data)
    raise SU3Error(f"unsupported su3 signature type {signature_type}")


def _verify_bytes(signature_type: int, public_key, signature: bytes, data: bytes) -> None:
    if signature_type in _RSA_HASHES:
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise SU3Error("RSA signature needs an RSA public key")
        public_key.verify(signature, data, padding.PKCS1v15(), _RSA_HASHES[signature_type]())
        return
    if signature_type in _ECDSA_CURVES:
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise SU3Error("ECDSA signature needs an EC public key")
        curve_cls, hash_cls = _ECDSA_CURVES[signature_type]
        if not isinstance(public_key.curve, curve_cls):
            raise SU3Error(f"su3 signature type {signature_type} needs curve {curve_cls.name}")
        size = len(signature) // 2
        r = int.from_bytes(signature[:size], "big")
        s = int.from_bytes(signature[size:], "big")
        public_key.verify(encode_dss_signature(r, s), data, ec.ECDSA(hash_cls()))
        return
    if signature_type in (SIG_TYPE_EDDSA_SHA512_ED25519, SIG_TYPE_EDDSA_SHA512_ED25519PH):
        if not isinstance(public_key, ed25519.Ed25519PublicKey):
            raise SU3Error("EdDSA signature needs an Ed25519 public key")
        if signature_type == SIG_TYPE_EDDSA_SHA512_ED25519PH:
            data = hashlib.sha512(data).digest()
        public_key.verify(signature, data)
        return
    raise SU3Error(f"unsupported su3 signature type {signature_type}")


@dataclass
class SU3File:
    signature_type: int
    signer_id: bytes
    content: bytes
    file_type: int = FILE_TYPE_XML
    content_type: int = CONTENT_TYPE_NEWS
    version: bytes = b""
    signature: bytes = b""
    signature_len: int = 0

    def __post_init__(self) -> None:
        if not self.version:
            self.version = str(int(time.time())).encode("ascii")

    @property
    def version_string(self) -> str:
        return self.version.rstrip(b"\x00").decode("utf-8", errors="replace")

    def _padded_version(self) -> bytes:
        return self.version.ljust(MIN_VERSION_LENGTH, b"\x00")

    def body_bytes(self) -> bytes:
        version = self._padded_version()
        if len(version) > MAX_SHORT_FIELD:
            raise SU3Error(f"su3 version is {len(version)} bytes; at most {MAX_SHORT_FIELD} allowed")
        if len(self.signer_id) > MAX_SHORT_FIELD:
            raise SU3Error(f"su3 signer id is {len(self.signer_id)} bytes; at most {MAX_SHORT_FIELD} allowed")
        sig_len = self.signature_len or len(self.signature)
        if not sig_len:
            raise SU3Error("su3 signature length is unknown; sign the file first")
        header = HEADER.pack(
            MAGIC,
            0,
            FORMAT_VERSION,
            self.signature_type,
            sig_len,
            0,
            len(version),
            0,
            len(self.signer_id),
            len(self.content),
            0,
            self.file_type,
            0,
            self.content_type,
            bytes(12),
        )
        return header + version + self.signer_id + self.content

    def sign(self, key) -> None:
        self.signature_len = signature_length(self.signature_type, key)
        signature = _sign_bytes(self.signature_type, key, self.body_bytes())
        if len(signature) != self.signature_len:
            raise SU3Error(f"signature is {len(signature)} bytes; header declares {self.signature_len}")
        self.signature = signature

    def to_bytes(self) -> bytes:
        if not self.signature:
            raise SU3Error("su3 file is not signed")
        return self.body_bytes() + self.signature

    def verify(self, public_key) -> bool:
        try:
            _verify_bytes(self.signature_type, public_key, self.signature, self.body_bytes())
        except InvalidSignature:
            return False
        return True

    @classmethod
    def from_bytes(cls, data: bytes) -> SU3File:
        if len(data) < HEADER.size:
            raise SU3Error(f"su3 data is {len(data)} bytes; header alone needs {HEADER.size}")
        (
            magic,
            _unused1,
            _format_version,
            signature_type,
            sig_len,
            _unused2,
            version_len,
            _unused3,
            signer_len,
            content_len,
            _unused4,
            file_type,
            _unused5,
            content_type,
            _unused6,
        ) = HEADER.unpack_from(data)
        if magic != MAGIC:
            raise SU3Error(f"bad su3 magic {magic!r}")
        offset = HEADER.size
        expected = offset + version_len + signer_len + content_len + sig_len
        if len(data) != expected:
            raise SU3Error(f"su3 data is {len(data)} bytes; header describes {expected}")
        version = data[offset:offset + version_len]
        offset += version_len
        signer_id = data[offset:offset + signer_len]
        offset += signer_len
        content = data[offset:offset + content_len]
        offset += content_len
        signature = data[offset:offset + sig_len]
        return cls(
            signature_type=signature_type,
            signer_id=signer_id,
            content=content,
            file_type=file_type,
            content_type=content_type,
            version=version,
            signature=signature,
            signature_len=sig_len,
        )
