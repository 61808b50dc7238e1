"""
Certificate-backed signers for X.509-based request signing.
"""

from .general import (
    MalformedArchiveError,
    NoPrivateKeyError,
    SigningAlgorithm,
    SigningError,
    SigningFailedError,
    UnsupportedAlgorithmError,
    UnsupportedDigestError,
)
from .signers import (
    FileSystemSigner,
    KeyType,
    Signer,
    build_signer_from_key,
    build_signer_from_pkcs12,
)
from .version import __version__

__all__ = [
    'FileSystemSigner',
    'KeyType',
    'MalformedArchiveError',
    'NoPrivateKeyError',
    'Signer',
    'SigningAlgorithm',
    'SigningError',
    'SigningFailedError',
    'UnsupportedAlgorithmError',
    'UnsupportedDigestError',
    'build_signer_from_key',
    'build_signer_from_pkcs12',
    '__version__',
]
