"""
General definitions shared by the signer implementations: the signing
algorithm identifiers used in X.509-based request signing, the digest
algorithms a signer accepts, and the exceptions raised when signing or loading
key material fails.
"""

import enum
import logging
from typing import Union

from cryptography.hazmat.primitives import hashes

__all__ = [
    'SigningAlgorithm',
    'SUPPORTED_DIGEST_ALGORITHMS',
    'get_pyca_cryptography_hash',
    'SigningError',
    'UnsupportedDigestError',
    'UnsupportedAlgorithmError',
    'SigningFailedError',
    'MalformedArchiveError',
    'NoPrivateKeyError',
]

logger = logging.getLogger(__name__)


class SigningAlgorithm(str, enum.Enum):
    """
    Signing algorithm identifiers. The value of each member is the literal
    string that ends up in the credential header of a signed request.
    """

    RSA_SHA256 = 'aws4-x509-rsa-sha256'
    ECDSA_SHA256 = 'aws4-x509-ecdsa-sha256'

    def __str__(self):
        return self.value


SUPPORTED_DIGEST_ALGORITHMS = frozenset(['sha256', 'sha384', 'sha512'])
"""
Names of the digest algorithms that can be passed to
:meth:`~certsigner.signers.Signer.sign`.
"""


class SigningError(ValueError):
    """
    Error encountered while signing data or setting up a signer.
    """

    def __init__(self, msg: str, *args):
        self.msg = msg
        super().__init__(msg, *args)


class UnsupportedDigestError(SigningError):
    """
    Raised when a digest algorithm other than SHA-256, SHA-384 or SHA-512
    is requested.
    """

    pass


class UnsupportedAlgorithmError(SigningError):
    """
    Raised when a private key is neither an RSA key nor an EC key.
    """

    pass


class SigningFailedError(UnsupportedAlgorithmError):
    """
    Raised when the cryptographic backend refuses to sign with a key
    that was classified successfully. The backend error is available
    as ``__cause__``. Callers that only care about whether a key can be
    used at all can catch :class:`.UnsupportedAlgorithmError` instead.
    """

    pass


class MalformedArchiveError(SigningError):
    """
    Raised when a PKCS#12 archive cannot be decoded with an empty passphrase.
    """

    pass


class NoPrivateKeyError(SigningError):
    """
    Raised when a PKCS#12 archive decodes fine, but doesn't hold a private key.
    """

    pass


def _normalise_digest_name(name: str) -> str:
    return name.lower().replace('-', '').replace('_', '')


def get_pyca_cryptography_hash(
    algorithm: Union[str, hashes.HashAlgorithm]
) -> hashes.HashAlgorithm:
    """
    Map a digest algorithm selector to a ``cryptography`` hash object.

    :param algorithm:
        Either a digest name such as ``'sha256'`` or ``'SHA-384'``, or
        a :class:`~cryptography.hazmat.primitives.hashes.HashAlgorithm`
        instance.
    :return:
        A fresh :class:`~cryptography.hazmat.primitives.hashes.HashAlgorithm`.
    :raises UnsupportedDigestError:
        if the selector does not designate SHA-256, SHA-384 or SHA-512.
    """
    if isinstance(algorithm, hashes.HashAlgorithm):
        name = algorithm.name
    elif isinstance(algorithm, str):
        name = algorithm
    else:
        raise UnsupportedDigestError(
            f"Digest algorithm selector {algorithm!r} is not understood."
        )
    name = _normalise_digest_name(name)
    if name not in SUPPORTED_DIGEST_ALGORITHMS:
        logger.debug(f"Rejecting digest algorithm '{name}'")
        raise UnsupportedDigestError(
            f"Digest algorithm {algorithm!r} is unsupported; "
            f"must be one of SHA-256, SHA-384 or SHA-512."
        )
    return getattr(hashes, name.upper())()
