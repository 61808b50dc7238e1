"""
This module defines the signer abstraction used to produce signatures for
X.509 certificate-based request signing, together with the functions that
set up a signer from key material in memory or on disk.
"""

import enum
import logging
from typing import Iterable, Optional, Tuple, Union

from asn1crypto import keys, x509
from cryptography import exceptions as pyca_exceptions
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ec import (
    ECDSA,
    EllipticCurvePrivateKey,
)
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .general import (
    SigningAlgorithm,
    SigningFailedError,
    UnsupportedAlgorithmError,
    get_pyca_cryptography_hash,
)
from .keys import (
    load_pkcs12_key_and_cert,
    translate_asn1_key_to_pyca_cryptography,
    translate_pyca_cryptography_cert_to_asn1,
)

__all__ = [
    'KeyType',
    'classify_private_key',
    'Signer',
    'FileSystemSigner',
    'build_signer_from_key',
    'build_signer_from_pkcs12',
]

logger = logging.getLogger(__name__)


class KeyType(enum.Enum):
    """
    Kinds of private keys a signer can hold.
    """

    RSA = enum.auto()
    EC = enum.auto()

    @property
    def signing_algorithm(self) -> SigningAlgorithm:
        """
        The signing algorithm identifier that goes with this kind of key.
        """
        if self == KeyType.RSA:
            return SigningAlgorithm.RSA_SHA256
        else:
            return SigningAlgorithm.ECDSA_SHA256


def classify_private_key(private_key) -> KeyType:
    """
    Determine the kind of a private key.

    :param private_key:
        A private key object from the ``cryptography`` library.
    :return:
        The :class:`.KeyType` of the key.
    :raises UnsupportedAlgorithmError:
        if the key is neither an RSA key nor an EC key.
    """
    if isinstance(private_key, RSAPrivateKey):
        return KeyType.RSA
    elif isinstance(private_key, EllipticCurvePrivateKey):
        return KeyType.EC
    raise UnsupportedAlgorithmError(
        f"Keys of type {type(private_key).__name__} are unsupported; "
        f"only RSA and EC keys can be used for signing."
    )


class Signer:
    """
    Abstract signer object that is agnostic as to where the cryptographic
    operations actually happen.

    For now, there's one implementation: :class:`.FileSystemSigner`, for
    the case where all the key material is available in memory.

    Signers can be used as context managers, in which case :meth:`close`
    is called on exit.
    """

    __slots__ = ()

    @property
    def key_type(self) -> KeyType:
        """
        The kind of key used by this signer.
        """
        raise NotImplementedError

    @property
    def signing_algorithm(self) -> SigningAlgorithm:
        """
        Identifier of the signing algorithm used by this signer.
        """
        return self.key_type.signing_algorithm

    def public_key(self):
        """
        :return:
            The public key matching the signer's private key, as
            a ``cryptography`` public key object.
        """
        raise NotImplementedError

    def sign(
        self, data: bytes, digest_algorithm: Union[str, hashes.HashAlgorithm]
    ) -> bytes:
        """
        Hash the data provided and sign the resulting digest.

        :param data:
            Data to sign.
        :param digest_algorithm:
            Digest algorithm to use, one of SHA-256, SHA-384 or SHA-512.
            Can be specified by name or as a ``cryptography`` hash object.
        :return:
            Signature bytes.
        :raises UnsupportedDigestError:
            if the digest algorithm is not supported.
        :raises UnsupportedAlgorithmError:
            if the signer's key cannot be used to produce a signature.
        :raises SigningFailedError:
            if the cryptographic backend fails to produce a signature.
        """
        raise NotImplementedError

    def certificate(self) -> x509.Certificate:
        """
        :return:
            The signer's (leaf) certificate.
        """
        raise NotImplementedError

    def certificate_chain(self) -> Tuple[x509.Certificate, ...]:
        """
        :return:
            The certificates that chain the signer's certificate up to
            its issuers, in the order in which they were supplied.
            Possibly empty.
        """
        raise NotImplementedError

    def close(self):
        """
        Release any external resources held by this signer.
        Calling this method more than once has no further effect.
        """
        pass

    @property
    def subject_name(self):
        """
        :return:
            The subject's common name as a string, extracted from
            the signer's certificate.
        """
        try:
            name: x509.Name = self.certificate().subject
            return name.native['common_name']
        except KeyError:
            return self.certificate().subject.human_friendly

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class FileSystemSigner(Signer):
    """
    Signer implementation where the key material is available in local
    memory.

    Instances are immutable, and safe to use for signing from multiple
    threads at once.

    :param private_key:
        The signer's private key, as a ``cryptography`` key object.
        Must be an RSA key or an EC key.
    :param signing_cert:
        The signer's certificate.
    :param cert_chain:
        Other certificates relevant to the signer's certificate.
    :raises UnsupportedAlgorithmError:
        if the private key is neither an RSA key nor an EC key.
    """

    __slots__ = ('_private_key', '_key_type', '_signing_cert', '_cert_chain')

    def __init__(
        self,
        private_key: Union[RSAPrivateKey, EllipticCurvePrivateKey],
        signing_cert: x509.Certificate,
        cert_chain: Iterable[x509.Certificate] = (),
    ):
        self._key_type = classify_private_key(private_key)
        self._private_key = private_key
        self._signing_cert = signing_cert
        self._cert_chain = tuple(cert_chain)

    @property
    def key_type(self) -> KeyType:
        return self._key_type

    def public_key(self):
        if self._key_type in (KeyType.RSA, KeyType.EC):
            return self._private_key.public_key()
        return None  # pragma: nocover

    def sign(
        self, data: bytes, digest_algorithm: Union[str, hashes.HashAlgorithm]
    ) -> bytes:
        hash_algo = get_pyca_cryptography_hash(digest_algorithm)
        h = hashes.Hash(hash_algo)
        h.update(data)
        digest = h.finalize()

        key_type = self._key_type
        try:
            if key_type == KeyType.EC:
                return self._private_key.sign(
                    digest, signature_algorithm=ECDSA(Prehashed(hash_algo))
                )
            elif key_type == KeyType.RSA:
                # the DigestInfo embedded in the signature must reference
                # the hash that was actually computed
                return self._private_key.sign(
                    digest, PKCS1v15(), Prehashed(hash_algo)
                )
        except (
            ValueError,
            TypeError,
            pyca_exceptions.UnsupportedAlgorithm,
        ) as e:
            logger.error(
                f'Signing with {key_type.name} key failed', exc_info=e
            )
            raise SigningFailedError(
                f"Could not produce a signature with the {key_type.name} key "
                f"using {hash_algo.name}."
            ) from e
        raise UnsupportedAlgorithmError(  # pragma: nocover
            f"The key type {key_type} is unsupported by this signer."
        )

    def certificate(self) -> x509.Certificate:
        return self._signing_cert

    def certificate_chain(self) -> Tuple[x509.Certificate, ...]:
        return self._cert_chain

    def close(self):
        # the key material lives in process memory, nothing to release
        pass

    def __repr__(self):
        return (
            f"<{type(self).__name__} key_type={self._key_type.name} "
            f"subject={self.subject_name!r} chain_length="
            f"{len(self._cert_chain)}>"
        )


def _load_private_key(private_key):
    if not isinstance(private_key, keys.PrivateKeyInfo):
        return private_key
    try:
        return translate_asn1_key_to_pyca_cryptography(private_key)
    except (ValueError, pyca_exceptions.UnsupportedAlgorithm) as e:
        raise UnsupportedAlgorithmError(
            f"Could not load private key with algorithm "
            f"{private_key.algorithm!r}"
        ) from e


def build_signer_from_key(
    private_key, certificate, certificate_chain: Optional[Iterable] = None
) -> Tuple[FileSystemSigner, SigningAlgorithm]:
    """
    Set up a signer from key material that has already been decoded.

    :param private_key:
        The private key to sign with. Can be a ``cryptography`` private key
        object, or a :class:`.asn1crypto.keys.PrivateKeyInfo`.
    :param certificate:
        The signer's certificate. Can be a ``cryptography`` certificate
        object, or a :class:`.asn1crypto.x509.Certificate`.
    :param certificate_chain:
        Certificates chaining the signer's certificate up to its issuers,
        in either of the formats allowed for ``certificate``.
        Their order is preserved.
    :return:
        A tuple containing a :class:`.FileSystemSigner` and
        the :class:`.SigningAlgorithm` that goes with the key.
    :raises UnsupportedAlgorithmError:
        if the private key is neither an RSA key nor an EC key.
    """
    private_key = _load_private_key(private_key)
    signing_cert = translate_pyca_cryptography_cert_to_asn1(certificate)
    cert_chain = [
        translate_pyca_cryptography_cert_to_asn1(c)
        for c in (certificate_chain or ())
    ]
    signer = FileSystemSigner(
        private_key=private_key,
        signing_cert=signing_cert,
        cert_chain=cert_chain,
    )
    logger.debug(
        f"Set up {signer.key_type.name} signer for {signer.subject_name!r} "
        f"with {len(cert_chain)} chain certificate(s)"
    )
    return signer, signer.signing_algorithm


def build_signer_from_pkcs12(
    pfx_file,
) -> Tuple[FileSystemSigner, SigningAlgorithm]:
    """
    Set up a signer from a PCKS#12 archive (usually ``.pfx`` or ``.p12``
    files) that is not protected by a passphrase.

    Only the private key and the leaf certificate are taken from the archive;
    the resulting signer always reports an empty certificate chain.

    :param pfx_file:
        Path to the PKCS#12 archive.
    :return:
        A tuple containing a :class:`.FileSystemSigner` and
        the :class:`.SigningAlgorithm` that goes with the key.
    :raises OSError:
        if the file could not be read.
    :raises MalformedArchiveError:
        if the archive could not be decoded with an empty passphrase.
    :raises NoPrivateKeyError:
        if the archive contains no private key.
    :raises UnsupportedAlgorithmError:
        if the private key is neither an RSA key nor an EC key.
    """
    try:
        with open(pfx_file, 'rb') as f:
            pfx_bytes = f.read()
    except IOError as e:
        logger.error(f'Could not open PKCS#12 file {pfx_file}.', exc_info=e)
        raise

    private_key, cert = load_pkcs12_key_and_cert(pfx_bytes)
    return build_signer_from_key(private_key, cert, certificate_chain=None)
