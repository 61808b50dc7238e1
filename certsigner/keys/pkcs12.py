import logging

from cryptography.hazmat.primitives.serialization import pkcs12

from ..general import MalformedArchiveError, NoPrivateKeyError
from .internal import translate_pyca_cryptography_cert_to_asn1

__all__ = ['load_pkcs12_key_and_cert']

logger = logging.getLogger(__name__)


def load_pkcs12_key_and_cert(pfx_bytes: bytes):
    """
    Decode a PKCS#12 archive that is not protected by a passphrase.

    Only the private key and the leaf certificate are extracted. Any other
    certificates in the archive are ignored.

    :param pfx_bytes:
        The raw archive.
    :return:
        A tuple containing the private key (as a ``cryptography`` key object)
        and the leaf certificate (as an :class:`.asn1crypto.x509.Certificate`).
    :raises MalformedArchiveError:
        if the archive could not be decoded, e.g. because it is corrupt,
        or requires a passphrase.
    :raises NoPrivateKeyError:
        if the archive does not contain a private key.
    """
    try:
        (
            private_key,
            cert,
            other_certs,
        ) = pkcs12.load_key_and_certificates(pfx_bytes, None)
    except (ValueError, TypeError) as e:
        logger.error(
            'Could not load key material from PKCS#12 file', exc_info=e
        )
        raise MalformedArchiveError(
            "Could not decode PKCS#12 archive without a passphrase"
        ) from e
    if private_key is None:
        raise NoPrivateKeyError("PKCS#12 archive has no private key")
    if cert is None:
        raise MalformedArchiveError("PKCS#12 archive has no certificate")
    if other_certs:
        logger.debug(
            f"Ignoring {len(other_certs)} additional certificate(s) "
            f"in PKCS#12 archive"
        )
    return private_key, translate_pyca_cryptography_cert_to_asn1(cert)
