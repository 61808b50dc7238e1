from asn1crypto import keys, x509
from cryptography import x509 as pyca_x509
from cryptography.hazmat.primitives import serialization

__all__ = [
    'translate_asn1_key_to_pyca_cryptography',
    'translate_pyca_cryptography_cert_to_asn1',
]


def translate_asn1_key_to_pyca_cryptography(key_info: keys.PrivateKeyInfo):
    # signing happens through the cryptography backend, so keys handed to us
    # as generic ASN.1 structures have to be loaded back first
    return serialization.load_der_private_key(key_info.dump(), password=None)


def translate_pyca_cryptography_cert_to_asn1(cert) -> x509.Certificate:
    # certificates are reported as asn1crypto objects for more "standardised"
    # introspection; those that already are pass through untouched
    if isinstance(cert, x509.Certificate):
        return cert
    elif isinstance(cert, pyca_x509.Certificate):
        return x509.Certificate.load(
            cert.public_bytes(serialization.Encoding.DER)
        )
    raise TypeError(
        f"Expected an X.509 certificate object, not {type(cert).__name__}"
    )
