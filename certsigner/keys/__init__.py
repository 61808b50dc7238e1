"""
Utility package to load keys and certificates.
"""

from .internal import (
    translate_asn1_key_to_pyca_cryptography,
    translate_pyca_cryptography_cert_to_asn1,
)
from .pkcs12 import load_pkcs12_key_and_cert

__all__ = [
    'load_pkcs12_key_and_cert',
    'translate_asn1_key_to_pyca_cryptography',
    'translate_pyca_cryptography_cert_to_asn1',
]
