import os
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID


CRYPTO_DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')


def make_cert(subject_key, common_name, issuer_key=None, issuer_name=None,
              ca=False):
    subject = x509.Name(
        [x509.NameAttribute(NameOID.COMMON_NAME, common_name)]
    )
    if issuer_key is None:
        # self-signed
        issuer_key = subject_key
        issuer = subject
    else:
        issuer = x509.Name(
            [x509.NameAttribute(NameOID.COMMON_NAME, issuer_name)]
        )
    now = datetime.now(tz=timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(subject_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(
            x509.BasicConstraints(ca=ca, path_length=None), critical=True
        )
    )
    if isinstance(issuer_key, ed25519.Ed25519PrivateKey):
        algorithm = None
    else:
        algorithm = hashes.SHA256()
    return builder.sign(issuer_key, algorithm)


def write_pkcs12(path, key, cert, cas=None, passphrase=None):
    if passphrase is None:
        encryption = serialization.NoEncryption()
    else:
        encryption = serialization.BestAvailableEncryption(passphrase)
    data = pkcs12.serialize_key_and_certificates(
        b'certsigner-test', key, cert, cas, encryption
    )
    with open(path, 'wb') as f:
        f.write(data)
    return path


def cert_to_der(cert):
    return cert.public_bytes(serialization.Encoding.DER)


RSA_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
RSA_OTHER_KEY = rsa.generate_private_key(public_exponent=65537, key_size=2048)
EC_P256_KEY = ec.generate_private_key(ec.SECP256R1())
EC_P384_KEY = ec.generate_private_key(ec.SECP384R1())
EC_OTHER_KEY = ec.generate_private_key(ec.SECP256R1())
ED25519_KEY = ed25519.Ed25519PrivateKey.generate()

RSA_CERT = make_cert(RSA_KEY, 'RSA Signer')
EC_P256_CERT = make_cert(EC_P256_KEY, 'EC P-256 Signer')
EC_P384_CERT = make_cert(EC_P384_KEY, 'EC P-384 Signer')
ED25519_CERT = make_cert(ED25519_KEY, 'Ed25519 Signer')

ROOT_KEY = ec.generate_private_key(ec.SECP384R1())
INTERM_KEY = ec.generate_private_key(ec.SECP256R1())
ROOT_CERT = make_cert(ROOT_KEY, 'Root CA', ca=True)
INTERM_CERT = make_cert(
    INTERM_KEY, 'Intermediate CA', issuer_key=ROOT_KEY,
    issuer_name='Root CA', ca=True
)
LEAF_CERT = make_cert(
    RSA_KEY, 'Leaf Signer', issuer_key=INTERM_KEY,
    issuer_name='Intermediate CA'
)


def generate_dsa_key():
    return dsa.generate_private_key(key_size=1024)
