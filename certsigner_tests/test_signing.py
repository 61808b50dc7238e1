from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest
from asn1crypto import algos, keys, x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric.padding import PKCS1v15

from certsigner import (
    FileSystemSigner,
    KeyType,
    SigningAlgorithm,
    SigningFailedError,
    UnsupportedAlgorithmError,
    UnsupportedDigestError,
    build_signer_from_key,
)
from certsigner.general import get_pyca_cryptography_hash
from certsigner.signers import classify_private_key
from certsigner_tests.samples import (
    EC_OTHER_KEY,
    EC_P256_CERT,
    EC_P256_KEY,
    EC_P384_CERT,
    EC_P384_KEY,
    ED25519_CERT,
    ED25519_KEY,
    INTERM_CERT,
    LEAF_CERT,
    ROOT_CERT,
    RSA_CERT,
    RSA_KEY,
    RSA_OTHER_KEY,
    generate_dsa_key,
)

DIGESTS = ['sha256', 'sha384', 'sha512']


def rsa_signer():
    return build_signer_from_key(RSA_KEY, RSA_CERT)


def ec_signer():
    return build_signer_from_key(EC_P256_KEY, EC_P256_CERT)


def test_rsa_signing_algorithm():
    signer, algo = rsa_signer()
    assert algo == SigningAlgorithm.RSA_SHA256
    assert algo == 'aws4-x509-rsa-sha256'
    assert signer.key_type == KeyType.RSA
    assert signer.signing_algorithm == algo


@pytest.mark.parametrize(
    'key,cert', [(EC_P256_KEY, EC_P256_CERT), (EC_P384_KEY, EC_P384_CERT)]
)
def test_ec_signing_algorithm(key, cert):
    signer, algo = build_signer_from_key(key, cert)
    assert algo == SigningAlgorithm.ECDSA_SHA256
    assert str(algo) == 'aws4-x509-ecdsa-sha256'
    assert signer.key_type == KeyType.EC


def test_rsa_sign_scenario():
    signer, _ = rsa_signer()
    sig = signer.sign(b'test', 'sha256')
    RSA_KEY.public_key().verify(sig, b'test', PKCS1v15(), hashes.SHA256())
    with pytest.raises(InvalidSignature):
        RSA_OTHER_KEY.public_key().verify(
            sig, b'test', PKCS1v15(), hashes.SHA256()
        )


def test_ec_sign_scenario():
    signer, _ = ec_signer()
    sig = signer.sign(b'', 'sha384')
    # DER-encoded (r, s) pair
    parsed = algos.DSASignature.load(sig)
    assert parsed['r'].native > 0 and parsed['s'].native > 0
    assert parsed.dump() == sig
    signer.public_key().verify(sig, b'', ec.ECDSA(hashes.SHA384()))
    with pytest.raises(InvalidSignature):
        EC_OTHER_KEY.public_key().verify(sig, b'', ec.ECDSA(hashes.SHA384()))


@pytest.mark.parametrize('digest_algorithm', DIGESTS)
@pytest.mark.parametrize('data', [b'', b'test', b'\x00' * 4096])
def test_rsa_round_trip(digest_algorithm, data):
    signer, _ = rsa_signer()
    sig = signer.sign(data, digest_algorithm)
    assert len(sig) == 256
    signer.public_key().verify(
        sig, data, PKCS1v15(), get_pyca_cryptography_hash(digest_algorithm)
    )


@pytest.mark.parametrize('digest_algorithm', DIGESTS)
def test_rsa_digest_info_matches_hash(digest_algorithm):
    signer, _ = rsa_signer()
    sig = signer.sign(b'test', digest_algorithm)
    recovered = signer.public_key().recover_data_from_signature(
        sig, PKCS1v15(), None
    )
    digest_info = algos.DigestInfo.load(recovered)
    assert digest_info['digest_algorithm']['algorithm'].native == (
        digest_algorithm
    )
    h = hashes.Hash(get_pyca_cryptography_hash(digest_algorithm))
    h.update(b'test')
    assert digest_info['digest'].native == h.finalize()


@pytest.mark.parametrize('digest_algorithm', DIGESTS)
@pytest.mark.parametrize(
    'key,cert', [(EC_P256_KEY, EC_P256_CERT), (EC_P384_KEY, EC_P384_CERT)]
)
def test_ec_round_trip(key, cert, digest_algorithm):
    signer, _ = build_signer_from_key(key, cert)
    sig = signer.sign(b'test', digest_algorithm)
    signer.public_key().verify(
        sig, b'test', ec.ECDSA(get_pyca_cryptography_hash(digest_algorithm))
    )


@pytest.mark.parametrize(
    'digest_algorithm', [hashes.SHA256(), hashes.SHA384(), 'SHA-512', 'Sha256']
)
def test_sign_digest_selector_variants(digest_algorithm):
    signer, _ = ec_signer()
    sig = signer.sign(b'test', digest_algorithm)
    signer.public_key().verify(
        sig, b'test', ec.ECDSA(get_pyca_cryptography_hash(digest_algorithm))
    )


@pytest.mark.parametrize(
    'digest_algorithm',
    ['sha1', 'md5', 'sha224', 'sha3_256', 'sha512-256', 'shake256', '',
     hashes.SHA1(), hashes.SHA3_256(), None, 256]
)
@pytest.mark.parametrize('make_signer', [rsa_signer, ec_signer])
def test_sign_unsupported_digest(make_signer, digest_algorithm):
    signer, _ = make_signer()
    with pytest.raises(UnsupportedDigestError):
        signer.sign(b'test', digest_algorithm)


def test_unsupported_key_dsa():
    dsa_key = generate_dsa_key()
    with pytest.raises(UnsupportedAlgorithmError):
        build_signer_from_key(dsa_key, RSA_CERT)


def test_unsupported_key_ed25519():
    with pytest.raises(UnsupportedAlgorithmError) as exc_info:
        build_signer_from_key(ED25519_KEY, ED25519_CERT)
    assert not isinstance(exc_info.value, SigningFailedError)


@pytest.mark.parametrize('thing', [None, b'not a key', RSA_KEY.public_key()])
def test_unsupported_key_not_a_private_key(thing):
    with pytest.raises(UnsupportedAlgorithmError):
        classify_private_key(thing)


def test_signer_from_asn1_key_info():
    key_info = keys.PrivateKeyInfo.load(
        EC_P256_KEY.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    signer, algo = build_signer_from_key(key_info, EC_P256_CERT)
    assert algo == SigningAlgorithm.ECDSA_SHA256
    sig = signer.sign(b'test', 'sha256')
    EC_P256_KEY.public_key().verify(sig, b'test', ec.ECDSA(hashes.SHA256()))


def test_certificates_reported_as_asn1():
    signer, _ = rsa_signer()
    cert = signer.certificate()
    assert isinstance(cert, x509.Certificate)
    assert cert.dump() == RSA_CERT.public_bytes(serialization.Encoding.DER)
    assert signer.subject_name == 'RSA Signer'
    assert signer.certificate_chain() == ()


def test_asn1_certificate_passes_through():
    asn1_cert = x509.Certificate.load(
        RSA_CERT.public_bytes(serialization.Encoding.DER)
    )
    signer, _ = build_signer_from_key(RSA_KEY, asn1_cert)
    assert signer.certificate() is asn1_cert


def test_chain_order_preserved():
    signer, _ = build_signer_from_key(
        RSA_KEY, LEAF_CERT, [INTERM_CERT, ROOT_CERT]
    )
    names = [c.subject.native['common_name'] for c in signer.certificate_chain()]
    assert names == ['Intermediate CA', 'Root CA']

    signer, _ = build_signer_from_key(
        RSA_KEY, LEAF_CERT, [ROOT_CERT, INTERM_CERT]
    )
    names = [c.subject.native['common_name'] for c in signer.certificate_chain()]
    assert names == ['Root CA', 'Intermediate CA']


def test_not_a_certificate():
    with pytest.raises(TypeError):
        build_signer_from_key(RSA_KEY, b'not a certificate')


def test_public_key_matches():
    signer, _ = rsa_signer()
    assert signer.public_key().public_numbers() == (
        RSA_KEY.public_key().public_numbers()
    )
    signer, _ = ec_signer()
    assert signer.public_key().public_numbers() == (
        EC_P256_KEY.public_key().public_numbers()
    )


def test_close_idempotent():
    signer, _ = ec_signer()
    cert = signer.certificate()
    pub = signer.public_key()
    signer.close()
    signer.close()
    assert signer.certificate() is cert
    assert pub.public_numbers() == EC_P256_KEY.public_key().public_numbers()
    # in-memory keys keep working
    sig = signer.sign(b'test', 'sha256')
    pub.verify(sig, b'test', ec.ECDSA(hashes.SHA256()))


def test_context_manager():
    signer, _ = rsa_signer()
    with mock.patch.object(FileSystemSigner, 'close') as close:
        with signer as s:
            assert s is signer
        close.assert_called_once()


def test_signer_immutable():
    signer, _ = rsa_signer()
    with pytest.raises(AttributeError):
        signer.key_type = KeyType.EC
    with pytest.raises(AttributeError):
        signer.extra_attribute = 1


def test_signing_failure_surfaces_distinctly():
    broken_key = mock.Mock(spec=rsa.RSAPrivateKey)
    broken_key.sign.side_effect = ValueError('Digest too big for RSA key')
    signer, algo = build_signer_from_key(broken_key, RSA_CERT)
    assert algo == SigningAlgorithm.RSA_SHA256
    with pytest.raises(SigningFailedError) as exc_info:
        signer.sign(b'test', 'sha512')
    assert isinstance(exc_info.value.__cause__, ValueError)
    # still reported as an unusable key to callers catching the broader kind
    with pytest.raises(UnsupportedAlgorithmError):
        signer.sign(b'test', 'sha256')


def test_concurrent_signing():
    signer, _ = ec_signer()
    pub = signer.public_key()
    payloads = [b'payload %d' % i for i in range(32)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        sigs = list(pool.map(lambda p: signer.sign(p, 'sha256'), payloads))
    for payload, sig in zip(payloads, sigs):
        pub.verify(sig, payload, ec.ECDSA(hashes.SHA256()))


def test_repr():
    signer, _ = build_signer_from_key(
        RSA_KEY, LEAF_CERT, [INTERM_CERT, ROOT_CERT]
    )
    assert repr(signer) == (
        "<FileSystemSigner key_type=RSA subject='Leaf Signer' chain_length=2>"
    )
