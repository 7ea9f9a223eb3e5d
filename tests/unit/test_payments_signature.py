import hashlib
import hmac

from storefront.payments.signature import compute_signature, verify

SECRET = "test_gateway_secret"


def test_compute_signature_matches_hmac_sha256():
    expected = hmac.new(SECRET.encode(), b"order_abc|pay_xyz", hashlib.sha256).hexdigest()
    assert compute_signature("order_abc", "pay_xyz", SECRET) == expected


def test_verify_accepts_valid_signature_case_insensitive():
    sig = compute_signature("order_abc", "pay_xyz", SECRET)
    assert verify("order_abc", "pay_xyz", sig, SECRET)
    assert verify("order_abc", "pay_xyz", sig.upper(), SECRET)
    assert verify("order_abc", "pay_xyz", f"  {sig} ", SECRET)


def test_verify_rejects_empty_inputs():
    sig = compute_signature("order_abc", "pay_xyz", SECRET)
    assert not verify("", "pay_xyz", sig, SECRET)
    assert not verify("order_abc", "", sig, SECRET)
    assert not verify("order_abc", "pay_xyz", "", SECRET)
    assert not verify("order_abc", "pay_xyz", sig, "")


def test_verify_rejects_other_secret_or_swapped_ids():
    sig = compute_signature("order_abc", "pay_xyz", SECRET)
    assert not verify("order_abc", "pay_xyz", sig, "other_secret")
    assert not verify("pay_xyz", "order_abc", sig, SECRET)
    assert not verify("order_abc", "pay_xyz2", sig, SECRET)


def test_verify_rejects_any_single_char_mutation():
    sig = compute_signature("order_abc", "pay_xyz", SECRET)
    for i, ch in enumerate(sig):
        replacement = "0" if ch != "0" else "1"
        mutated = sig[:i] + replacement + sig[i + 1:]
        assert not verify("order_abc", "pay_xyz", mutated, SECRET)
