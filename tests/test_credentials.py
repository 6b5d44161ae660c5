from credentials import hash_password, verify_password

ROUNDS = 4


def test_hash_and_verify():
    h = hash_password("s3cret", ROUNDS)
    assert h and h != "s3cret"
    assert verify_password("s3cret", h)
    assert not verify_password("s3cret!", h)
    assert not verify_password("", h)


def test_hashes_are_salted():
    assert hash_password("same", ROUNDS) != hash_password("same", ROUNDS)


def test_empty_password_means_no_password():
    assert hash_password("") == ""
    assert verify_password("anything", "")
    assert verify_password("", "")
    assert verify_password(None, "")


def test_malformed_hash_never_verifies():
    assert not verify_password("x", "not-a-bcrypt-hash")
