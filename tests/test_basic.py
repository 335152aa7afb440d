import pytest

from quotarelay import CredentialPool, KeyConfig, KeyStatus


def test_construct_pool():
    pool = CredentialPool([KeyConfig(name="k1", token="t1"), KeyConfig(name="k2", token="t2")])
    assert len(pool) == 2  # noqa: PLR2004
    assert pool.cursor == 0
    assert all(k.status is KeyStatus.AVAILABLE and k.exhausted_at is None for k in pool)


def test_from_tokens_names_keys_in_order():
    pool = CredentialPool.from_tokens(["a", "b", "c"])
    assert [k.name for k in pool] == ["key_1", "key_2", "key_3"]
    assert [k.token for k in pool] == ["a", "b", "c"]


def test_empty_pool_rejected():
    with pytest.raises(ValueError):
        CredentialPool([])


def test_blank_token_rejected():
    with pytest.raises(ValueError):
        CredentialPool([KeyConfig("k1", "")])


def test_duplicate_token_rejected():
    with pytest.raises(ValueError, match="duplicate token"):
        CredentialPool([KeyConfig("k1", "same"), KeyConfig("k2", "same")])


def test_duplicate_name_rejected():
    with pytest.raises(ValueError, match="duplicate key name"):
        CredentialPool([KeyConfig("k", "t1"), KeyConfig("k", "t2")])
