"""Tests for shareable id encoding."""

import pytest

from utils.shareable_id import decode_shareable_id, encode_shareable_id


class TestEncode:
    def test_known_value(self):
        assert encode_shareable_id("a1") == "YTE"

    def test_padding_stripped(self):
        for account_id in ("a", "ab", "abc", "abcd", "BxBXxLj1m4HMXBm9WZZmCWVbPjX16EHwv4zlr"):
            assert "=" not in encode_shareable_id(account_id)

    def test_url_safe_alphabet(self):
        encoded = encode_shareable_id("ÿþ>?")
        assert "+" not in encoded
        assert "/" not in encoded

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            encode_shareable_id("")


class TestDecode:
    @pytest.mark.parametrize(
        "account_id",
        ["a1", "vzeNDwK7KQIm4yEog683uElbp9GRLEFXGK98D", "acct-ü-42", "x"],
    )
    def test_round_trip(self, account_id):
        assert decode_shareable_id(encode_shareable_id(account_id)) == account_id

    def test_accepts_padded_input(self):
        assert decode_shareable_id("YTE=") == "a1"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            decode_shareable_id("")

    def test_truncated_input_rejected(self):
        with pytest.raises(ValueError):
            decode_shareable_id("a")

    def test_non_utf8_payload_rejected(self):
        with pytest.raises(ValueError):
            decode_shareable_id("__4")

    @pytest.mark.parametrize("shareable_id", ["!!!!", "YT!E", "Y.TE", "YTF", "YTE==", "YTE\n"])
    def test_non_canonical_rejected(self, shareable_id):
        with pytest.raises(ValueError):
            decode_shareable_id(shareable_id)

    def test_non_ascii_rejected(self):
        with pytest.raises(ValueError):
            decode_shareable_id("YTé")

    def test_one_shareable_id_per_account(self):
        # Same payload bits, different trailing bits
        assert decode_shareable_id("YTE") == "a1"
        with pytest.raises(ValueError):
            decode_shareable_id("YTH")
