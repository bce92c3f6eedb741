# SPDX-License-Identifier: Apache-2.0

import hashlib
import re

import pretend
import pytest

from formguard.utils import crypto
from formguard.utils.crypto import Signer, random_digits, random_letters


def test_signer_defaults():
    signer = Signer("a secret", salt="formguard.test")

    assert signer.digest_method is hashlib.sha512
    assert signer.key_derivation == "hmac"


def test_signer_roundtrip():
    signer = Signer("a secret", salt="formguard.test")
    signature = signer.get_signature("value")

    assert signer.verify_signature("value", signature)
    assert not signer.verify_signature("other value", signature)
    assert not Signer("another secret", salt="formguard.test").verify_signature(
        "value", signature
    )
    assert not Signer("a secret", salt="formguard.other").verify_signature(
        "value", signature
    )


@pytest.mark.parametrize(
    ("function", "pattern"), [(random_letters, "[a-z]+"), (random_digits, "[0-9]+")]
)
@pytest.mark.parametrize("length", [0, 1, 6])
def test_random(function, pattern, length):
    value = function(length)

    assert len(value) == length
    if length:
        assert re.fullmatch(pattern, value)


def test_random_letters_uses_secrets(monkeypatch):
    choice = pretend.call_recorder(lambda population: population[0])
    monkeypatch.setattr(crypto.secrets, "choice", choice)

    assert random_letters(3) == "aaa"
    assert len(choice.calls) == 3
