# SPDX-License-Identifier: Apache-2.0

import hashlib
import secrets
import string

from itsdangerous import Signer as _Signer

__all__ = ["Signer", "random_letters", "random_digits"]


class Signer(_Signer):
    default_digest_method = hashlib.sha512
    default_key_derivation = "hmac"


def random_letters(length: int) -> str:
    return "".join(secrets.choice(string.ascii_lowercase) for _ in range(length))


def random_digits(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))
