# SPDX-License-Identifier: Apache-2.0

from formguard.__about__ import (
    __author__,
    __copyright__,
    __email__,
    __license__,
    __summary__,
    __title__,
    __uri__,
    __version__,
)

__all__ = [
    "__author__",
    "__copyright__",
    "__email__",
    "__license__",
    "__summary__",
    "__title__",
    "__uri__",
    "__version__",
    "includeme",
]


def includeme(config):
    # Services are looked up through pyramid_services, so it has to be active
    # before any of our own includes register factories.
    config.include("pyramid_services")

    config.include(".logging")
    config.include(".http")
    config.include(".metrics")
    config.include(".config")
    config.include(".rate_limiting")
    config.include(".captcha")
    config.include(".verification")
