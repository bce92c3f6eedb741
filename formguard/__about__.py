# SPDX-License-Identifier: Apache-2.0

__all__ = [
    "__title__",
    "__summary__",
    "__uri__",
    "__version__",
    "__author__",
    "__email__",
    "__license__",
    "__copyright__",
]

__title__ = "formguard"
__summary__ = "Pluggable CAPTCHA, honeypot and lockout verification for Pyramid forms"
__uri__ = "https://github.com/formguard/formguard"

__version__ = "1.0.0"

__author__ = "The formguard developers"
__email__ = "dev@formguard.invalid"

__license__ = "Apache License, Version 2.0"
__copyright__ = "Copyright 2026 The formguard developers"
