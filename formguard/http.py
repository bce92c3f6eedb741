# SPDX-License-Identifier: Apache-2.0

import threading

import requests

from requests.adapters import HTTPAdapter

from formguard.__about__ import __title__, __version__

USER_AGENT = f"{__title__}/{__version__}"


class ThreadLocalSessionFactory:
    """
    Hands every thread its own ``requests.Session``, so that connections to
    the verification endpoints are pooled without sharing a session across
    threads.
    """

    def __init__(self, config=None):
        self.config = config
        self._local = threading.local()

    def __call__(self, request):
        try:
            session = self._local.session
            request.log.debug("reusing existing session")
            return session
        except AttributeError:
            request.log.debug("creating new session")

            # A failed verification is never retried, so the adapter only
            # retries a connection that could not be established at all.
            adapter = HTTPAdapter(max_retries=1)

            session = requests.Session()
            session.mount("http://", adapter)
            session.mount("https://", adapter)
            session.headers["User-Agent"] = USER_AGENT

            if self.config is not None:
                for attr, val in self.config.items():
                    assert hasattr(session, attr)
                    setattr(session, attr, val)

            self._local.session = session
            return session


def includeme(config):
    config.add_request_method(
        ThreadLocalSessionFactory(config.registry.settings.get("http")),
        name="http",
        reify=True,
    )
