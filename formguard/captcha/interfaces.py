# SPDX-License-Identifier: Apache-2.0

import collections

from zope.interface import Attribute, Interface

from formguard.captcha.results import VerificationResult

# Everything a template needs to render the widget of a provider: the script
# to load, the CSS class of the container, and the data attributes or hidden
# fields to put on it. A remote widget may carry the honeypot widget to render
# alongside it, for when the remote service turns out to be unavailable.
Widget = collections.namedtuple(
    "Widget",
    ("provider", "script_src", "class_name", "attributes", "fallback"),
    defaults=(None,),
)


class ICaptchaService(Interface):
    provider_id = Attribute("The ProviderId this service implements.")
    name = Attribute("A human readable name for the provider.")
    token_field = Attribute("The form field the client side token is posted in.")

    def create_service(context, request):
        """
        Create the service, given the context and request for which it is being
        created for.
        """

    def enabled() -> bool:
        """
        Return whether the Captcha service is enabled.
        """

    def csp_policy() -> dict[str, list[str]]:
        """
        Return the CSP policy appropriate for the Captcha service.
        """

    def render(form_id) -> Widget:
        """
        Describe the widget to render on the given form.
        """

    def verify(params, remote_ip=None) -> VerificationResult:
        """
        Verify a submitted form, given its parameters.
        """

    def test_connection(site_key, secret_key) -> VerificationResult:
        """
        Check the format of a pair of keys without contacting the provider.
        """
