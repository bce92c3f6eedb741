# SPDX-License-Identifier: Apache-2.0

from zope.interface import Attribute, Interface


class IVerificationService(Interface):
    actor = Attribute("The Actor submitting the form being verified.")

    def create_service(context, request):
        """
        Create the service for the given request.
        """

    def skipped_by(form_id):
        """
        Return the skip predicate exempting the current actor from verification
        on the given form, or None.
        """

    def is_skipped(form_id):
        """
        Return whether the current actor is exempt from verification on the
        given form.
        """

    def render(form_id):
        """
        Return the Widget to render on the given form, or None when there is
        nothing to render.
        """

    def verify(form_id, params=None):
        """
        Decide whether the submission of the given form is human, returning a
        VerificationResult. The parameters default to the request's POST data.
        """
