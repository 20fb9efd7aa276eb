"""Default auto-submitting form that posts the authn request to the hub."""

from __future__ import annotations

from markupsafe import Markup, escape

_FORM_TEMPLATE = """\
<form method="post" action="{sso_location}">
  <h1>Continue to GOV.UK Verify</h1>
  <input type="hidden" name="SAMLRequest" value="{saml_request}"/>
  <input type="hidden" name="relayState" value=""/>
  <button>Continue</button>
</form>
<script>
  var form = document.forms[0]
  form.setAttribute('style', 'display: none;')
  window.setTimeout(function () {{ form.removeAttribute('style') }}, 5000)
  form.submit()
</script>
"""


def create_saml_form(sso_location: str, saml_request: str) -> Markup:
    """Render the form that sends the browser on to the hub.

    The form is hidden and submitted by script; it only shows up if
    javascript is disabled or the submit stalls.

    Args:
        sso_location: URL the browser must post the request to.
        saml_request: Base64-encoded SAML AuthnRequest.

    Returns:
        HTML document, safe to send as is.
    """
    return Markup(_FORM_TEMPLATE).format(
        sso_location=escape(sso_location),
        saml_request=escape(saml_request),
    )
