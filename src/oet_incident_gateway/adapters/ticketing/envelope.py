"""SOAP envelope construction and response classification for OET.

The backend accepts exactly one shape of ``setSoport`` request and its
responses are not reliably well-formed XML, so both directions are handled
with string templates and regular expressions rather than an XML library.
Field values are interpolated as-is; the backend expects them unescaped.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from ...models.attachment import SoapAttachmentItem, SoapFields
from ...models.result import ErrorKind, SubmissionFailure, SubmissionResult, SubmissionSuccess

SOAP_NAMESPACE = "urn:consult_base"
SOAP_OPERATION = "setSoport"
SOAP_ACTION = f"{SOAP_NAMESPACE}#{SOAP_OPERATION}"

SUCCESS_CODE = "1000"

CODE_RESP_RE = re.compile(r"<code_resp[^>]*>(\d+)</code_resp>")
MSG_RESP_RE = re.compile(r"<msg_resp[^>]*>(.*?)</msg_resp>", re.DOTALL)
TASK_ID_RE = re.compile(r"La Tarea (\d+)")

FAILURE_CODES: dict[str, ErrorKind] = {
    "1001": ErrorKind.OET_PARENT_TASK_ERROR,
    "1002": ErrorKind.OET_AUTH_ERROR,
    "6001": ErrorKind.OET_VALIDATION_ERROR,
}

UNKNOWN_ERROR_MESSAGE = "Unknown error from OET"

PLACEHOLDER_ITEM = """
              <item>
                <file/>
                <fil_sizexx/>
                <nom_filexx/>
                <tip_attach/>
              </item>"""

ITEM_TEMPLATE = """
              <item>
                <file>{file}</file>
                <fil_sizexx>{fil_sizexx}</fil_sizexx>
                <nom_filexx>{nom_filexx}</nom_filexx>
                <tip_attach>{tip_attach}</tip_attach>
              </item>"""

ENVELOPE_TEMPLATE = """<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:urn="{namespace}">
  <soapenv:Header/>
  <soapenv:Body>
    <urn:{operation}>
      <nom_usulog>{nom_usulog}</nom_usulog>
      <pwd_usulog>{pwd_usulog}</pwd_usulog>
      <nom_usuari>{nom_usuari}</nom_usuari>
      <ema_usuari>{ema_usuari}</ema_usuari>
      <tex_messag>{tex_messag}</tex_messag>
      <asu_messag>{asu_messag}</asu_messag>
      <dat_filexx>{items}
      </dat_filexx>
      <tel_usuari>{tel_usuari}</tel_usuari>
      <nit_transp>{nit_transp}</nit_transp>
      <id_project>{id_project}</id_project>
    </urn:{operation}>
  </soapenv:Body>
</soapenv:Envelope>
"""  # noqa: E501


def build_envelope(fields: SoapFields, items: Sequence[SoapAttachmentItem]) -> str:
    """Render the ``setSoport`` request body.

    Args:
        fields: Scalar request fields.
        items: Attachment items; when empty a single empty placeholder item
            is emitted because the backend requires at least one.

    Returns:
        The SOAP envelope as a string.
    """
    if items:
        rendered_items = "".join(
            ITEM_TEMPLATE.format(
                file=item.file,
                fil_sizexx=item.fil_sizexx,
                nom_filexx=item.nom_filexx,
                tip_attach=item.tip_attach,
            )
            for item in items
        )
    else:
        rendered_items = PLACEHOLDER_ITEM

    return ENVELOPE_TEMPLATE.format(
        namespace=SOAP_NAMESPACE,
        operation=SOAP_OPERATION,
        nom_usulog=fields.nom_usulog,
        pwd_usulog=fields.pwd_usulog,
        nom_usuari=fields.nom_usuari,
        ema_usuari=fields.ema_usuari,
        tex_messag=fields.tex_messag,
        asu_messag=fields.asu_messag,
        items=rendered_items,
        tel_usuari=fields.tel_usuari,
        nit_transp=fields.nit_transp,
        id_project=fields.id_project,
    )


def parse_response(xml: str) -> SubmissionResult:
    """Classify a backend response by its ``code_resp`` element.

    Args:
        xml: Raw response body.

    Returns:
        SubmissionSuccess for code 1000 (with the ticket id when the message
        names one), otherwise a SubmissionFailure of the mapped kind.
    """
    code_match = CODE_RESP_RE.search(xml or "")
    msg_match = MSG_RESP_RE.search(xml or "")
    code = code_match.group(1) if code_match else None
    message = msg_match.group(1) if msg_match else None

    if code == SUCCESS_CODE:
        task_match = TASK_ID_RE.search(message or "")
        return SubmissionSuccess(
            ticket_id=task_match.group(1) if task_match else None,
            message=message,
        )

    kind = FAILURE_CODES.get(code or "")
    if kind is not None:
        return SubmissionFailure(error_kind=kind, message=message or "", backend_code=code)

    return SubmissionFailure(
        error_kind=ErrorKind.OET_ERROR,
        message=message or UNKNOWN_ERROR_MESSAGE,
        backend_code=code,
    )
