"""
SMTP notifier adapter - Implements Notifier protocol over smtplib.

Port 465 uses implicit TLS; any other port upgrades with STARTTLS.
Every connection is bounded by a timeout. Transport errors are
translated to DeliveryFailure.
"""

import logging
import smtplib
import ssl
from email.mime.text import MIMEText

from src.domain.exceptions import DeliveryFailure

logger = logging.getLogger(__name__)

CODE_TEMPLATE = """Hello {first_name},

Welcome to {app_name}!

To confirm your registration, please use the following confirmation code:

    {code}

This code is valid for {ttl_hours} hours.

If you did not create an account, you can ignore this email.

The {app_name} team
"""

WELCOME_TEMPLATE = """Hello {first_name},

Your {app_name} account has been confirmed.

You can now set your password and start using the service.

The {app_name} team
"""


class SmtpNotifier:
    """
    Implements Notifier protocol via SMTP.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        host: str,
        port: int,
        mail_from: str,
        *,
        user: str | None = None,
        password: str | None = None,
        app_name: str = "Membership",
        code_ttl_hours: int = 24,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._mail_from = mail_from
        self._user = user
        self._password = password
        self._app_name = app_name
        self._code_ttl_hours = code_ttl_hours
        self._timeout = timeout

    def send_code(self, email: str, code: str, first_name: str) -> None:
        body = CODE_TEMPLATE.format(
            first_name=first_name,
            app_name=self._app_name,
            code=code,
            ttl_hours=self._code_ttl_hours,
        )
        self._send(email, f"Confirmation code - {self._app_name}", body)

    def send_welcome(self, email: str, first_name: str) -> None:
        body = WELCOME_TEMPLATE.format(first_name=first_name, app_name=self._app_name)
        self._send(email, f"Welcome to {self._app_name}", body)

    def build_message(self, to_email: str, subject: str, body: str) -> MIMEText:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self._mail_from
        msg["To"] = to_email
        return msg

    def _send(self, to_email: str, subject: str, body: str) -> None:
        msg = self.build_message(to_email, subject, body)
        context = ssl.create_default_context()
        try:
            if self._port == 465:
                with smtplib.SMTP_SSL(
                    self._host, self._port, timeout=self._timeout, context=context
                ) as server:
                    self._deliver(server, to_email, msg)
            else:
                with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                    server.ehlo()
                    server.starttls(context=context)
                    self._deliver(server, to_email, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryFailure(f"Could not send '{subject}' to {to_email}: {exc}") from exc
        logger.info("Email '%s' sent to %s", subject, to_email)

    def _deliver(self, server: smtplib.SMTP, to_email: str, msg: MIMEText) -> None:
        if self._user and self._password:
            server.login(self._user, self._password)
        server.sendmail(self._mail_from, [to_email], msg.as_string())
