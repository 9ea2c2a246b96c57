import html
import logging
import smtplib
import ssl
import time
from email.message import EmailMessage
from typing import Any, Callable, Dict, Optional, Tuple

from app.core.config import Settings, settings as default_settings
from app.core.errors import MailerError

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0


def _render_html_template(*, preheader: str, title: str, message_html: str, footer_note: str) -> str:
    preheader_esc = html.escape(preheader)
    title_esc = html.escape(title)
    footer_note_esc = html.escape(footer_note)

    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width,initial-scale=1" />
    <title>{title_esc}</title>
  </head>
  <body style="margin:0; padding:0; background-color:#f6f3ee;">
    <div style="display:none; max-height:0; overflow:hidden; opacity:0; color:transparent;">
      {preheader_esc}
    </div>
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="padding:24px 0;">
      <tr>
        <td align="center" style="padding:0 16px;">
          <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="width:600px; max-width:600px;">
            <tr>
              <td style="padding:0 0 14px 0; font-family:Georgia, serif; font-size:20px; font-weight:700; color:#3b2f2f;">
                Bookclub
              </td>
            </tr>
            <tr>
              <td style="background-color:#ffffff; border:1px solid #e2dcd2; border-radius:12px; padding:22px 20px;">
                <div style="font-family:Arial, Helvetica, sans-serif; font-size:18px; font-weight:700; color:#3b2f2f;">
                  {title_esc}
                </div>
                <div style="margin-top:10px; font-family:Arial, Helvetica, sans-serif; font-size:14px; line-height:20px; color:#4a4a4a;">
                  {message_html}
                </div>
              </td>
            </tr>
            <tr>
              <td style="padding:14px 4px 0 4px; font-family:Arial, Helvetica, sans-serif; font-size:12px; line-height:18px; color:#8a8a8a;">
                {footer_note_esc}
              </td>
            </tr>
          </table>
        </td>
      </tr>
    </table>
  </body>
</html>"""


def _user_welcome(data: Dict[str, Any]) -> Tuple[str, str, str]:
    token = str(data["activation_token"])
    user_id = data["user_id"]
    subject = "Welcome to Bookclub!"
    text_body = (
        "Thanks for signing up for a Bookclub account.\n\n"
        f"For future reference, your user ID number is {user_id}.\n\n"
        "Please send a request to the `PUT /api/v1/users/activated` endpoint with the "
        "following JSON body to activate your account:\n\n"
        f'{{"token": "{token}"}}\n\n'
        "Please note that this is a one-time use token and it will expire in 3 days."
    )
    token_esc = html.escape(token)
    html_body = _render_html_template(
        preheader="Activate your Bookclub account.",
        title="Welcome to Bookclub",
        message_html=(
            "<p style=\"margin:0 0 10px 0;\">Thanks for signing up for a Bookclub account.</p>"
            f"<p style=\"margin:0 0 10px 0;\">For future reference, your user ID number is {html.escape(str(user_id))}.</p>"
            "<p style=\"margin:0 0 10px 0;\">Send a request to the <code>PUT /api/v1/users/activated</code> "
            "endpoint with the following JSON body to activate your account:</p>"
            f"<pre style=\"margin:0 0 10px 0;\">{{\"token\": \"{token_esc}\"}}</pre>"
        ),
        footer_note="This is a one-time use token and it will expire in 3 days.",
    )
    return subject, text_body, html_body


TEMPLATES: Dict[str, Callable[[Dict[str, Any]], Tuple[str, str, str]]] = {
    "user_welcome": _user_welcome,
}


class Mailer:
    """Envío de emails por SMTP con reintentos"""

    def __init__(self, config: Optional[Settings] = None, sleep: Callable[[float], None] = time.sleep) -> None:
        self.config = config or default_settings
        self._sleep = sleep

    def _build_message(self, recipient: str, template_name: str, data: Dict[str, Any]) -> EmailMessage:
        try:
            render = TEMPLATES[template_name]
        except KeyError as exc:
            raise MailerError(f"plantilla desconocida: {template_name}") from exc
        subject, text_body, html_body = render(data)

        msg = EmailMessage()
        msg["From"] = self.config.smtp_sender
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.smtp_timeout_seconds) as server:
            server.ehlo()
            if self.config.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            if self.config.smtp_username and self.config.smtp_password:
                server.login(self.config.smtp_username, self.config.smtp_password)
            server.send_message(msg)

    def send(self, recipient: str, template_name: str, data: Dict[str, Any]) -> bool:
        """
        Renderizar la plantilla y enviarla a `recipient`.

        Retorna False si el backend está deshabilitado. Lanza MailerError si
        fallan todos los intentos.
        """
        if self.config.email_backend == "disabled":
            return False
        if self.config.email_backend != "smtp" or not self.config.smtp_host:
            raise MailerError("SMTP mal configurado (backend/host)")

        msg = self._build_message(recipient, template_name, data)
        attempts = max(1, self.config.smtp_max_attempts)
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                self._deliver(msg)
                return True
            except (smtplib.SMTPException, OSError) as exc:
                last_error = exc
                logger.warning("Intento %d/%d de envío a %s falló: %s", attempt, attempts, recipient, exc)
                if attempt < attempts:
                    self._sleep(RETRY_DELAY_SECONDS)
        raise MailerError(f"no se pudo enviar email a {recipient}") from last_error


_mailer = Mailer()


def get_mailer() -> Mailer:
    """Dependencia FastAPI con el mailer de la aplicación"""
    return _mailer


def send_welcome_email(mailer: Mailer, recipient: str, user_id: int, activation_token: str) -> None:
    """Tarea en segundo plano: los fallos se registran y nunca llegan al cliente"""
    try:
        mailer.send(recipient, "user_welcome", {"activation_token": activation_token, "user_id": user_id})
    except MailerError:
        logger.exception("No se pudo enviar email de bienvenida a %s", recipient)
