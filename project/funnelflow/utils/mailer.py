# funnelflow/utils/mailer.py

from urllib.parse import urlencode
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content
from starlette.concurrency import run_in_threadpool


class Mailer:
    """
    Отправка писем через SendGrid.
    Конфигурация передаётся явно (см. create_app), лог общий для приложения.
    """

    def __init__(self, api_key: str, sender: str, sender_name: str, reset_link_base: str,
                 reset_expire_minutes: int = 60, log=None):
        self.api_key = api_key
        self.sender = sender
        self.sender_name = sender_name
        self.reset_link_base = reset_link_base
        self.reset_expire_minutes = reset_expire_minutes
        self.log = log

    def build_reset_link(self, token: str) -> str:
        return f"{self.reset_link_base}?{urlencode({'token': token})}"

    def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Синхронная отправка (клиент SendGrid блокирующий). Исключения пробрасываются."""
        message = Mail(
            from_email=Email(self.sender, self.sender_name),
            to_emails=To(to_email),
            subject=subject,
            html_content=Content("text/html", html_content),
        )
        response = SendGridAPIClient(self.api_key).send(message)
        return response.status_code in (200, 202)

    async def send_password_reset(self, account, token: str) -> bool:
        """
        Письмо со ссылкой сброса пароля.
        Адрес: account.email, если задан, иначе username.
        Возвращает True, если SendGrid принял письмо.
        """
        to_email = getattr(account, "email", None) or account.username
        reset_link = self.build_reset_link(token)

        if not self.api_key:
            if self.log:
                await self.log.log_warning("mail", "SENDGRID_API_KEY не задан, письмо не отправлено",
                                           {"to": to_email, "reset_link": reset_link})
            return False

        html_content = (
            f"<p>Click <a href=\"{reset_link}\">here</a> to reset your password. "
            f"This link expires in {self.reset_expire_minutes} minutes.</p>"
        )
        try:
            sent = await run_in_threadpool(self._send_email, to_email, "Reset your password", html_content)
        except Exception as e:
            if self.log:
                await self.log.log_error("mail", f"Ошибка отправки письма: {e}", {"to": to_email})
            return False

        if self.log:
            if sent:
                await self.log.log_info("mail", "Письмо для сброса пароля отправлено", {"to": to_email})
            else:
                await self.log.log_error("mail", "SendGrid не принял письмо", {"to": to_email})
        return sent
