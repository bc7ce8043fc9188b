import os
import smtplib
import ssl
import logging
from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Optional

logger = logging.getLogger(__name__)

RELAY_PREFIXES = ("SMTP_PRIMARY", "SMTP_SECONDARY")


class EmailDeliveryError(RuntimeError):
    pass


def _bool_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class SMTPRelay:
    name: str
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    use_tls: bool
    use_ssl: bool
    sender: str

    @classmethod
    def from_env(cls, prefix: str) -> Optional["SMTPRelay"]:
        host = os.environ.get(f"{prefix}_HOST")
        port_raw = os.environ.get(f"{prefix}_PORT")
        sender = os.environ.get(f"{prefix}_FROM")
        if not host or not port_raw or not sender:
            return None
        try:
            port = int(port_raw)
        except ValueError:
            raise EmailDeliveryError(f"Invalid {prefix}_PORT: {port_raw}")
        return cls(
            name=prefix,
            host=host,
            port=port,
            user=os.environ.get(f"{prefix}_USER"),
            password=os.environ.get(f"{prefix}_PASS"),
            use_tls=_bool_env(os.environ.get(f"{prefix}_TLS"), default=True),
            use_ssl=_bool_env(os.environ.get(f"{prefix}_SSL"), default=False),
            sender=sender,
        )

    def deliver(self, message: EmailMessage) -> None:
        del message["From"]
        message["From"] = self.sender
        if self.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=20) as server:
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.send_message(message)
            return

        with smtplib.SMTP(self.host, self.port, timeout=20) as server:
            server.ehlo()
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(message)


def configured_relays() -> List[SMTPRelay]:
    relays = [SMTPRelay.from_env(prefix) for prefix in RELAY_PREFIXES]
    return [relay for relay in relays if relay is not None]


def build_message(to_email: str, subject: str, html: str, text: str) -> EmailMessage:
    message = EmailMessage()
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text)
    message.add_alternative(html, subtype="html")
    return message


def send_email(to_email: str, subject: str, html: str, text: str) -> None:
    """Send to exactly one recipient, trying each configured relay in order."""
    relays = configured_relays()
    if not relays:
        raise EmailDeliveryError("SMTP_PRIMARY configuration missing")

    message = build_message(to_email, subject, html, text)
    last_error: Optional[Exception] = None
    for relay in relays:
        try:
            relay.deliver(message)
            if relay.name != RELAY_PREFIXES[0]:
                logger.info("Email sent via %s", relay.name)
            return
        except (smtplib.SMTPException, OSError) as exc:
            last_error = exc
            logger.warning("%s failed for %s: %s", relay.name, to_email, exc)

    raise EmailDeliveryError(f"All SMTP relays failed: {last_error}")
