"""
Email service for delivering contact form messages over SMTP.

The transport is decided once when the module is imported: either a fully
configured SMTP server or an unconfigured transport that simulates delivery
(development) or refuses to send (production).
"""

import json
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Tuple, Union

from portfolio_api.core.config import Settings, settings
from portfolio_api.core.logging import get_logger

logger = get_logger(__name__)

# Applies to connect, server greeting and every socket read/write
SMTP_TIMEOUT_SECONDS = 10
IMPLICIT_TLS_PORT = 465
DEFAULT_SENDER_NAME = "Portfolio Contact"


class EmailDeliveryError(Exception):
    """Raised when a message could not be delivered.

    The message is safe to show to callers; transport details stay in the logs.
    """

    def __init__(self, message: str = "Failed to send email. Please try again later."):
        super().__init__(message)


class EmailConfigurationError(EmailDeliveryError):
    """Raised when delivery is attempted without a usable SMTP configuration."""

    def __init__(self, missing: Tuple[str, ...] = ()):
        super().__init__(
            "Email service is not configured properly. Please contact support."
        )
        self.missing = missing


@dataclass(frozen=True)
class ConfiguredTransport:
    """SMTP connection parameters."""

    host: str
    port: int
    username: str
    password: str = field(repr=False)
    sender_email: str
    sender_name: str = DEFAULT_SENDER_NAME

    @property
    def implicit_tls(self) -> bool:
        return self.port == IMPLICIT_TLS_PORT

    @property
    def from_address(self) -> str:
        return formataddr((self.sender_name, self.sender_email))


@dataclass(frozen=True)
class UnconfiguredTransport:
    """Placeholder transport used when required SMTP settings are missing."""

    simulate: bool
    missing: Tuple[str, ...] = ()


TransportConfig = Union[ConfiguredTransport, UnconfiguredTransport]


@dataclass(frozen=True)
class MailMessage:
    """An outgoing email, built once per accepted submission."""

    to: str
    subject: str
    text: str
    html: str
    reply_to: Optional[str] = None


@dataclass(frozen=True)
class DeliveryResult:
    success: bool
    message_id: Optional[str] = None
    simulated: bool = False


def load_transport_config(config: Settings) -> TransportConfig:
    """
    Decide the transport from settings.

    Args:
        config: Application settings

    Returns:
        ConfiguredTransport when every required value is present, otherwise an
        UnconfiguredTransport listing the missing variables
    """
    required = {
        "SMTP_HOST": config.SMTP_HOST,
        "SMTP_PORT": config.SMTP_PORT,
        "SMTP_USER": config.SMTP_USER,
        "SMTP_PASS": config.SMTP_PASS,
        "NODEMAILER_SENDER_EMAIL": config.NODEMAILER_SENDER_EMAIL,
    }
    missing = tuple(name for name, value in required.items() if not value)
    if missing:
        return UnconfiguredTransport(simulate=config.simulate_email, missing=missing)

    return ConfiguredTransport(
        host=str(config.SMTP_HOST),
        port=int(config.SMTP_PORT),
        username=str(config.SMTP_USER),
        password=str(config.SMTP_PASS),
        sender_email=str(config.NODEMAILER_SENDER_EMAIL),
        sender_name=config.NODEMAILER_SENDER_NAME or DEFAULT_SENDER_NAME,
    )


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self, transport: TransportConfig):
        self.transport = transport

        if isinstance(transport, UnconfiguredTransport):
            log_data = {
                "event": "email_transport_unconfigured",
                "missing": list(transport.missing),
                "simulate": transport.simulate,
            }
            if transport.simulate:
                logger.warning(json.dumps(log_data))
            else:
                logger.error(json.dumps(log_data))

    @property
    def mode(self) -> str:
        """One of configured, simulated or unconfigured."""
        if isinstance(self.transport, ConfiguredTransport):
            return "configured"
        return "simulated" if self.transport.simulate else "unconfigured"

    def send(self, mail: MailMessage) -> DeliveryResult:
        """
        Deliver a message with a single attempt.

        Args:
            mail: The message to send

        Returns:
            DeliveryResult with the generated Message-ID

        Raises:
            EmailConfigurationError: transport unconfigured outside development
            EmailDeliveryError: the SMTP exchange failed
        """
        transport = self.transport

        if isinstance(transport, UnconfiguredTransport):
            if transport.simulate:
                logger.info(
                    json.dumps(
                        {
                            "event": "contact_email_simulated",
                            "to": mail.to,
                            "reply_to": mail.reply_to,
                            "subject": mail.subject,
                            "text": mail.text,
                        }
                    )
                )
                return DeliveryResult(success=True, simulated=True)

            logger.error(
                json.dumps(
                    {
                        "event": "contact_email_not_configured",
                        "to": mail.to,
                        "missing": list(transport.missing),
                    }
                )
            )
            raise EmailConfigurationError(transport.missing)

        message = self._build_email(transport, mail)
        message_id = str(message["Message-ID"])

        try:
            with self._connect(transport) as server:
                server.login(transport.username, transport.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                json.dumps(
                    {
                        "event": "contact_email_failed",
                        "to": mail.to,
                        "reply_to": mail.reply_to,
                        "host": transport.host,
                        "port": transport.port,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    }
                )
            )
            raise EmailDeliveryError() from e

        logger.info(
            json.dumps(
                {
                    "event": "contact_email_sent",
                    "to": mail.to,
                    "reply_to": mail.reply_to,
                    "subject": mail.subject,
                    "message_id": message_id,
                }
            )
        )
        return DeliveryResult(success=True, message_id=message_id)

    def _build_email(
        self, transport: ConfiguredTransport, mail: MailMessage
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = transport.from_address
        message["To"] = mail.to
        message["Subject"] = mail.subject
        if mail.reply_to:
            message["Reply-To"] = mail.reply_to
        domain = transport.sender_email.rpartition("@")[2] or None
        message["Message-ID"] = make_msgid(domain=domain)
        message.set_content(mail.text)
        message.add_alternative(mail.html, subtype="html")
        return message

    def _connect(self, transport: ConfiguredTransport) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if transport.implicit_tls:
            return smtplib.SMTP_SSL(
                transport.host,
                transport.port,
                timeout=SMTP_TIMEOUT_SECONDS,
                context=context,
            )

        server = smtplib.SMTP(
            transport.host, transport.port, timeout=SMTP_TIMEOUT_SECONDS
        )
        try:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server


# Singleton instance
email_service = EmailService(load_transport_config(settings))
