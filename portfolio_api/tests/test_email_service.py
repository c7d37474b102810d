"""
Tests for the SMTP email service.
"""

import smtplib
import socket
from unittest.mock import MagicMock, patch

import pytest

from portfolio_api.core.config import Settings
from portfolio_api.services.email_service import (
    SMTP_TIMEOUT_SECONDS,
    ConfiguredTransport,
    EmailConfigurationError,
    EmailDeliveryError,
    EmailService,
    MailMessage,
    UnconfiguredTransport,
    load_transport_config,
)

SMTP_ENV = {
    "SMTP_HOST": "smtp.mailhost.example",
    "SMTP_PORT": 587,
    "SMTP_USER": "mailer",
    "SMTP_PASS": "s3cret-pass",
    "NODEMAILER_SENDER_EMAIL": "noreply@portfolio.example",
}


def _settings(**overrides) -> Settings:
    values = {**SMTP_ENV, "ENVIRONMENT": "production", "EMAIL_SIMULATE": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def mail():
    return MailMessage(
        to="owner@example.com",
        subject="New portfolio message from Jane Doe",
        text="Name: Jane Doe\nMessage: hello there",
        html="<p>hello there</p>",
        reply_to="jane@example.com",
    )


def _smtp_server() -> MagicMock:
    server = MagicMock()
    server.__enter__.return_value = server
    server.has_extn.return_value = True
    return server


class TestLoadTransportConfig:
    """Transport selection from settings."""

    def test_complete_configuration(self):
        transport = load_transport_config(_settings(NODEMAILER_SENDER_NAME="Jane's Portfolio"))

        assert isinstance(transport, ConfiguredTransport)
        assert transport.host == "smtp.mailhost.example"
        assert transport.port == 587
        assert transport.implicit_tls is False
        assert transport.sender_name == "Jane's Portfolio"
        assert transport.from_address == "Jane's Portfolio <noreply@portfolio.example>"

    def test_default_sender_name(self):
        transport = load_transport_config(_settings(NODEMAILER_SENDER_NAME=None))

        assert transport.sender_name == "Portfolio Contact"

    def test_port_465_uses_implicit_tls(self):
        transport = load_transport_config(_settings(SMTP_PORT=465))

        assert transport.implicit_tls is True

    def test_port_defaults_to_587(self):
        transport = load_transport_config(_settings(SMTP_PORT=""))

        assert transport.port == 587

    @pytest.mark.parametrize(
        "missing", ["SMTP_HOST", "SMTP_USER", "SMTP_PASS", "NODEMAILER_SENDER_EMAIL"]
    )
    def test_missing_required_value(self, missing):
        transport = load_transport_config(_settings(**{missing: ""}))

        assert isinstance(transport, UnconfiguredTransport)
        assert transport.missing == (missing,)

    def test_simulates_in_development(self):
        transport = load_transport_config(
            _settings(SMTP_HOST=None, ENVIRONMENT="development")
        )

        assert transport == UnconfiguredTransport(simulate=True, missing=("SMTP_HOST",))

    def test_refuses_in_production(self):
        transport = load_transport_config(_settings(SMTP_HOST=None))

        assert transport.simulate is False

    def test_explicit_simulation_flag_wins(self):
        forced_on = load_transport_config(
            _settings(SMTP_HOST=None, ENVIRONMENT="production", EMAIL_SIMULATE=True)
        )
        forced_off = load_transport_config(
            _settings(SMTP_HOST=None, ENVIRONMENT="development", EMAIL_SIMULATE=False)
        )

        assert forced_on.simulate is True
        assert forced_off.simulate is False

    def test_password_not_in_repr(self, smtp_transport):
        assert "s3cret-pass" not in repr(smtp_transport)


class TestUnconfiguredDelivery:
    """Delivery without SMTP settings."""

    def test_simulated_send(self, mail):
        service = EmailService(UnconfiguredTransport(simulate=True, missing=("SMTP_HOST",)))

        with patch("portfolio_api.services.email_service.smtplib.SMTP") as mock_smtp:
            result = service.send(mail)

        assert result.success is True
        assert result.simulated is True
        assert result.message_id is None
        assert service.mode == "simulated"
        mock_smtp.assert_not_called()

    def test_configuration_error_without_network(self, mail):
        service = EmailService(
            UnconfiguredTransport(simulate=False, missing=("SMTP_HOST", "SMTP_PASS"))
        )

        with patch("portfolio_api.services.email_service.smtplib.SMTP") as mock_smtp, patch(
            "portfolio_api.services.email_service.smtplib.SMTP_SSL"
        ) as mock_smtp_ssl:
            with pytest.raises(EmailConfigurationError) as exc_info:
                service.send(mail)

        assert exc_info.value.missing == ("SMTP_HOST", "SMTP_PASS")
        assert isinstance(exc_info.value, EmailDeliveryError)
        assert service.mode == "unconfigured"
        mock_smtp.assert_not_called()
        mock_smtp_ssl.assert_not_called()


class TestConfiguredDelivery:
    """Delivery through a (mocked) SMTP server."""

    def test_send_with_starttls(self, configured_email_service, mail):
        server = _smtp_server()

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", return_value=server
        ) as mock_smtp:
            result = configured_email_service.send(mail)

        mock_smtp.assert_called_once_with(
            "smtp.mailhost.example", 587, timeout=SMTP_TIMEOUT_SECONDS
        )
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "s3cret-pass")
        server.send_message.assert_called_once()

        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "owner@example.com"
        assert sent["From"] == "Portfolio Contact <noreply@portfolio.example>"
        assert sent["Reply-To"] == "jane@example.com"
        assert sent["Subject"] == "New portfolio message from Jane Doe"
        assert sent.get_body(preferencelist=("plain",)).get_content().startswith(
            "Name: Jane Doe"
        )
        assert "<p>hello there</p>" in sent.get_body(preferencelist=("html",)).get_content()

        assert result.success is True
        assert result.simulated is False
        assert result.message_id == sent["Message-ID"]
        assert result.message_id.endswith("@portfolio.example>")
        assert configured_email_service.mode == "configured"

    def test_starttls_skipped_when_not_offered(self, configured_email_service, mail):
        server = _smtp_server()
        server.has_extn.return_value = False

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", return_value=server
        ):
            configured_email_service.send(mail)

        server.starttls.assert_not_called()
        server.send_message.assert_called_once()

    def test_port_465_uses_smtp_ssl(self, smtp_transport, mail):
        service = EmailService(
            ConfiguredTransport(
                host=smtp_transport.host,
                port=465,
                username=smtp_transport.username,
                password=smtp_transport.password,
                sender_email=smtp_transport.sender_email,
            )
        )
        server = _smtp_server()

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP_SSL", return_value=server
        ) as mock_ssl, patch(
            "portfolio_api.services.email_service.smtplib.SMTP"
        ) as mock_plain:
            service.send(mail)

        mock_plain.assert_not_called()
        assert mock_ssl.call_args.args == ("smtp.mailhost.example", 465)
        assert mock_ssl.call_args.kwargs["timeout"] == SMTP_TIMEOUT_SECONDS
        server.starttls.assert_not_called()
        server.send_message.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionRefusedError("Connection refused"),
            socket.timeout("timed out"),
            smtplib.SMTPServerDisconnected("Connection unexpectedly closed"),
        ],
    )
    def test_connection_failures_are_sanitized(self, configured_email_service, mail, error):
        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", side_effect=error
        ):
            with pytest.raises(EmailDeliveryError) as exc_info:
                configured_email_service.send(mail)

        assert str(exc_info.value) == "Failed to send email. Please try again later."
        assert exc_info.value.__cause__ is error

    def test_auth_failure_is_sanitized_and_logged(
        self, configured_email_service, mail, caplog
    ):
        server = _smtp_server()
        server.login.side_effect = smtplib.SMTPAuthenticationError(
            535, b"Username and Password not accepted"
        )

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", return_value=server
        ):
            with pytest.raises(EmailDeliveryError) as exc_info:
                configured_email_service.send(mail)

        assert "535" not in str(exc_info.value)
        assert "contact_email_failed" in caplog.text
        assert "SMTPAuthenticationError" in caplog.text
        server.send_message.assert_not_called()

    def test_single_attempt_on_failure(self, configured_email_service, mail):
        server = _smtp_server()
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", return_value=server
        ) as mock_smtp:
            with pytest.raises(EmailDeliveryError):
                configured_email_service.send(mail)

        assert mock_smtp.call_count == 1
        assert server.send_message.call_count == 1

    def test_starttls_failure_closes_connection(self, configured_email_service, mail):
        server = _smtp_server()
        server.starttls.side_effect = smtplib.SMTPNotSupportedError("no tls")

        with patch(
            "portfolio_api.services.email_service.smtplib.SMTP", return_value=server
        ):
            with pytest.raises(EmailDeliveryError):
                configured_email_service.send(mail)

        server.close.assert_called_once()
        server.login.assert_not_called()
