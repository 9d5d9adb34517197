"""Tests for email channel."""

from unittest.mock import patch, MagicMock

from core.notifications.channels.email import (
    send_email,
    EmailMessage,
    is_valid_email,
    markdown_to_html,
    markdown_to_plain_text,
)


def _message(**overrides) -> EmailMessage:
    values = {
        "to_email": "asha@example.com",
        "subject": "Session rescheduled",
        "body": "Join link: [Teams](https://teams.example.com/m)",
    }
    values.update(overrides)
    return EmailMessage(**values)


class TestSendEmail:
    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_sends_email_via_sendgrid(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_response = MagicMock()
        mock_response.status_code = 202
        mock_client.send.return_value = mock_response

        result = send_email(_message())

        assert result is True
        mock_client.send.assert_called_once()

    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_non_success_status_is_failure(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.send.return_value = MagicMock(status_code=400)

        assert send_email(_message()) is False

    @patch("core.notifications.channels.email._get_sendgrid_client")
    def test_returns_false_on_failure(self, mock_get_client):
        mock_client = MagicMock()
        mock_get_client.return_value = mock_client
        mock_client.send.side_effect = Exception("API error")

        result = send_email(_message())

        assert result is False

    def test_returns_false_when_not_configured(self):
        with patch("core.notifications.channels.email._get_sendgrid_client", return_value=None):
            assert send_email(_message()) is False


class TestIsValidEmail:
    def test_accepts_plain_address(self):
        assert is_valid_email("one@example.com")
        assert is_valid_email("  one@example.com ")

    def test_rejects_malformed_or_missing(self):
        assert not is_valid_email(None)
        assert not is_valid_email("")
        assert not is_valid_email("one@example")
        assert not is_valid_email("one example@x.com")


class TestMarkdownConversion:
    def test_markdown_to_html_converts_links(self):
        text = "Click [here](https://example.com) to continue."
        html = markdown_to_html(text)

        assert '<a href="https://example.com">here</a>' in html
        assert "[here]" not in html

    def test_markdown_to_html_preserves_newlines(self):
        html = markdown_to_html("Line 1\nLine 2")

        assert "<br>" in html
        assert "<!DOCTYPE html>" in html

    def test_markdown_to_plain_text_converts_links(self):
        text = "Click [here](https://example.com) to continue."
        plain = markdown_to_plain_text(text)

        assert plain == "Click here (https://example.com) to continue."

    def test_markdown_to_plain_text_preserves_non_links(self):
        text = "Join link: https://teams.example.com/m"
        assert markdown_to_plain_text(text) == text
