"""Unit tests for report rendering and notification messages."""
import smtplib
from unittest import mock


from fileguard.notify import EmailNotifier, render, should_notify
from fileguard.schema.report import Report, RestorationFailure
from fileguard.schema.restoration import RestorationStatus

from tests.conftest import LOCALE, VERSION


def make_report(**fields) -> Report:
    return Report(root="/site", version=VERSION, locale=LOCALE, **fields)


def make_notifier(**overrides) -> EmailNotifier:
    values = {
        "recipient": "admin@example.test",
        "sender": "fileguard@example.test",
        "subject_template": "[{site_name}] integrity report",
        "body_template": "Modified:\n{modified_files}\nUnknown:\n{unknown_files}",
        "site_name": "Example",
    }
    values.update(overrides)
    return EmailNotifier(**values)


class TestRender:
    def test_substitutes_lists(self):
        report = make_report(
            modified_files=["index.php", "wp-login.php"],
            unknown_files=["evil.php"],
            restored_files=["index.php"],
            restoration_failures=[
                RestorationFailure(path="wp-login.php", status=RestorationStatus.fetch_failed, reason="HTTP 404")
            ],
        )
        text = render(
            "{site_name}|{modified_files}|{unknown_files}|{restored_files}|{restoration_failures}",
            report,
            "Blog",
        )
        assert text == "Blog|index.php\nwp-login.php|evil.php|index.php|wp-login.php: HTTP 404"

    def test_unknown_placeholders_left_alone(self):
        assert render("{site_name} {other}", make_report(), "Blog") == "Blog {other}"

    def test_empty_lists_render_empty(self):
        assert render("[{modified_files}]", make_report()) == "[]"


class TestShouldNotify:
    def test_clean_report_is_silent(self):
        assert not should_notify(make_report())

    def test_any_finding_notifies(self):
        assert should_notify(make_report(unknown_files=["x.php"]))
        assert should_notify(make_report(restored_files=["index.php"]))

    def test_errors_alone_do_not_notify(self):
        assert not should_notify(make_report(manifest_error="manifest unavailable"))


class TestEmailNotifier:
    def test_build_message(self):
        message = make_notifier().build_message(make_report(modified_files=["index.php"]))
        assert message["To"] == "admin@example.test"
        assert message["Subject"] == "[Example] integrity report"
        assert "index.php" in message.get_content()

    def test_disabled_by_default(self):
        assert EmailNotifier.from_settings() is None

    async def test_send_uses_smtp(self):
        with mock.patch("fileguard.notify.mailer.smtplib.SMTP") as smtp_cls:
            sent = await make_notifier(user="u", password="p", starttls=True).send(make_report())
        smtp = smtp_cls.return_value.__enter__.return_value
        assert sent
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("u", "p")
        smtp.send_message.assert_called_once()

    async def test_send_failure_returns_false(self):
        with mock.patch("fileguard.notify.mailer.smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, "busy")):
            assert not await make_notifier().send(make_report())
