"""Message body helpers."""

import mistune

TEST_TEXT_BODY = """Hello,

This is a test email to verify that the email system is working correctly.

Thank you,
"""

TEST_HTML_BODY = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Test Email</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6;">
    <h1>Test Email</h1>
    <p>This is a test email to verify that the email system is working correctly.</p>
    <p>Thank you</p>
</body>
</html>
"""


def default_test_content() -> tuple[str, str]:
    """Return the (text, html) bodies of the default test email."""
    return TEST_TEXT_BODY, TEST_HTML_BODY


def markdown_bodies(source: str) -> tuple[str, str]:
    """Return (text, html) bodies for a markdown message.

    The markdown source doubles as the plain-text alternative.
    """
    return source, str(mistune.html(source))
