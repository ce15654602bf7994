from flask_mail import Message
from flask import current_app
from ..extensions import mail


def send_email(to_email: str, subject: str, body: str) -> None:
    """Send one HTML email. Needs an app context; raises on transport errors."""
    sender = current_app.config.get("MAIL_DEFAULT_SENDER")
    if not sender:
        # Fail fast with a meaningful message (instead of Flask-Mail assertion)
        raise RuntimeError(
            "MAIL_DEFAULT_SENDER is not configured. Set MAIL_DEFAULT_SENDER in .env"
        )

    msg = Message(subject=subject, recipients=[to_email], html=body, sender=sender)
    mail.send(msg)
