import html as html_lib
import os
from typing import Tuple

EMAIL_SIGNATURE = os.environ.get("EMAIL_SIGNATURE", "CSMIT Team")


def _escape_multiline(value: str) -> str:
    return html_lib.escape(value or "").replace("\n", "<br>")


def build_round_result_email(event_name: str, round_number: int, message: str, eligible: bool) -> Tuple[str, str, str]:
    subject = f"Update for {event_name} - Round {round_number}"
    safe_event = html_lib.escape(event_name)
    safe_message = _escape_multiline(message)
    if eligible:
        heading, heading_color, verdict = "Congratulations!", "#2c3e50", "eligible"
        message_color = "green"
    else:
        heading, heading_color, verdict = "Update", "#e74c3c", "not eligible"
        message_color = "#e74c3c"

    text = (
        f"{heading}\n\n"
        f"You are {verdict} for {event_name} - Round {round_number}.\n\n"
        f"{message}\n\n"
        "Regards,\n"
        f"{EMAIL_SIGNATURE}\n"
    )
    html = f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.5; color: #333;">
        <div style="max-width: 560px; margin: 0 auto; padding: 24px;">
          <h2 style="color: {heading_color};">{heading}</h2>
          <p>You are <strong>{verdict}</strong> for <b>{safe_event}</b> - Round {round_number}.</p>
          <p style="color: {message_color}; font-size: 16px;">{safe_message}</p>
          <p style="margin-top: 20px;">Regards,<br/><strong>{html_lib.escape(EMAIL_SIGNATURE)}</strong></p>
        </div>
      </body>
    </html>
    """
    return subject, html, text


def build_otp_email(otp: str, validity_minutes: int = 10) -> Tuple[str, str, str]:
    subject = "Your OTP for Password Reset"
    text = (
        "Hello,\n\n"
        f"Your OTP is: {otp}\n\n"
        f"This OTP is valid for {validity_minutes} minutes.\n\n"
        "If you did not request this, please ignore this email and your password will remain unchanged.\n\n"
        "Regards,\n"
        f"{EMAIL_SIGNATURE}\n"
    )
    html = f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.5; color: #333;">
        <div style="max-width: 560px; margin: 0 auto; padding: 24px;">
          <h2 style="color: #2c3e50;">Your OTP Code</h2>
          <p><strong>Your OTP is:</strong> <span style="font-size: 18px; color: #e74c3c;">{otp}</span></p>
          <p>This OTP is valid for <strong>{validity_minutes} minutes</strong>.</p>
          <p>If you did not request this, please ignore this email and your password will remain unchanged.</p>
          <p style="margin-top: 20px;">Regards,<br/><strong>{html_lib.escape(EMAIL_SIGNATURE)}</strong></p>
        </div>
      </body>
    </html>
    """
    return subject, html, text
