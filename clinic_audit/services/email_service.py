"""
Email Service for invitations and password resets

Every sender returns True/False and never raises: a failed send must not
undo the invitation or reset it belongs to. Callers log the failure.
"""
import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr
from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to_email, subject, body_html, body_text=None):
    """
    Generic email sending function

    Args:
        to_email: Recipient email
        subject: Email subject
        body_html: HTML body
        body_text: Plain text body (optional)

    Returns:
        bool: True if sent successfully
    """
    try:
        mail_server = current_app.config.get('MAIL_SERVER')
        mail_port = current_app.config.get('MAIL_PORT')
        mail_use_tls = current_app.config.get('MAIL_USE_TLS')
        mail_username = current_app.config.get('MAIL_USERNAME')
        mail_password = current_app.config.get('MAIL_PASSWORD')
        mail_sender = current_app.config.get('MAIL_DEFAULT_SENDER')
        from_name = current_app.config.get('MAIL_FROM_NAME')

        if not mail_username or not mail_password:
            logger.warning("Email not configured. Skipping '%s' to %s", subject, to_email)
            return False

        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = formataddr((from_name, mail_sender)) if from_name else mail_sender
        msg['To'] = to_email

        if body_text:
            msg.attach(MIMEText(body_text, 'plain'))
        msg.attach(MIMEText(body_html, 'html'))

        with smtplib.SMTP(mail_server, mail_port) as server:
            if mail_use_tls:
                server.starttls()
            server.login(mail_username, mail_password)
            server.sendmail(mail_sender, to_email, msg.as_string())

        logger.info(f"Email sent to {to_email}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def send_invitation_email(email, invite_link, inviter_name, clinic_name, role, expiry_hours):
    """
    Send a clinic invitation

    Args:
        email: Invitee's email address
        invite_link: Accept-invitation URL with token
        inviter_name: Display name of the inviting admin
        clinic_name: Clinic the invitee will join
        role: 'admin' or 'member'
        expiry_hours: Hours until the invitation lapses

    Returns:
        bool: True if email sent successfully
    """
    subject = f"Join {clinic_name} on Clinic Audit"

    text = f"""
{inviter_name} has invited you to join {clinic_name} on Clinic Audit.

Accept the invitation and create your account here:
{invite_link}

You'll be joining as a {role}. This invitation expires in {expiry_hours} hours.
    """

    html = f"""
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <h2>You've been invited!</h2>
    <p>{inviter_name} has invited you to join <strong>{clinic_name}</strong> on Clinic Audit.</p>
    <p>Click the link below to accept the invitation and create your account:</p>
    <p><a href="{invite_link}">{invite_link}</a></p>
    <p>This invitation expires in {expiry_hours} hours.</p>
    <p>You'll be joining as a <strong>{role}</strong>.</p>
</body>
</html>
    """

    return send_email(email, subject, html, text)


def send_password_reset_email(email, reset_link, user_name, expiry_hours):
    """
    Send password reset link to user

    Args:
        email: User's email address
        reset_link: Password reset URL with token
        user_name: User's name for personalization
        expiry_hours: Hours until the link lapses

    Returns:
        bool: True if email sent successfully
    """
    subject = 'Reset Your Password'

    text = f"""
Hi {user_name},

You requested to reset your password. Use the link below to create a new one:
{reset_link}

This link expires in {expiry_hours} hour(s).

If you didn't request this, please ignore this email.
    """

    html = f"""
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <h2>Password Reset Request</h2>
    <p>Hi {user_name},</p>
    <p>You requested to reset your password. Click the link below to create a new password:</p>
    <p><a href="{reset_link}">{reset_link}</a></p>
    <p>This link expires in {expiry_hours} hour(s).</p>
    <p>If you didn't request this, please ignore this email.</p>
</body>
</html>
    """

    return send_email(email, subject, html, text)
