import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app.core.config import settings

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

# Dashboard route per role, used in the welcome email
DASHBOARD_PATHS = {
    "admin": "/admin",
    "recruiter": "/recruiter-dashboard",
    "trainer": "/trainer-dashboard",
    "student": "/student-dashboard",
}


# Helper to get template
def get_template(template_name):
    return _env.get_template(template_name)


# Helper to send email via SMTP
def send_email_via_smtp(to_email, subject, html_content) -> bool:
    """
    Delivers one HTML message. Never raises: a missing SMTP host or a
    transport failure is logged and reported as False.
    """
    if not settings.SMTP_HOST:
        logger.warning(f"SMTP host not configured. Skipping email to {to_email}.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.ehlo()

            # TLS on submission ports; local catchers (1025) run plain
            if settings.SMTP_PORT in [587, 2525]:
                server.starttls()
                server.ehlo()

            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

            server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

        logger.info(f"Email '{subject}' sent to {to_email}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send email to {to_email}: {e}")
        return False


def _render_and_send(template_name: str, to_email: str, subject: str, context: dict) -> bool:
    try:
        html_content = get_template(template_name).render(context)
    except Exception:
        logger.exception(f"Error rendering email template {template_name}")
        return False
    return send_email_via_smtp(to_email, subject, html_content)


# ---------------------------------------------------------
# 1. APPLICATION RECEIVED
# ---------------------------------------------------------
def send_application_received_email(data: dict) -> bool:
    """
    data requires: name, email, application_id
    """
    context = {
        "name": data.get("name"),
        "application_id": data.get("application_id"),
        "submission_date": datetime.now().strftime("%d-%m-%Y %I:%M %p"),
    }
    return _render_and_send(
        "application_received.html",
        data.get("email"),
        "Application Received - ZgenAI",
        context,
    )


# ---------------------------------------------------------
# 2. APPROVAL (carries the temporary credentials)
# ---------------------------------------------------------
def send_application_approved_email(data: dict) -> bool:
    """
    data requires: name, email, password
    """
    context = {
        "name": data.get("name"),
        "email": data.get("email"),
        "password": data.get("password"),
        "login_url": f"{settings.FRONTEND_URL}/student-login",
    }
    return _render_and_send(
        "application_approved.html",
        data.get("email"),
        "Welcome to ZgenAI - Account Activation",
        context,
    )


# ---------------------------------------------------------
# 3. REJECTION
# ---------------------------------------------------------
def send_application_rejected_email(data: dict) -> bool:
    context = {
        "name": data.get("name"),
        "rejection_date": datetime.now().strftime("%d-%m-%Y"),
    }
    return _render_and_send(
        "application_rejected.html",
        data.get("email"),
        "Update on your ZgenAI application",
        context,
    )


# ---------------------------------------------------------
# 4. ACCOUNT CREATED / CREDENTIALS RE-ISSUED
# ---------------------------------------------------------
def send_account_created_email(data: dict) -> bool:
    """
    data requires: name, email, role, password; phone optional
    """
    role = str(data.get("role") or "student")
    context = {
        "name": data.get("name"),
        "email": data.get("email"),
        "phone": data.get("phone"),
        "role": role.capitalize(),
        "password": data.get("password"),
        "login_url": f"{settings.FRONTEND_URL}/login",
        "dashboard_url": f"{settings.FRONTEND_URL}{DASHBOARD_PATHS.get(role, '/login')}",
    }
    return _render_and_send(
        "account_created.html",
        data.get("email"),
        "Welcome to ZgenAI - Your Account is Ready",
        context,
    )


# ---------------------------------------------------------
# 5. RATING REQUEST (admin broadcast to selected users)
# ---------------------------------------------------------
DEFAULT_RATING_MESSAGE = "We would like to request you to rate your experience with our platform."


def send_rating_email(data: dict) -> bool:
    context = {
        "name": data.get("name"),
        "email": data.get("email"),
        "phone": data.get("phone"),
        "message": data.get("message") or DEFAULT_RATING_MESSAGE,
    }
    return _render_and_send(
        "rating_request.html",
        data.get("email"),
        "ZgenAI - Account Rating Request",
        context,
    )
