"""
Email Service

Sends member notifications (membership approval, new weekly schedule) over SMTP.
Sending is best-effort: failures are logged and reported as False, never raised.
"""

import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Iterable, Mapping, Optional
from core.config import settings
from models import DAYS_OF_WEEK
import logging

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails"""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL
        self.from_name = settings.FROM_NAME
        self.enabled = settings.EMAIL_ENABLED

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email.

        Returns True if sent successfully, False otherwise.
        """
        if not self.enabled:
            logger.info(f"Email disabled, would send to {to_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            if self.smtp_username and self.smtp_password:
                with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                    server.starttls()
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(msg)
            else:
                # Local development - just log
                logger.info(f"Would send email to {to_email}: {subject}")
                logger.debug(f"Content: {html_content[:200]}...")

            return True

        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False

    def send_membership_approved(
        self,
        to_email: str,
        member_name: str,
        plan_name: str,
        start_date: str,
        end_date: str,
    ) -> bool:
        subject = "Your membership is now active"
        html_content = "\n".join([
            f"<h2>Hi {escape(member_name or 'there')},</h2>",
            f"<p>Your <strong>{escape(plan_name)}</strong> membership has been approved.</p>",
            f"<p>Valid from <strong>{escape(start_date)}</strong> to <strong>{escape(end_date)}</strong>.</p>",
            "<p>See you at the gym!</p>",
        ])
        text_content = (
            f"Hi {member_name or 'there'},\n\n"
            f"Your {plan_name} membership has been approved.\n"
            f"Valid from {start_date} to {end_date}.\n\n"
            "See you at the gym!"
        )
        return self.send_email(to_email, subject, html_content, text_content)

    def send_schedule_assigned(
        self,
        to_email: str,
        member_name: str,
        plan_name: str,
        items: Iterable[Mapping[str, str]],
    ) -> bool:
        """Weekly schedule grouped by day, Mon..Sun."""
        by_day = {day: [] for day in DAYS_OF_WEEK}
        for item in items:
            by_day.setdefault(item["day_of_week"], []).append(item)

        subject = f"New workout plan: {plan_name}"
        html_parts = [
            f"<h2>Hi {escape(member_name or 'there')},</h2>",
            f"<p>You have been assigned the <strong>{escape(plan_name)}</strong> workout plan.</p>",
            "<table><tr><th>Day</th><th>Time</th><th>Activity</th><th>Type</th><th>Trainer</th></tr>",
        ]
        text_parts = [
            f"Hi {member_name or 'there'},",
            f"\nYou have been assigned the {plan_name} workout plan.\n",
        ]
        for day in DAYS_OF_WEEK:
            for item in by_day[day]:
                trainer = item.get("trainer") or "-"
                html_parts.append(
                    f"<tr><td>{day}</td><td>{escape(item['time'])}</td><td>{escape(item['activity'])}</td>"
                    f"<td>{escape(item['type'])}</td><td>{escape(trainer)}</td></tr>"
                )
                text_parts.append(f"- {day} {item['time']}: {item['activity']} ({item['type']}, {trainer})")
        html_parts.append("</table>")
        html_parts.append("<p>Train hard!</p>")
        text_parts.append("\nTrain hard!")

        return self.send_email(to_email, subject, "\n".join(html_parts), "\n".join(text_parts))


# Singleton instance
email_service = EmailService()
