"""
Email Notification Service
==========================

Sends email alerts when the incubator leaves its comfort zone or a sensor
stops reporting.
"""

import smtplib
import logging
import os
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending email notifications about the incubator.

    Uses SMTP to send emails. Configure with environment variables:
    - SMTP_HOST: SMTP server hostname (default: smtp.gmail.com)
    - SMTP_PORT: SMTP server port (default: 587)
    - SMTP_USER: SMTP username/email
    - SMTP_PASSWORD: SMTP password or app password
    - ALERT_EMAIL: Email address to send alerts to
    - ALERT_COOLDOWN: Seconds between two alerts with the same key (default: 300)
    """

    def __init__(self):
        """Initialize email service with configuration from environment."""
        self.smtp_host = os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = os.getenv("SMTP_USER", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.alert_email = os.getenv("ALERT_EMAIL", "incubator-alerts@localhost")
        self.from_email = os.getenv("FROM_EMAIL") or self.smtp_user or "hermetia-monitor@localhost"

        # Track sent alerts to avoid spam (alert key -> last_alert_time)
        self._last_alerts: dict[str, datetime] = {}
        self.alert_cooldown_seconds = int(os.getenv("ALERT_COOLDOWN", "300"))

        self.is_configured = bool(self.smtp_user and self.smtp_password)
        if not self.is_configured:
            logger.warning(
                "Email service not configured. Set SMTP_USER and SMTP_PASSWORD "
                "environment variables to enable email alerts."
            )

    def _can_send_alert(self, key: str) -> bool:
        """Check if we can send an alert with this key (cooldown check)."""
        if key not in self._last_alerts:
            return True

        elapsed = (datetime.now(timezone.utc) - self._last_alerts[key]).total_seconds()
        return elapsed >= self.alert_cooldown_seconds

    def _record_alert(self, key: str):
        self._last_alerts[key] = datetime.now(timezone.utc)

    def _send(self, key: str, subject: str, text_content: str, html_content: str) -> bool:
        """
        Send one alert email, honouring the configuration and the cooldown.

        Returns:
            True if email was sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.debug(f"Email not configured, skipping '{subject}'")
            return False

        if not self._can_send_alert(key):
            logger.debug(f"Alert cooldown active for {key}, skipping")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = self.alert_email
            msg.attach(MIMEText(text_content, "plain"))
            msg.attach(MIMEText(html_content, "html"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            self._record_alert(key)
            logger.info(f"Alert email '{subject}' sent to {self.alert_email}")
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error sending alert: {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to send alert email: {type(e).__name__}: {e}")
            return False

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    @staticmethod
    def _html(title: str, color: str, rows: list[tuple[str, str]]) -> str:
        body = "\n".join(
            f'            <p><span class="label">{label}:</span> {value}</p>' for label, value in rows
        )
        return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: {color}; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
        .content {{ background: #f8f9fa; padding: 20px; border: 1px solid #dee2e6; }}
        .label {{ font-weight: bold; color: #495057; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h2>{title}</h2>
        </div>
        <div class="content">
{body}
        </div>
    </div>
</body>
</html>
"""

    def send_threshold_alert(
        self,
        kind: str,
        condition: str,
        value: float,
        threshold: float,
        component_id: int,
        component_name: Optional[str] = None,
    ) -> bool:
        """
        Send an email about a reading outside the configured thresholds.

        The cooldown is per sensor, measurement and direction, so a heater
        failure doesn't flood the inbox with one email per reading.
        """
        unit = "°C" if kind == "temperature" else "%"
        name = component_name or f"Component {component_id}"
        timestamp = self._timestamp()
        subject = f"Incubator Alert: {kind} {condition} threshold ({value}{unit})"

        text_content = f"""
Incubator Threshold Alert
=========================

Sensor: {name}
Measurement: {kind}
Value: {value}{unit}
Limit: {threshold}{unit} ({condition})

Time: {timestamp}
"""
        html_content = self._html("Incubator Threshold Alert", "#dc3545", [
            ("Sensor", name),
            ("Measurement", kind),
            ("Value", f"{value}{unit}"),
            ("Limit", f"{threshold}{unit} ({condition})"),
            ("Time", timestamp),
        ])
        return self._send(f"threshold:{component_id}:{kind}:{condition}", subject, text_content, html_content)

    def send_sensor_offline_alert(
        self,
        component_id: int,
        component_name: str,
        last_seen: Optional[datetime] = None,
    ) -> bool:
        """Send an email when the watchdog takes a silent sensor offline."""
        last_seen_text = last_seen.strftime("%Y-%m-%d %H:%M:%S UTC") if last_seen else "never"
        subject = f"Sensor Offline: {component_name}"

        text_content = f"""
Sensor Offline
==============

Sensor: {component_name}
Last reading: {last_seen_text}

The sensor stopped reporting and was marked inactive.
It will be re-enabled automatically on its next reading.

Time: {self._timestamp()}
"""
        html_content = self._html("Sensor Offline", "#dc3545", [
            ("Sensor", component_name),
            ("Last reading", last_seen_text),
            ("Time", self._timestamp()),
        ])
        return self._send(f"offline:{component_id}", subject, text_content, html_content)

    def send_sensor_recovery_alert(self, component_id: int, component_name: str) -> bool:
        """Send an email when an offline sensor starts reporting again."""
        subject = f"Sensor Recovered: {component_name}"
        text_content = f"""
Sensor Recovered
================

Sensor: {component_name}
The sensor is reporting again and was re-enabled.

Time: {self._timestamp()}
"""
        html_content = self._html("Sensor Recovered", "#28a745", [
            ("Sensor", component_name),
            ("Time", self._timestamp()),
        ])
        return self._send(f"recovery:{component_id}", subject, text_content, html_content)
