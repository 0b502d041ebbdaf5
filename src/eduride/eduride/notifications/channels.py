from __future__ import annotations

import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from html import escape
from typing import Optional

import requests

from ..core.constants import EMAIL_SUBJECT_PREFIX
from ..core.enums import DeliveryChannel, NotificationType
from ..core.exceptions import DeliveryError
from ..users.model import UserRecord
from .model import NotificationRecord

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

_SUBJECTS = {
    NotificationType.ENTRY: "Bus Entry",
    NotificationType.EXIT: "Bus Exit",
    NotificationType.DELAY: "Bus Delay",
    NotificationType.EMERGENCY: "EMERGENCY ALERT",
    NotificationType.FEE_PENDING: "Bus Fee Pending",
}


def email_subject(notification_type: NotificationType) -> str:
    return EMAIL_SUBJECT_PREFIX + _SUBJECTS.get(notification_type, "Notification")


class NotificationChannel(ABC):
    """Strategy Pattern: one transport a notification can be delivered through."""

    channel: DeliveryChannel

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def can_reach(self, recipient: UserRecord) -> bool:
        raise NotImplementedError

    @abstractmethod
    def send(self, recipient: UserRecord, notification: NotificationRecord) -> None:
        """Hand the message to the transport; raises DeliveryError on failure."""

        raise NotImplementedError


class SmsChannel(NotificationChannel):
    """SMS through the Twilio REST API."""

    channel = DeliveryChannel.SMS

    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout = float(timeout)
        self._http = http or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def can_reach(self, recipient: UserRecord) -> bool:
        return recipient.preferences.sms and bool(recipient.phone)

    def send(self, recipient: UserRecord, notification: NotificationRecord) -> None:
        try:
            resp = self._http.post(
                TWILIO_MESSAGES_URL.format(sid=self._account_sid),
                data={"Body": notification.message, "From": self._from_number, "To": recipient.phone},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DeliveryError(f"SMS to user {recipient.user_id} failed: {e}") from e


class EmailChannel(NotificationChannel):
    channel = DeliveryChannel.EMAIL

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_ssl: bool = False,
        sender: str = "noreply@eduride.com",
        timeout: float = 10.0,
    ):
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._use_ssl = bool(use_ssl)
        self._sender = sender
        self._timeout = float(timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self._host and self._username and self._password)

    def can_reach(self, recipient: UserRecord) -> bool:
        return recipient.preferences.email and bool(recipient.email)

    def build_message(self, recipient: UserRecord, notification: NotificationRecord) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = recipient.email
        msg["Subject"] = email_subject(notification.type)
        msg.set_content(notification.message)
        msg.add_alternative(
            f"""<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px;">
  <h2 style="color: #4a6da7;">EduRide Notification</h2>
  <p style="font-size: 16px;">{escape(notification.message)}</p>
  <hr style="border: 1px solid #eee;">
  <p style="color: #666; font-size: 12px;">This is an automated message from the EduRide College Bus Tracking System. Please do not reply to this email.</p>
</div>""",
            subtype="html",
        )
        return msg

    def _open(self) -> smtplib.SMTP:
        if self._use_ssl:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        smtp.starttls()
        return smtp

    def send(self, recipient: UserRecord, notification: NotificationRecord) -> None:
        msg = self.build_message(recipient, notification)
        try:
            with self._open() as smtp:
                smtp.login(self._username, self._password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Email to user {recipient.user_id} failed: {e}") from e
