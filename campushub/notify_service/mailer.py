"""
Email notifications for signup, registration and new or updated events.

Delivery is fire-and-forget: each message is handed to a thread pool and the
HTTP request that triggered it returns without waiting. A failed send is
logged and dropped; nothing is retried or queued.
"""

import html
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import resend
from flask import current_app

from campushub.core.exceptions import NotificationError

EXTENSION_KEY = "campushub.notifier"

# Resend accepts at most 50 addresses per message
MAX_RECIPIENTS = 50


class ResendTransport:
    """Sends email through the Resend API."""

    def __init__(self, api_key: str, sender: str):
        self.api_key = api_key
        self.sender = sender

    def send(self, to: List[str], subject: str, html_body: str, text_body: str,
             bcc: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Send one message. With `bcc` and no `to`, the message is addressed to
        the sender itself so recipients never see each other.
        """
        resend.api_key = self.api_key
        params = {
            "from": self.sender,
            "to": to or [self.sender],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        if bcc:
            params["bcc"] = bcc
        try:
            return resend.Emails.send(params)
        except Exception as e:
            raise NotificationError(f"Resend rejected message '{subject}': {e}") from e


def get_notifier() -> "Notifier":
    return current_app.extensions[EXTENSION_KEY]


def display_name(user: Dict[str, Any]) -> str:
    """A principal's username, or the local part of its email."""
    return user.get("username") or user["email"].split("@")[0]


def _wrap(app_url: str, heading: str, paragraphs: List[str], button: str) -> str:
    body = "\n".join(
        f'<p style="font-size: 16px; line-height: 1.5;">{p}</p>' for p in paragraphs
    )
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 8px;">
        <h1 style="color: #4a6ee0; text-align: center;">{heading}</h1>
        {body}
        <div style="text-align: center; margin: 30px 0;">
            <a href="{app_url}" style="background-color: #4a6ee0; color: white; padding: 12px 24px; text-decoration: none; border-radius: 4px; font-weight: bold;">{button}</a>
        </div>
        <p style="font-size: 16px; line-height: 1.5;">Cheers,<br><strong>Team CampusHub</strong></p>
    </div>
    """


def _event_details(event: Dict[str, Any]) -> str:
    return (
        '<div style="background-color: #f8f9fa; border-radius: 6px; padding: 16px;">'
        f"<strong>Date:</strong> {html.escape(str(event['date']))}<br>"
        f"<strong>Time:</strong> {html.escape(str(event['time']))}<br>"
        f"<strong>Location:</strong> {html.escape(str(event['location']))}"
        "</div>"
    )


def _event_text(event: Dict[str, Any]) -> str:
    return f"Date: {event['date']}\nTime: {event['time']}\nLocation: {event['location']}"


class Notifier:
    """
    Renders notification emails and dispatches them in the background.

    Args:
        transport: Object with `send(to, subject, html_body, text_body)`, or
            None to disable mail (every message is then logged and skipped).
        executor: Where deliveries run. Defaults to a small thread pool.
        app_url: Link target used in every message.
    """

    def __init__(self, transport: Optional[Any], executor: Optional[Executor] = None,
                 app_url: str = "", max_workers: int = 2):
        self.transport = transport
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="campushub-mail"
        )
        self.app_url = app_url

    # --- DELIVERY ---
    def _deliver(self, to: List[str], subject: str, html_body: str, text_body: str,
                 blind: bool = False) -> bool:
        try:
            if blind:
                self.transport.send([], subject, html_body, text_body, bcc=to)
            else:
                self.transport.send(to, subject, html_body, text_body)
        except Exception:
            logging.exception(f"[Mail] Failed to send '{subject}' to {len(to)} recipient(s)")
            return False
        logging.info(f"[Mail] Sent '{subject}' to {len(to)} recipient(s)")
        return True

    def dispatch(self, to: List[str], subject: str, html_body: str, text_body: str,
                 blind: bool = False) -> Optional[Future]:
        """
        Schedule one message. Never raises; returns the delivery future, or
        None when the message was skipped. With `blind`, the addresses go
        in Bcc.
        """
        recipients = [addr for addr in to if addr]
        if not recipients:
            logging.info(f"[Mail] No recipients for '{subject}', skipping")
            return None
        if self.transport is None:
            logging.info(f"[Mail] Mail disabled, not sending '{subject}'")
            return None
        try:
            return self.executor.submit(self._deliver, recipients, subject, html_body, text_body, blind)
        except RuntimeError:
            # Executor already shut down
            logging.exception(f"[Mail] Could not schedule '{subject}'")
            return None

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)

    # --- MESSAGES ---
    def notify_welcome(self, user: Dict[str, Any]) -> Optional[Future]:
        name = display_name(user)
        subject = "Welcome to CampusHub!"
        html_body = _wrap(
            self.app_url,
            "Welcome to CampusHub!",
            [
                f"Hey <strong>{html.escape(name)}</strong>!",
                "Welcome to <strong>CampusHub</strong>, your one-stop destination for campus events.",
                "Explore meetups, workshops, and activities happening around you. Never miss an event again!",
            ],
            "Visit CampusHub",
        )
        text_body = (
            f"Hey {name}!\n\nWelcome to CampusHub, your one-stop destination for campus events.\n"
            f"{self.app_url}"
        )
        return self.dispatch([user["email"]], subject, html_body, text_body)

    def notify_registered(self, event: Dict[str, Any], user: Dict[str, Any]) -> Optional[Future]:
        name = display_name(user)
        subject = f"You're Registered: {event['title']}!"
        html_body = _wrap(
            self.app_url,
            "You're Registered!",
            [
                f"Hey <strong>{html.escape(name)}</strong>!",
                f"You've successfully registered for <strong>{html.escape(event['title'])}</strong>.",
                _event_details(event),
                "We can't wait to see you there!",
            ],
            "View Event Details",
        )
        text_body = (
            f"Hey {name}!\n\nYou've successfully registered for {event['title']}.\n\n"
            f"{_event_text(event)}\n\n{self.app_url}"
        )
        return self.dispatch([user["email"]], subject, html_body, text_body)

    def notify_new_event(self, event: Dict[str, Any], recipients: List[str]) -> List[Future]:
        """
        Announce a created or updated event to every student, in Bcc batches
        of MAX_RECIPIENTS addresses per message.
        """
        subject = f"New Event: {event['title']}!"
        html_body = _wrap(
            self.app_url,
            "New Event Alert!",
            [
                "Hey there!",
                f"A brand-new event <strong>\"{html.escape(event['title'])}\"</strong> is happening soon. Don't miss out!",
                _event_details(event),
            ],
            "Register Now",
        )
        text_body = (
            f"A brand-new event \"{event['title']}\" is happening soon.\n\n"
            f"{_event_text(event)}\n\n{self.app_url}"
        )
        futures = []
        for start in range(0, len(recipients), MAX_RECIPIENTS):
            batch = recipients[start:start + MAX_RECIPIENTS]
            future = self.dispatch(batch, subject, html_body, text_body, blind=True)
            if future is not None:
                futures.append(future)
        if not recipients:
            logging.info(f"[Mail] No students to notify about '{event['title']}'")
        return futures
