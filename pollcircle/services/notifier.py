"""
Resolution notifier.

Registered on the change feed; acts only on the active -> resolved edge. The
payload is built in the caller's app context right after the transition
commits; delivery then runs on a background worker, one independent send per
authority address. A failed send is logged and collected, never retried, and
never touches the poll.
"""
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from flask import current_app, render_template

from ..errors import NotificationDispatchError
from ..models.community import Community
from ..models.polls import Poll
from ..utils.mailer import send_email
from .results import compute_results

SendFn = Callable[[str, str, str], None]


def is_resolution_edge(before: dict, after: dict) -> bool:
    return before.get("status") == Poll.STATUS_ACTIVE and after.get("status") == Poll.STATUS_RESOLVED


@dataclass
class Notification:
    subject: str
    body: str
    summary: dict


@dataclass
class DispatchReport:
    poll_id: str
    sent: list[str] = field(default_factory=list)
    failures: list[NotificationDispatchError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ResolutionNotifier:
    def __init__(
        self,
        session,
        send: SendFn = send_email,
        max_workers: int = 8,
        dispatch_workers: int = 2,
    ):
        self.session = session
        self.send = send
        # per-poll fan-out width, and how many resolved polls dispatch at once
        self.max_workers = max_workers
        self.dispatch_workers = dispatch_workers
        self._executor: Optional[ThreadPoolExecutor] = None

    def on_poll_change(self, before: dict, after: dict) -> Optional[Future]:
        """Change-feed handler. Returns the pending delivery, or None when there is nothing to send."""
        if not is_resolution_edge(before, after):
            return None

        community = self.session.get(Community, after["community_id"])
        if community is None:
            current_app.logger.error(
                "Community %s not found for resolved poll %s", after["community_id"], after["id"]
            )
            return None

        recipients = community.authority_emails
        if not recipients:
            current_app.logger.info("No authority emails to notify for community %s", community.id)
            return None

        notification = self.build_notification(after, community)
        app = current_app._get_current_object()
        return self._pool().submit(self._fan_out, app, after["id"], recipients, notification)

    def build_notification(self, poll: dict, community: Community) -> Notification:
        outcome = compute_results(poll["options"], poll["votes"])
        prefix = current_app.config.get("MAIL_SUBJECT_PREFIX", "[PollCircle]")
        base_url = current_app.config.get("APP_BASE_URL", "").rstrip("/")

        summary = {
            "community": community.title,
            "question": poll["question"],
            "type": poll["type"],
            "created_at": poll["created_at"],
            "created_date": _format_date(poll["created_at"]),
            "total_votes": outcome.total_votes,
            "vote_goal": poll["vote_goal"],
            "anonymous": poll["anonymous"],
            "comment_count": poll.get("comment_count") or 0,
            "results": outcome.to_dict()["results"],
            "winner": outcome.to_dict()["winner"],
            "tier": outcome.tier,
            "poll_url": f"{base_url}/polls/{poll['id']}",
        }
        body = render_template("email/poll_resolved.html", **summary)
        return Notification(
            subject=f"{prefix} Poll Resolved: {poll['question']}",
            body=body,
            summary=summary,
        )

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.dispatch_workers, thread_name_prefix="resolution-notifier"
            )
        return self._executor

    def _fan_out(self, app, poll_id: str, recipients: list[str], notification: Notification) -> DispatchReport:
        report = DispatchReport(poll_id=poll_id)
        workers = max(1, min(len(recipients), self.max_workers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify") as pool:
            futures = {
                pool.submit(self._send_one, app, to, notification): to
                for to in recipients
            }
            for future in as_completed(futures):
                to = futures[future]
                error = future.result()
                if error is None:
                    report.sent.append(to)
                else:
                    report.failures.append(error)

        with app.app_context():
            current_app.logger.info(
                "Poll %s resolution: notified %d/%d authorities",
                poll_id, len(report.sent), len(recipients),
            )
        return report

    def _send_one(self, app, to: str, notification: Notification) -> Optional[NotificationDispatchError]:
        with app.app_context():
            try:
                self.send(to, notification.subject, notification.body)
                current_app.logger.info("Authority notification sent to %s", to)
                return None
            except Exception as e:
                current_app.logger.exception("Error sending notification to %s", to)
                return NotificationDispatchError(to, e)


def _format_date(value) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return value.strftime("%B %d, %Y")
