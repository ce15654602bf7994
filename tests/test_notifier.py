from pollcircle.services.notifier import DispatchReport, ResolutionNotifier, is_resolution_edge
from pollcircle.extensions import db
from pollcircle.services.polls import snapshot
from pollcircle.utils.identity import CurrentUser


def _resolve(services, make_poll, **kwargs):
    poll = make_poll(type="petition", vote_goal=2, **kwargs)
    services.voting.submit_vote(poll.id, "yes", CurrentUser(id="v1"))
    services.voting.submit_vote(poll.id, "no", CurrentUser(id="v2"))
    services.notifier.shutdown(wait=True)
    return poll.id


def test_resolution_edge_detection():
    assert is_resolution_edge({"status": "active"}, {"status": "resolved"})
    assert not is_resolution_edge({"status": "active"}, {"status": "active"})
    assert not is_resolution_edge({"status": "resolved"}, {"status": "resolved"})


def test_resolution_emails_every_authority_once(services, make_poll, outbox):
    _resolve(services, make_poll)

    recipients = sorted(to for to, _, _ in outbox)
    assert recipients == ["alice@example.com", "council@example.gov"]
    subject, body = outbox[0][1], outbox[0][2]
    assert subject == "[PollCircle] Poll Resolved: Repaint the fence?"
    assert "Maple Street" in body
    assert "Repaint the fence?" in body
    assert "Moderate" in body


def test_no_email_before_resolution(services, make_poll, outbox):
    poll = make_poll(type="petition", vote_goal=5)
    services.voting.submit_vote(poll.id, "yes", CurrentUser(id="v1"))
    services.notifier.shutdown(wait=True)
    assert outbox == []


def _resolved_pair(services, make_poll):
    poll = make_poll(type="petition", vote_goal=1)
    before = snapshot(services.polls.get_poll(poll.id))
    services.voting.submit_vote(poll.id, "yes", CurrentUser(id="v1"))
    after = snapshot(services.polls.get_poll(poll.id))
    return before, after


def test_failed_recipient_does_not_block_others(app, services, make_poll, outbox):
    before, after = _resolved_pair(services, make_poll)
    sent = []

    def flaky(to, subject, body):
        if to == "council@example.gov":
            raise ConnectionError("smtp down")
        sent.append(to)

    notifier = ResolutionNotifier(db.session, send=flaky)
    report = notifier.on_poll_change(before, after).result(timeout=10)
    notifier.shutdown()

    assert isinstance(report, DispatchReport)
    assert sent == ["alice@example.com"]
    assert report.sent == ["alice@example.com"]
    assert not report.ok
    assert [f.recipient for f in report.failures] == ["council@example.gov"]
    assert isinstance(report.failures[0].cause, ConnectionError)
    # poll state is untouched by delivery failures
    assert services.polls.get_poll(after["id"]).status == "resolved"


def test_community_without_authorities_sends_nothing(services, make_poll, outbox):
    nobody = CurrentUser(id="quiet")
    community = services.registry.create_community("Quiet", "", nobody)
    before, after = _resolved_pair(services, make_poll)
    after = dict(after, community_id=community.id)

    notifier = ResolutionNotifier(db.session, send=lambda *args: None)
    assert notifier.on_poll_change(before, after) is None


def test_notification_summary(app, services, make_poll, outbox):
    before, after = _resolved_pair(services, make_poll)
    community = services.registry.get_community(after["community_id"])

    note = services.notifier.build_notification(after, community)
    assert note.summary["total_votes"] == 1
    assert note.summary["winner"]["option"] == "yes"
    assert note.summary["tier"] == "Strong"
    assert note.summary["poll_url"].endswith(f"/polls/{after['id']}")
    assert note.summary["anonymous"] is False


def test_resolution_email_survives_a_comment_published_first(services, make_poll, outbox, alice):
    poll = make_poll(type="petition", vote_goal=1)
    publish = services.feed.publish_poll_change

    def comment_lands_first(before, after):
        if is_resolution_edge(before, after):
            services.comments.add_comment(after["id"], "Just in time", alice)
        return publish(before, after)

    services.feed.publish_poll_change = comment_lands_first
    services.voting.submit_vote(poll.id, "yes", CurrentUser(id="v1"))
    services.notifier.shutdown(wait=True)

    assert services.polls.get_poll(poll.id).comment_count == 1
    assert sorted(to for to, _, _ in outbox) == ["alice@example.com", "council@example.gov"]


def test_dispatch_pool_size_comes_from_config(app, services):
    assert services.notifier.dispatch_workers == app.config["NOTIFIER_DISPATCH_WORKERS"]
    assert services.notifier._pool()._max_workers == app.config["NOTIFIER_DISPATCH_WORKERS"]
