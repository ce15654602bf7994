import threading
import time

import pytest

from pollcircle import create_app
from pollcircle.config import TestConfig
from pollcircle.errors import AlreadyResolvedError, TransientStoreError
from pollcircle.extensions import db
from pollcircle.services import get_services
from pollcircle.services.notifier import is_resolution_edge
from pollcircle.services.polls import PollSpec
from pollcircle.utils.identity import CurrentUser

THREADS = 10


@pytest.fixture
def file_app(tmp_path):
    # A file database so each thread gets its own connection
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'votes.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        get_services().notifier.shutdown(wait=True)
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _setup_poll(app, vote_goal, anonymous):
    owner = CurrentUser(id="owner")
    with app.app_context():
        services = get_services()
        community = services.registry.create_community("Threads", "", owner)
        poll = services.polls.create_poll(
            community.id,
            PollSpec(question="Go?", type="petition", vote_goal=vote_goal, anonymous=anonymous),
            owner,
        )
        return poll.id


def _vote_in_parallel(app, poll_id, voters):
    outcomes = []
    lock = threading.Lock()
    start = threading.Barrier(len(voters))

    def run(user):
        with app.app_context():
            services = get_services()
            start.wait()
            for attempt in range(5):
                try:
                    services.voting.submit_vote(poll_id, "yes", user)
                    result = "ok"
                    break
                except TransientStoreError:
                    time.sleep(0.05 * (attempt + 1))
                except AlreadyResolvedError:
                    result = "resolved"
                    break
            else:
                result = "gave up"
            db.session.remove()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=run, args=(user,)) for user in voters]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


def test_concurrent_votes_are_all_counted(file_app):
    poll_id = _setup_poll(file_app, vote_goal=1000, anonymous=True)

    same_voter = CurrentUser(id="repeat")
    outcomes = _vote_in_parallel(file_app, poll_id, [same_voter] * THREADS)

    assert outcomes == ["ok"] * THREADS
    with file_app.app_context():
        assert get_services().polls.get_poll(poll_id).votes["yes"] == THREADS


def test_concurrent_votes_resolve_once(file_app):
    poll_id = _setup_poll(file_app, vote_goal=4, anonymous=False)
    edges = []
    with file_app.app_context():
        get_services().feed.register(
            lambda before, after: edges.append(after["id"]) if is_resolution_edge(before, after) else None
        )

    voters = [CurrentUser(id=f"v{n}") for n in range(THREADS)]
    outcomes = _vote_in_parallel(file_app, poll_id, voters)

    assert "gave up" not in outcomes
    with file_app.app_context():
        poll = get_services().polls.get_poll(poll_id)
        assert poll.status == "resolved"
        assert poll.total_votes >= 4
        # every accepted vote is counted and in the ledger, nothing else is
        assert poll.total_votes == outcomes.count("ok")
        assert len(poll.voters) == outcomes.count("ok")
    assert edges == [poll_id]
