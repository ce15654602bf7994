import pytest
from flask_jwt_extended import create_access_token

from pollcircle import create_app
from pollcircle.config import TestConfig
from pollcircle.extensions import db
from pollcircle.services import get_services
from pollcircle.services.polls import PollSpec
from pollcircle.utils.identity import CurrentUser


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        get_services().notifier.shutdown(wait=True)
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def outbox(services):
    """Capture outbound notification emails instead of sending them."""
    sent = []
    services.notifier.send = lambda to, subject, body: sent.append((to, subject, body))
    return sent


@pytest.fixture
def alice():
    return CurrentUser(id="user-alice", display_name="Alice", email="alice@example.com")


@pytest.fixture
def bob():
    return CurrentUser(id="user-bob", display_name="Bob", email="bob@example.com")


@pytest.fixture
def carol():
    return CurrentUser(id="user-carol")


@pytest.fixture
def community(services, alice):
    return services.registry.create_community(
        "Maple Street", "Decisions for our block", alice, authority_emails=["council@example.gov"]
    )


@pytest.fixture
def make_poll(services, community, alice):
    def _make(question="Repaint the fence?", type="petition", vote_goal=10, options=None, anonymous=False):
        spec = PollSpec(question=question, type=type, vote_goal=vote_goal, options=options, anonymous=anonymous)
        return services.polls.create_poll(community.id, spec, alice)
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user: CurrentUser):
        claims = {}
        if user.display_name:
            claims["name"] = user.display_name
        if user.email:
            claims["email"] = user.email
        token = create_access_token(identity=user.id, additional_claims=claims)
        return {"Authorization": f"Bearer {token}"}
    return _headers
