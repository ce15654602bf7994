import pytest

from pollcircle.errors import (
    AlreadyMemberError,
    CodeGenerationExhaustedError,
    NotFoundError,
    ValidationError,
)
from pollcircle.extensions import db
from pollcircle.services.registry import MembershipRegistry


def _registry(codes, attempts=5):
    return MembershipRegistry(db.session, code_generator=iter(codes).__next__, max_code_attempts=attempts)


def test_creator_is_first_member_and_admin(community, alice):
    assert community.members == [alice.id]
    assert community.admins == [alice.id]
    assert community.poll_count == 0
    assert len(community.join_code) == 8
    # creator's email first, then the extra authority addresses
    assert community.authority_emails == ["alice@example.com", "council@example.gov"]


def test_title_and_description_limits(services, alice):
    with pytest.raises(ValidationError):
        services.registry.create_community("   ", "", alice)
    with pytest.raises(ValidationError):
        services.registry.create_community("x" * 101, "", alice)
    with pytest.raises(ValidationError):
        services.registry.create_community("Ok", "d" * 501, alice)


def test_authority_emails_are_lowercased_and_deduplicated(services, alice):
    c = services.registry.create_community(
        "Dedup", "", alice, authority_emails=["Alice@Example.com", "Mayor@Town.gov", "mayor@town.gov"]
    )
    assert c.authority_emails == ["alice@example.com", "mayor@town.gov"]


def test_forced_collisions_retry_until_a_free_code(app, alice, bob):
    first = _registry(["AAAA2222"]).create_community("First", "", alice)
    second = _registry(["AAAA2222", "aaaa-2222", "BBBB3333"]).create_community("Second", "", bob)

    assert first.join_code == "AAAA2222"
    assert second.join_code == "BBBB3333"


def test_exhausting_code_attempts_raises(app, alice, bob):
    _registry(["CCCC4444"]).create_community("Taken", "", alice)

    with pytest.raises(CodeGenerationExhaustedError) as exc:
        _registry(["CCCC4444"] * 3, attempts=3).create_community("Unlucky", "", bob)
    assert exc.value.details == {"attempts": 3}


def test_join_is_case_and_separator_insensitive(app, alice, bob, carol):
    registry = _registry(["AB12CD34"])
    registry.create_community("Codes", "", alice)

    joined = registry.join_by_code("ab-12-cd-34", bob)
    assert bob.id in joined.members
    assert registry.find_by_code("AB12CD34").id == joined.id
    assert registry.find_by_code("ab12-cd34").id == joined.id

    joined = registry.join_by_code("AB12CD34", carol)
    assert joined.members == [alice.id, bob.id, carol.id]
    assert joined.admins == [alice.id]


def test_joining_adds_member_email_to_authorities(services, community, bob, carol):
    joined = services.registry.join_by_code(community.join_code, bob)
    assert "bob@example.com" in joined.authority_emails

    # no email claim, nothing added
    before = list(joined.authority_emails)
    joined = services.registry.join_by_code(community.join_code, carol)
    assert joined.authority_emails == before


def test_join_twice_is_rejected(services, community, bob):
    services.registry.join_by_code(community.join_code, bob)
    with pytest.raises(AlreadyMemberError):
        services.registry.join_by_code(community.join_code, bob)
    assert services.registry.get_community(community.id).members.count(bob.id) == 1


def test_join_unknown_code(services, community, bob):
    with pytest.raises(NotFoundError):
        services.registry.join_by_code("ZZZZ-9999", bob)


def test_list_user_communities(services, community, alice, bob):
    other = services.registry.create_community("Book club", "", bob)

    assert [c.id for c in services.registry.list_user_communities(alice.id)] == [community.id]
    services.registry.join_by_code(other.join_code, alice)
    assert {c.id for c in services.registry.list_user_communities(alice.id)} == {community.id, other.id}


def test_get_missing_community(services):
    with pytest.raises(NotFoundError):
        services.registry.get_community("nope")
