"""Tests for SessionService: login, authorize, refresh, logout."""

import pytest

from core import get_event_log
from core.errors import CredentialExpired, InvalidCredential, MissingCredential


class TestLogin:
    def test_login_issues_and_persists(self, sessions, store, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id, owner.username)
        assert store.get_for_owner(owner.id) == bundle
        assert sessions.current_bundle(owner.id) == bundle

    def test_second_login_invalidates_first(self, sessions, make_owner):
        owner = make_owner()
        first = sessions.login(owner.id)
        second = sessions.login(owner.id)

        with pytest.raises(InvalidCredential):
            sessions.authorize(first.access_secret, first.anti_forgery_secret)
        with pytest.raises(InvalidCredential):
            sessions.refresh(first.refresh_secret, owner.id)
        assert sessions.authorize(second.access_secret, second.anti_forgery_secret) == owner.id

    def test_login_is_audited_without_secrets(self, sessions, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id, owner.username)
        events = get_event_log(action="login")
        assert len(events) == 1
        assert events[0]["user"] == owner.username
        for secret in (bundle.access_secret, bundle.refresh_secret, bundle.anti_forgery_secret):
            assert secret not in str(events[0])


class TestRefresh:
    def test_refresh_rotates(self, sessions, make_owner, clock):
        owner = make_owner()
        original = sessions.login(owner.id)
        clock.advance(60)
        new = sessions.refresh(original.refresh_secret, owner.id)

        assert new.refresh_secret == original.refresh_secret
        assert sessions.authorize(new.access_secret, new.anti_forgery_secret) == owner.id

    def test_rejected_refresh_is_audited(self, sessions, make_owner):
        owner = make_owner()
        sessions.login(owner.id)
        with pytest.raises(InvalidCredential):
            sessions.refresh("bogus", owner.id, owner.username)
        events = get_event_log(action="refresh")
        assert events[0]["status"] == "failed"


class TestAuthorize:
    def test_expired(self, sessions, make_owner, clock):
        owner = make_owner()
        bundle = sessions.login(owner.id)
        clock.advance(15 * 60)
        with pytest.raises(CredentialExpired):
            sessions.authorize(bundle.access_secret, bundle.anti_forgery_secret)

    def test_rejection_is_audited(self, sessions, make_owner, clock):
        owner = make_owner()
        bundle = sessions.login(owner.id)
        clock.advance(15 * 60)
        with pytest.raises(CredentialExpired):
            sessions.authorize(bundle.access_secret, bundle.anti_forgery_secret)
        event = get_event_log(action="authorize")[0]
        assert event["status"] == "failed"
        assert event["details"] == "credentials rejected: CredentialExpired"
        assert bundle.access_secret not in str(event)

    def test_success_is_not_audited(self, sessions, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id)
        sessions.authorize(bundle.access_secret, bundle.anti_forgery_secret)
        assert get_event_log(action="authorize") == []


class TestLogout:
    def test_logout_deletes_bundle(self, sessions, store, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id)

        assert sessions.logout(bundle.access_secret, bundle.anti_forgery_secret) == owner.id
        assert store.get_for_owner(owner.id) is None
        with pytest.raises(InvalidCredential):
            sessions.authorize(bundle.access_secret, bundle.anti_forgery_secret)
        with pytest.raises(InvalidCredential):
            sessions.refresh(bundle.refresh_secret, owner.id)

    def test_logout_requires_both_secrets(self, sessions, store, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id)
        with pytest.raises(MissingCredential):
            sessions.logout(bundle.access_secret, "")
        assert store.get_for_owner(owner.id) == bundle

    def test_logout_with_wrong_anti_forgery_keeps_bundle(self, sessions, store, make_owner):
        owner = make_owner()
        bundle = sessions.login(owner.id)
        with pytest.raises(InvalidCredential):
            sessions.logout(bundle.access_secret, "wrong")
        assert store.get_for_owner(owner.id) == bundle
        assert get_event_log(action="logout")[0]["status"] == "failed"

    def test_logout_only_affects_caller(self, sessions, make_owner):
        alice, bob = make_owner(), make_owner()
        a = sessions.login(alice.id)
        b = sessions.login(bob.id)
        sessions.logout(a.access_secret, a.anti_forgery_secret)
        assert sessions.authorize(b.access_secret, b.anti_forgery_secret) == bob.id
