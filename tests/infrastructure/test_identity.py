"""Tests for the identity stream."""

from __future__ import annotations

from loopsync.infrastructure.identity import Identity, IdentityStream


class TestIdentityStream:
    def test_subscribe_receives_current_immediately(self) -> None:
        stream = IdentityStream(Identity(uid="alice"))
        seen: list[Identity | None] = []
        stream.subscribe(seen.append)
        assert seen == [Identity(uid="alice")]

    def test_emit_and_unsubscribe(self, identities: IdentityStream) -> None:
        seen: list[str | None] = []
        unsubscribe = identities.subscribe(lambda i: seen.append(i.uid if i else None))
        identities.sign_in("alice", display_name="Alice")
        identities.sign_out()
        unsubscribe()
        identities.sign_in("bob")
        assert seen == [None, "alice", None]
        assert identities.current == Identity(uid="bob")

    def test_identity_equality_by_value(self) -> None:
        assert Identity(uid="a") == Identity(uid="a")
        assert Identity(uid="a") != Identity(uid="a", anonymous=True)
