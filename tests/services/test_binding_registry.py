from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import RoleSyncError, SocialIdentityConflict, WalletConflict
from app.models.verification import Binding
from app.services import binding_registry
from app.services.binding_registry import try_bind

WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
D1 = "100000000000000001"
D2 = "100000000000000002"
NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def snapshot(db):
    return sorted(
        (b.discord_id, b.discord_username, b.fid, b.wallet, b.nft_balance)
        for b in db.query(Binding).all()
    )


class TestTryBind:
    """Test cases for creating and updating bindings"""

    def test_creates_binding_and_grants_role(self, db_session, grant_role):
        """Scenario: wallet A with balance 2 and fid 42 -> binding created, role granted"""
        binding = try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=grant_role, now=NOW)
        assert binding.discord_id == D1
        assert binding.fid == 42
        assert binding.wallet == WALLET_A
        assert binding.nft_balance == 2
        assert grant_role.calls == [D1]

    def test_wallet_stored_lowercase(self, db_session, grant_role):
        binding = try_bind(db_session, D1, None, "0x" + "A" * 40, 1, "alice", grant_role=grant_role)
        assert binding.wallet == WALLET_A

    def test_idempotent_for_identical_arguments(self, db_session, grant_role):
        try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=grant_role, now=NOW)
        first = snapshot(db_session)
        try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=grant_role, now=NOW)
        assert snapshot(db_session) == first
        assert binding_registry.count_bindings(db_session) == 1

    def test_rebind_overwrites_existing_binding(self, db_session, grant_role):
        """Same account re-verifying with another wallet replaces its binding"""
        try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=grant_role, now=NOW)
        later = NOW + timedelta(hours=1)
        binding = try_bind(db_session, D1, 42, WALLET_B, 5, "alice2", grant_role=grant_role, now=later)
        assert binding_registry.count_bindings(db_session) == 1
        assert binding.wallet == WALLET_B
        assert binding.nft_balance == 5
        assert binding.discord_username == "alice2"

    def test_social_identity_conflict_names_existing_account(self, db_session, grant_role):
        """Scenario: fid 42 bound to D1, D2 tries the same fid -> conflict naming D1"""
        try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=grant_role)
        before = snapshot(db_session)

        with pytest.raises(SocialIdentityConflict) as exc_info:
            try_bind(db_session, D2, 42, WALLET_B, 1, "bob", grant_role=grant_role)

        assert exc_info.value.existing_discord_id == D1
        assert exc_info.value.existing_username == "alice"
        assert "alice" in str(exc_info.value)
        assert binding_registry.get_binding_by_discord(db_session, D2) is None
        assert snapshot(db_session) == before
        assert grant_role.calls == [D1]

    def test_wallet_conflict(self, db_session, grant_role):
        try_bind(db_session, D1, None, WALLET_A, 2, "alice", grant_role=grant_role)
        with pytest.raises(WalletConflict) as exc_info:
            try_bind(db_session, D2, None, "0x" + "A" * 40, 2, "bob", grant_role=grant_role)
        assert exc_info.value.existing_username == "alice"
        assert grant_role.calls == [D1]

    def test_bindings_without_fid_do_not_collide(self, db_session, grant_role):
        """A missing social identity is never a conflict"""
        try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role)
        try_bind(db_session, D2, None, WALLET_B, 1, "bob", grant_role=grant_role)
        assert binding_registry.count_bindings(db_session) == 2

    def test_role_failure_persists_nothing(self, db_session, failing_role):
        with pytest.raises(RoleSyncError):
            try_bind(db_session, D1, 42, WALLET_A, 2, "alice", grant_role=failing_role)
        assert binding_registry.count_bindings(db_session) == 0

    def test_uniqueness_holds_after_many_attempts(self, db_session, grant_role):
        attempts = [
            (D1, 1, WALLET_A),
            (D2, 1, WALLET_B),
            (D2, 2, WALLET_A),
            (D2, 2, WALLET_B),
            (D1, 3, WALLET_A),
        ]
        for discord_id, fid, wallet in attempts:
            try:
                try_bind(db_session, discord_id, fid, wallet, 1, discord_id, grant_role=grant_role)
            except (SocialIdentityConflict, WalletConflict):
                pass

        rows = db_session.query(Binding).all()
        fids = [b.fid for b in rows if b.fid is not None]
        wallets = [b.wallet for b in rows]
        assert len(fids) == len(set(fids))
        assert len(wallets) == len(set(wallets))

    def test_lost_race_reports_conflict_and_revokes(self, db_session, revoke_role):
        """Another account claims the wallet between the read check and the commit"""

        def grant_while_someone_else_binds(discord_id):
            db_session.add(
                Binding(
                    discord_id=D1,
                    discord_username="alice",
                    fid=None,
                    wallet=WALLET_A,
                    nft_balance=1,
                    verified_at=NOW,
                    last_checked=NOW,
                )
            )
            db_session.commit()

        with pytest.raises(WalletConflict) as exc_info:
            try_bind(
                db_session,
                D2,
                None,
                WALLET_A,
                1,
                "bob",
                grant_role=grant_while_someone_else_binds,
                revoke_role=revoke_role,
            )

        assert exc_info.value.existing_discord_id == D1
        assert revoke_role.calls == [D2]
        assert binding_registry.get_binding_by_discord(db_session, D2) is None
        assert binding_registry.get_binding_by_wallet(db_session, WALLET_A).discord_id == D1


class TestRegistryQueries:
    """Test cases for registry reads and maintenance writes"""

    def test_list_stale_bindings_oldest_first(self, db_session, grant_role):
        try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role, now=NOW - timedelta(days=3))
        try_bind(db_session, D2, None, WALLET_B, 1, "bob", grant_role=grant_role, now=NOW - timedelta(days=5))

        stale = binding_registry.list_stale_bindings(db_session, 24 * 3600, 100, now=NOW)
        assert [b.discord_id for b in stale] == [D2, D1]

        assert binding_registry.list_stale_bindings(db_session, 24 * 3600, 1, now=NOW)[0].discord_id == D2
        assert binding_registry.list_stale_bindings(db_session, 4 * 24 * 3600, 100, now=NOW)[0].discord_id == D2
        assert len(binding_registry.list_stale_bindings(db_session, 4 * 24 * 3600, 100, now=NOW)) == 1

    def test_fresh_binding_is_not_stale(self, db_session, grant_role):
        try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role, now=NOW - timedelta(hours=2))
        assert binding_registry.list_stale_bindings(db_session, 24 * 3600, 100, now=NOW) == []

    def test_update_balance_keeps_wallet(self, db_session, grant_role):
        binding = try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role, now=NOW)
        binding_registry.update_balance(db_session, binding, 4, now=NOW + timedelta(days=1))
        refreshed = binding_registry.get_binding_by_discord(db_session, D1)
        assert refreshed.nft_balance == 4
        assert refreshed.wallet == WALLET_A

    def test_delete_binding(self, db_session, grant_role):
        try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role)
        assert binding_registry.delete_binding(db_session, D1) is True
        assert binding_registry.delete_binding(db_session, D1) is False
        assert binding_registry.count_bindings(db_session) == 0

    def test_list_top_holders(self, db_session, grant_role):
        try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=grant_role)
        try_bind(db_session, D2, None, WALLET_B, 6, "bob", grant_role=grant_role)
        assert [b.discord_id for b in binding_registry.list_top_holders(db_session, 10)] == [D2, D1]
