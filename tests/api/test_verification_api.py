from unittest.mock import patch

from app.core.errors import SocialGraphError
from app.services import binding_registry
from app.services.trust_score import SocialProfile

WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
D1 = "100000000000000001"
D2 = "100000000000000002"


def no_role(_discord_id):
    return None


class TestVerificationStatusAPI:
    """Test cases for the /api/verification/{discord_id} endpoint"""

    def test_unverified_account(self, client):
        response = client.get(f"/api/verification/{D1}")
        assert response.status_code == 200
        assert response.json()["verified"] is False

    def test_verified_account(self, client, db_session):
        binding_registry.try_bind(db_session, D1, 42, WALLET_A, 3, "alice", grant_role=no_role)

        response = client.get(f"/api/verification/{D1}")

        assert response.status_code == 200
        data = response.json()
        assert data["verified"] is True
        assert data["fid"] == 42
        assert data["wallet"] == WALLET_A
        assert data["discord_username"] == "alice"
        assert data["nft_balance"] == 3
        assert data["verified_at"] is not None
        assert data["last_checked"] is not None

    def test_invalid_discord_id(self, client):
        response = client.get("/api/verification/not-an-id")
        assert response.status_code == 400


class TestTrustScoreAPI:
    """Test cases for the /api/verification/{discord_id}/trust endpoint"""

    @patch("app.services.neynar.get_social_profile")
    def test_trust_score(self, mock_profile, client, db_session):
        binding_registry.try_bind(db_session, D1, 42, WALLET_A, 1, "alice", grant_role=no_role)
        mock_profile.return_value = SocialProfile(follower_count=10, verified_address_count=1)

        response = client.get(f"/api/verification/{D1}/trust")

        assert response.status_code == 200
        assert response.json() == {"discord_id": D1, "fid": 42, "score": 20, "label": "Low Trust"}
        mock_profile.assert_called_once_with(42)

    def test_not_verified(self, client):
        assert client.get(f"/api/verification/{D1}/trust").status_code == 404

    def test_wallet_only_binding_has_no_score(self, client, db_session):
        binding_registry.try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=no_role)
        assert client.get(f"/api/verification/{D1}/trust").status_code == 404

    @patch("app.services.neynar.get_social_profile")
    def test_social_graph_down(self, mock_profile, client, db_session):
        binding_registry.try_bind(db_session, D1, 42, WALLET_A, 1, "alice", grant_role=no_role)
        mock_profile.side_effect = SocialGraphError("neynar down")
        assert client.get(f"/api/verification/{D1}/trust").status_code == 502


class TestStatsAPI:
    """Test cases for /api/stats and /api/leaderboard"""

    def test_stats(self, client, db_session):
        binding_registry.try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=no_role)
        binding_registry.try_bind(db_session, D2, None, WALLET_B, 4, "bob", grant_role=no_role)

        response = client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {"verified_holders": 2}

    def test_leaderboard(self, client, db_session):
        binding_registry.try_bind(db_session, D1, None, WALLET_A, 1, "alice", grant_role=no_role)
        binding_registry.try_bind(db_session, D2, None, WALLET_B, 4, "bob", grant_role=no_role)

        response = client.get("/api/leaderboard", params={"limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["holders"] == [
            {"rank": 1, "discord_id": D2, "discord_username": "bob", "nft_balance": 4}
        ]

    def test_leaderboard_limit_bounds(self, client):
        assert client.get("/api/leaderboard", params={"limit": 0}).status_code == 422
        assert client.get("/api/leaderboard", params={"limit": 101}).status_code == 422
