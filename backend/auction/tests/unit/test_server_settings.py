import pytest
from pydantic import ValidationError

from auction.server.settings import AuctionServerSettings


class TestAuctionServerSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AUCTION_MAX_ROOMS", raising=False)
        monkeypatch.delenv("AUCTION_PLAYER_POOL_PATH", raising=False)
        settings = AuctionServerSettings()
        assert settings.max_rooms == 100
        assert settings.player_pool_path == "backend/data/players.json"

    def test_values_read_with_prefix(self, monkeypatch):
        monkeypatch.setenv("AUCTION_MAX_ROOMS", "7")
        monkeypatch.setenv("AUCTION_PLAYER_POOL_PATH", "/tmp/pool.json")
        settings = AuctionServerSettings()
        assert settings.max_rooms == 7
        assert settings.player_pool_path == "/tmp/pool.json"

    def test_cors_origins_json_array(self, monkeypatch):
        monkeypatch.setenv("AUCTION_CORS_ORIGINS", '["http://a.com","http://b.com"]')
        assert AuctionServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_csv(self, monkeypatch):
        monkeypatch.setenv("AUCTION_CORS_ORIGINS", "http://a.com, http://b.com")
        assert AuctionServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_cors_origins_empty_rejected(self, monkeypatch):
        monkeypatch.setenv("AUCTION_CORS_ORIGINS", "")
        with pytest.raises(ValidationError, match="cors_origins"):
            AuctionServerSettings()

    @pytest.mark.parametrize("value", [0, -1])
    def test_max_rooms_must_be_positive(self, value):
        with pytest.raises(ValidationError, match="max_rooms"):
            AuctionServerSettings(max_rooms=value)

    def test_log_dir_empty_rejected(self):
        with pytest.raises(ValidationError, match="log_dir"):
            AuctionServerSettings(log_dir="")
