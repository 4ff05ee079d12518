"""Tests for the subscription tier tables."""

from bookclub.config.tiers import (
    UNLIMITED,
    get_chat_limits,
    get_subscription_features,
    get_tier_limits,
    limits_to_dict,
    normalize_tier,
    tier_at_least,
)


class TestTierLookups:
    """Tests for tier limit and feature lookups."""

    def test_free_limits(self):
        """Free tier limits match the table."""
        limits = get_tier_limits("free")
        assert limits.diary_books == 2
        assert limits.max_booklist_size == 50

    def test_pro_is_unlimited(self):
        """Pro has no resource limits."""
        assert get_tier_limits("pro").diary_books is None
        assert get_chat_limits("pro").max_active_chats == UNLIMITED

    def test_premium_chat_limits(self):
        """Premium chat limits match the table."""
        limits = get_chat_limits("premium")
        assert (limits.max_active_chats, limits.max_messages_per_day, limits.video_enabled) == (10, 100, True)

    def test_unknown_tier_falls_back_to_free(self):
        """An unknown tier gets the free limits."""
        assert normalize_tier("platinum") == "free"
        assert normalize_tier(None) == "free"
        assert get_tier_limits("platinum") == get_tier_limits("free")

    def test_features_are_copies(self):
        """Changing a returned feature table leaves the source intact."""
        features = get_subscription_features("free")
        features["ad_free"] = True
        assert get_subscription_features("free")["ad_free"] is False

    def test_tier_ordering(self):
        """Tiers compare as free, premium, pro."""
        assert tier_at_least("pro", "premium")
        assert tier_at_least("premium", "premium")
        assert not tier_at_least("free", "premium")

    def test_limits_to_dict(self):
        """Chat limits convert to a plain dict."""
        assert limits_to_dict(get_chat_limits("free")) == {
            "max_active_chats": 2,
            "max_messages_per_day": 20,
            "video_enabled": False,
        }
