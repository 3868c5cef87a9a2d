from allocator.preference_patterns import analyze_preference_patterns, bucket_for_order, rank_weight

from conftest import make_submission


class TestBuckets:

    def test_bucket_boundaries(self):
        assert bucket_for_order(1) == "top50"
        assert bucket_for_order(50) == "top50"
        assert bucket_for_order(51) == "orders51_100"
        assert bucket_for_order(100) == "orders51_100"
        assert bucket_for_order(101) == "orders101_200"
        assert bucket_for_order(300) == "orders201_300"
        assert bucket_for_order(301) == "orders301_plus"
        assert bucket_for_order(5000) == "orders301_plus"

    def test_non_positive_orders_map_to_first_bucket(self):
        assert bucket_for_order(0) == "top50"
        assert bucket_for_order(-4) == "top50"

    def test_rank_weight(self):
        assert rank_weight(0) == 10
        assert rank_weight(9) == 1
        assert rank_weight(10) == 0
        assert rank_weight(25) == 0


class TestAnalyzePreferencePatterns:

    def test_weighted_popularity(self):
        subs = [
            make_submission("u1", 1, ["A", "B"]),
            make_submission("u2", 2, ["B", "C"]),
        ]
        profile = analyze_preference_patterns(subs)

        assert profile.item_weights["top50"] == {"B": 19, "A": 10, "C": 9}
        assert profile.popular_items["top50"] == ["B", "A", "C"]
        assert profile.users_per_bucket == {"top50": 2}

    def test_equal_weights_keep_first_seen_order(self):
        subs = [
            make_submission("u1", 1, ["X"]),
            make_submission("u2", 2, ["Y"]),
        ]
        assert analyze_preference_patterns(subs).popular_items["top50"] == ["X", "Y"]

    def test_users_are_grouped_by_bucket(self):
        subs = [
            make_submission("u1", 3, ["A"]),
            make_submission("u2", 75, ["B"]),
            make_submission("u3", 400, ["C"]),
        ]
        profile = analyze_preference_patterns(subs)

        assert profile.popular_items == {"top50": ["A"], "orders51_100": ["B"], "orders301_plus": ["C"]}
        assert "orders101_200" not in profile.popular_items

    def test_non_positive_orders_are_not_analyzed(self):
        subs = [
            make_submission("u1", 0, ["A"]),
            make_submission("u2", -2, ["B"]),
        ]
        assert analyze_preference_patterns(subs).popular_items == {}

    def test_popular_set_is_capped(self):
        subs = [make_submission("u1", 1, [str(i) for i in range(30)])]
        profile = analyze_preference_patterns(subs, popular_set_size=5)

        assert profile.popular_items["top50"] == ["0", "1", "2", "3", "4"]

    def test_popular_for_order(self):
        subs = [make_submission("u1", 60, ["A", "B"])]
        profile = analyze_preference_patterns(subs)

        assert profile.popular_for_order(99) == ["A", "B"]
        assert profile.popular_for_order(10) == []

    def test_profile_dataframe(self):
        subs = [
            make_submission("u1", 1, ["A", "B"]),
            make_submission("u2", 2, ["B", "C"]),
        ]
        df = analyze_preference_patterns(subs).to_dataframe()

        assert list(df.columns) == ["bucket", "rank", "item_id", "weight", "users_in_bucket"]
        assert df["item_id"].tolist() == ["B", "A", "C"]
        assert df["rank"].tolist() == [1, 2, 3]
        assert df["weight"].tolist() == [19, 10, 9]
        assert set(df["users_in_bucket"]) == {2}

    def test_empty_profile_dataframe(self):
        df = analyze_preference_patterns([]).to_dataframe()
        assert df.empty
