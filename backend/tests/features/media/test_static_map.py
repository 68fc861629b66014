"""
Tests for the static map thumbnail URL builder.
"""

from routedrafts.features.media import build_static_map_url, sample_points


class TestSamplePoints:
    """Tests for sample_points."""

    def test_short_input_unchanged(self):
        coords = [[0, 0], [1, 1]]
        assert sample_points(coords, 100) == coords

    def test_keeps_first_and_last(self):
        coords = [[i, i] for i in range(1000)]
        sampled = sample_points(coords, 100)
        assert len(sampled) == 100
        assert sampled[0] == [0, 0]
        assert sampled[-1] == [999, 999]


class TestBuildStaticMapUrl:
    """Tests for build_static_map_url."""

    def test_path_overlay(self):
        url = build_static_map_url(
            [{"coordinates": [[7.0, 46.0, 500], [7.5, 46.25]], "color": "#00ff00"}],
            width=400,
            height=300,
            style="outdoors-v12",
            token="tok",
        )
        assert "/outdoors-v12/static/path-3+00ff00-0.9(7.00000,46.00000,7.50000,46.25000)/auto/" in url
        assert url.endswith("/400x300@2x?access_token=tok")

    def test_default_color(self):
        url = build_static_map_url([{"coordinates": [[7.0, 46.0], [7.1, 46.1]]}], token="")
        assert "path-3+ee5253-0.9(" in url

    def test_only_first_segment_drawn(self):
        url = build_static_map_url(
            [
                {"coordinates": [[7.0, 46.0], [7.1, 46.1]]},
                {"coordinates": [[9.0, 48.0], [9.1, 48.1]]},
            ],
            token="",
        )
        assert "9.00000" not in url

    def test_placeholder_without_geometry(self):
        url = build_static_map_url([], width=200, height=100, token="t")
        assert "/static/0,0,1,0/200x100@2x?access_token=t" in url
