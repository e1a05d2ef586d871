"""Shared fixtures for parlay engine tests."""

import pytest

from parlay_engine.schema import Leg


@pytest.fixture
def unrelated_legs():
    """Two -110 legs on different players in different games."""
    return [
        Leg(description="Jayson Tatum Over 27.5 Points", odds=-110,
            player_name="Jayson Tatum", prop_type="points", side="over", event_id="BOS-MIA", sport="NBA"),
        Leg(description="Luka Doncic Over 8.5 Assists", odds=-110,
            player_name="Luka Doncic", prop_type="assists", side="over", event_id="DAL-PHX", sport="NBA"),
    ]


@pytest.fixture
def same_player_legs():
    """Points, rebounds and assists overs for one player in one game."""
    return [
        Leg(description="Nikola Jokic Over 26.5 Points", odds=-110,
            player_name="Nikola Jokic", prop_type="points", side="over", event_id="DEN-LAL", sport="NBA"),
        Leg(description="Nikola Jokic Over 12.5 Rebounds", odds=-110,
            player_name="Nikola Jokic", prop_type="rebounds", side="over", event_id="DEN-LAL", sport="NBA"),
        Leg(description="Nikola Jokic Over 9.5 Assists", odds=-110,
            player_name="Nikola Jokic", prop_type="assists", side="over", event_id="DEN-LAL", sport="NBA"),
    ]


@pytest.fixture
def same_game_legs():
    """Pace-driven props on opposing players in the same game."""
    return [
        Leg(description="Anthony Edwards Over 26.5 Points", odds=-115,
            player_name="Anthony Edwards", prop_type="points", side="over", team="MIN", event_id="MIN-OKC"),
        Leg(description="Shai Gilgeous-Alexander Over 30.5 Points", odds=-105,
            player_name="Shai Gilgeous-Alexander", prop_type="points", side="over", team="OKC", event_id="MIN-OKC"),
    ]
