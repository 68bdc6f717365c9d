"""Tests for the pulse data model."""

from datetime import datetime, timezone

import pytest

from codestats_client.core.events import Pulse, PulseSealedError

NOW = datetime(2023, 1, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2023, 1, 1, 12, 5, tzinfo=timezone.utc)


def test_create_starts_open_and_empty():
    pulse = Pulse.create(NOW)

    assert pulse.started_at == NOW
    assert pulse.sealed_at is None
    assert pulse.experience == {}
    assert not pulse.is_sealed


def test_add_creates_and_increments_entries():
    pulse = Pulse.create(NOW)

    pulse.add("Python", 1)
    pulse.add("Python", 1)
    pulse.add("Rust", 5)

    assert pulse.experience == {"Python": 2, "Rust": 5}
    assert pulse.total_experience() == 7


def test_add_preserves_insertion_order():
    pulse = Pulse.create(NOW)

    for language in ["Go", "Elixir", "Go", "Ada"]:
        pulse.add(language)

    assert list(pulse.experience) == ["Go", "Elixir", "Ada"]


@pytest.mark.parametrize("amount", [0, -1, 1.5, True])
def test_add_rejects_non_positive_integers(amount):
    pulse = Pulse.create(NOW)

    with pytest.raises(ValueError):
        pulse.add("Python", amount)

    assert pulse.experience == {}


@pytest.mark.parametrize("category", ["", None])
def test_add_rejects_empty_category(category):
    pulse = Pulse.create(NOW)

    with pytest.raises(ValueError):
        pulse.add(category, 3)

    assert pulse.experience == {}


def test_seal_sets_timestamp_once():
    pulse = Pulse.create(NOW)
    pulse.add("Python", 3)

    sealed = pulse.seal(LATER)

    assert sealed is pulse
    assert pulse.sealed_at == LATER

    with pytest.raises(PulseSealedError):
        pulse.seal(LATER)


def test_sealed_pulse_rejects_experience():
    pulse = Pulse.create(NOW)
    pulse.add("Python", 3)
    pulse.seal(LATER)

    with pytest.raises(PulseSealedError):
        pulse.add("Python", 1)

    assert pulse.experience == {"Python": 3}


def test_total_experience_of_empty_pulse_is_zero():
    assert Pulse.create(NOW).total_experience() == 0
