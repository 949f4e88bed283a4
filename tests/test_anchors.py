"""
Reset Anchor Policies - Truth Tables
====================================
Checks which reset change each policy picks as the alignment anchor.

Changes are fed as (time, identifier, value) tuples, exactly as
Document.iter_changes() produces them.
"""

import os
import sys
import pytest

# Setup path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from vcdmerge.anchors import (DEFAULT_POLICY, EdgeAnchor, FirstChangeAnchor,
                              canonical_value, logic_level, policy_from_name)


@pytest.mark.parametrize("value, expected", [
    ("1", "1"),
    ("x", "x"),
    ("b0001", "b1"),
    ("b0000", "b0"),
    ("b1x", "b1x"),
    ("b0x", "b0x"),
    ("b000z1", "b0z1"),
    ("bx", "bx"),
    ("bxx1", "bx1"),
    ("bzzz", "bz"),
    ("bX", "bx"),
    ("r0.5", "r0.5"),
])
def test_canonical_value(value, expected):
    assert canonical_value(value) == expected


def test_left_extension_keeps_x_and_zero_apart():
    # b0x is 0...0x, bx is x...x
    assert canonical_value("b0x") != canonical_value("bx")
    assert canonical_value("b0z") != canonical_value("bz")


@pytest.mark.parametrize("value, expected", [
    ("0", "0"), ("1", "1"), ("x", "x"), ("z", "z"),
    ("b0000", "0"), ("b0100", "1"), ("b01x0", "x"), ("bzz", "z"),
    ("r0", "0"), ("r0.0", "0"), ("r-1.5", "1"), ("rnope", "x"),
])
def test_logic_level(value, expected):
    assert logic_level(value) == expected


# ---- first-change ----

def test_default_policy_is_first_change():
    assert isinstance(DEFAULT_POLICY, FirstChangeAnchor)
    assert DEFAULT_POLICY.name == "first-change"


def test_first_change_after_initial_value():
    changes = [(0, "!", "0"), (10, "!", "1"), (30, "!", "0")]
    assert FirstChangeAnchor().find_anchor(changes) == 10


def test_first_change_ignores_rewrites_of_initial_value():
    changes = [(0, "!", "1"), (4, "!", "1"), (9, "!", "0")]
    assert FirstChangeAnchor().find_anchor(changes) == 9


def test_first_change_unset_signal_starts_unknown():
    # no value at time 0: the first assignment differs from 'x'
    changes = [(12, "!", "0"), (20, "!", "1")]
    assert FirstChangeAnchor().find_anchor(changes) == 12


def test_first_change_never_changes():
    assert FirstChangeAnchor().find_anchor([(0, "!", "0")]) is None
    assert FirstChangeAnchor().find_anchor([]) is None


def test_first_change_vector_spelling():
    changes = [(0, "v", "b0001"), (3, "v", "b1"), (8, "v", "b0")]
    assert FirstChangeAnchor().find_anchor(changes) == 8


def test_first_change_multiple_declarations():
    # two declarations of the reset; each compared to its own initial value
    changes = [(0, "a", "0"), (0, "b", "1"), (5, "b", "1"), (7, "a", "0"), (9, "b", "0")]
    assert FirstChangeAnchor().find_anchor(changes) == 9


def test_first_change_late_dump_is_initial_value():
    # dump switched on at #1000: its 0 is the initial value, not the anchor
    changes = [(1000, "!", "0"), (1050, "!", "1")]
    assert FirstChangeAnchor().find_anchor(changes, start=1000) == 1050
    assert EdgeAnchor("rise").find_anchor(changes, start=1000) == 1050


def test_first_change_late_dump_without_reset_value():
    # reset missing from the initial dump still starts as 'x'
    changes = [(1050, "!", "0"), (1080, "!", "1")]
    assert FirstChangeAnchor().find_anchor(changes, start=1000) == 1050


def test_first_change_vector_x_is_not_its_zero_spelling():
    changes = [(0, "v", "b0x"), (4, "v", "bx")]
    assert FirstChangeAnchor().find_anchor(changes) == 4


# ---- edges ----

PULSES = [(0, "!", "0"), (10, "!", "1"), (20, "!", "0"), (30, "!", "1"), (40, "!", "0")]


@pytest.mark.parametrize("direction, occurrence, expected", [
    ("rise", 1, 10),
    ("rise", 2, 30),
    ("rise", 3, None),
    ("rise", -1, 30),
    ("rise", -2, 10),
    ("rise", -3, None),
    ("fall", 1, 20),
    ("fall", -1, 40),
])
def test_edge_anchor_table(direction, occurrence, expected):
    assert EdgeAnchor(direction, occurrence).find_anchor(PULSES) == expected


def test_initial_value_is_not_an_edge():
    changes = [(0, "!", "1"), (5, "!", "0")]
    assert EdgeAnchor("rise").find_anchor(changes) is None
    assert EdgeAnchor("fall").find_anchor(changes) == 5


def test_x_to_one_is_a_rising_edge():
    changes = [(0, "!", "x"), (6, "!", "1")]
    assert EdgeAnchor("rise").find_anchor(changes) == 6


def test_repeated_level_is_not_an_edge():
    changes = [(0, "!", "0"), (2, "!", "1"), (4, "!", "1")]
    assert EdgeAnchor("rise").edges(changes) == [2]


@pytest.mark.parametrize("direction, occurrence", [("up", 1), ("rise", 0)])
def test_edge_anchor_rejects_bad_arguments(direction, occurrence):
    with pytest.raises(ValueError):
        EdgeAnchor(direction, occurrence)


def test_policy_from_name():
    assert isinstance(policy_from_name("first-change"), FirstChangeAnchor)
    fall = policy_from_name("fall", -1)
    assert isinstance(fall, EdgeAnchor)
    assert (fall.direction, fall.occurrence) == ("fall", -1)
    with pytest.raises(ValueError):
        policy_from_name("last-edge")


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
