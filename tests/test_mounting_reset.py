"""Mounting reset over all canonical mounting and reference directions.

Head rotation does not get reset; the tracker is given a pitch toward its
mounting direction and the resulting mounting yaw must match it.
"""

import math

import numpy as np
import pytest

from trackercal.control.tracker import Tracker
from trackercal.math3d.angles import angles_approx_equal, yaw_rad
from trackercal.math3d.directions import BACK_LEFT, DIRECTION_NAMES, RIGHT, direction_q
from trackercal.math3d.quaternion import (
    euler_yzx_to_q,
    identity,
    q_inv,
    q_mul,
    q_mul_all,
)

FRONT_ROT = euler_yzx_to_q(math.pi / 2.0, 0.0, 0.0)
TOL = 1e-3

DIRECTION_PAIRS = [(e, m) for e in DIRECTION_NAMES for m in DIRECTION_NAMES]


def _tracker_rot(expected):
    # Pitch/roll of a tracker mounted toward `expected` after bending forward.
    return q_mul_all(expected, FRONT_ROT, q_inv(expected))


def _assert_mounting_yaw(tracker: Tracker, expected, what: str) -> None:
    expected_yaw = yaw_rad(expected)
    result_yaw = yaw_rad(tracker.calibration.mount_rot_fix)
    assert angles_approx_equal(expected_yaw, result_yaw, TOL), (
        f"mounting yaw after {what} is not equal to expected yaw "
        f"({math.degrees(expected_yaw):.2f} vs {math.degrees(result_yaw):.2f})"
    )


def _fresh_tracker() -> Tracker:
    return Tracker("test")


def _full_reset_sequence(tracker, expected, reference):
    tracker_rot = _tracker_rot(expected)
    tracker.set_raw_rotation(identity())
    tracker.reset_full(identity())
    tracker.set_raw_rotation(tracker_rot)
    tracker.reset_mounting(identity())
    return identity()


def _full_reset_offset_sequence(tracker, expected, reference):
    tracker_rot = _tracker_rot(expected)
    tracker.set_raw_rotation(identity())
    tracker.reset_full(reference)
    tracker.set_raw_rotation(q_mul(reference, tracker_rot))
    # reference offsets both the reset and the rotation, so it applies twice
    mounting_reference = q_mul(reference, reference)
    tracker.reset_mounting(mounting_reference)
    return mounting_reference


def _yaw_reset_sequence(tracker, expected, reference):
    tracker_rot = _tracker_rot(expected)
    tracker.set_raw_rotation(identity())
    tracker.reset_full(reference)
    tracker.reset_yaw(identity())
    tracker.set_raw_rotation(tracker_rot)
    tracker.reset_mounting(identity())
    return identity()


def _yaw_reset_offset_sequence(tracker, expected, reference):
    tracker_rot = _tracker_rot(expected)
    tracker.set_raw_rotation(identity())
    tracker.reset_full(identity())
    tracker.reset_yaw(reference)
    tracker.set_raw_rotation(q_mul(reference, tracker_rot))
    mounting_reference = q_mul(reference, reference)
    tracker.reset_mounting(mounting_reference)
    return mounting_reference


SEQUENCES = [
    ("full reset", _full_reset_sequence),
    ("full reset with offset", _full_reset_offset_sequence),
    ("yaw reset", _yaw_reset_sequence),
    ("yaw reset with offset", _yaw_reset_offset_sequence),
]


@pytest.mark.parametrize("expected_name,reference_name", DIRECTION_PAIRS)
@pytest.mark.parametrize("what,sequence", SEQUENCES, ids=[s[0] for s in SEQUENCES])
def test_mounting_reset_on_fresh_tracker(expected_name, reference_name, what, sequence):
    expected = direction_q(expected_name)
    reference = direction_q(reference_name)
    tracker = _fresh_tracker()
    sequence(tracker, expected, reference)
    _assert_mounting_yaw(tracker, expected, what)


@pytest.mark.parametrize("expected_name,reference_name", DIRECTION_PAIRS)
def test_mounting_reset_sequences_on_one_tracker(expected_name, reference_name):
    expected = direction_q(expected_name)
    reference = direction_q(reference_name)
    tracker = _fresh_tracker()
    for what, sequence in SEQUENCES:
        sequence(tracker, expected, reference)
        _assert_mounting_yaw(tracker, expected, what)


def test_yaw_reset_after_mounting_sets_output_yaw():
    expected = RIGHT
    reference = euler_yzx_to_q(math.pi / 8.0, math.pi / 2.0, 0.0)
    tracker = _fresh_tracker()
    _full_reset_sequence(tracker, expected, reference)
    _assert_mounting_yaw(tracker, expected, "full reset")

    tracker.set_raw_rotation(q_mul(reference, reference))
    tracker.reset_yaw(reference)

    expected_yaw = yaw_rad(reference)
    result_yaw = yaw_rad(tracker.corrected_rotation())
    assert angles_approx_equal(expected_yaw, result_yaw, TOL)


def _assert_repeated_resets_unchanged(tracker: Tracker, mounting_reference, yaw_reference, what: str) -> None:
    mounting = tracker.calibration.mounting_fix.copy()
    for _ in range(3):
        tracker.reset_mounting(mounting_reference)
        np.testing.assert_allclose(
            tracker.calibration.mounting_fix, mounting, atol=1e-9, err_msg=f"mounting after {what}"
        )

    tracker.reset_yaw(yaw_reference)
    yaw_fix = tracker.calibration.yaw_reset_fix.copy()
    corrected = tracker.corrected_rotation()
    for _ in range(3):
        tracker.reset_yaw(yaw_reference)
        np.testing.assert_allclose(
            tracker.calibration.yaw_reset_fix, yaw_fix, atol=1e-9, err_msg=f"yaw fix after {what}"
        )
        np.testing.assert_allclose(tracker.corrected_rotation(), corrected, atol=1e-9)
    assert angles_approx_equal(yaw_rad(corrected), yaw_rad(yaw_reference), TOL)


@pytest.mark.parametrize("expected_name,reference_name", DIRECTION_PAIRS)
@pytest.mark.parametrize("what,sequence", SEQUENCES, ids=[s[0] for s in SEQUENCES])
def test_repeated_resets_on_fresh_tracker(expected_name, reference_name, what, sequence):
    expected = direction_q(expected_name)
    reference = direction_q(reference_name)
    tracker = _fresh_tracker()
    mounting_reference = sequence(tracker, expected, reference)
    _assert_repeated_resets_unchanged(tracker, mounting_reference, reference, what)


@pytest.mark.parametrize("expected_name,reference_name", DIRECTION_PAIRS)
def test_repeated_resets_on_reused_tracker(expected_name, reference_name):
    expected = direction_q(expected_name)
    reference = direction_q(reference_name)
    tracker = _fresh_tracker()
    # calibrate for a different mounting first
    _full_reset_sequence(tracker, q_mul(expected, BACK_LEFT), reference)
    for what, sequence in SEQUENCES:
        mounting_reference = sequence(tracker, expected, reference)
        _assert_mounting_yaw(tracker, expected, what)
        _assert_repeated_resets_unchanged(tracker, mounting_reference, reference, what)
