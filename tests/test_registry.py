import pytest

from trackercal.control.errors import UnknownTracker
from trackercal.control.registry import TrackerRegistry
from trackercal.math3d.quaternion import identity


def test_register_is_idempotent():
    registry = TrackerRegistry()
    a = registry.register("a", name="chest")
    assert registry.register("a") is a
    assert len(registry) == 1
    assert "a" in registry


def test_deregister_drops_calibration():
    registry = TrackerRegistry()
    t = registry.register("a")
    t.set_raw_rotation(identity())
    t.reset_full()
    registry.deregister("a")
    assert "a" not in registry
    assert registry.register("a").needs_reset


def test_unknown_tracker_lookup():
    registry = TrackerRegistry()
    with pytest.raises(UnknownTracker, match="not registered"):
        registry.get("x")
    with pytest.raises(KeyError):
        registry.deregister("x")


def test_corrected_rotations_only_for_trackers_with_samples():
    registry = TrackerRegistry()
    registry.register("a").set_raw_rotation(identity())
    registry.register("b")
    out = registry.corrected_rotations()
    assert set(out) == {"a"}
