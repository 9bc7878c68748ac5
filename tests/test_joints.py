"""Tests for the joint stream decoder."""

from pathlib import Path
import logging
import sys

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from builders import (  # noqa: E402
    DAISY_POINTS,
    bead,
    curve,
    knot,
    sample_joints,
    special,
    u16,
)
from xsp.errors import UnrecognizedVariantError  # noqa: E402
from xsp.joints import (  # noqa: E402
    DEFAULT_ORIENTATION,
    ORIENTATION_SIGNATURES,
    decode_joints,
    orientation_from_signature,
)
from xsp.stitches import (  # noqa: E402
    LineStitch,
    LineStitchKind,
    NodeStitch,
    NodeStitchKind,
    SpecialStitch,
)
from xsp.stream import ByteReader  # noqa: E402

BACK = LineStitchKind.BACK
STRAIGHT = LineStitchKind.STRAIGHT


@pytest.fixture
def joints():
    reader = ByteReader(sample_joints())
    decoded = decode_joints(reader, 16)
    assert reader.remaining == 0
    return decoded


def test_node_stitches(joints) -> None:
    assert joints.nodestitches == [
        NodeStitch(3.0, 3.0, 0, NodeStitchKind.FRENCH_KNOT, rotated=False),
        NodeStitch(3.0, 4.5, 2, NodeStitchKind.BEAD, rotated=False),
        NodeStitch(3.0, 5.5, 2, NodeStitchKind.BEAD, rotated=True),
    ]


def test_line_stitches(joints) -> None:
    assert joints.linestitches == [
        LineStitch((1.0, 2.0), (1.0, 2.0), 1, BACK),
        LineStitch((3.0, 4.0), (2.0, 1.0), 1, BACK),
        LineStitch((4.0, 5.0), (1.0, 1.0), 1, BACK),
        LineStitch((1.0, 5.0), (2.0, 2.0), 1, STRAIGHT),
    ]


def test_special_stitches(joints) -> None:
    assert joints.specialstitches == [
        SpecialStitch(5.5, 1.0, 0, 0, 0, (False, False)),
        SpecialStitch(9.0, 1.0, 0, 0, 0, (True, False)),
        SpecialStitch(8.5, 3.0, 0, 0, 0, (False, True)),
        SpecialStitch(12.0, 3.0, 0, 0, 0, (True, True)),
        SpecialStitch(9.0, 4.5, 0, 0, 90, (False, False)),
        SpecialStitch(9.0, 5.5, 0, 0, 270, (False, False)),
        SpecialStitch(9.0, 6.5, 0, 0, 90, (False, True)),
        SpecialStitch(9.0, 8.0, 0, 0, 90, (True, False)),
        SpecialStitch(11.0, 5.0, 1, 1, 0, (False, False)),
    ]


def test_no_curves_in_sample(joints) -> None:
    assert joints.curvedstitches == []


def test_curve_points_are_thirtieths() -> None:
    joints = decode_joints(ByteReader(curve(DAISY_POINTS)), 1)
    (stitch,) = joints.curvedstitches
    expected = [(px / 30, py / 30) for px, py in DAISY_POINTS]
    assert list(stitch.points) == [pytest.approx(point) for point in expected]


@pytest.mark.parametrize("rotation, rotated", [(0, False), (90, True), (180, False), (270, True)])
def test_bead_rotation(rotation: int, rotated: bool) -> None:
    joints = decode_joints(ByteReader(bead(1.0, 1.0, 0, rotation=rotation)), 1)
    assert joints.nodestitches[0].rotated is rotated


def test_model_index_uses_low_byte() -> None:
    joints = decode_joints(ByteReader(special(0.0, 0.0, 3, 0x0102)), 1)
    assert joints.specialstitches[0].modindex == 2


def test_only_seven_orientations_are_known() -> None:
    assert len(ORIENTATION_SIGNATURES) == 7


def test_unknown_orientation_defaults(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="xsp.joints"):
        assert orientation_from_signature((0xFFFF, 1, 1, 0xFFFF)) == DEFAULT_ORIENTATION
    assert "unrecognized special stitch orientation" in caplog.text


def test_identity_orientation_is_silent(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="xsp.joints"):
        assert orientation_from_signature((1, 0, 0, 1)) == (0, (False, False))
    assert caplog.text == ""


def test_unknown_joint_kind_is_fatal() -> None:
    data = knot(1.0, 1.0, 0) + u16(9) + b"\x00" * 16
    with pytest.raises(UnrecognizedVariantError, match="unknown joint kind 0x0009 at 0x000E"):
        decode_joints(ByteReader(data), 2)


def test_zero_joints_consume_nothing() -> None:
    reader = ByteReader(b"\x01\x00")
    joints = decode_joints(reader, 0)
    assert joints == ([], [], [], [])
    assert reader.tell() == 0
