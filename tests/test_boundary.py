"""Tests for face identification."""

from Stencil import BoundaryId


class TestBoundaryId:
    """Ordering and arithmetic of faces."""

    def test_default_is_first_face(self):
        assert BoundaryId() == BoundaryId(0, True)

    def test_enumeration_order(self):
        faces = list(BoundaryId.all(3))
        assert faces == [
            BoundaryId(0, True),
            BoundaryId(0, False),
            BoundaryId(1, True),
            BoundaryId(1, False),
            BoundaryId(2, True),
            BoundaryId(2, False),
        ]
        assert [b.ordinal for b in faces] == list(range(6))

    def test_opposite(self):
        assert BoundaryId(2, True).opposite() == BoundaryId(2, False)
        assert BoundaryId(2, False).opposite().opposite() == BoundaryId(2, False)

    def test_step(self):
        assert BoundaryId(0, True).step() == BoundaryId(0, False)
        assert BoundaryId(0, False).step() == BoundaryId(1, True)

    def test_from_ordinal_round_trip(self):
        for b in BoundaryId.all(4):
            assert BoundaryId.from_ordinal(b.ordinal) == b

    def test_side_and_name(self):
        assert BoundaryId(1, True).side == 0
        assert BoundaryId(1, False).side == 1
        assert str(BoundaryId(1, False)) == "x1_upper"

    def test_hashable(self):
        assert len({BoundaryId(0, True), BoundaryId(0, True), BoundaryId(0, False)}) == 2
