"""Tests for views composed of a block interior and its ghost regions."""

import numpy as np
import pytest

from Stencil import BoundaryId, composed_block

N, W = 4, 2


@pytest.fixture
def block():
    """2D 4x4 block with value 10*i1 + i0 and tagged ghost regions.

    Ghost region (d, side) holds 100*(2*d + side + 1) + its flat index.
    """
    values = np.array([10 * j + i for j in range(N) for i in range(N)], dtype=np.float64)
    b = composed_block(N, 2, W, values=values)
    for boundary in BoundaryId.all(2):
        ghost = b.ghost(boundary)
        ghost.values[:] = 100 * (boundary.ordinal + 1) + np.arange(ghost.num_elements)
    return b


def walk_face(view, boundary, dim, offsets):
    view.set_face_to_iterate(boundary)
    rows = []
    while view.is_in_field():
        rows.append([view.current_neighbor(dim, o) for o in offsets])
        view.next()
    return rows


class TestComposedFaceFieldView:
    """Neighbor queries across the block boundary land in the ghost regions."""

    def test_lower_face_dimension_zero(self, block):
        # Ghost (0, lower) has sizes (2, 4): element (i0, j) at i0 + 2*j
        rows = walk_face(block.face_view(), BoundaryId(0, True), 0, [-2, -1, 0, 1])
        assert rows == [[100 + 2 * j, 101 + 2 * j, 10 * j, 10 * j + 1] for j in range(N)]

    def test_upper_face_dimension_zero(self, block):
        rows = walk_face(block.face_view(), BoundaryId(0, False), 0, [-1, 0, 1, 2])
        assert rows == [[10 * j + 2, 10 * j + 3, 200 + 2 * j, 201 + 2 * j] for j in range(N)]

    def test_lower_face_dimension_one(self, block):
        # Ghost (1, lower) has sizes (4, 2): element (i, j0) at i + 4*j0
        rows = walk_face(block.face_view(), BoundaryId(1, True), 1, [-2, -1, 1])
        assert rows == [[300 + i, 304 + i, 10 + i] for i in range(N)]

    def test_upper_face_dimension_one(self, block):
        rows = walk_face(block.face_view(), BoundaryId(1, False), 1, [1, 2])
        assert rows == [[400 + i, 404 + i] for i in range(N)]

    def test_size_includes_ghosts(self, block):
        view = block.face_view()
        assert view.size(0) == N + 2 * W
        assert view.size(1) == N + 2 * W

    def test_current_value_is_interior(self, block):
        view = block.face_view()
        view.set_face_to_iterate(BoundaryId(1, False))
        assert view.current_value() == 30.0

    def test_set_neighbor_writes_ghost(self, block):
        view = block.face_view()
        view.set_face_to_iterate(BoundaryId(0, True))
        view.set_current_neighbor(0, -1, -5.0)
        assert block.ghost(BoundaryId(0, True)).values[1] == -5.0

    def test_task_shares_stay_in_lockstep(self, block):
        view = block.face_view()
        view.set_face_to_iterate(BoundaryId(0, True), task_id=1, num_tasks=2)
        seen = []
        while view.is_in_field():
            seen.append((view.current_value(), view.current_neighbor(0, -1)))
            view.next()
        assert seen == [(20.0, 105.0), (30.0, 107.0)]

    def test_offset_beyond_ghost_width_is_a_contract_violation(self, block):
        view = block.face_view()
        view.set_face_to_iterate(BoundaryId(0, True))
        with pytest.raises(AssertionError):
            view.current_neighbor(0, -(W + 1))
