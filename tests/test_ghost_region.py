"""Tests for ghost regions."""

import numpy as np
import pytest

from Stencil import BoundaryId, GhostRegion


class TestGhostRegion:
    """Tests for GhostRegion."""

    @pytest.mark.parametrize("boundary", list(BoundaryId.all(3)), ids=str)
    def test_sizes(self, boundary):
        ghost = GhostRegion(boundary, 5, 2, 3)
        expected = [5, 5, 5]
        expected[boundary.dimension] = 2
        assert ghost.sizes() == tuple(expected)
        assert ghost.num_elements == 50
        assert ghost.values.shape == (50,)

    def test_tag(self):
        assert GhostRegion(BoundaryId(0, True), 4, 1, 2).tag == 1
        assert GhostRegion(BoundaryId(0, False), 4, 1, 2).tag == 0
        assert GhostRegion(BoundaryId(1, True), 4, 1, 2).tag == 3
        assert GhostRegion(BoundaryId(1, False), 4, 1, 2).tag == 2

    def test_inner_view_covers_region(self):
        ghost = GhostRegion(BoundaryId(1, True), 3, 2, 2)
        ghost.values[:] = np.arange(6)
        seen = []
        for t in range(2):
            view = ghost.inner_view(t, 2)
            while view.is_in_field():
                seen.append(view.current_value())
                view.next()
        assert seen == list(range(6))

    def test_face_view_upper_face(self):
        ghost = GhostRegion(BoundaryId(1, True), 3, 2, 2)
        ghost.values[:] = np.arange(6)
        view = ghost.face_view()
        view.set_face_to_iterate(BoundaryId(1, False))
        seen = []
        while view.is_in_field():
            seen.append(view.current_value())
            view.next()
        assert seen == [3.0, 4.0, 5.0]

    def test_fetch_copies_landing_buffer(self):
        ghost = GhostRegion(BoundaryId(0, False), 3, 1, 2)
        assert ghost.landing_buffer is not ghost.values
        ghost.landing_buffer[:] = [7.0, 8.0, 9.0]
        assert np.all(ghost.values == 0.0)
        ghost.fetch_buffer_values()
        np.testing.assert_array_equal(ghost.values, [7.0, 8.0, 9.0])

    def test_external_values(self):
        values = np.ones(8)
        ghost = GhostRegion(BoundaryId(2, True), 2, 2, 3, values=values)
        assert ghost.values is values

    def test_wrong_value_count_is_a_contract_violation(self):
        with pytest.raises(AssertionError):
            GhostRegion(BoundaryId(0, True), 3, 1, 2, values=np.zeros(4))
