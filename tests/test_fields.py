"""Tests for field views over flat buffers."""

import numpy as np
import pytest

from Stencil import BoundaryId
from Stencil.iterators import face_field_view, whole_field_view


@pytest.fixture
def values():
    # (3, 4) field, value = flat index
    return np.arange(12, dtype=np.float64)


class TestFieldView:
    """Tests for FieldView accessors."""

    def test_current_value_follows_flat_order(self, values):
        view = whole_field_view((3, 4), values)
        seen = []
        while view.is_in_field():
            seen.append(view.current_value())
            view.next()
        assert seen == list(values)

    def test_set_current_value(self, values):
        view = whole_field_view((3, 4), values)
        while view.is_in_field():
            view.set_current_value(10 * view.current_index(1) + view.current_index(0))
            view.next()
        expected = np.array([10 * j + i for j in range(4) for i in range(3)], dtype=np.float64)
        np.testing.assert_array_equal(values, expected)

    def test_neighbors(self, values):
        view = whole_field_view((3, 4), values)
        view.next()  # (1, 0)
        assert view.current_neighbor(0, 1) == 2.0
        assert view.current_neighbor(0, -1) == 0.0
        assert view.current_neighbor(1, 3) == 10.0
        view.set_current_neighbor(1, 2, -1.0)
        assert values[7] == -1.0

    def test_size_and_index(self, values):
        view = whole_field_view((3, 4), values)
        assert (view.size(0), view.size(1)) == (3, 4)
        assert view.dimensionality == 2

    def test_first_index_offsets_accessor(self, values):
        view = whole_field_view((2, 2), values, first_index=8)
        assert view.current_value() == 8.0

    def test_access_outside_field_is_a_contract_violation(self, values):
        view = whole_field_view((3, 4), values)
        for _ in range(12):
            view.next()
        with pytest.raises(AssertionError):
            view.current_value()
        with pytest.raises(AssertionError):
            view.set_current_value(0.0)

    def test_neighbor_outside_field_is_a_contract_violation(self, values):
        view = whole_field_view((3, 4), values)
        with pytest.raises(AssertionError):
            view.current_neighbor(1, -1)
        with pytest.raises(AssertionError):
            view.set_current_neighbor(0, 3, 1.0)

    def test_missing_values_is_a_contract_violation(self):
        view = whole_field_view((3, 4))
        with pytest.raises(AssertionError):
            view.current_value()


class TestFaceFieldView:
    """Tests for FaceFieldView."""

    def test_upper_face_values(self, values):
        view = face_field_view((3, 4), values)
        view.set_face_to_iterate(BoundaryId(0, False))
        seen = []
        while view.is_in_field():
            seen.append(view.current_value())
            view.next()
        assert seen == [2.0, 5.0, 8.0, 11.0]

    def test_reseeding_rewinds(self, values):
        view = face_field_view((3, 4), values)
        view.set_face_to_iterate(BoundaryId(1, True))
        view.next()
        view.set_face_to_iterate(BoundaryId(1, False))
        assert view.current_value() == 9.0

    def test_task_share(self, values):
        view = face_field_view((3, 4), values)
        view.set_face_to_iterate(BoundaryId(0, True), task_id=1, num_tasks=2)
        seen = []
        while view.is_in_field():
            seen.append(view.current_value())
            view.next()
        assert seen == [6.0, 9.0]
