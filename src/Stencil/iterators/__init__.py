"""Cursors over flat N-dimensional fields.

This package provides:
- WholeFieldStepper / FaceStepper: index walks over a whole field or one face
- FieldView / FaceFieldView: a stepper bound to a value buffer
- ComposedFieldView / ComposedFaceFieldView: interior plus ghost regions
"""

from .steppers import AxisStepper, WholeFieldStepper, FaceStepper
from .fields import (
    FlatValueAccessor,
    FieldView,
    FaceFieldView,
    whole_field_view,
    face_field_view,
)
from .composed import ComposedFieldView, ComposedFaceFieldView

__all__ = [
    "AxisStepper",
    "WholeFieldStepper",
    "FaceStepper",
    "FlatValueAccessor",
    "FieldView",
    "FaceFieldView",
    "whole_field_view",
    "face_field_view",
    "ComposedFieldView",
    "ComposedFaceFieldView",
]
