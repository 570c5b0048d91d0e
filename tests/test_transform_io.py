"""
Tests for saving and loading transforms as YAML.
"""

from pathlib import Path
import sys

import numpy as np
import pytest
import yaml

sys.path.append(str(Path(__file__).parent.parent / "src"))

from registration_transforms.core.exceptions import SizeMismatchError, TransformError
from registration_transforms.io import (
    load_transform,
    save_transform,
    transform_from_dict,
    transform_to_dict,
)
from registration_transforms.transforms import AffineTransform, Rigid2DTransform, TranslationTransform
from registration_transforms.utils.config import NumericsConfig


@pytest.fixture
def affine3d():
    transform = AffineTransform(3)
    transform.set_parameters([1.0, 0.5, 0.0, 0.0, 2.0, 0.25, 0.0, 0.0, 1.0, 10.0, -4.0, 0.5])
    transform.set_center([1.0, 2.0, 3.0])
    return transform


def test_to_dict_layout(affine3d):
    data = transform_to_dict(affine3d)

    assert list(data) == ["transform_type", "fixed_parameters", "parameters"]
    assert data["transform_type"] == "AffineTransform_double_3_3"
    assert data["fixed_parameters"] == [1.0, 2.0, 3.0]
    assert len(data["parameters"]) == 12


def test_from_dict_restores_behavior(affine3d):
    restored = transform_from_dict(transform_to_dict(affine3d))

    assert isinstance(restored, AffineTransform)
    np.testing.assert_array_equal(restored.get_parameters(), affine3d.get_parameters())
    np.testing.assert_array_equal(restored.center, affine3d.center)
    np.testing.assert_allclose(
        restored.transform_point([4.0, 5.0, 6.0]), affine3d.transform_point([4.0, 5.0, 6.0])
    )


def test_from_dict_rigid_without_dimension_argument():
    transform = Rigid2DTransform()
    transform.set_center([1.0, -1.0])
    transform.set_parameters([0.5, 2.0, 3.0])

    restored = transform_from_dict(transform_to_dict(transform))

    assert isinstance(restored, Rigid2DTransform)
    assert restored.angle == 0.5
    np.testing.assert_array_equal(restored.center, [1.0, -1.0])


def test_from_dict_keeps_precision():
    transform = TranslationTransform(2, numerics=NumericsConfig(parameter_dtype="float32"))
    transform.set_offset([1.5, -2.5])

    restored = transform_from_dict(transform_to_dict(transform))

    assert restored.get_parameters().dtype == np.float32
    assert restored.get_transform_type_as_string() == "TranslationTransform_float_2_2"


def test_save_and_load_single(tmp_path, affine3d):
    path = tmp_path / "nested" / "transform.yaml"

    save_transform(affine3d, path)
    loaded = load_transform(path)

    assert path.exists()
    assert len(loaded) == 1
    np.testing.assert_array_equal(loaded[0].get_parameters(), affine3d.get_parameters())


def test_save_and_load_list_keeps_order(tmp_path, affine3d):
    translation = TranslationTransform(3)
    translation.set_offset([1.0, 2.0, 3.0])
    path = tmp_path / "levels.yaml"

    save_transform([translation, affine3d], path)
    loaded = load_transform(path)

    assert [type(t) for t in loaded] == [TranslationTransform, AffineTransform]
    np.testing.assert_array_equal(loaded[0].offset, [1.0, 2.0, 3.0])


def test_file_is_plain_yaml(tmp_path, affine3d):
    path = tmp_path / "transform.yaml"
    save_transform(affine3d, path)

    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    assert raw["transforms"][0]["transform_type"] == "AffineTransform_double_3_3"


def test_unknown_type():
    with pytest.raises(TransformError, match="Unknown transform type"):
        transform_from_dict(
            {"transform_type": "BSplineTransform_double_3_3", "parameters": [], "fixed_parameters": []}
        )


def test_missing_type():
    with pytest.raises(TransformError, match="transform_type"):
        transform_from_dict({"parameters": [1.0, 2.0]})


def test_wrong_parameter_count():
    with pytest.raises(SizeMismatchError, match="expects 3 parameters"):
        transform_from_dict(
            {"transform_type": "TranslationTransform_double_3_3", "parameters": [1.0, 2.0]}
        )


def test_dimension_mismatch_for_fixed_dimension_variant():
    with pytest.raises(SizeMismatchError):
        transform_from_dict(
            {"transform_type": "Rigid2DTransform_double_3_3", "parameters": [0.0, 0.0, 0.0]}
        )


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_transform(tmp_path / "missing.yaml")


def test_load_file_without_transform_list(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("transforms: 3\n", encoding="utf-8")

    with pytest.raises(TransformError, match="expected a 'transforms' list"):
        load_transform(path)
