"""
Tests for diffusion tensor (PPD) and symmetric second-rank tensor reorientation.
"""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from registration_transforms.core.exceptions import SizeMismatchError
from registration_transforms.core.tensors import (
    pack_diffusion_tensor,
    ppd_linear_block,
    reorient_diffusion_tensor_ppd,
    unpack_diffusion_tensor,
)
from registration_transforms.transforms import AffineTransform, Rigid2DTransform, TranslationTransform

from synthetic_transforms import ObliqueProjection, SineWarp3D


def _rotation_z(degrees):
    th = np.deg2rad(degrees)
    return np.array(
        [
            [np.cos(th), -np.sin(th), 0.0],
            [np.sin(th), np.cos(th), 0.0],
            [0.0, 0.0, 1.0],
        ]
    )


def _random_spd(seed=0, dim=3):
    rng = np.random.default_rng(seed)
    a = rng.normal(size=(dim, dim))
    return a @ a.T + dim * np.eye(dim)


@pytest.fixture
def shear_transform():
    transform = AffineTransform(3)
    transform.set_matrix([[1.0, 0.8, 0.0], [0.0, 1.0, 0.3], [0.0, 0.0, 1.0]])
    return transform


class TestDiffusionTensorPacking:
    """Tests for the six-entry tensor form."""

    def test_unpack_is_symmetric(self):
        matrix = unpack_diffusion_tensor([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

        np.testing.assert_array_equal(
            matrix, [[1.0, 2.0, 3.0], [2.0, 4.0, 5.0], [3.0, 5.0, 6.0]]
        )

    def test_pack_takes_upper_triangle(self):
        packed = pack_diffusion_tensor([[1.0, 2.0, 3.0], [2.0, 4.0, 5.0], [3.0, 5.0, 6.0]])

        np.testing.assert_array_equal(packed, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_unpack_wrong_size(self):
        with pytest.raises(SizeMismatchError, match="6 elements"):
            unpack_diffusion_tensor([1.0, 2.0, 3.0, 4.0, 5.0])


class TestTransformDiffusionTensor3D:
    """Tests for preservation-of-principal-direction reorientation."""

    def test_identity_leaves_tensor_unchanged(self):
        tensor = _random_spd(1)

        result = AffineTransform(3).transform_diffusion_tensor_3d(tensor, [0.0, 0.0, 0.0])

        np.testing.assert_allclose(result, tensor, atol=1e-12)

    def test_translation_leaves_tensor_unchanged(self):
        transform = TranslationTransform(3)
        transform.set_offset([5.0, -3.0, 1.0])
        tensor = _random_spd(2)

        result = transform.transform_diffusion_tensor_3d(tensor, [1.0, 1.0, 1.0])

        np.testing.assert_allclose(result, tensor, atol=1e-12)

    def test_rotation_matches_inverse_conjugation(self):
        R = _rotation_z(30.0)
        transform = AffineTransform(3)
        transform.set_matrix(R)
        tensor = np.diag([3.0, 2.0, 1.0])

        result = transform.transform_diffusion_tensor_3d(tensor, [0.0, 0.0, 0.0])

        # PPD uses the inverse Jacobian, which for a rotation is R^T
        np.testing.assert_allclose(result, R.T @ tensor @ R, atol=1e-12)

    def test_packed_and_matrix_forms_agree(self, shear_transform):
        tensor = _random_spd(3)
        point = [0.0, 0.0, 0.0]

        from_matrix = shear_transform.transform_diffusion_tensor_3d(tensor, point)
        from_packed = shear_transform.transform_diffusion_tensor_3d(pack_diffusion_tensor(tensor), point)

        assert from_matrix.shape == (3, 3)
        assert from_packed.shape == (6,)
        np.testing.assert_allclose(from_packed, pack_diffusion_tensor(from_matrix), atol=1e-12)

    def test_all_six_entries_are_used(self):
        transform = AffineTransform(3)
        packed = np.array([1.0, 0.1, 0.2, 2.0, 0.3, 5.0])

        result = transform.transform_diffusion_tensor_3d(packed, [0.0, 0.0, 0.0])

        np.testing.assert_allclose(result, packed, atol=1e-12)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_preserves_symmetry_and_positive_definiteness_under_shear(self, shear_transform, seed):
        tensor = _random_spd(seed)

        result = shear_transform.transform_diffusion_tensor_3d(tensor, [1.0, 2.0, 3.0])

        np.testing.assert_allclose(result, result.T, atol=1e-12)
        assert np.all(np.linalg.eigvalsh(result) > 0.0)

    def test_preserves_eigenvalues(self, shear_transform):
        tensor = _random_spd(5)

        result = shear_transform.transform_diffusion_tensor_3d(tensor, [0.0, 0.0, 0.0])

        np.testing.assert_allclose(np.linalg.eigvalsh(result), np.linalg.eigvalsh(tensor), rtol=1e-10)

    def test_principal_direction_follows_inverse_jacobian(self, shear_transform):
        tensor = np.diag([1.0, 0.5, 0.2])  # principal direction along x
        point = np.zeros(3)

        result = shear_transform.transform_diffusion_tensor_3d(tensor, point)

        inverse = shear_transform.compute_inverse_jacobian_with_respect_to_position(point)
        expected = inverse @ np.array([1.0, 0.0, 0.0])
        expected /= np.linalg.norm(expected)
        w, v = np.linalg.eigh(result)
        assert abs(float(v[:, 2] @ expected)) == pytest.approx(1.0)
        assert w[2] == pytest.approx(1.0)

    def test_nonlinear_transform_is_spd(self):
        transform = SineWarp3D()
        transform.set_parameters([0.6])
        tensor = _random_spd(7)

        result = transform.transform_diffusion_tensor_3d(tensor, [0.3, -1.2, 2.0])

        np.testing.assert_allclose(result, result.T, atol=1e-12)
        assert np.all(np.linalg.eigvalsh(result) > 0.0)

    def test_does_not_mutate_input(self, shear_transform):
        tensor = _random_spd(4)
        original = tensor.copy()

        shear_transform.transform_diffusion_tensor_3d(tensor, [0.0, 0.0, 0.0])

        np.testing.assert_array_equal(tensor, original)

    @pytest.mark.parametrize("values", [np.zeros(5), np.zeros(7), np.zeros(9)])
    def test_variable_length_must_have_six_entries(self, values):
        with pytest.raises(SizeMismatchError):
            AffineTransform(3).transform_diffusion_tensor_3d(values, [0.0, 0.0, 0.0])

    def test_wrong_matrix_shape(self):
        with pytest.raises(SizeMismatchError):
            AffineTransform(3).transform_diffusion_tensor_3d(np.eye(2), [0.0, 0.0, 0.0])

    def test_two_dimensional_transform_uses_identity_fill(self):
        transform = Rigid2DTransform()
        transform.set_parameters([np.deg2rad(90.0), 0.0, 0.0])
        tensor = np.diag([3.0, 2.0, 1.0])

        result = transform.transform_diffusion_tensor_3d(tensor, [0.0, 0.0])

        # The in-plane rotation swaps x and y; z is untouched
        np.testing.assert_allclose(result, np.diag([2.0, 3.0, 1.0]), atol=1e-12)


class TestPPDLinearBlock:
    """Tests for the 3x3 block extracted from the inverse Jacobian."""

    def test_smaller_inverse_jacobian_is_identity_filled(self):
        block = ppd_linear_block(np.array([[2.0, 1.0], [0.0, 3.0]]))

        np.testing.assert_array_equal(block, [[2.0, 1.0, 0.0], [0.0, 3.0, 0.0], [0.0, 0.0, 1.0]])

    def test_larger_inverse_jacobian_is_cropped(self):
        inverse = np.arange(16.0).reshape(4, 4)

        np.testing.assert_array_equal(ppd_linear_block(inverse), inverse[:3, :3])

    def test_reorientation_function_directly(self):
        tensor = np.diag([4.0, 1.0, 1.0])

        result = reorient_diffusion_tensor_ppd(tensor, np.eye(3))

        np.testing.assert_allclose(result, tensor, atol=1e-12)


class TestTransformSymmetricSecondRankTensor:
    """Tests for congruent conjugation J @ T @ J_inv."""

    def test_identity(self):
        tensor = _random_spd(0, dim=2)

        result = AffineTransform(2).transform_symmetric_second_rank_tensor(tensor, [0.0, 0.0])

        np.testing.assert_allclose(result, tensor)

    def test_rotation(self):
        R = _rotation_z(40.0)
        transform = AffineTransform(3)
        transform.set_matrix(R)
        tensor = _random_spd(1)

        result = transform.transform_symmetric_second_rank_tensor(tensor, [1.0, 1.0, 1.0])

        np.testing.assert_allclose(result, R @ tensor @ R.T, atol=1e-12)

    def test_general_affine_formula(self, shear_transform):
        tensor = _random_spd(2)
        J = shear_transform.matrix

        result = shear_transform.transform_symmetric_second_rank_tensor(tensor, [0.0, 0.0, 0.0])

        np.testing.assert_allclose(result, J @ tensor @ np.linalg.inv(J), atol=1e-12)

    def test_flattened_form(self, shear_transform):
        tensor = _random_spd(3)
        point = [0.0, 0.0, 0.0]

        flat = shear_transform.transform_symmetric_second_rank_tensor(tensor.ravel(), point)
        matrix = shear_transform.transform_symmetric_second_rank_tensor(tensor, point)

        assert flat.shape == (9,)
        np.testing.assert_allclose(flat, matrix.ravel())

    def test_non_square_output_dimension(self):
        transform = ObliqueProjection()
        transform.set_parameters([0.5, 0.5])

        result = transform.transform_symmetric_second_rank_tensor(np.eye(3), [0.0, 0.0, 0.0])

        assert result.shape == (2, 2)

    @pytest.mark.parametrize("size", [3, 8, 10])
    def test_flattened_wrong_size(self, size):
        with pytest.raises(SizeMismatchError, match="does not have 9 elements"):
            AffineTransform(3).transform_symmetric_second_rank_tensor(np.zeros(size), [0.0, 0.0, 0.0])

    def test_matrix_wrong_shape(self):
        with pytest.raises(SizeMismatchError):
            AffineTransform(3).transform_symmetric_second_rank_tensor(np.eye(2), [0.0, 0.0, 0.0])
