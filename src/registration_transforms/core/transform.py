"""
Transform Base Class

A transform maps points from an input space of dimension ``input_dimension``
to an output space of dimension ``output_dimension``. It owns two parameter
arrays:

- ``parameters``: the values an optimizer changes every iteration
- ``fixed_parameters``: configuration that is not optimized (e.g. a center of rotation)

Concrete variants implement the capability methods ``transform_point``,
``compute_jacobian_with_respect_to_position`` and ``set_parameters``. Everything
that propagates differential quantities (vectors, covariant vectors, diffusion
tensors, symmetric tensors, image geometry) is built here on top of the
Jacobian and never caches it between calls.

Thread safety: evaluation methods only read state and may run concurrently on
different points. The mutating methods (``set_*``, ``copy_in_*``,
``update_transform_parameters``) must not overlap with any other call on the
same instance; clone() first for parallel read-only use.
"""

from __future__ import annotations

import abc
import itertools
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

import numpy as np

from .exceptions import CloneError, SizeMismatchError
from .linalg import pseudo_inverse
from .metadata import ImageGeometry, apply_to_image_metadata
from .tensors import (
    as_diffusion_tensor_matrix,
    as_square_tensor,
    conjugate_tensor,
    pack_diffusion_tensor,
    reorient_diffusion_tensor_ppd,
)
from ..utils.config import NumericsConfig
from ..utils.logging import setup_logger

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = setup_logger(__name__)

# Shared across all transforms so modification times are comparable between instances
_modified_time = itertools.count(1)

_DTYPE_NAMES = {np.dtype("float64"): "double", np.dtype("float32"): "float"}


def _is_same_buffer(source: "NDArray", buffer: "NDArray") -> bool:
    """True when ``source`` walks ``buffer`` from its first element with the same stride."""
    return (
        np.shares_memory(source, buffer)
        and source.strides == buffer.strides
        and source.__array_interface__["data"][0] == buffer.__array_interface__["data"][0]
    )


class Transform(abc.ABC):
    """Generic, dimension-parametric spatial transform."""

    def __init__(
        self,
        input_dimension: int,
        output_dimension: int,
        number_of_parameters: int,
        number_of_fixed_parameters: int = 0,
        *,
        numerics: Optional[NumericsConfig] = None,
    ):
        """
        Args:
            input_dimension: Dimension of the space points are mapped from.
            output_dimension: Dimension of the space points are mapped to.
            number_of_parameters: Length of the optimizable parameter array.
            number_of_fixed_parameters: Length of the fixed parameter array.
            numerics: Numerical settings (pseudo-inverse cutoff, storage dtype).
        """
        if input_dimension < 1 or output_dimension < 1:
            raise ValueError(
                f"Dimensions must be positive, got {input_dimension} -> {output_dimension}"
            )
        self.numerics = numerics if numerics is not None else NumericsConfig()
        self._input_dimension = int(input_dimension)
        self._output_dimension = int(output_dimension)
        self._parameters = np.zeros(number_of_parameters, dtype=self.numerics.dtype)
        self._fixed_parameters = np.zeros(number_of_fixed_parameters, dtype=self.numerics.dtype)
        self._mtime = next(_modified_time)
        self._observers: Dict[int, Callable[["Transform"], None]] = {}
        self._observer_tags = itertools.count()

    # ------------------------ Dimensions ------------------------
    @property
    def input_dimension(self) -> int:
        return self._input_dimension

    @property
    def output_dimension(self) -> int:
        return self._output_dimension

    # ------------------------ Parameter store ------------------------
    def get_number_of_parameters(self) -> int:
        return int(self._parameters.size)

    @property
    def number_of_parameters(self) -> int:
        return self.get_number_of_parameters()

    def get_number_of_fixed_parameters(self) -> int:
        return int(self._fixed_parameters.size)

    def get_parameters(self) -> "NDArray[np.floating]":
        """Current parameters as a read-only view of the internal buffer.

        Variants whose internal state is authoritative refresh the buffer here
        before returning it.
        """
        view = self._parameters.view()
        view.flags.writeable = False
        return view

    @abc.abstractmethod
    def set_parameters(self, parameters: "ArrayLike") -> None:
        """Assign parameters and rebuild any state derived from them."""

    def get_fixed_parameters(self) -> "NDArray[np.floating]":
        view = self._fixed_parameters.view()
        view.flags.writeable = False
        return view

    def set_fixed_parameters(self, fixed_parameters: "ArrayLike") -> None:
        self._store_fixed_parameters(fixed_parameters)
        self.modified()

    @property
    def parameters(self) -> "NDArray[np.floating]":
        return self.get_parameters()

    @parameters.setter
    def parameters(self, value: "ArrayLike") -> None:
        self.set_parameters(value)

    @property
    def fixed_parameters(self) -> "NDArray[np.floating]":
        return self.get_fixed_parameters()

    @fixed_parameters.setter
    def fixed_parameters(self, value: "ArrayLike") -> None:
        self.set_fixed_parameters(value)

    def _store_parameters(self, parameters: "ArrayLike") -> "NDArray[np.floating]":
        """Validate and copy values into the parameter buffer (skipped when they alias it)."""
        values = np.asarray(parameters)
        if values.ndim != 1 or values.size != self._parameters.size:
            raise SizeMismatchError(
                f"Parameter array of size {values.size} does not match "
                f"number of parameters {self._parameters.size}"
            )
        if not _is_same_buffer(values, self._parameters):
            self._parameters[:] = values
        return self._parameters

    def _store_fixed_parameters(self, fixed_parameters: "ArrayLike") -> "NDArray[np.floating]":
        values = np.asarray(fixed_parameters)
        if values.ndim != 1:
            raise SizeMismatchError(f"Fixed parameters must be 1D, got shape {values.shape}")
        same_size = values.size == self._fixed_parameters.size
        if same_size and _is_same_buffer(values, self._fixed_parameters):
            return self._fixed_parameters
        if not same_size:
            # Fixed parameters may be resized explicitly
            self._fixed_parameters = np.zeros(values.size, dtype=self.numerics.dtype)
        self._fixed_parameters[:] = values
        return self._fixed_parameters

    def copy_in_parameters(self, values: "ArrayLike", start: int = 0, stop: Optional[int] = None) -> None:
        """Bulk-assign ``values[start:stop]`` into the parameters and reinterpret them.

        An empty range is a no-op. A range that is the transform's own parameter
        buffer from its first element is not copied, but is still reinterpreted.
        Shifted ranges of the own buffer are copied like any other source.

        Raises:
            SizeMismatchError: If the range is longer than the parameter array
        """
        source = np.asarray(values).ravel()[start:stop]
        if source.size == 0:
            return
        if not _is_same_buffer(source, self._parameters):
            if source.size > self._parameters.size:
                raise SizeMismatchError(
                    f"Cannot copy {source.size} values into {self._parameters.size} parameters"
                )
            # Entries past the copied range keep the variant's current values
            self.get_parameters()
            self._parameters[: source.size] = source
        logger.debug("Copied %d values into %s parameters", source.size, type(self).__name__)
        self.set_parameters(self._parameters)

    def copy_in_fixed_parameters(
        self, values: "ArrayLike", start: int = 0, stop: Optional[int] = None
    ) -> None:
        """Same protocol as copy_in_parameters, for the fixed parameters."""
        source = np.asarray(values).ravel()[start:stop]
        if source.size == 0:
            return
        if not _is_same_buffer(source, self._fixed_parameters):
            if source.size > self._fixed_parameters.size:
                raise SizeMismatchError(
                    f"Cannot copy {source.size} values into "
                    f"{self._fixed_parameters.size} fixed parameters"
                )
            self._fixed_parameters[: source.size] = source
        logger.debug("Copied %d values into %s fixed parameters", source.size, type(self).__name__)
        self.set_fixed_parameters(self._fixed_parameters)

    # ------------------------ Parameter update ------------------------
    def update_transform_parameters(self, update: "ArrayLike", factor: float = 1.0) -> None:
        """Apply ``parameters += update * factor`` and reinterpret the result.

        Args:
            update: Array of length number_of_parameters (typically an optimizer step).
            factor: Scale applied to the update.

        Raises:
            SizeMismatchError: If the update length differs from the number of
                parameters. Parameters are left unchanged.
        """
        delta = np.asarray(update, dtype=float)
        n = self.get_number_of_parameters()
        if delta.ndim != 1 or delta.size != n:
            raise SizeMismatchError(
                f"Parameter update size, {delta.size}, must be same as "
                f"transform parameter size, {n}"
            )

        # Sync the raw buffer with the variant's authoritative state first
        self.get_parameters()

        if factor == 1.0:
            self._parameters += delta
        else:
            self._parameters += delta * factor
        logger.debug(
            "Updated %s parameters (factor=%s, |update|=%.3g)",
            type(self).__name__, factor, np.linalg.norm(delta),
        )

        self.set_parameters(self._parameters)
        self.modified()

    # ------------------------ Modification tracking ------------------------
    def modified(self) -> None:
        """Mark the transform as changed and notify observers."""
        self._mtime = next(_modified_time)
        for callback in list(self._observers.values()):
            callback(self)

    def get_mtime(self) -> int:
        return self._mtime

    def add_observer(self, callback: Callable[["Transform"], None]) -> int:
        """Register a callback invoked with the transform after every modification.

        Returns:
            Tag to pass to remove_observer
        """
        tag = next(self._observer_tags)
        self._observers[tag] = callback
        return tag

    def remove_observer(self, tag: int) -> None:
        self._observers.pop(tag, None)

    # ------------------------ Capabilities ------------------------
    @abc.abstractmethod
    def transform_point(self, point: "ArrayLike") -> "NDArray[np.floating]":
        """Map one input-space point to output space."""

    def transform_points(self, points: "ArrayLike") -> "NDArray[np.floating]":
        """Map an (N, input_dimension) array of points."""
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != self.input_dimension:
            raise SizeMismatchError(
                f"Expected (N, {self.input_dimension}) points, got shape {pts.shape}"
            )
        if len(pts) == 0:
            return np.empty((0, self.output_dimension))
        return np.stack([self.transform_point(p) for p in pts])

    @abc.abstractmethod
    def compute_jacobian_with_respect_to_position(self, point: "ArrayLike") -> "NDArray[np.floating]":
        """(output_dimension, input_dimension) matrix of d(output_i)/d(input_j) at ``point``."""

    def compute_inverse_jacobian_with_respect_to_position(
        self, point: "ArrayLike"
    ) -> "NDArray[np.floating]":
        """(input_dimension, output_dimension) pseudo-inverse of the Jacobian at ``point``.

        Computed through an SVD on every call. A singular Jacobian yields its
        Moore-Penrose pseudo-inverse; interpreting such results is up to the caller.
        """
        jacobian = self.compute_jacobian_with_respect_to_position(point)
        return pseudo_inverse(jacobian, rcond=self.numerics.pinv_rcond)

    def is_linear(self) -> bool:
        return False

    def get_inverse_transform(self) -> Optional["Transform"]:
        """Inverse transform, or None when the variant has none."""
        return None

    # ------------------------ Differential transport ------------------------
    def _as_input_vector(self, vector: "ArrayLike", what: str = "Input vector") -> "NDArray[np.floating]":
        arr = np.asarray(vector, dtype=float)
        if arr.ndim != 1 or arr.size != self.input_dimension:
            raise SizeMismatchError(
                f"{what} is not of size input_dimension = {self.input_dimension} "
                f"(got shape {arr.shape})"
            )
        return arr

    def _as_input_point(self, point: "ArrayLike") -> "NDArray[np.floating]":
        return self._as_input_vector(point, what="Input point")

    def transform_vector(self, vector: "ArrayLike", point: "ArrayLike") -> "NDArray[np.floating]":
        """Map a contravariant vector located at ``point``. No translation is applied."""
        v = self._as_input_vector(vector)
        jacobian = self.compute_jacobian_with_respect_to_position(point)
        return jacobian @ v

    def transform_covariant_vector(self, vector: "ArrayLike", point: "ArrayLike") -> "NDArray[np.floating]":
        """Map a covariant vector (e.g. a gradient) through the inverse-transpose Jacobian."""
        v = self._as_input_vector(vector)
        inverse_jacobian = self.compute_inverse_jacobian_with_respect_to_position(point)
        return inverse_jacobian.T @ v

    def transform_diffusion_tensor_3d(self, tensor: "ArrayLike", point: "ArrayLike") -> "NDArray[np.floating]":
        """Reorient a diffusion tensor by preservation of principal direction.

        Args:
            tensor: Six upper-triangular entries (xx, xy, xz, yy, yz, zz) or a 3x3 matrix.
            point: Location of the tensor in input space.

        Returns:
            Reoriented tensor in the same form as the input.
        """
        matrix, packed = as_diffusion_tensor_matrix(tensor)
        inverse_jacobian = self.compute_inverse_jacobian_with_respect_to_position(point)
        result = reorient_diffusion_tensor_ppd(matrix, inverse_jacobian)
        return pack_diffusion_tensor(result) if packed else result

    def transform_symmetric_second_rank_tensor(
        self, tensor: "ArrayLike", point: "ArrayLike"
    ) -> "NDArray[np.floating]":
        """Map a symmetric tensor as ``J @ T @ J_inv``.

        Args:
            tensor: (input_dimension, input_dimension) matrix or its row-major
                flattening of input_dimension**2 entries.
            point: Location of the tensor in input space.

        Returns:
            (output_dimension, output_dimension) matrix, flattened when the input was.
        """
        matrix, flat = as_square_tensor(tensor, self.input_dimension)
        jacobian = self.compute_jacobian_with_respect_to_position(point)
        inverse_jacobian = self.compute_inverse_jacobian_with_respect_to_position(point)
        result = conjugate_tensor(matrix, jacobian, inverse_jacobian)
        return result.ravel() if flat else result

    def apply_to_image_metadata(self, image: ImageGeometry, *, warn_on_nonlinear: bool = True) -> None:
        """Move ``image``'s origin, spacing and direction through the inverse transform, in place."""
        apply_to_image_metadata(self, image, warn_on_nonlinear=warn_on_nonlinear)

    # ------------------------ Identity / cloning ------------------------
    def get_transform_type_as_string(self) -> str:
        """Type tag of the form ``<ClassName>_<double|float>_<in>_<out>``."""
        precision = _DTYPE_NAMES.get(self._parameters.dtype, self._parameters.dtype.name)
        return f"{type(self).__name__}_{precision}_{self.input_dimension}_{self.output_dimension}"

    def _constructor_kwargs(self) -> Dict[str, Any]:
        return {"numerics": self.numerics.model_copy()}

    def create_another(self) -> "Transform":
        """New default-state instance of the same variant."""
        return type(self)(**self._constructor_kwargs())

    def clone(self) -> "Transform":
        """Independent copy with identical fixed parameters and parameters.

        Raises:
            CloneError: If create_another() does not produce the same concrete type
        """
        other = self.create_another()
        if not isinstance(other, type(self)):
            raise CloneError(f"downcast to type {type(self).__name__} failed.")
        other.set_fixed_parameters(np.array(self.get_fixed_parameters(), copy=True))
        other.set_parameters(np.array(self.get_parameters(), copy=True))
        return other

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input_dimension={self.input_dimension}, "
            f"output_dimension={self.output_dimension}, "
            f"parameters={np.array2string(self._parameters, precision=6)}, "
            f"fixed_parameters={np.array2string(self._fixed_parameters, precision=6)})"
        )
