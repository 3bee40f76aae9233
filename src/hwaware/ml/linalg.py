"""Dense matrices and least-squares polynomial fitting."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from hwaware.error_handling import InsufficientPointsError, SingularMatrixError


class Matrix:
    """Dense row-major matrix of floats."""

    def __init__(self, rows: int, cols: int):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Illegal matrix shape ({rows}, {cols})")
        self._data = np.zeros((rows, cols), dtype=np.float64)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> Matrix:
        return cls.from_numpy(np.asarray(rows, dtype=np.float64))

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> Matrix:
        if array.ndim != 2:
            raise ValueError(f"Expected a 2-D array, got {array.ndim}-D")
        matrix = cls(*array.shape)
        matrix._data[:, :] = array
        return matrix

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def __getitem__(self, index: tuple[int, int]) -> float:
        return float(self._data[index])

    def __setitem__(self, index: tuple[int, int], value: float) -> None:
        self._data[index] = value

    def transpose(self) -> Matrix:
        return Matrix.from_numpy(self._data.T.copy())

    def product(self, other: Matrix) -> Matrix:
        """Matrix product ``self @ other``.

        Raises:
            ValueError: If the inner dimensions differ
        """
        if self.cols != other.rows:
            raise ValueError(
                f"Illegal parameter: cannot multiply {self.shape} by {other.shape}"
            )
        return Matrix.from_numpy(self._data @ other._data)

    __matmul__ = product

    def to_numpy(self) -> np.ndarray:
        return self._data.copy()

    def __repr__(self) -> str:
        return f"Matrix({self._data.tolist()!r})"


def vandermonde(xs: Sequence[float], degree: int) -> Matrix:
    """Build ``A[r][c] = xs[r] ** (degree - c)``."""
    return Matrix.from_numpy(np.vander(np.asarray(xs, dtype=np.float64), degree + 1))


def gauss_jordan_solve(a: Matrix, b: Matrix) -> tuple[float, ...]:
    """Solve ``a x = b`` by Gauss-Jordan elimination on the diagonal pivots.

    Rows are never exchanged, so a zero on the diagonal is treated as a
    singular system.

    Raises:
        SingularMatrixError: If a pivot is zero or not finite
    """
    if a.rows != a.cols or b.rows != a.rows or b.cols != 1:
        raise ValueError(f"Illegal parameter: shapes {a.shape} and {b.shape}")

    augmented = np.hstack([a.to_numpy(), b.to_numpy()])
    n = a.rows

    for pivot_row in range(n):
        pivot = augmented[pivot_row, pivot_row]
        if pivot == 0.0 or not np.isfinite(pivot):
            raise SingularMatrixError(f"Zero pivot at row {pivot_row}")
        for row in range(n):
            if row == pivot_row:
                continue
            factor = augmented[row, pivot_row] / pivot
            augmented[row, :] -= factor * augmented[pivot_row, :]

    solution = augmented[:, n] / np.diag(augmented)[:n]
    if not np.all(np.isfinite(solution)):
        raise SingularMatrixError("Elimination produced non-finite coefficients")
    return tuple(float(v) for v in solution)


def solve_polynomial_fit(
    xs: Sequence[float], ys: Sequence[float], degree: int = 3
) -> tuple[float, ...]:
    """Least-squares polynomial fit through the normal equations.

    Returns:
        ``degree + 1`` coefficients, highest degree first

    Raises:
        InsufficientPointsError: If there are fewer points than coefficients
        SingularMatrixError: If the normal equations cannot be solved
    """
    if len(xs) != len(ys):
        raise InsufficientPointsError(
            f"Mismatched sample lengths: {len(xs)} sizes, {len(ys)} times"
        )
    if len(xs) < degree + 1:
        raise InsufficientPointsError(
            f"Need at least {degree + 1} points for a degree-{degree} fit, "
            f"got {len(xs)}"
        )

    a = vandermonde(xs, degree)
    y = Matrix.from_numpy(np.asarray(ys, dtype=np.float64).reshape(-1, 1))
    at = a.transpose()
    return gauss_jordan_solve(at @ a, at @ y)


def polyval(x: float, coefficients: Sequence[float]) -> float:
    """Evaluate a polynomial with coefficients ordered highest degree first."""
    result = 0.0
    for c in coefficients:
        result = result * x + c
    return result
