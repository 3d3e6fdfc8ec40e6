"""
Dense Matrix Module

This module implements the small dense matrix engine used by the neural network.
A matrix is a rectangular table of float64 values backed by a numpy array.

Every arithmetic operation returns a new matrix and leaves its operands untouched,
so a matrix handed to a function can never be modified behind the caller's back.
Mutation is only possible through the explicit mutators of the owned Matrix type
(item assignment, fill, set). A shallow clone is a read-only MatrixView that
borrows the storage of its source: it observes later writes to the source,
but can never write to it.

Classes:
    Op:         Binary operations and their shape preconditions
    Normalizer: Column-wise normalization strategies
    BaseMatrix: Read-only operations shared by owned matrices and views
    Matrix:     Owned matrix, holding its own storage, mutable
    MatrixView: Read-only matrix borrowing the storage of another matrix
"""

import numpy as np
from enum   import Enum
from typing import Callable, Iterable, Sequence

from snnake.exceptions import DimensionError


class Op(Enum):
    """
    Binary matrix operations, each with its own shape precondition.
    """
    ADD             = "ADD"
    SUBTRACT        = "SUBTRACT"
    MULTIPLY        = "MULTIPLY"
    SCALAR_MULTIPLY = "SCALAR_MULTIPLY"

    def validate(self, m: 'BaseMatrix', n: 'BaseMatrix') -> bool:
        """Whether 'm <op> n' is defined for the shapes of m and n."""
        if self is Op.MULTIPLY:
            return m.cols == n.rows
        return m.rows == n.rows and m.cols == n.cols

    def error_message(self, m: 'BaseMatrix', n: 'BaseMatrix') -> str:
        return f"{self.value}: size mismatch, ({m.rows} x {m.cols}) & ({n.rows} x {n.cols})"

    def validate_or_raise(self, m: 'BaseMatrix', n: 'BaseMatrix') -> None:
        if not self.validate(m, n):
            raise DimensionError(self.error_message(m, n), self.value, m.shape, n.shape)


class Normalizer(Enum):
    """
    Column-wise normalization strategies.

    COL_MAX: divides each column by that column's maximum absolute value,
             but only when that value exceeds 1.0; columns whose values
             already lie in [-1, 1] are left untouched.
    """
    COL_MAX = "col_max"

    def normalize(self, matrix: 'BaseMatrix') -> 'Matrix':
        """Return a normalized deep copy of 'matrix'."""
        data = matrix.to_array()
        if self is Normalizer.COL_MAX:
            col_max = np.max(np.abs(data), axis=0)
            scale   = np.where(col_max > 1.0, col_max, 1.0)
            data    = data / scale
        return Matrix._wrap(data)


class BaseMatrix:
    """
    Read-only matrix operations.

    Shape invariants: rows >= 1, cols >= 1, every row has exactly 'cols' values.

    Public Properties:
        rows, cols, size, shape

    Public Methods:
        add(m), subtract(m), multiply(m), scalar_multiply(m): binary operations
        transpose(), normalize(normalizer), sum_rows(), map(fn)
        clone():               Shallow, read-only clone sharing this matrix's storage
        deep_clone():          Owned clone with independent storage
        to_list():             Row-major flat list of values
        to_array():            Copy of the underlying numpy array
        row(i), col(i):        Copies of a single row / column
        validate(op, m):       Whether 'op' is defined between this matrix and m
        equals_within(m, d):   Equality allowing a per-cell difference of up to d

    Operators:
        a + b, a - b  (matrices of identical shape, or a scalar)
        -a, a * k, k * a, a / k  (scalar k)
        a @ b  (matrix product)
    """

    _data: np.ndarray

    @classmethod
    def _wrap(cls, array: np.ndarray) -> 'Matrix':
        # takes ownership of 'array', no validation
        matrix = Matrix.__new__(Matrix)
        matrix._data = array
        return matrix

    @property
    def rows(self) -> int:
        return self._data.shape[0]

    @property
    def cols(self) -> int:
        return self._data.shape[1]

    @property
    def size(self) -> int:
        return self.rows * self.cols

    @property
    def shape(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    def __getitem__(self, key):
        """
        m[r]    returns a copy of row r as a 1D numpy array
        m[r, c] returns the value at row r, column c
        """
        if isinstance(key, tuple):
            row, col = key
            return float(self._data[row, col])
        return self._data[key].copy()

    def row(self, i: int) -> np.ndarray:
        return self._data[i, :].copy()

    def col(self, i: int) -> np.ndarray:
        return self._data[:, i].copy()

    def to_list(self) -> list[float]:
        """Flatten the matrix into a row-major list."""
        return [float(v) for v in self._data.ravel()]

    def to_array(self) -> np.ndarray:
        return self._data.copy()

    def clone(self) -> 'MatrixView':
        return MatrixView(self)

    def deep_clone(self) -> 'Matrix':
        return Matrix._wrap(self._data.copy())

    def validate(self, op: Op, m: 'BaseMatrix') -> bool:
        return op.validate(self, m)

    # ---------------------------------------------------------------------
    # Binary operations
    # ---------------------------------------------------------------------

    def add(self, m: 'BaseMatrix') -> 'Matrix':
        Op.ADD.validate_or_raise(self, m)
        return Matrix._wrap(self._data + m._data)

    def subtract(self, m: 'BaseMatrix') -> 'Matrix':
        Op.SUBTRACT.validate_or_raise(self, m)
        return Matrix._wrap(self._data - m._data)

    def multiply(self, m: 'BaseMatrix') -> 'Matrix':
        """Matrix product: (r x k) . (k x c) => (r x c)."""
        Op.MULTIPLY.validate_or_raise(self, m)
        return Matrix._wrap(self._data @ m._data)

    def scalar_multiply(self, m: 'BaseMatrix') -> 'Matrix':
        """
        Takes in two m x n matrices and multiplies them cell by cell.
        """
        Op.SCALAR_MULTIPLY.validate_or_raise(self, m)
        return Matrix._wrap(self._data * m._data)

    def __add__(self, other):
        if isinstance(other, BaseMatrix):
            return self.add(other)
        return Matrix._wrap(self._data + float(other))

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        if isinstance(other, BaseMatrix):
            return self.subtract(other)
        return Matrix._wrap(self._data - float(other))

    def __neg__(self) -> 'Matrix':
        return Matrix._wrap(-self._data)

    def __mul__(self, other):
        if isinstance(other, BaseMatrix):
            raise TypeError("use '@' (or multiply()) for the matrix product "
                            "and scalar_multiply() for the cell by cell product")
        return Matrix._wrap(self._data * float(other))

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        if isinstance(other, BaseMatrix):
            raise TypeError("matrices can only be divided by a scalar")
        return Matrix._wrap(self._data / float(other))

    def __matmul__(self, other):
        if not isinstance(other, BaseMatrix):
            return NotImplemented
        return self.multiply(other)

    # ---------------------------------------------------------------------
    # Unary operations
    # ---------------------------------------------------------------------

    def transpose(self) -> 'Matrix':
        return Matrix._wrap(self._data.T.copy())

    @property
    def T(self) -> 'Matrix':
        return self.transpose()

    def normalize(self, normalizer: Normalizer = Normalizer.COL_MAX) -> 'Matrix':
        return normalizer.normalize(self)

    def sum_rows(self) -> 'Matrix':
        """Collapse all rows into a single row holding the column sums."""
        return Matrix._wrap(np.sum(self._data, axis=0, keepdims=True))

    def map(self, fn: Callable) -> 'Matrix':
        """
        Apply a vectorized function (numpy ufunc style) to every cell.
        The function receives a copy of the data, so it cannot alter this matrix.
        """
        result = np.asarray(fn(self._data.copy()), dtype=float)
        if result.shape != self._data.shape:
            raise DimensionError(f"map: function changed the shape from {self.shape} to {result.shape}")
        return Matrix._wrap(result)

    # ---------------------------------------------------------------------
    # Comparison & display
    # ---------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        return (isinstance(other, BaseMatrix) and
                self.shape == other.shape and
                bool(np.array_equal(self._data, other._data)))

    __hash__ = None  # type: ignore

    def equals_within(self, other: 'BaseMatrix', max_diff: float) -> bool:
        """
        Checks for equality but allowing a difference of up to 'max_diff'
        for every corresponding pair of cells.
        """
        return (isinstance(other, BaseMatrix) and
                self.shape == other.shape and
                bool(np.all(np.abs(self._data - other._data) <= max_diff)))

    def __str__(self) -> str:
        lines = [""]
        for row in self._data:
            cells = " ".join(_cell_string(v) for v in row)
            lines.append(f"| {cells} |")
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data.tolist()!r})"

    @staticmethod
    def concat_to_list(matrices: Iterable['BaseMatrix']) -> list[float]:
        """Flatten several matrices, in order, into one list."""
        values = []
        for matrix in matrices:
            values.extend(matrix.to_list())
        return values


class Matrix(BaseMatrix):
    """
    Owned matrix: holds storage no other Matrix holds, and may be mutated.

    Construction:
        Matrix([[1, 2, 3], [4, 5, 6]])         from rows (nested sequences or a 2D array)
        Matrix.create(2, 3, values=[1, ..., 6]) from a row-major flat list
        Matrix.create(2, 3, fill=1.0)           filled with a constant

    Public Methods (in addition to BaseMatrix):
        m[r, c] = v, m[r] = row:  write cells / rows
        fill(value):             set every cell to 'value'
        set(m):                  replace contents (and shape) with a deep copy of m
    """

    def __init__(self, data: 'Sequence[Sequence[float]] | np.ndarray | BaseMatrix'):
        if isinstance(data, BaseMatrix):
            array = data.to_array()
        elif isinstance(data, np.ndarray):
            if data.ndim != 2:
                raise DimensionError(f"Matrix needs 2 dimensions, {data.ndim} found")
            array = np.array(data, dtype=float)
        else:
            if any(not isinstance(row, Iterable) for row in data):
                raise DimensionError("Matrix needs 2 dimensions, a flat sequence found")
            rows = [list(row) for row in data]
            if len(rows) == 0:
                raise DimensionError("Matrix must have at least one row")
            cols = len(rows[0])
            if any(len(row) != cols for row in rows):
                raise DimensionError("Matrix has varying row lengths")
            array = np.array(rows, dtype=float)
        if array.shape[0] < 1 or array.shape[1] < 1:
            raise DimensionError("Matrix must have at least one row and one column")
        self._data = array

    @classmethod
    def create(cls,
               rows  : int,
               cols  : int,
               values: Iterable[float] | None = None,
               fill  : float = 0.0) -> 'Matrix':
        """
        Create a rows x cols matrix, either from a row-major list of values
        or filled with a constant.

        Raises:
            DimensionError: if the shape is empty or len(values) != rows * cols
        """
        if rows < 1 or cols < 1:
            raise DimensionError(f"Matrix must have at least one row and one column; ({rows} x {cols}) requested")
        if values is None:
            return cls._wrap(np.full((rows, cols), float(fill)))
        values = [float(v) for v in values]
        if len(values) != rows * cols:
            raise DimensionError("Matrix row col creation mismatch")
        return cls._wrap(np.array(values, dtype=float).reshape(rows, cols))

    @classmethod
    def from_list(cls, rows: int, cols: int, values: Iterable[float]) -> 'Matrix':
        """Inverse of to_list() for a given shape."""
        return cls.create(rows, cols, values=values)

    def __setitem__(self, key, value):
        if isinstance(key, tuple):
            row, col = key
            self._data[row, col] = float(value)
            return
        row = np.asarray(value, dtype=float)
        if row.shape != (self.cols,):
            raise DimensionError(f"Row of length {self.cols} expected, got shape {row.shape}")
        self._data[key] = row

    def fill(self, value: float) -> 'Matrix':
        self._data[...] = float(value)
        return self

    def set(self, m: BaseMatrix) -> 'Matrix':
        # same shape: copy in place, so existing views keep tracking this matrix
        if m.shape == self.shape:
            self._data[...] = m._data
        else:
            self._data = m.to_array()
        return self


class MatrixView(BaseMatrix):
    """
    Read-only matrix that borrows the storage of another matrix.

    Writes made to the source through its own mutators are visible in the view,
    except after a set() that changes the shape of the source, which gives the
    source new storage.
    The view itself exposes no mutators, and its array is flagged non-writeable.
    """

    def __init__(self, source: BaseMatrix):
        view = source._data.view()
        view.flags.writeable = False
        self._data = view

    def shares_storage_with(self, other: BaseMatrix) -> bool:
        return bool(np.shares_memory(self._data, other._data))


def _cell_string(value: float, digits: int = 12) -> str:
    """
    Format a value so that it is exactly 'digits' characters long.
    Non-negative values get a leading space, to align with the '-' of negative values.
    """
    width  = digits
    prefix = ""
    if value >= 0:
        prefix = " "
        width -= 1
    text = repr(float(value))
    if len(text) > width:
        text = text[:width]
    else:
        text = text + "0" * (width - len(text))
    return prefix + text
