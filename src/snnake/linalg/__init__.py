"""
Linear Algebra Package

Exported:
    Matrix:     Owned, mutable dense matrix
    MatrixView: Read-only matrix borrowing another matrix's storage
    BaseMatrix: Operations shared by both
    Op:         Binary operations and their shape preconditions
    Normalizer: Column normalization strategies
"""

from snnake.linalg.matrix import BaseMatrix, Matrix, MatrixView, Op, Normalizer

__all__ = [
    'BaseMatrix',
    'Matrix',
    'MatrixView',
    'Op',
    'Normalizer',
]
