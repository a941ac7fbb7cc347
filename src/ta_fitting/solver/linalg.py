from __future__ import annotations

import numpy as np


def solve_in_place(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Solve ``matrix @ dx = vector`` by Gaussian elimination with partial pivoting.

    Both arguments are overwritten: `matrix` ends up upper triangular and
    `vector` holds the solution, which is also returned.

    A column whose pivot candidates are all exactly zero is skipped, and the
    matching unknown is set to zero during back-substitution. Zero rows and
    columns contributed by fixed parameters therefore produce zero
    increments wherever they sit in the ordering.
    """
    n = vector.shape[0]

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(matrix[col:, col])))
        pivot = matrix[pivot_row, col]
        if pivot == 0.0:
            continue
        if pivot_row != col:
            matrix[[col, pivot_row], :] = matrix[[pivot_row, col], :]
            vector[col], vector[pivot_row] = vector[pivot_row], vector[col]
        if col + 1 == n:
            break
        ratios = matrix[col + 1 :, col] / pivot
        matrix[col + 1 :, col:] -= np.outer(ratios, matrix[col, col:])
        vector[col + 1 :] -= ratios * vector[col]

    for row in range(n - 1, -1, -1):
        pivot = matrix[row, row]
        if pivot == 0.0:
            vector[row] = 0.0
            continue
        acc = vector[row] - np.dot(matrix[row, row + 1 :], vector[row + 1 :])
        vector[row] = acc / pivot

    return vector
