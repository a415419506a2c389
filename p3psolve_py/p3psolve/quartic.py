"""
Closed-form quartic solver.

Roots of A*x^4 + B*x^3 + C*x^2 + D*x + E are obtained by depressing the quartic
and solving its resolvent cubic in closed form. The intermediate quantities are
complex even when all four roots are real, so the arithmetic is carried out on
numpy complex scalars and only the real parts are returned.
"""

import numpy as np


def solve_quartic(coefficients) -> np.ndarray:
    """
    Solve a quartic equation and return the real parts of its four roots.

    Args:
        coefficients: Sequence (A, B, C, D, E), highest degree first. A must be
            non-zero; a vanishing leading coefficient is not special-cased.

    Returns:
        Array of shape (4,) holding the real parts of the roots, in the order
        of the sign pairs (+,+), (+,-), (-,+), (-,-) of the closed form. The
        values are not sorted, and entries coming from complex roots are
        returned as well: callers decide which ones are meaningful.

    Degenerate intermediate values (e.g. a vanishing resolvent term) yield
    NaN or inf entries rather than an exception.
    """
    A, B, C, D, E = np.asarray(coefficients, dtype=np.float64)

    with np.errstate(all="ignore"):
        A_pw2 = A * A
        B_pw2 = B * B
        A_pw3 = A_pw2 * A
        B_pw3 = B_pw2 * B
        A_pw4 = A_pw3 * A
        B_pw4 = B_pw3 * B

        # Depressed quartic t^4 + alpha*t^2 + beta*t + gamma with x = t - B/(4A)
        alpha = -3 * B_pw2 / (8 * A_pw2) + C / A
        beta = B_pw3 / (8 * A_pw3) - B * C / (2 * A_pw2) + D / A
        gamma = -3 * B_pw4 / (256 * A_pw4) + B_pw2 * C / (16 * A_pw3) - B * D / (4 * A_pw2) + E / A

        alpha_pw2 = alpha * alpha
        alpha_pw3 = alpha_pw2 * alpha

        P = np.complex128(-alpha_pw2 / 12 - gamma)
        Q = np.complex128(-alpha_pw3 / 108 + alpha * gamma / 3 - beta ** 2 / 8)
        R = -Q / 2.0 + np.sqrt(Q ** 2 / 4.0 + P ** 3 / 27.0)

        U = R ** (1.0 / 3.0)

        if U.real == 0:
            y = -5.0 * alpha / 6.0 - Q ** (1.0 / 3.0)
        else:
            y = -5.0 * alpha / 6.0 - P / (3.0 * U) + U

        w = np.sqrt(alpha + 2.0 * y)

        shift = -B / (4.0 * A)
        plus_root = np.sqrt(-(3.0 * alpha + 2.0 * y + 2.0 * beta / w))
        minus_root = np.sqrt(-(3.0 * alpha + 2.0 * y - 2.0 * beta / w))

        roots = np.array([
            shift + 0.5 * (w + plus_root),
            shift + 0.5 * (w - plus_root),
            shift + 0.5 * (-w + minus_root),
            shift + 0.5 * (-w - minus_root),
        ])

    return roots.real.copy()
