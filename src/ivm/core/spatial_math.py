# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import numpy as np
import numpy.typing as npt
import scipy.linalg

from ivm.core.constants import SINGULAR_RCOND
from ivm.core.errors import SingularMatrixError


class SpatialMath:
    """Class implementing the small fixed-size geometric functions used by the
    recursive algorithms.

    Spatial vectors are ordered as [angular; linear] and, inside the recursion,
    always expressed in the ground frame.
    """

    @staticmethod
    def skew(x: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            x (npt.ArrayLike): 3d vector

        Returns:
            np.ndarray: the cross product matrix of x, i.e. skew(x) @ y == cross(x, y)
        """
        # Retrieving the skew sym matrix using a cross product
        return -np.cross(np.asarray(x, dtype=float), np.eye(3), axisa=0, axisb=0)

    @staticmethod
    def cross(x: npt.ArrayLike, y: npt.ArrayLike) -> np.ndarray:
        return np.cross(x, y)

    @staticmethod
    def block_mat22(
        m11: npt.ArrayLike, m12: npt.ArrayLike, m21: npt.ArrayLike, m22: npt.ArrayLike
    ) -> np.ndarray:
        return np.block([[m11, m12], [m21, m22]])

    @staticmethod
    def block_mat12(m11: npt.ArrayLike, m12: npt.ArrayLike) -> np.ndarray:
        return np.hstack((np.atleast_2d(m11), np.atleast_2d(m12)))

    @staticmethod
    def block_vec(v1: npt.ArrayLike, v2: npt.ArrayLike) -> np.ndarray:
        return np.concatenate((v1, v2))

    @staticmethod
    def cat_rows(*rows: npt.ArrayLike) -> np.ndarray:
        """Stacks 3d vectors as the rows of a matrix"""
        return np.vstack(rows)

    @staticmethod
    def ortho_transform(A: npt.ArrayLike, B: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            A (npt.ArrayLike): the matrix to be transformed
            B (npt.ArrayLike): the transformation

        Returns:
            np.ndarray: B @ A @ B.T
        """
        return B @ A @ np.swapaxes(B, -2, -1)

    @classmethod
    def shift_operator(cls, l: npt.ArrayLike) -> np.ndarray:
        """The 6x6 operator phi moving spatial quantities across an offset l.

        phi.T @ V moves a parent spatial velocity V to a point displaced by l,
        phi @ F moves a child spatial force F back to the parent point.

        Args:
            l (npt.ArrayLike): the offset from the parent point to the child point

        Returns:
            np.ndarray: [[I, skew(l)], [0, I]]
        """
        return cls.block_mat22(np.eye(3), cls.skew(l), np.zeros((3, 3)), np.eye(3))

    @classmethod
    def shift_inertia(cls, M: npt.ArrayLike, l: npt.ArrayLike) -> np.ndarray:
        """Shifts a 6x6 spatial inertia from a child point to a parent point
        displaced by -l, i.e. phi(l) @ M @ phi(l).T, computed blockwise.

        Args:
            M (npt.ArrayLike): spatial inertia about the child point
            l (npt.ArrayLike): offset from the parent point to the child point

        Returns:
            np.ndarray: the spatial inertia about the parent point
        """
        lt = cls.skew(l)
        m11, m12 = M[:3, :3], M[:3, 3:]
        m21, m22 = M[3:, :3], M[3:, 3:]
        return cls.block_mat22(
            m11 + lt @ m21 - m12 @ lt - lt @ m22 @ lt,
            m12 + lt @ m22,
            m21 - m22 @ lt,
            m22,
        )

    @staticmethod
    def inverse(m: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            m (npt.ArrayLike): a small square matrix

        Raises:
            SingularMatrixError: if m is singular or numerically singular

        Returns:
            np.ndarray: the inverse of m
        """
        m = np.atleast_2d(np.asarray(m, dtype=float))
        try:
            m_inv = scipy.linalg.inv(m)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise SingularMatrixError(f"cannot invert {m.shape} matrix") from e
        rcond = 1.0 / (np.linalg.norm(m, 1) * np.linalg.norm(m_inv, 1))
        if not np.isfinite(rcond) or rcond < SINGULAR_RCOND:
            raise SingularMatrixError(
                f"{m.shape} matrix is numerically singular (rcond={rcond:.3e})"
            )
        return m_inv

    @staticmethod
    def sub_vector(v: np.ndarray, offset: int, n: int) -> np.ndarray:
        """Bounds-checked view of v[offset:offset + n]

        Args:
            v (np.ndarray): the vector
            offset (int): first element of the slice
            n (int): length of the slice

        Raises:
            IndexError: if the slice is not fully contained in v

        Returns:
            np.ndarray: a writable view on the slice
        """
        if offset < 0 or offset + n > len(v):
            raise IndexError(
                f"slice [{offset}:{offset + n}] out of range for vector of size {len(v)}"
            )
        return v[offset : offset + n]

    @staticmethod
    def Rz(q: float) -> np.ndarray:
        cq, sq = np.cos(q), np.sin(q)
        return np.array([[cq, -sq, 0.0], [sq, cq, 0.0], [0.0, 0.0, 1.0]])

    @staticmethod
    def R_yx(phi: float, psi: float) -> np.ndarray:
        """
        Args:
            phi (float): rotation about x, applied first
            psi (float): rotation about y, applied second

        Returns:
            np.ndarray: Ry(psi) @ Rx(phi)
        """
        s_phi, c_phi = np.sin(phi), np.cos(phi)
        s_psi, c_psi = np.sin(psi), np.cos(psi)
        return np.array(
            [
                [c_psi, s_psi * s_phi, s_psi * c_phi],
                [0.0, c_phi, -s_phi],
                [-s_psi, c_psi * s_phi, c_psi * c_phi],
            ]
        )

    @staticmethod
    def R_from_euler_321(phi: float, theta: float, psi: float) -> np.ndarray:
        """Body-three 3-2-1 sequence: rotate phi about z, then theta about the new y,
        then psi about the new x.

        Returns:
            np.ndarray: Rz(phi) @ Ry(theta) @ Rx(psi)
        """
        c_phi, s_phi = np.cos(phi), np.sin(phi)
        c_th, s_th = np.cos(theta), np.sin(theta)
        c_psi, s_psi = np.cos(psi), np.sin(psi)
        return np.array(
            [
                [
                    c_phi * c_th,
                    -s_phi * c_psi + c_phi * s_th * s_psi,
                    s_phi * s_psi + c_phi * s_th * c_psi,
                ],
                [
                    s_phi * c_th,
                    c_phi * c_psi + s_phi * s_th * s_psi,
                    -c_phi * s_psi + s_phi * s_th * c_psi,
                ],
                [-s_th, c_th * s_psi, c_th * c_psi],
            ]
        )

    @staticmethod
    def R_from_quaternion(q: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            q (npt.ArrayLike): Euler parameters, scalar first (q0, q1, q2, q3)

        Returns:
            np.ndarray: the active-sense rotation matrix
        """
        q0, q1, q2, q3 = q
        return np.array(
            [
                [
                    q0**2 + q1**2 - q2**2 - q3**2,
                    2 * (q1 * q2 - q0 * q3),
                    2 * (q1 * q3 + q0 * q2),
                ],
                [
                    2 * (q1 * q2 + q0 * q3),
                    q0**2 - q1**2 + q2**2 - q3**2,
                    2 * (q2 * q3 - q0 * q1),
                ],
                [
                    2 * (q1 * q3 - q0 * q2),
                    2 * (q2 * q3 + q0 * q1),
                    q0**2 - q1**2 - q2**2 + q3**2,
                ],
            ]
        )
