"""Orientation models for joints containing a ball (ball and free joints).

The representation is fixed when the joint is built: three Euler angles
(singular when the second angle is +-pi/2) or four Euler parameters, a unit
quaternion with one redundant coordinate.
"""

import abc

import numpy as np
import numpy.typing as npt

from ivm.core.spatial_math import SpatialMath


class BallOrientation(abc.ABC):
    """Maps the external ball coordinates to the internal ones. Internally the
    ball velocity is always the angular velocity of B in P, expressed in P.
    """

    math = SpatialMath()
    dim: int

    @staticmethod
    def build(use_euler_angles: bool) -> "BallOrientation":
        return EulerAngles() if use_euler_angles else Quaternion()

    @abc.abstractmethod
    def set_pos(self, offset: int, posv: np.ndarray, theta: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_pos(self, theta: np.ndarray, offset: int, posv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def set_vel(self, offset: int, velv: np.ndarray, dTheta: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_vel(self, dTheta: np.ndarray, offset: int, velv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def calc_accel(self, omega: npt.ArrayLike, dOmega: npt.ArrayLike) -> None:
        pass

    @abc.abstractmethod
    def get_accel(self, ddTheta: np.ndarray, offset: int, accv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def calc_R_PB(self, theta: npt.ArrayLike) -> np.ndarray:
        pass

    @abc.abstractmethod
    def calc_vel_derivs(self, omega: npt.ArrayLike) -> None:
        pass

    @abc.abstractmethod
    def enforce_constraints(
        self, offset: int, posv: np.ndarray, velv: np.ndarray
    ) -> None:
        pass


class EulerAngles(BallOrientation):
    """Body-three 3-2-1 Euler angles (phi, theta, psi), in radians"""

    dim = 3

    def __init__(self) -> None:
        self.c_phi, self.s_phi = 1.0, 0.0
        self.c_theta, self.s_theta = 1.0, 0.0
        self.c_psi, self.s_psi = 1.0, 0.0

    def set_pos(self, offset: int, posv: np.ndarray, theta: np.ndarray) -> None:
        theta[:] = self.math.sub_vector(posv, offset, 3)

    def get_pos(self, theta: np.ndarray, offset: int, posv: np.ndarray) -> None:
        self.math.sub_vector(posv, offset, 3)[:] = theta

    def set_vel(self, offset: int, velv: np.ndarray, dTheta: np.ndarray) -> None:
        dTheta[:] = self.math.sub_vector(velv, offset, 3)

    def get_vel(self, dTheta: np.ndarray, offset: int, velv: np.ndarray) -> None:
        self.math.sub_vector(velv, offset, 3)[:] = dTheta

    def calc_accel(self, omega: npt.ArrayLike, dOmega: npt.ArrayLike) -> None:
        # nothing to do: ddTheta is dOmega
        pass

    def get_accel(self, ddTheta: np.ndarray, offset: int, accv: np.ndarray) -> None:
        self.math.sub_vector(accv, offset, 3)[:] = ddTheta

    def calc_R_PB(self, theta: npt.ArrayLike) -> np.ndarray:
        phi, th, psi = theta
        self.c_phi, self.s_phi = np.cos(phi), np.sin(phi)
        self.c_theta, self.s_theta = np.cos(th), np.sin(th)
        self.c_psi, self.s_psi = np.cos(psi), np.sin(psi)
        # P=Ji and B=J for joints containing a ball
        return self.math.R_from_euler_321(phi, th, psi)

    def calc_vel_derivs(self, omega: npt.ArrayLike) -> None:
        pass

    def enforce_constraints(
        self, offset: int, posv: np.ndarray, velv: np.ndarray
    ) -> None:
        pass

    def internal_torque(self, torque: npt.ArrayLike) -> np.ndarray:
        """Converts a joint-space torque into the Euler angle basis.
        Uses the angles of the last calc_R_PB call.

        Args:
            torque (npt.ArrayLike): the internal torque

        Returns:
            np.ndarray: the torque conjugate to (phi, theta, psi)
        """
        M = np.array(
            [
                [0.0, 0.0, 1.0],
                [-self.s_phi, self.c_phi, 0.0],
                [self.c_phi * self.c_theta, self.s_phi * self.c_theta, -self.s_theta],
            ]
        )
        return M @ np.asarray(torque)


class Quaternion(BallOrientation):
    """Euler parameters q = (q0, q1, q2, q3), scalar first"""

    dim = 4

    def __init__(self) -> None:
        self.q = np.array([1.0, 0.0, 0.0, 0.0])
        self.dq = np.zeros(4)
        self.ddq = np.zeros(4)

    @staticmethod
    def rate_matrix(q: npt.ArrayLike) -> np.ndarray:
        """
        Args:
            q (npt.ArrayLike): Euler parameters

        Returns:
            np.ndarray: the 4x3 matrix M such that dq = 0.5 * M @ omega
        """
        q0, q1, q2, q3 = q
        return np.array(
            [
                [-q1, -q2, -q3],
                [q0, q3, -q2],
                [-q3, q0, q1],
                [q2, -q1, q0],
            ]
        )

    def set_pos(self, offset: int, posv: np.ndarray, theta: np.ndarray) -> None:
        self.q = self.math.sub_vector(posv, offset, 4).copy()

    def get_pos(self, theta: np.ndarray, offset: int, posv: np.ndarray) -> None:
        self.math.sub_vector(posv, offset, 4)[:] = self.q

    def set_vel(self, offset: int, velv: np.ndarray, dTheta: np.ndarray) -> None:
        self.dq = self.math.sub_vector(velv, offset, 4).copy()
        dTheta[:] = 2.0 * (self.rate_matrix(self.q).T @ self.dq)

    def get_vel(self, dTheta: np.ndarray, offset: int, velv: np.ndarray) -> None:
        self.math.sub_vector(velv, offset, 4)[:] = self.dq

    def calc_accel(self, omega: npt.ArrayLike, dOmega: npt.ArrayLike) -> None:
        M = self.rate_matrix(self.q)
        dM = self.rate_matrix(self.dq)
        self.ddq = 0.5 * (dM @ omega + M @ dOmega)

    def get_accel(self, ddTheta: np.ndarray, offset: int, accv: np.ndarray) -> None:
        self.math.sub_vector(accv, offset, 4)[:] = self.ddq

    def calc_R_PB(self, theta: npt.ArrayLike) -> np.ndarray:
        return self.math.R_from_quaternion(self.q)

    def calc_vel_derivs(self, omega: npt.ArrayLike) -> None:
        self.dq = 0.5 * self.rate_matrix(self.q) @ omega

    def enforce_constraints(
        self, offset: int, posv: np.ndarray, velv: np.ndarray
    ) -> None:
        q = self.math.sub_vector(posv, offset, 4)
        dq = self.math.sub_vector(velv, offset, 4)

        norm = np.linalg.norm(q)
        if not np.isfinite(norm) or norm == 0.0:
            raise ValueError(f"cannot normalize the quaternion {q}")
        # normalize the Euler parameters at each time step
        self.q = q / norm
        # velocity error is proportional to the position component
        self.dq = dq - np.dot(self.q, dq) * self.q

        q[:] = self.q
        dq[:] = self.dq
