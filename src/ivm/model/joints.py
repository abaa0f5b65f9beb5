"""The joint types. Every H below is spatial, i.e. expressed in ground."""

import numpy as np

from ivm.core.errors import RepresentationError
from ivm.model.abc_joint import Joint
from ivm.model.ball import BallOrientation, EulerAngles

X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])


class Translate(Joint):
    """Cartesian joint: three translational degrees of freedom, suitable (e.g.)
    for connecting a free atom to ground. The joint frame is aligned with B."""

    type = "translate"
    dof = 3

    def calc_kinematics_pos(self, node) -> None:
        node.OB_P = node.ref_origin_P + node.theta
        # a cartesian joint can't change orientation
        node.R_PB = np.eye(3)

        # R_GP == R_GB for this joint
        node.H = self.math.block_mat12(np.zeros((3, 3)), node.R_GP.T)

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta


class Torsion(Joint):
    """Pin (torsion) joint: one rotation about the joint frame z axis"""

    type = "torsion"
    dof = 1

    def calc_kinematics_pos(self, node) -> None:
        # a torsion joint can't move the B origin in P
        node.OB_P = node.ref_origin_P
        R_JiJ = self.math.Rz(node.theta[0])
        # R_PB = R_PJi @ R_JiJ @ R_JB and R_PJi == R_BJ
        node.R_PB = self.math.ortho_transform(R_JiJ, node.R_BJ)

        # the joint z axis is the same in B and P since we rotate around it
        z = node.R_GP @ (node.R_BJ @ Z_AXIS)
        node.H = self.math.block_mat12(z, np.zeros(3))

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta


def _rotate2_axes(node) -> tuple:
    """Rotation axes, in ground, of R_JiJ = Ry(theta[1]) @ Rx(theta[0]).
    The x rotation is about the body-fixed joint x axis, the y rotation
    about the parent-fixed joint y axis."""
    x = node.R_GP @ node.R_PB @ (node.R_BJ @ X_AXIS)
    y = node.R_GP @ (node.R_BJ @ Y_AXIS)
    return x, y


def _rotate2_coriolis(node) -> None:
    # x turns with B, i.e. with the parent plus the relative rotation y * dTheta[1]
    x, y = node.H[0, :3], node.H[1, :3]
    node.a[:3] += node.dTheta[0] * node.dTheta[1] * node.math.cross(y, x)


class UJoint(Joint):
    """U-joint like joint allowing rotation about the two axes perpendicular to
    the joint z axis. Appropriate for diatoms and for torsion plus bond angle
    bending."""

    type = "rotate2"
    dof = 2

    def calc_kinematics_pos(self, node) -> None:
        # no translation with this joint
        node.OB_P = node.ref_origin_P
        R_JiJ = self.math.R_yx(node.theta[0], node.theta[1])
        node.R_PB = self.math.ortho_transform(R_JiJ, node.R_BJ)

        x, y = _rotate2_axes(node)
        node.H = self.math.block_mat12(self.math.cat_rows(x, y), np.zeros((2, 3)))

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta

    def calc_joint_coriolis(self, node) -> None:
        _rotate2_coriolis(node)


class Diatom(Joint):
    """Free joint for a body with no inertia about one axis, such as one made of
    two atoms: unrestricted translation but rotation only about the directions
    perpendicular to the inertialess axis. theta = (rotx, roty, tx, ty, tz)."""

    type = "diatom"
    dof = 5

    def calc_kinematics_pos(self, node) -> None:
        node.OB_P = node.ref_origin_P + node.theta[2:5]
        # space (parent) fixed 1-2-3 sequence with the third rotation zero
        R_JiJ = self.math.R_yx(node.theta[0], node.theta[1])
        node.R_PB = self.math.ortho_transform(R_JiJ, node.R_BJ)

        x, y = _rotate2_axes(node)
        node.H = self.math.block_mat22(
            self.math.cat_rows(x, y),
            np.zeros((2, 3)),
            np.zeros((3, 3)),
            node.R_GP.T,
        )

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta

    def calc_joint_coriolis(self, node) -> None:
        _rotate2_coriolis(node)


class Ball(Joint):
    """Ball joint: three rotational degrees of freedom, i.e. unrestricted
    orientation. The joint frame is aligned with B. dTheta is the angular
    velocity of B in P, expressed in P."""

    type = "rotate3"
    dof = 3

    def __init__(self, ball: BallOrientation) -> None:
        self.ball = ball

    @property
    def dim(self) -> int:
        return self.ball.dim

    def set_joint_pos(self, node, posv: np.ndarray) -> None:
        self.ball.set_pos(node.state_offset, posv, node.theta)

    def get_pos(self, node, posv: np.ndarray) -> None:
        self.ball.get_pos(node.theta, node.state_offset, posv)

    # set_pos must have been called previously
    def set_joint_vel(self, node, velv: np.ndarray) -> None:
        self.ball.set_vel(node.state_offset, velv, node.dTheta)

    def get_vel(self, node, velv: np.ndarray) -> None:
        self.ball.get_vel(node.dTheta, node.state_offset, velv)

    def calc_joint_accel(self, node) -> None:
        self.ball.calc_accel(node.dTheta, node.ddTheta)

    def get_accel(self, node, accv: np.ndarray) -> None:
        self.ball.get_accel(node.ddTheta, node.state_offset, accv)

    def calc_kinematics_pos(self, node) -> None:
        # a ball joint can't move the B origin in P
        node.OB_P = node.ref_origin_P
        node.R_PB = self.ball.calc_R_PB(node.theta)
        node.H = self.math.block_mat12(node.R_GP.T, np.zeros((3, 3)))

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta

    def enforce_constraints(self, node, posv: np.ndarray, velv: np.ndarray) -> None:
        self.ball.enforce_constraints(node.state_offset, posv, velv)

    def get_internal_force(self, node, forcev: np.ndarray) -> None:
        self.math.sub_vector(forcev, node.state_offset, 3)[:] = _euler_torque(
            self.ball, node.forceInternal
        )

    def calc_joint_vel_derivs(self, node) -> None:
        self.ball.calc_vel_derivs(node.dTheta)


class Free(Joint):
    """Free joint: six degrees of freedom, unrestricted translation and rotation
    of a free rigid body. The joint frame is aligned with B.
    theta = (ball coordinates, tx, ty, tz), dTheta[:3] is the angular velocity
    of B in P, expressed in P."""

    type = "full"
    dof = 6

    def __init__(self, ball: BallOrientation) -> None:
        self.ball = ball

    @property
    def dim(self) -> int:
        return self.ball.dim + 3

    def _translation_slice(self, node, v: np.ndarray) -> np.ndarray:
        return self.math.sub_vector(v, node.state_offset + self.ball.dim, 3)

    def set_joint_pos(self, node, posv: np.ndarray) -> None:
        self.ball.set_pos(node.state_offset, posv, node.theta[:3])
        node.theta[3:] = self._translation_slice(node, posv)

    def get_pos(self, node, posv: np.ndarray) -> None:
        self.ball.get_pos(node.theta[:3], node.state_offset, posv)
        self._translation_slice(node, posv)[:] = node.theta[3:]

    # set_pos must have been called previously
    def set_joint_vel(self, node, velv: np.ndarray) -> None:
        self.ball.set_vel(node.state_offset, velv, node.dTheta[:3])
        node.dTheta[3:] = self._translation_slice(node, velv)

    def get_vel(self, node, velv: np.ndarray) -> None:
        self.ball.get_vel(node.dTheta[:3], node.state_offset, velv)
        self._translation_slice(node, velv)[:] = node.dTheta[3:]

    def calc_joint_accel(self, node) -> None:
        # angular velocity and acceleration in the space-fixed frame
        self.ball.calc_accel(node.dTheta[:3], node.ddTheta[:3])

    def get_accel(self, node, accv: np.ndarray) -> None:
        self.ball.get_accel(node.ddTheta[:3], node.state_offset, accv)
        self._translation_slice(node, accv)[:] = node.ddTheta[3:]

    def calc_kinematics_pos(self, node) -> None:
        node.OB_P = node.ref_origin_P + node.theta[3:]
        node.R_PB = self.ball.calc_R_PB(node.theta[:3])
        R_PG = node.R_GP.T
        node.H = self.math.block_mat22(R_PG, np.zeros((3, 3)), np.zeros((3, 3)), R_PG)

    def calc_kinematics_vel(self, node) -> None:
        node.V_PB_G = node.H.T @ node.dTheta

    def enforce_constraints(self, node, posv: np.ndarray, velv: np.ndarray) -> None:
        self.ball.enforce_constraints(node.state_offset, posv, velv)

    def get_internal_force(self, node, forcev: np.ndarray) -> None:
        self.math.sub_vector(forcev, node.state_offset, 3)[:] = _euler_torque(
            self.ball, node.forceInternal[:3]
        )
        self._translation_slice(node, forcev)[:] = node.forceInternal[3:]

    def calc_joint_vel_derivs(self, node) -> None:
        self.ball.calc_vel_derivs(node.dTheta[:3])


def _euler_torque(ball: BallOrientation, torque: np.ndarray) -> np.ndarray:
    if not isinstance(ball, EulerAngles):
        raise RepresentationError(
            "the internal torque can only be expressed in the Euler angle basis"
        )
    return ball.internal_torque(torque)
