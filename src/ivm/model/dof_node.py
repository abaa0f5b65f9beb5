# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from ivm.core.constants import PrintFlags
from ivm.core.errors import SingularConfigurationError, SingularMatrixError
from ivm.model.abc_joint import Joint
from ivm.model.mass_properties import Frame, MassProperties
from ivm.model.node import RigidBodyNode, format_table

if TYPE_CHECKING:
    from ivm.model.factory import StateOffsetCounter

logger = logging.getLogger(__name__)


class RigidBodyNodeSpec(RigidBodyNode):
    """A node whose inboard joint has a fixed number of mobilities.

    The recursive articulated body dynamics are implemented once here, for any
    joint: the joint object only supplies the position and velocity kinematics
    (R_PB, OB_P, H and V_PB_G) and the mapping to the external vectors.

    Args:
        mass_props (MassProperties): mass properties of the body
        joint_frame (Frame): the joint frame J in the body frame B. Only its
            orientation is used.
        joint (Joint): the joint mobilizing the body
        counter (StateOffsetCounter): shared counter handing out the slices of the
            external coordinate vectors
    """

    def __init__(
        self,
        mass_props: MassProperties,
        joint_frame: Frame,
        joint: Joint,
        counter: "StateOffsetCounter",
    ) -> None:
        super().__init__(mass_props, R_BJ=joint_frame.rotation)
        self.joint = joint
        self.type = joint.type
        self.state_offset = counter.advance(joint.dim)

        dof = joint.dof
        self.theta = np.zeros(dof)
        self.dTheta = np.zeros(dof)
        self.ddTheta = np.zeros(dof)
        self.forceInternal = np.zeros(dof)

        # joint transition matrix, spatial: V_PB_G = H.T @ dTheta
        self.H = np.zeros((dof, 6))
        self.DI = np.zeros((dof, dof))
        self.G = np.zeros((6, dof))
        self.nu = np.zeros(dof)
        self.epsilon = np.zeros(dof)

    def get_dof(self) -> int:
        return self.joint.dof

    def get_dim(self) -> int:
        return self.joint.dim

    def get_H(self) -> np.ndarray:
        return self.H.copy()

    def set_pos(self, posv: np.ndarray) -> None:
        """Sets the joint coordinates from posv and computes the position
        kinematics of this node. Base to tip.

        Args:
            posv (np.ndarray): the external position vector
        """
        self.forceInternal[:] = 0.0
        self.joint.set_joint_pos(self, posv)
        self.joint.calc_kinematics_pos(self)
        self.calc_joint_independent_kinematics_pos()

    def set_vel(self, velv: np.ndarray) -> None:
        """Sets the joint rates from velv and computes the velocity kinematics
        of this node. Base to tip, after the position pass.

        Args:
            velv (np.ndarray): the external velocity vector
        """
        self.joint.set_joint_vel(self, velv)
        self.joint.calc_kinematics_vel(self)
        self.calc_joint_independent_kinematics_vel()
        self.joint.calc_joint_coriolis(self)

    def set_vel_from_svel(self, svel: npt.ArrayLike) -> None:
        """Sets the joint rates that best realize the given spatial velocity of
        the body, given the parent velocity. Base to tip.

        Args:
            svel (npt.ArrayLike): the desired spatial velocity, in ground
        """
        self.dTheta = self.H @ (np.asarray(svel) - self.phi.T @ self.parent.sVel)
        self.joint.calc_joint_vel_derivs(self)

    def enforce_constraints(self, posv: np.ndarray, velv: np.ndarray) -> None:
        self.joint.enforce_constraints(self, posv, velv)

    def get_pos(self, posv: np.ndarray) -> None:
        self.joint.get_pos(self, posv)

    def get_vel(self, velv: np.ndarray) -> None:
        self.joint.get_vel(self, velv)

    def get_accel(self, accv: np.ndarray) -> None:
        self.joint.get_accel(self, accv)

    def get_internal_force(self, forcev: np.ndarray) -> None:
        self.joint.get_internal_force(self, forcev)

    def calc_p(self) -> None:
        """Articulated body inertia. Tip to base.

        Raises:
            SingularConfigurationError: if the joint-projected inertia D is singular
        """
        self.P = self.Mk.copy()
        for child in self.children:
            self.P += self.math.shift_inertia(
                child.tau @ child.P, child.OB_G - self.OB_G
            )

        D = self.math.ortho_transform(self.P, self.H)
        try:
            self.DI = self.math.inverse(D)
        except SingularMatrixError as e:
            logger.error(
                "calc_p: singular D matrix at level %d (%d children)\nD:\n%s\nH:\n%s",
                self.level,
                len(self.children),
                D,
                self.H,
            )
            raise SingularConfigurationError(
                D, self.H, self.level, len(self.children)
            ) from e

        self.G = self.P @ self.H.T @ self.DI
        self.tau = np.eye(6) - self.G @ self.H
        self.psiT = self.tau.T @ self.phi.T

    def calc_z(self, spatial_force: npt.ArrayLike) -> None:
        """Residual forces. Tip to base, after calc_p.

        Args:
            spatial_force (npt.ArrayLike): applied force on the body, about its origin
        """
        self.z = self.P @ self.a + self.b - np.asarray(spatial_force)
        for child in self.children:
            self.z += child.phi @ (child.z + child.Gepsilon)

        self.epsilon = self.forceInternal - self.H @ self.z
        self.nu = self.DI @ self.epsilon
        self.Gepsilon = self.G @ self.epsilon

    def calc_y(self) -> None:
        """Operational space compliance at the body origin. Base to tip, after calc_p."""
        self.Y = self.math.ortho_transform(self.DI, self.H.T)
        self.Y += self.math.ortho_transform(self.parent.Y, self.psiT)

    def calc_accel(self) -> None:
        """Accelerations. Base to tip, after calc_z."""
        alphap = self.phi.T @ self.parent.sAcc
        self.ddTheta = self.nu - self.G.T @ alphap
        self.sAcc = alphap + self.H.T @ self.ddTheta + self.a
        self.joint.calc_joint_accel(self)

    def calc_internal_force(self, spatial_force: npt.ArrayLike) -> None:
        """Projects the net force on the subtree onto the joint. Tip to base,
        after the position pass; accumulates until the next set_pos.

        Args:
            spatial_force (npt.ArrayLike): applied force on the body, about its origin
        """
        self.net_force = -np.asarray(spatial_force, dtype=float)
        for child in self.children:
            self.net_force += child.phi @ child.net_force
        self.forceInternal += self.H @ self.net_force

    def node_spec_dump(self) -> str:
        rows = [
            ("theta", self.theta),
            ("dTheta", self.dTheta),
            ("ddTheta", self.ddTheta),
            ("forceInternal", self.forceInternal),
            ("H", self.H),
            ("DI", self.DI),
            ("G", self.G),
            ("nu", self.nu),
            ("epsilon", self.epsilon),
            ("R_GB", self.R_GB),
            ("OB_G", self.OB_G),
            ("sVel", self.sVel),
            ("sAcc", self.sAcc),
            ("a", self.a),
            ("b", self.b),
            ("P", self.P),
            ("z", self.z),
            ("Y", self.Y),
        ]
        return format_table(rows).get_string()

    def print_node(self, verbose: PrintFlags) -> None:
        if verbose & PrintFlags.PRINT_NODE_POS:
            print(f"pos: {self.OB_G}")
        if verbose & PrintFlags.PRINT_NODE_THETA:
            print(f"{self.node_index} theta: {self.theta} {self.dTheta} {self.ddTheta}")
