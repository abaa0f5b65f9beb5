import abc
from typing import TYPE_CHECKING

import numpy as np

from ivm.core.spatial_math import SpatialMath

if TYPE_CHECKING:
    from ivm.model.dof_node import RigidBodyNodeSpec


class Joint(abc.ABC):
    """Base Joint class. A joint supplies the joint-specific kinematics of the
    node it mobilizes; the recursive dynamics are shared by every joint.

    Subclasses must set `type` and `dof` and implement the position and velocity
    kinematics. The coordinate mapping methods below copy the node's joint
    coordinates to and from its slice of the external vectors; joints whose
    internal representation differs from the external one override them.
    """

    math = SpatialMath()
    type: str
    dof: int

    @property
    def dim(self) -> int:
        """Number of entries the joint occupies in the external vectors"""
        return self.dof

    @abc.abstractmethod
    def calc_kinematics_pos(self, node: "RigidBodyNodeSpec") -> None:
        """Computes R_PB, OB_P and the joint transition matrix H of node.
        The parent position kinematics and node.theta are already available.

        Args:
            node (RigidBodyNodeSpec): the node mobilized by this joint
        """
        pass

    @abc.abstractmethod
    def calc_kinematics_vel(self, node: "RigidBodyNodeSpec") -> None:
        """Computes V_PB_G, the velocity of B in P expressed in ground.
        The node position kinematics, the parent velocity kinematics and
        node.dTheta are already available.

        Args:
            node (RigidBodyNodeSpec): the node mobilized by this joint
        """
        pass

    def set_joint_pos(self, node: "RigidBodyNodeSpec", posv: np.ndarray) -> None:
        node.theta[:] = self.math.sub_vector(posv, node.state_offset, self.dof)

    def set_joint_vel(self, node: "RigidBodyNodeSpec", velv: np.ndarray) -> None:
        node.dTheta[:] = self.math.sub_vector(velv, node.state_offset, self.dof)

    def get_pos(self, node: "RigidBodyNodeSpec", posv: np.ndarray) -> None:
        self.math.sub_vector(posv, node.state_offset, self.dof)[:] = node.theta

    def get_vel(self, node: "RigidBodyNodeSpec", velv: np.ndarray) -> None:
        self.math.sub_vector(velv, node.state_offset, self.dof)[:] = node.dTheta

    def get_accel(self, node: "RigidBodyNodeSpec", accv: np.ndarray) -> None:
        self.math.sub_vector(accv, node.state_offset, self.dof)[:] = node.ddTheta

    def get_internal_force(self, node: "RigidBodyNodeSpec", forcev: np.ndarray) -> None:
        self.math.sub_vector(forcev, node.state_offset, self.dof)[:] = (
            node.forceInternal
        )

    def calc_joint_coriolis(self, node: "RigidBodyNodeSpec") -> None:
        """Adds to node.a the part of dH^T/dt @ dTheta not due to the parent rotation.
        Zero when every row of H is fixed in the parent frame."""
        pass

    def calc_joint_accel(self, node: "RigidBodyNodeSpec") -> None:
        """Called at the end of calc_accel, for joints not happy with just ddTheta"""
        pass

    def calc_joint_vel_derivs(self, node: "RigidBodyNodeSpec") -> None:
        """Called after dTheta was derived from a spatial velocity"""
        pass

    def enforce_constraints(
        self, node: "RigidBodyNodeSpec", posv: np.ndarray, velv: np.ndarray
    ) -> None:
        pass
