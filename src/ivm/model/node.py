# Copyright (C) Istituto Italiano di Tecnologia (IIT). All rights reserved.

"""Multibody mechanics of a single body and its inboard joint, i.e. one node of the
multibody tree.

Most methods expect to be called in a particular order during the traversal of the
tree, either base to tip or tip to base.
"""

import abc
from typing import List, Union

import numpy as np
import numpy.typing as npt
from prettytable import PrettyTable

from ivm.core.constants import PrintFlags
from ivm.core.spatial_math import SpatialMath
from ivm.model.mass_properties import Frame, MassProperties


class RigidBodyNode(abc.ABC):
    """Per-body state shared by every joint type.

    Naming: R_XY is the orientation of frame Y in frame X, OY_X the origin of Y
    measured in X, and a trailing _G means "expressed in the ground frame".

    Args:
        mass_props (MassProperties): mass properties in the body frame B
        ref_origin_P (npt.ArrayLike): reference location of the body origin in the parent
        R_BJ (npt.ArrayLike): orientation of the joint frame J in B
    """

    math = SpatialMath()
    type = "abstract"

    def __init__(
        self,
        mass_props: MassProperties,
        ref_origin_P: npt.ArrayLike = None,
        R_BJ: npt.ArrayLike = None,
    ) -> None:
        self.mass_props = mass_props
        self.level = 0
        self.state_offset = 0
        # nodes of a tree share one arena and refer to each other by index
        self.arena: List["RigidBodyNode"] = [self]
        self.node_index = 0
        self.parent_index: Union[int, None] = None
        self.child_indices: List[int] = []

        self.ref_origin_P = np.zeros(3)
        if ref_origin_P is not None:
            self.ref_origin_P = np.array(ref_origin_P, dtype=float)
        self.R_BJ = np.eye(3) if R_BJ is None else np.array(R_BJ, dtype=float)

        # joint-specific position kinematics
        self.R_PB = np.eye(3)
        self.OB_P = np.zeros(3)

        # spatial configuration
        self.R_GB = np.eye(3)
        self.OB_G = np.zeros(3)
        self.COMstation_G = np.zeros(3)
        self.COM_G = np.zeros(3)
        self.inertia_OB_G = np.zeros((3, 3))
        self.phi = np.eye(6)
        self.Mk = np.zeros((6, 6))

        # velocity dependent quantities
        self.V_PB_G = np.zeros(6)
        self.sVel = np.zeros(6)
        self.a = np.zeros(6)
        self.b = np.zeros(6)

        # dynamics recursion
        self.sAcc = np.zeros(6)
        self.P = np.zeros((6, 6))
        self.tau = np.eye(6)
        self.psiT = np.zeros((6, 6))
        self.Y = np.zeros((6, 6))
        self.z = np.zeros(6)
        self.Gepsilon = np.zeros(6)
        self.net_force = np.zeros(6)

    @property
    def mass(self) -> float:
        return self.mass_props.mass

    @property
    def COM_B(self) -> np.ndarray:
        return self.mass_props.com

    @property
    def inertia_OB_B(self) -> np.ndarray:
        return self.mass_props.inertia

    @property
    def parent(self) -> Union["RigidBodyNode", None]:
        if self.parent_index is None:
            return None
        return self.arena[self.parent_index]

    @property
    def children(self) -> List["RigidBodyNode"]:
        return [self.arena[i] for i in self.child_indices]

    @property
    def R_GP(self) -> np.ndarray:
        return self.parent.R_GB

    @property
    def OP_G(self) -> np.ndarray:
        return self.parent.OB_G

    @property
    def spatial_ang_vel(self) -> np.ndarray:
        return self.sVel[:3]

    @property
    def spatial_lin_vel(self) -> np.ndarray:
        return self.sVel[3:]

    def is_ground(self) -> bool:
        return self.parent_index is None

    def add_child(self, child: "RigidBodyNode", reference_frame: Frame) -> None:
        """Attaches child during model construction, before any pass runs.
        child joins the arena of this node and gets the next index.

        Args:
            child (RigidBodyNode): the outboard node, not attached to any tree
            reference_frame (Frame): the reference frame of child in this body.
                Only its location is used, the orientation is always identity.

        Raises:
            ValueError: if child is already part of a tree
        """
        if child.parent_index is not None or len(child.arena) > 1:
            raise ValueError("the child node already belongs to a tree")
        child.arena = self.arena
        child.node_index = len(self.arena)
        self.arena.append(child)
        child.parent_index = self.node_index
        self.child_indices.append(child.node_index)
        child.level = self.level + 1
        child.ref_origin_P = np.array(reference_frame.location, dtype=float)
        child.R_GB = self.R_GB.copy()
        child.OB_G = self.OB_G + child.ref_origin_P
        child.COM_G = child.OB_G + child.COMstation_G

    def calc_joint_independent_kinematics_pos(self) -> None:
        """Computes the spatial configuration and the spatial mass matrix Mk.
        Must follow the joint-specific position kinematics; base to tip.
        """
        # parent-to-child shift vector (OB - OP) re-expressed in ground
        OB_OP_G = self.R_GP @ self.OB_P

        self.phi = self.math.shift_operator(OB_OP_G)

        self.R_GB = self.R_GP @ self.R_PB
        self.OB_G = self.OP_G + OB_OP_G

        self.inertia_OB_G = self.math.ortho_transform(self.inertia_OB_B, self.R_GB)
        self.COMstation_G = self.R_GB @ self.COM_B
        self.COM_G = self.OB_G + self.COMstation_G

        # Mk is symmetric: off_diag is skew so transpose(off_diag) == -off_diag
        off_diag = self.mass * self.math.skew(self.COMstation_G)
        self.Mk = self.math.block_mat22(
            self.inertia_OB_G, off_diag, -off_diag, self.mass * np.eye(3)
        )

    def calc_joint_independent_kinematics_vel(self) -> None:
        """Computes the spatial velocity, the gyroscopic force b and the coriolis
        acceleration a. Base to tip: needs the parent's sVel and this node's V_PB_G.
        """
        self.sVel = self.phi.T @ self.parent.sVel + self.V_PB_G
        omega = self.spatial_ang_vel
        g_moment = self.math.cross(omega, self.inertia_OB_G @ omega)
        g_force = self.mass * self.math.cross(
            omega, self.math.cross(omega, self.COMstation_G)
        )
        self.b = self.math.block_vec(g_moment, g_force)

        vel = self.spatial_lin_vel
        p_omega = self.parent.spatial_ang_vel
        p_vel = self.parent.spatial_lin_vel

        self.a = self.math.block_vec(
            self.math.cross(p_omega, self.V_PB_G[:3]),
            self.math.cross(p_omega, self.V_PB_G[3:])
            + self.math.cross(p_omega, vel - p_vel),
        )

    def calc_kinetic_energy(self) -> float:
        return 0.5 * float(self.sVel @ self.Mk @ self.sVel)

    @abc.abstractmethod
    def get_dof(self) -> int:
        pass

    @abc.abstractmethod
    def get_dim(self) -> int:
        pass

    @abc.abstractmethod
    def calc_p(self) -> None:
        pass

    @abc.abstractmethod
    def calc_z(self, spatial_force: npt.ArrayLike) -> None:
        pass

    @abc.abstractmethod
    def calc_y(self) -> None:
        pass

    @abc.abstractmethod
    def calc_accel(self) -> None:
        pass

    @abc.abstractmethod
    def calc_internal_force(self, spatial_force: npt.ArrayLike) -> None:
        pass

    @abc.abstractmethod
    def set_pos(self, posv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def set_vel(self, velv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def set_vel_from_svel(self, svel: npt.ArrayLike) -> None:
        pass

    @abc.abstractmethod
    def enforce_constraints(self, posv: np.ndarray, velv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_pos(self, posv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_vel(self, velv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_accel(self, accv: np.ndarray) -> None:
        pass

    @abc.abstractmethod
    def get_internal_force(self, forcev: np.ndarray) -> None:
        pass

    def node_spec_dump(self) -> str:
        return ""

    def node_dump(self) -> str:
        """
        Returns:
            str: a human readable listing of the node state
        """
        lines = [f"NODE DUMP level={self.level} type={self.type}"]
        details = self.node_spec_dump()
        if details:
            lines.append(details)
        lines.append(f"END OF NODE type={self.type}")
        return "\n".join(lines)

    def print_node(self, verbose: PrintFlags) -> None:
        pass

    def __str__(self) -> str:
        return self.node_dump()


class GroundNode(RigidBodyNode):
    """The distinguished body representing the immobile ground frame. Other bodies
    may be fixed to it, but only this one is the actual ground."""

    type = "ground"

    def __init__(self) -> None:
        # TODO: ground mass properties should be infinite rather than zero
        super().__init__(MassProperties())

    def get_dof(self) -> int:
        return 0

    def get_dim(self) -> int:
        return 0

    def calc_p(self) -> None:
        pass

    def calc_z(self, spatial_force: npt.ArrayLike) -> None:
        pass

    def calc_y(self) -> None:
        pass

    def calc_accel(self) -> None:
        pass

    def calc_internal_force(self, spatial_force: npt.ArrayLike) -> None:
        pass

    def set_pos(self, posv: np.ndarray) -> None:
        pass

    def set_vel(self, velv: np.ndarray) -> None:
        pass

    def set_vel_from_svel(self, svel: npt.ArrayLike) -> None:
        pass

    def enforce_constraints(self, posv: np.ndarray, velv: np.ndarray) -> None:
        pass

    def get_pos(self, posv: np.ndarray) -> None:
        pass

    def get_vel(self, velv: np.ndarray) -> None:
        pass

    def get_accel(self, accv: np.ndarray) -> None:
        pass

    def get_internal_force(self, forcev: np.ndarray) -> None:
        pass


def format_table(rows: List[tuple], title: str = None) -> PrettyTable:
    """Renders (quantity, value) rows as a two column table"""
    table = PrettyTable(["Quantity", "Value"])
    table.align = "l"
    if title is not None:
        table.title = title
    for name, value in rows:
        table.add_row([name, np.array2string(np.asarray(value), precision=8)])
    return table
