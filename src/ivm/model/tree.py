import logging
from typing import Iterator, List, Union

import numpy as np
import numpy.typing as npt
from prettytable import PrettyTable

from ivm.core.constants import GRAVITY, JointType
from ivm.model.factory import StateOffsetCounter, create_node
from ivm.model.mass_properties import Frame, MassProperties
from ivm.model.node import GroundNode, RigidBodyNode

logger = logging.getLogger(__name__)


class RigidBodyTree:
    """The multibody tree: the ground plus the bodies attached to it, each through
    its inboard joint.

    Nodes are stored in insertion order and indexed by integer, the ground being
    node 0. The passes visit them level by level, base to tip or tip to base.
    The external position, velocity and acceleration vectors are owned by the
    caller; each node works on its own slice.
    """

    def __init__(self) -> None:
        self.ground = GroundNode()
        self.nodes: List[RigidBodyNode] = self.ground.arena
        self.levels: List[List[RigidBodyNode]] = [[self.ground]]
        self.counter = StateOffsetCounter()
        self._frozen = False

    def add_body(
        self,
        parent_index: int,
        mass_props: MassProperties,
        joint_type: JointType,
        joint_frame: Frame = None,
        reference_frame: Frame = None,
        use_euler_angles: bool = False,
        is_reversed: bool = False,
    ) -> int:
        """Adds a body to the tree, connected to the body at parent_index.

        Args:
            parent_index (int): index of the parent body (0 is the ground)
            mass_props (MassProperties): mass properties of the new body
            joint_type (JointType): the type of the inboard joint
            joint_frame (Frame, optional): joint frame in the new body, only its
                orientation is used. Defaults to identity.
            reference_frame (Frame, optional): reference location of the new body in the
                parent. Defaults to the parent origin.
            use_euler_angles (bool, optional): Euler angles instead of quaternions for
                joints containing a ball. Defaults to False.
            is_reversed (bool, optional): reversed joint (unsupported). Defaults to False.

        Raises:
            ValueError: if the tree has already been driven or joint_type is GROUND

        Returns:
            int: the index of the new body
        """
        if self._frozen:
            raise ValueError("cannot add bodies once the tree has been driven")
        if JointType(joint_type) == JointType.GROUND:
            raise ValueError("there is only one ground body")
        parent = self.nodes[parent_index]
        node = create_node(
            mass_props,
            Frame() if joint_frame is None else joint_frame,
            joint_type,
            is_reversed,
            use_euler_angles,
            self.counter,
        )
        parent.add_child(node, Frame() if reference_frame is None else reference_frame)
        if node.level == len(self.levels):
            self.levels.append([])
        self.levels[node.level].append(node)
        return node.node_index

    @property
    def dim(self) -> int:
        """Size of the external position and velocity vectors"""
        return self.counter.value

    @property
    def dof(self) -> int:
        return sum(node.get_dof() for node in self.nodes)

    def base_to_tip(self) -> Iterator[RigidBodyNode]:
        for level in self.levels[1:]:
            yield from level

    def tip_to_base(self) -> Iterator[RigidBodyNode]:
        for level in reversed(self.levels[1:]):
            yield from level

    def _check_vector(self, v: np.ndarray, name: str) -> None:
        if len(v) != self.dim:
            raise ValueError(f"{name} has size {len(v)}, expected {self.dim}")

    @staticmethod
    def _check_writable(v: np.ndarray, name: str) -> None:
        if not isinstance(v, np.ndarray) or not v.flags.writeable:
            raise ValueError(f"{name} must be a writable numpy array")
        if not np.issubdtype(v.dtype, np.floating):
            raise ValueError(f"{name} has dtype {v.dtype}, expected a float dtype")

    def _spatial_rows(
        self, rows: Union[npt.ArrayLike, None], name: str = "spatial forces"
    ) -> np.ndarray:
        if rows is None:
            return np.zeros((len(self.nodes), 6))
        rows = np.asarray(rows, dtype=float)
        expected = (len(self.nodes), 6)
        if rows.shape != expected:
            raise ValueError(f"{name} have shape {rows.shape}, expected {expected}")
        return rows

    def set_pos(self, posv: np.ndarray) -> None:
        posv = np.asarray(posv, dtype=float)
        self._check_vector(posv, "position vector")
        if not self._frozen:
            self._frozen = True
            logger.debug("multibody tree\n%s", self.get_table())
        for node in self.base_to_tip():
            node.set_pos(posv)

    def set_vel(self, velv: np.ndarray) -> None:
        velv = np.asarray(velv, dtype=float)
        self._check_vector(velv, "velocity vector")
        for node in self.base_to_tip():
            node.set_vel(velv)

    def set_vel_from_svel(self, svels: npt.ArrayLike) -> None:
        """
        Args:
            svels (npt.ArrayLike): desired spatial velocity of every body, one row per node
        """
        svels = self._spatial_rows(svels, "spatial velocities")
        for node in self.base_to_tip():
            node.set_vel_from_svel(svels[node.node_index])

    def enforce_constraints(self, posv: np.ndarray, velv: np.ndarray) -> None:
        """Projects posv and velv, in place, onto the constraint manifold of the
        joint coordinates (unit quaternions and their tangent space).

        Raises:
            ValueError: if posv or velv is not a writable float array of size dim
        """
        self._check_writable(posv, "position vector")
        self._check_writable(velv, "velocity vector")
        self._check_vector(posv, "position vector")
        self._check_vector(velv, "velocity vector")
        for node in self.base_to_tip():
            node.enforce_constraints(posv, velv)

    def calc_p(self) -> None:
        for node in self.tip_to_base():
            node.calc_p()

    def calc_z(self, spatial_forces: npt.ArrayLike = None) -> None:
        forces = self._spatial_rows(spatial_forces)
        for node in self.tip_to_base():
            node.calc_z(forces[node.node_index])

    def calc_y(self) -> None:
        for node in self.base_to_tip():
            node.calc_y()

    def calc_accel(self) -> None:
        for node in self.base_to_tip():
            node.calc_accel()

    def calc_internal_force(self, spatial_forces: npt.ArrayLike = None) -> None:
        forces = self._spatial_rows(spatial_forces)
        for node in self.tip_to_base():
            node.calc_internal_force(forces[node.node_index])

    def calc_accelerations(self, spatial_forces: npt.ArrayLike = None) -> np.ndarray:
        """Forward dynamics at the current positions and velocities.

        Args:
            spatial_forces (npt.ArrayLike, optional): applied force on every body,
                about the body origin, one row per node. Defaults to no force.

        Returns:
            np.ndarray: the external acceleration vector
        """
        self.calc_p()
        self.calc_z(spatial_forces)
        self.calc_accel()
        return self.get_accel()

    def gravity_forces(self, g: npt.ArrayLike = GRAVITY) -> np.ndarray:
        """
        Args:
            g (npt.ArrayLike, optional): the gravity acceleration, in ground

        Returns:
            np.ndarray: the gravity force on every body about its origin, one row per node
        """
        g = np.asarray(g, dtype=float)
        forces = np.zeros((len(self.nodes), 6))
        for node in self.base_to_tip():
            weight = node.mass * g
            forces[node.node_index] = np.concatenate(
                (node.math.cross(node.COMstation_G, weight), weight)
            )
        return forces

    def calc_kinetic_energy(self) -> float:
        return sum(node.calc_kinetic_energy() for node in self.base_to_tip())

    def _read(self, getter: str) -> np.ndarray:
        v = np.zeros(self.dim)
        for node in self.base_to_tip():
            getattr(node, getter)(v)
        return v

    def get_pos(self) -> np.ndarray:
        return self._read("get_pos")

    def get_vel(self) -> np.ndarray:
        return self._read("get_vel")

    def get_accel(self) -> np.ndarray:
        return self._read("get_accel")

    def get_internal_force(self) -> np.ndarray:
        return self._read("get_internal_force")

    def get_table(self) -> PrettyTable:
        table = PrettyTable(
            ["Idx", "Type", "Level", "Parent", "State offset", "Dim", "Dof"]
        )
        for node in self.nodes:
            parent = "" if node.parent is None else node.parent.node_index
            table.add_row(
                [
                    node.node_index,
                    node.type,
                    node.level,
                    parent,
                    node.state_offset,
                    node.get_dim(),
                    node.get_dof(),
                ]
            )
        return table

    def print_table(self) -> None:
        """print the table that describes the connectivity of the bodies"""
        print(self.get_table())

    def dump(self) -> str:
        return "\n".join(node.node_dump() for node in self.nodes)

    def __iter__(self) -> Iterator[RigidBodyNode]:
        yield from self.nodes

    def __getitem__(self, key) -> RigidBodyNode:
        return self.nodes[key]

    def __len__(self) -> int:
        return len(self.nodes)
