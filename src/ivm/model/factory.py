import dataclasses
import logging

from ivm.core.constants import JointType
from ivm.model.abc_joint import Joint
from ivm.model.ball import BallOrientation
from ivm.model.dof_node import RigidBodyNodeSpec
from ivm.model.joints import Ball, Diatom, Free, Torsion, Translate, UJoint
from ivm.model.mass_properties import Frame, MassProperties
from ivm.model.node import GroundNode, RigidBodyNode

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class StateOffsetCounter:
    """Hands out consecutive slices of the external coordinate vectors"""

    value: int = 0

    def advance(self, n: int) -> int:
        """
        Args:
            n (int): the size of the slice

        Returns:
            int: the offset of the slice
        """
        offset = self.value
        self.value += n
        return offset


def _build_joint(joint_type: JointType, use_euler_angles: bool) -> Joint:
    if joint_type == JointType.TORSION:
        return Torsion()
    if joint_type == JointType.UJOINT:
        return UJoint()
    if joint_type == JointType.ORIENTATION:
        return Ball(BallOrientation.build(use_euler_angles))
    if joint_type == JointType.CARTESIAN:
        return Translate()
    if joint_type == JointType.FREE_LINE:
        return Diatom()
    if joint_type == JointType.FREE:
        return Free(BallOrientation.build(use_euler_angles))
    raise NotImplementedError(f"joint type {joint_type.name} is not implemented")


def create_node(
    mass_props: MassProperties,
    joint_frame: Frame,
    joint_type: JointType,
    is_reversed: bool,
    use_euler_angles: bool,
    counter: StateOffsetCounter,
) -> RigidBodyNode:
    """Creates the node for a body and its inboard joint.

    Args:
        mass_props (MassProperties): mass properties of the body
        joint_frame (Frame): the joint frame in the body frame
        joint_type (JointType): the joint type
        is_reversed (bool): whether the joint is reversed (unsupported)
        use_euler_angles (bool): Euler angles rather than quaternions for joints
            containing a ball
        counter (StateOffsetCounter): advanced by the number of coordinates of the node

    Raises:
        NotImplementedError: for reversed joints or joint types without an implementation
        ValueError: for an unknown joint type

    Returns:
        RigidBodyNode: the new node, not attached to the tree yet
    """
    try:
        joint_type = JointType(joint_type)
    except ValueError as e:
        raise ValueError(f"unknown joint type {joint_type!r}") from e

    if is_reversed:
        raise NotImplementedError("reversed joints are not implemented")

    if joint_type == JointType.GROUND:
        return GroundNode()

    joint = _build_joint(joint_type, use_euler_angles)
    node = RigidBodyNodeSpec(mass_props, joint_frame, joint, counter)
    logger.debug(
        "created %s node: state offset %d, dim %d, dof %d",
        node.type,
        node.state_offset,
        node.get_dim(),
        node.get_dof(),
    )
    return node
