from .abc_joint import Joint
from .ball import BallOrientation, EulerAngles, Quaternion
from .dof_node import RigidBodyNodeSpec
from .factory import StateOffsetCounter, create_node
from .joints import Ball, Diatom, Free, Torsion, Translate, UJoint
from .mass_properties import Frame, MassProperties
from .node import GroundNode, RigidBodyNode
from .tree import RigidBodyTree
