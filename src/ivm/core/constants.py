from enum import IntEnum, IntFlag

import numpy as np


class JointType(IntEnum):
    """Joint type tags understood by the node factory"""

    GROUND = 0
    TORSION = 1
    UJOINT = 2
    ORIENTATION = 3
    CARTESIAN = 4
    FREE_LINE = 5
    FREE = 6
    # recognized tags without an implemented node variant
    SLIDING = 7
    CYLINDER = 8
    PLANAR = 9
    GIMBAL = 10
    WELD = 11


class PrintFlags(IntFlag):
    """Verbosity bits for RigidBodyNode.print_node"""

    PRINT_NODE_POS = 1
    PRINT_NODE_THETA = 2


GRAVITY = np.array([0.0, 0.0, -9.80665])

# reciprocal condition number below which a joint-space inertia is treated as singular
SINGULAR_RCOND = 1e-12
