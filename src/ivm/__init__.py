from ivm.core import (
    GRAVITY,
    JointType,
    PrintFlags,
    RepresentationError,
    SingularConfigurationError,
    SingularMatrixError,
    SpatialMath,
)
from ivm.model import Frame, MassProperties, RigidBodyTree, create_node
