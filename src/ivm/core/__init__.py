from .constants import GRAVITY, SINGULAR_RCOND, JointType, PrintFlags
from .errors import RepresentationError, SingularConfigurationError, SingularMatrixError
from .spatial_math import SpatialMath
