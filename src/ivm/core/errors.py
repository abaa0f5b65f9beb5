import numpy.typing as npt


class SingularMatrixError(ArithmeticError):
    """Raised when a small matrix cannot be inverted"""


class SingularConfigurationError(RuntimeError):
    """The joint-projected articulated inertia of a node is singular.

    This is a modelling error (usually a bad topology, e.g. a massless body on a
    translational joint) and there is no local recovery.

    Args:
        D (npt.ArrayLike): the singular joint-space inertia H P H^T
        H (npt.ArrayLike): the joint transition operator of the node
        level (int): the depth of the node in the tree
        n_children (int): the number of children of the node
    """

    def __init__(
        self, D: npt.ArrayLike, H: npt.ArrayLike, level: int, n_children: int
    ) -> None:
        self.D = D
        self.H = H
        self.level = level
        self.n_children = n_children
        super().__init__(
            f"calc_p: singular D matrix at level {level} "
            f"({n_children} children). Bad topology?"
        )


class RepresentationError(TypeError):
    """An orientation operation was requested from the wrong ball representation"""
