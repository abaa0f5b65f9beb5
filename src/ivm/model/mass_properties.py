import dataclasses

import numpy as np
import numpy.typing as npt


@dataclasses.dataclass(frozen=True)
class MassProperties:
    """Mass properties of a body, expressed in the body frame B.

    Args:
        mass (float): the body mass
        com (npt.ArrayLike): the center of mass station, measured from the body origin
        inertia (npt.ArrayLike): the 3x3 inertia about the body origin (not the com)
    """

    mass: float = 0.0
    com: npt.ArrayLike = dataclasses.field(default_factory=lambda: np.zeros(3))
    inertia: npt.ArrayLike = dataclasses.field(
        default_factory=lambda: np.zeros((3, 3))
    )

    def __post_init__(self):
        object.__setattr__(self, "mass", float(self.mass))
        object.__setattr__(self, "com", np.array(self.com, dtype=float).reshape(3))
        object.__setattr__(
            self, "inertia", np.array(self.inertia, dtype=float).reshape(3, 3)
        )
        self.com.setflags(write=False)
        self.inertia.setflags(write=False)

    @staticmethod
    def from_central_inertia(
        mass: float, com: npt.ArrayLike, central_inertia: npt.ArrayLike
    ) -> "MassProperties":
        """Builds the mass properties from the inertia about the center of mass,
        shifting it to the body origin (parallel axis theorem).

        Args:
            mass (float): the body mass
            com (npt.ArrayLike): the center of mass station in B
            central_inertia (npt.ArrayLike): 3x3 inertia about the com, in B

        Returns:
            MassProperties
        """
        c = np.asarray(com, dtype=float)
        shift = mass * (np.dot(c, c) * np.eye(3) - np.outer(c, c))
        return MassProperties(mass, c, np.asarray(central_inertia) + shift)

    @staticmethod
    def point_mass(mass: float, com: npt.ArrayLike) -> "MassProperties":
        return MassProperties.from_central_inertia(mass, com, np.zeros((3, 3)))


@dataclasses.dataclass(frozen=True)
class Frame:
    """A frame F given in a reference frame R: the orientation R_RF and the
    location of the origin of F measured from the origin of R.

    Args:
        rotation (npt.ArrayLike): R_RF
        location (npt.ArrayLike): OF_R
    """

    rotation: npt.ArrayLike = dataclasses.field(default_factory=lambda: np.eye(3))
    location: npt.ArrayLike = dataclasses.field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        object.__setattr__(
            self, "rotation", np.array(self.rotation, dtype=float).reshape(3, 3)
        )
        object.__setattr__(
            self, "location", np.array(self.location, dtype=float).reshape(3)
        )
        self.rotation.setflags(write=False)
        self.location.setflags(write=False)

    @staticmethod
    def from_z_axis(z: npt.ArrayLike, location: npt.ArrayLike = None) -> "Frame":
        """Builds a frame whose z axis is aligned with the given direction.
        The result is not unique: the x axis is fixed by a zenith/azimuth construction.

        Args:
            z (npt.ArrayLike): the direction of the frame z axis, in the reference frame
            location (npt.ArrayLike, optional): the frame origin. Defaults to the origin.

        Returns:
            Frame
        """
        z_dir = np.asarray(z, dtype=float)
        z_dir = z_dir / np.linalg.norm(z_dir)

        theta = np.arccos(np.clip(z_dir[2], -1.0, 1.0))  # zenith
        psi = np.arctan2(z_dir[0], z_dir[1])  # 90 - azimuth

        # space fixed 1-2-3 sequence with angles -theta, 0, -psi
        R = np.array(
            [
                [np.cos(psi), np.cos(theta) * np.sin(psi), np.sin(psi) * np.sin(theta)],
                [
                    -np.sin(psi),
                    np.cos(theta) * np.cos(psi),
                    np.cos(psi) * np.sin(theta),
                ],
                [0.0, -np.sin(theta), np.cos(theta)],
            ]
        )
        if location is None:
            location = np.zeros(3)
        return Frame(R, location)
