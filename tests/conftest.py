import dataclasses
import logging

import numpy as np
import pytest

from ivm import Frame, JointType, MassProperties, RigidBodyTree


@dataclasses.dataclass
class TwoLinkCfg:
    """Planar double pendulum rotating about the ground z axis"""

    m1: float
    m2: float
    L1: float
    lc1: float
    lc2: float
    I1: float
    I2: float
    g: float

    def mass_matrix(self, q: np.ndarray) -> np.ndarray:
        c2 = np.cos(q[1])
        m11 = (
            self.I1
            + self.I2
            + self.m1 * self.lc1**2
            + self.m2 * (self.L1**2 + self.lc2**2 + 2 * self.L1 * self.lc2 * c2)
        )
        m12 = self.I2 + self.m2 * (self.lc2**2 + self.L1 * self.lc2 * c2)
        m22 = self.I2 + self.m2 * self.lc2**2
        return np.array([[m11, m12], [m12, m22]])

    def coriolis(self, q: np.ndarray, dq: np.ndarray) -> np.ndarray:
        h = self.m2 * self.L1 * self.lc2 * np.sin(q[1])
        return np.array([-h * dq[1] ** 2 - 2 * h * dq[0] * dq[1], h * dq[0] ** 2])

    def gravity(self, q: np.ndarray) -> np.ndarray:
        g2 = self.m2 * self.lc2 * self.g * np.cos(q[0] + q[1])
        g1 = (self.m1 * self.lc1 + self.m2 * self.L1) * self.g * np.cos(q[0]) + g2
        return np.array([g1, g2])

    def build(self) -> RigidBodyTree:
        tree = RigidBodyTree()
        link1 = MassProperties.from_central_inertia(
            self.m1, [self.lc1, 0, 0], np.diag([0.01, 0.02, self.I1])
        )
        link2 = MassProperties.from_central_inertia(
            self.m2, [self.lc2, 0, 0], np.diag([0.03, 0.01, self.I2])
        )
        i = tree.add_body(0, link1, JointType.TORSION)
        tree.add_body(
            i, link2, JointType.TORSION, reference_frame=Frame(location=[self.L1, 0, 0])
        )
        return tree


@pytest.fixture(autouse=True)
def random_state():
    np.random.seed(42)
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture
def two_link() -> TwoLinkCfg:
    return TwoLinkCfg(
        m1=1.3, m2=0.8, L1=1.1, lc1=0.45, lc2=0.6, I1=0.12, I2=0.07, g=9.80665
    )


def random_mass_properties() -> MassProperties:
    A = np.random.rand(3, 3) - 0.5
    central_inertia = A @ A.T + 0.1 * np.eye(3)
    return MassProperties.from_central_inertia(
        1.0 + np.random.rand(), (np.random.rand(3) - 0.5), central_inertia
    )


def random_unit_quaternion() -> np.ndarray:
    q = np.random.rand(4) - 0.5
    return q / np.linalg.norm(q)
