import numpy as np
import pytest
from conftest import random_mass_properties, random_unit_quaternion

from ivm import (
    Frame,
    JointType,
    MassProperties,
    RigidBodyTree,
    SingularConfigurationError,
    SingularMatrixError,
)


def test_single_pin_without_torque():
    tree = RigidBodyTree()
    tree.add_body(0, MassProperties(1.0, np.zeros(3), np.eye(3)), JointType.TORSION)
    tree.set_pos([0.0])
    tree.set_vel([1.0])
    node = tree[1]
    np.testing.assert_array_equal(node.b, np.zeros(6))
    accel = tree.calc_accelerations()
    assert accel == pytest.approx(0.0, abs=1e-15)


def test_massless_translate_body_is_singular():
    tree = RigidBodyTree()
    tree.add_body(0, MassProperties(), JointType.CARTESIAN)
    tree.set_pos(np.zeros(3))
    tree.set_vel(np.zeros(3))
    with pytest.raises(SingularConfigurationError) as excinfo:
        tree.calc_p()
    err = excinfo.value
    assert err.level == 1
    assert err.n_children == 0
    assert err.D.shape == (3, 3)
    assert err.H.shape == (3, 6)
    assert isinstance(err.__cause__, SingularMatrixError)
    assert "Bad topology" in str(err)


def test_singular_configuration_is_logged(caplog):
    tree = RigidBodyTree()
    tree.add_body(0, MassProperties(), JointType.CARTESIAN)
    tree.set_pos(np.zeros(3))
    with pytest.raises(SingularConfigurationError):
        tree.calc_p()
    assert any(
        r.levelname == "ERROR" and "singular D matrix" in r.getMessage()
        for r in caplog.records
    )


def test_two_link_chain(two_link):
    tree = two_link.build()
    q = np.array([0.3, -0.7])
    dq = np.array([1.2, -0.5])
    torque = 0.4
    tree.set_pos(q)
    tree.set_vel(dq)

    forces = tree.gravity_forces([0.0, -two_link.g, 0.0])
    forces[2, 2] += torque

    expected = np.linalg.solve(
        two_link.mass_matrix(q),
        np.array([torque, torque]) - two_link.coriolis(q, dq) - two_link.gravity(q),
    )
    accel = tree.calc_accelerations(forces)
    assert accel - expected == pytest.approx(0.0, abs=1e-10)


def test_two_link_mass_matrix_from_unit_forces(two_link):
    """Without velocity and applied forces, unit joint forces give the columns of M^-1"""
    tree = two_link.build()
    q = np.array([-1.1, 0.9])
    tree.set_pos(q)
    tree.set_vel(np.zeros(2))
    tree.calc_p()

    M_inv = np.zeros((2, 2))
    for i in range(2):
        tree.set_pos(q)
        tree[i + 1].forceInternal[0] = 1.0
        tree.calc_z()
        tree.calc_accel()
        M_inv[:, i] = tree.get_accel()
    assert M_inv - np.linalg.inv(two_link.mass_matrix(q)) == pytest.approx(
        0.0, abs=1e-10
    )


def test_two_link_static_internal_force(two_link):
    tree = two_link.build()
    q = np.array([0.6, 0.25])
    tree.set_pos(q)
    tree.set_vel(np.zeros(2))
    gravity = tree.gravity_forces([0.0, -two_link.g, 0.0])

    tree.calc_internal_force(gravity)
    internal = tree.get_internal_force()
    assert internal - two_link.gravity(q) == pytest.approx(0.0, abs=1e-10)

    # the internal forces hold the chain still
    accel = tree.calc_accelerations(gravity)
    assert accel == pytest.approx(0.0, abs=1e-10)


def test_internal_force_is_reset_by_set_pos(two_link):
    tree = two_link.build()
    tree.set_pos(np.zeros(2))
    tree.calc_internal_force(tree.gravity_forces())
    tree.set_pos(np.zeros(2))
    np.testing.assert_array_equal(tree.get_internal_force(), np.zeros(2))


def test_free_body_falls():
    tree = RigidBodyTree()
    tree.add_body(0, random_mass_properties(), JointType.FREE)
    pos = np.zeros(7)
    pos[:4] = random_unit_quaternion()
    pos[4:] = np.random.rand(3)
    tree.set_pos(pos)
    tree.set_vel(np.zeros(7))
    g = np.array([0.0, 0.0, -9.80665])

    accel = tree.calc_accelerations(tree.gravity_forces(g))
    assert accel[:4] == pytest.approx(0.0, abs=1e-9)
    assert accel[4:] - g == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("use_euler_angles", [True, False])
def test_free_body_compliance(use_euler_angles):
    tree = RigidBodyTree()
    tree.add_body(
        0, random_mass_properties(), JointType.FREE, use_euler_angles=use_euler_angles
    )
    pos = np.random.rand(tree.dim) - 0.5
    if not use_euler_angles:
        pos[:4] = random_unit_quaternion()
    tree.set_pos(pos)
    tree.calc_p()
    tree.calc_y()
    node = tree[1]
    assert node.Y - np.linalg.inv(node.Mk) == pytest.approx(0.0, abs=1e-9)


def test_chain_compliance_gives_tip_response():
    """Y maps a force applied at the tip origin to the tip acceleration"""
    tree = RigidBodyTree()
    i = tree.add_body(
        0, random_mass_properties(), JointType.ORIENTATION, use_euler_angles=True
    )
    j = tree.add_body(
        i,
        random_mass_properties(),
        JointType.UJOINT,
        reference_frame=Frame(location=[0.3, -0.4, 0.5]),
    )
    tree.set_pos(np.random.rand(tree.dim) - 0.5)
    tree.set_vel(np.zeros(tree.dim))
    tree.calc_p()
    tree.calc_y()

    force = np.random.rand(6) - 0.5
    forces = np.zeros((len(tree), 6))
    forces[j] = force
    tree.calc_z(forces)
    tree.calc_accel()
    assert tree[j].sAcc - tree[j].Y @ force == pytest.approx(0.0, abs=1e-9)


def test_kinetic_energy():
    tree = RigidBodyTree()
    central_inertias = []
    i = 0
    for joint_type, euler in [
        (JointType.FREE, False),
        (JointType.ORIENTATION, True),
        (JointType.UJOINT, False),
        (JointType.FREE_LINE, False),
    ]:
        A = np.random.rand(3, 3) - 0.5
        central_inertias.append(A @ A.T + 0.1 * np.eye(3))
        props = MassProperties.from_central_inertia(
            1.0 + np.random.rand(), np.random.rand(3) - 0.5, central_inertias[-1]
        )
        i = tree.add_body(
            i,
            props,
            joint_type,
            reference_frame=Frame(location=np.random.rand(3) - 0.5),
            use_euler_angles=euler,
        )

    pos = np.random.rand(tree.dim) - 0.5
    pos[:4] = random_unit_quaternion()
    tree.set_pos(pos)
    tree.set_vel(np.random.rand(tree.dim) - 0.5)

    expected = 0.0
    for node, inertia in zip(tree[1:], central_inertias):
        omega = node.sVel[:3]
        v_com = node.sVel[3:] + np.cross(omega, node.COMstation_G)
        inertia_G = node.R_GB @ inertia @ node.R_GB.T
        expected += 0.5 * node.mass * v_com @ v_com + 0.5 * omega @ inertia_G @ omega
    assert tree.calc_kinetic_energy() == pytest.approx(expected, abs=1e-12)
    assert tree.calc_kinetic_energy() > 0.0


def test_set_vel_from_svel():
    tree = RigidBodyTree()
    tree.add_body(0, random_mass_properties(), JointType.FREE)
    q = random_unit_quaternion()
    tree.set_pos(np.concatenate((q, np.random.rand(3))))
    tree.set_vel(np.zeros(7))

    svel = np.random.rand(6) - 0.5
    svels = np.zeros((2, 6))
    svels[1] = svel
    tree.set_vel_from_svel(svels)
    node = tree[1]
    np.testing.assert_allclose(node.dTheta, svel, atol=1e-12)

    vel = tree.get_vel()
    dq = 0.5 * node.joint.ball.rate_matrix(q) @ svel[:3]
    assert vel[:4] - dq == pytest.approx(0.0, abs=1e-12)
    assert vel[4:] - svel[3:] == pytest.approx(0.0, abs=1e-12)


def test_enforce_constraints_on_tree():
    tree = RigidBodyTree()
    i = tree.add_body(0, random_mass_properties(), JointType.TORSION)
    tree.add_body(i, random_mass_properties(), JointType.ORIENTATION)
    pos = np.random.rand(tree.dim)
    vel = np.random.rand(tree.dim)
    torsion_pos, torsion_vel = pos[0], vel[0]
    tree.enforce_constraints(pos, vel)
    assert np.linalg.norm(pos[1:]) == pytest.approx(1.0, abs=1e-12)
    assert pos[1:] @ vel[1:] == pytest.approx(0.0, abs=1e-12)
    assert pos[0] == torsion_pos
    assert vel[0] == torsion_vel


@pytest.mark.parametrize(
    "pos,vel",
    [
        ([2.0, 0.0, 0.0, 0.0], [1.0, 1.0, 0.0, 0.0]),
        (np.array([2, 0, 0, 0]), np.array([1, 1, 0, 0])),
    ],
)
def test_enforce_constraints_needs_float_arrays(pos, vel):
    tree = RigidBodyTree()
    tree.add_body(0, random_mass_properties(), JointType.ORIENTATION)
    with pytest.raises(ValueError):
        tree.enforce_constraints(pos, vel)
    np.testing.assert_array_equal(tree[1].joint.ball.q, [1.0, 0.0, 0.0, 0.0])


def test_set_vel_from_svel_uses_last_parent_velocity():
    tree = RigidBodyTree()
    i = tree.add_body(
        0, random_mass_properties(), JointType.FREE, use_euler_angles=True
    )
    tree.add_body(
        i,
        random_mass_properties(),
        JointType.FREE,
        reference_frame=Frame(location=[0.5, 0.0, 0.0]),
        use_euler_angles=True,
    )
    tree.set_pos(np.random.rand(tree.dim) - 0.5)
    tree.set_vel(np.zeros(tree.dim))

    svels = np.random.rand(len(tree), 6) - 0.5
    tree.set_vel_from_svel(svels)
    # the spatial velocities are not recomputed, so the child sees a parent at rest
    np.testing.assert_array_equal(tree[1].sVel, np.zeros(6))
    np.testing.assert_allclose(tree[1].dTheta, tree[1].H @ svels[1], atol=1e-12)
    np.testing.assert_allclose(tree[2].dTheta, tree[2].H @ svels[2], atol=1e-12)

    tree.set_vel(tree.get_vel())
    np.testing.assert_allclose(tree[1].sVel, svels[1], atol=1e-12)
