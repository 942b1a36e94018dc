import numpy as np
import pytest

from sns_ik import JointLimits, KinematicChain

# Seven revolute joints alternating yaw and pitch axes, tip frame "tool0".
SEVEN_DOF_URDF = """<?xml version="1.0"?>
<robot name="seven_dof_arm">
  <link name="base_link"/>
  <link name="link1"/>
  <link name="link2"/>
  <link name="link3"/>
  <link name="link4"/>
  <link name="link5"/>
  <link name="link6"/>
  <link name="link7"/>
  <link name="tool0"/>
  <joint name="joint1" type="revolute">
    <parent link="base_link"/>
    <child link="link1"/>
    <origin xyz="0 0 0" rpy="0 0 0"/>
    <axis xyz="0 0 1"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint2" type="revolute">
    <parent link="link1"/>
    <child link="link2"/>
    <origin xyz="0 0 1.02" rpy="0 0 0"/>
    <axis xyz="1 0 0"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint3" type="revolute">
    <parent link="link2"/>
    <child link="link3"/>
    <origin xyz="0 0 0.48" rpy="0 0 0"/>
    <axis xyz="1 0 0"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint4" type="revolute">
    <parent link="link3"/>
    <child link="link4"/>
    <origin xyz="0 0 0.645" rpy="0 0 0"/>
    <axis xyz="0 0 1"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint5" type="revolute">
    <parent link="link4"/>
    <child link="link5"/>
    <origin xyz="0 0 0" rpy="0 0 0"/>
    <axis xyz="1 0 0"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint6" type="revolute">
    <parent link="link5"/>
    <child link="link6"/>
    <origin xyz="0 0 0.12" rpy="0 0 0"/>
    <axis xyz="0 0 1"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="joint7" type="revolute">
    <parent link="link6"/>
    <child link="link7"/>
    <origin xyz="0 0 0" rpy="0 0 0"/>
    <axis xyz="1 0 0"/>
    <limit lower="-3.0" upper="3.0" effort="100" velocity="2.0"/>
  </joint>
  <joint name="tool_joint" type="fixed">
    <parent link="link7"/>
    <child link="tool0"/>
    <origin xyz="0 0 0.10" rpy="0 0 0"/>
  </joint>
</robot>
"""

# Same arm with an unlimited first joint.
CONTINUOUS_URDF = SEVEN_DOF_URDF.replace(
    '<joint name="joint1" type="revolute">', '<joint name="joint1" type="continuous">'
)

# Well-conditioned configurations of the arm above.
REFERENCE_CONFIGURATIONS = [
    np.array([0.3, 0.5, 0.8, -0.4, 0.9, 0.2, -0.3]),
    np.array([-0.7, -0.4, 1.1, 0.6, -0.8, -0.5, 0.4]),
    np.array([1.2, 0.3, -0.9, 0.2, 0.7, 1.0, 0.6]),
]


@pytest.fixture
def urdf_string():
    return SEVEN_DOF_URDF


@pytest.fixture
def urdf_path(tmp_path):
    path = tmp_path / "seven_dof_arm.urdf"
    path.write_text(SEVEN_DOF_URDF)
    return path


@pytest.fixture
def chain():
    return KinematicChain.from_urdf_string(SEVEN_DOF_URDF, "tool0")


@pytest.fixture
def continuous_chain():
    return KinematicChain.from_urdf_string(CONTINUOUS_URDF, "tool0")


@pytest.fixture
def joint_limits():
    """Limits of the 7-joint velocity scenarios: +-3 rad, 1 rad/s, 0.5 rad/s^2."""
    ones = np.ones(7)
    return JointLimits(-3.0 * ones, 3.0 * ones, ones, 0.5 * ones)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture(params=range(len(REFERENCE_CONFIGURATIONS)))
def reference_configuration(request):
    return REFERENCE_CONFIGURATIONS[request.param].copy()
