import numpy as np
import pytest

from sns_ik.exceptions import InvalidTarget, TargetNotSet, TaskDefinitionError
from sns_ik.lie import SE3, SO3
from sns_ik.tasks import BiasTask, FrameTask, StackOfTasks, Task


def test_task_accepts_column_vector():
    task = Task(np.eye(2, 4), np.array([[1.0], [2.0]]))
    assert task.desired.shape == (2,)
    assert task.dim == 2
    assert task.dof == 4


def test_task_rejects_mismatched_shapes():
    with pytest.raises(TaskDefinitionError):
        Task(np.eye(3), np.zeros(2))
    with pytest.raises(TaskDefinitionError):
        Task(np.zeros(3), np.zeros(3))
    with pytest.raises(TaskDefinitionError):
        Task(np.eye(2), np.array([np.nan, 0.0]))


def test_task_arrays_are_copied_and_read_only():
    jacobian = np.eye(2)
    task = Task(jacobian, np.ones(2))
    jacobian[0, 0] = 5.0
    assert task.jacobian[0, 0] == 1.0
    with pytest.raises(ValueError):
        task.desired[0] = 0.0


def test_task_residual():
    task = Task(np.eye(2), np.array([1.0, 0.0]))
    assert task.residual(np.array([1.0, 1.0])) == pytest.approx(1.0)
    assert task.is_satisfied(np.array([1.0, 0.0]), 1e-9)
    assert not task.is_satisfied(np.array([0.0, 0.0]), 1e-3)


def test_stack_of_tasks_order_and_dof():
    first = Task(np.eye(2, 3), np.zeros(2))
    second = Task(np.ones((1, 3)), np.ones(1))
    stack = StackOfTasks([first])
    stack.append(second)
    assert len(stack) == 2
    assert stack[0] is first
    assert stack[-1] is second
    assert stack.dof == 3
    assert list(stack) == [first, second]


def test_stack_of_tasks_validation():
    stack = StackOfTasks()
    assert stack.dof is None
    stack.append(Task(np.eye(2, 3), np.zeros(2)))
    with pytest.raises(TaskDefinitionError):
        stack.append(Task(np.eye(2), np.zeros(2)))
    with pytest.raises(TaskDefinitionError):
        stack.append("not a task")


def test_bias_task():
    names = ["a", "b", "c", "d"]
    bias_task = BiasTask(["d", "b"], [1.0, -1.0], names, gain=0.5)
    assert list(bias_task.indices) == [3, 1]

    q = np.array([0.0, 0.5, 0.0, 0.2])
    task = bias_task.compute_task(q, dt=0.1)
    assert np.allclose(task.jacobian, [[0, 0, 0, 1], [0, 1, 0, 0]])
    assert np.allclose(task.desired, 0.5 * np.array([0.8, -1.5]) / 0.1)


def test_bias_task_validation():
    names = ["a", "b"]
    with pytest.raises(TaskDefinitionError):
        BiasTask(["z"], [0.0], names)
    with pytest.raises(TaskDefinitionError):
        BiasTask(["a", "a"], [0.0, 0.0], names)
    with pytest.raises(InvalidTarget):
        BiasTask(["a"], [0.0, 1.0], names)
    with pytest.raises(TaskDefinitionError):
        BiasTask(["a"], [0.0], names, gain=-1.0)
    with pytest.raises(InvalidTarget):
        BiasTask(["a"], [0.0], names).compute_error(np.zeros(3))


def test_frame_task_requires_target(chain):
    with pytest.raises(TargetNotSet):
        FrameTask().compute_error(chain, np.zeros(chain.dof))


def test_frame_task_gain_range():
    with pytest.raises(TaskDefinitionError):
        FrameTask(gain=0.0)


def test_frame_task_clamps_error(chain, reference_configuration):
    q = reference_configuration
    pose = chain.forward_kinematics(q)
    target = SE3.from_rotation_and_translation(
        SO3.from_rpy(0.0, 0.0, 0.5).multiply(pose.rotation),
        pose.translation + np.array([1.0, 0.0, 0.0]),
    )
    frame_task = FrameTask(linear_max_step=0.1, angular_max_step=0.05)
    frame_task.set_target(target)

    error = frame_task.compute_error(chain, q)
    assert np.allclose(error, [1.0, 0.0, 0.0, 0.0, 0.0, 0.5])

    task = frame_task.compute_task(chain, q, dt=0.5)
    assert task.jacobian.shape == (6, 7)
    assert np.allclose(task.desired, [0.2, 0.0, 0.0, 0.0, 0.0, 0.1])


def test_frame_task_zero_error_at_target(chain, reference_configuration):
    q = reference_configuration
    frame_task = FrameTask()
    frame_task.set_target(chain.forward_kinematics(q))
    assert np.allclose(frame_task.compute_task(chain, q, dt=0.2).desired, 0.0)
