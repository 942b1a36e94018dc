"""Constants used throughout the SNS IK solvers."""

# Numerical tolerances
DEFAULT_TOLERANCE = 1e-6
EPSILON_FLOAT32 = 1e-5
EPSILON_FLOAT64 = 1e-10

# Velocity solver parameters
DEFAULT_LOOP_PERIOD = 0.005
DEFAULT_EPS = 1e-5
DEFAULT_SINGULAR_THRESHOLD = 1e-5
DEFAULT_MAX_DAMPING = 1e-2
DEFAULT_SCALE_MARGIN = 0.02
DEFAULT_MAX_ACCELERATION = 10.0

# Relative residual below which a task counts as satisfied
DEFAULT_RESIDUAL_TOLERANCE = 1e-6

# Position solver parameters
DEFAULT_MAX_ITERATIONS = 150
DEFAULT_POSITION_EPS = 1e-6
DEFAULT_POSITION_DT = 0.2
DEFAULT_LINEAR_MAX_STEP = 0.2
DEFAULT_ANGULAR_MAX_STEP = 0.2
DEFAULT_STALL_ITERATIONS = 10
DEFAULT_BIAS_GAIN = 0.1
