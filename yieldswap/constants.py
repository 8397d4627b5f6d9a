"""Engine constants.

Centralizes the amplification bounds, fee limits and solver budgets shared by
the math layer and the pool.
"""

from yieldswap.math.fixed_point import Fp

# Amplification values are stored multiplied by this precision (A=5 -> 5000)
AMP_PRECISION = 1000

# Bounds on the raw (unscaled) amplification parameter
MIN_AMPLIFICATION = 1
MAX_AMPLIFICATION = 5000

# Ramp safety bounds
DAY = 24 * 60 * 60
MIN_UPDATE_DURATION = DAY
MAX_AMP_UPDATE_DAILY_RATE = 2

# Amplification schedule fields are packed as four uint64 values
SCHEDULE_FIELD_MAX = 2**64 - 1

# Fee limits
MAX_SWAP_FEE_PERCENTAGE = Fp.from_wei(5 * 10**16)  # 5%
MAX_PROTOCOL_SWAP_FEE_PERCENTAGE = Fp.from_wei(5 * 10**17)  # 50%

# Newton-Raphson budget for the invariant solver
INVARIANT_MAX_ITERATIONS = 255

# Secant budget for the equal-shares swap sizing helper
EQUAL_SHARES_MAX_ITERATIONS = 32

# Two-asset pools only
N_TOKENS = 2
