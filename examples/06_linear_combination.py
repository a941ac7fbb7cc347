import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import models

# Fast decay on top of a slowly drifting baseline.
model = models.linear_combination(
    models.exponential(1).fix(A0=0.0),
    models.polynomial(1),
    name="decay + drift",
)
print(model.param_names)

rng = np.random.default_rng(5)
x = np.linspace(0, 20, 100)
y = 3.0 * np.exp(-x / 2.0) + 0.5 + 0.02 * x + rng.normal(0, 0.03, size=x.size)

run = model.fit(
    x,
    y,
    seed_override={"m1_A1": 2.0, "m1_T1": 1.0, "m2_A0": 0.0, "m2_A1": 0.0},
)
print(run.summary(digits=3))

run.plot()
plt.show()
