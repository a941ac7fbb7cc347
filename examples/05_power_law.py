import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import models

# Dispersive recombination: A0 / (1 + a t)^Alpha, plus a slow exponential tail.
model = models.power_exp()

rng = np.random.default_rng(4)
t = np.linspace(0, 200, 150)
y = models.power_law.power_exp_func(t, 40.0, 0.5, 0.7, 5.0, 60.0)
y = y + rng.normal(0, 0.2, size=t.size)

run = model.fit(
    t,
    y,
    seed_override={"A0": 30.0, "a": 1.0, "Alpha": 0.5, "AT": 3.0, "tauT": 40.0},
)
print(run.summary(digits=3))

fig, ax = run.plot()
ax.set_xscale("symlog")
plt.show()
