import math

import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import Model, models

# A0 + A1 exp(-t / T1) with analytic derivatives and a data-driven seed.
model = models.exponential(1)

rng = np.random.default_rng(1)
t = np.linspace(0, 50, 120)
y = 0.3 + 8.0 * np.exp(-t / 7.5) + rng.normal(0, 0.1, size=t.size)

print("seed:", model.seed(t, y))

run = model.fit(t, y)
print(run.summary(digits=4))
print("T1 =", run["T1"].u)
print("half-life =", run["T1"].u * math.log(2))
print("adjusted R² =", run.stats["adjusted_r_squared"])


# The same decay written for one float at a time also fits.
def scalar_decay(t, A0=0.0, A1=5.0, T1=5.0):
    return A0 + A1 * math.exp(-t / T1)


scalar_run = Model.from_function(scalar_decay).fit(t, y)
print("scalar model T1 =", scalar_run["T1"].value)

fig, ax = run.plot(x_label="delay [ps]", y_label="ΔA [mOD]", data_kwargs={"label": "kinetic trace"})
ax.legend()
plt.show()
