import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import models

# One decay per probe wavelength, all sharing the same delay axis.
model = models.exponential(1)

rng = np.random.default_rng(2)
t = np.linspace(0, 40, 80)
wavelengths = np.array([450.0, 500.0, 550.0, 600.0])
T_true = np.array([3.0, 5.0, 8.0, 12.0])
A_true = np.array([6.0, 4.0, -3.0, 2.0])

y = np.stack([0.1 + a * np.exp(-t / tau) for a, tau in zip(A_true, T_true)])
y = y + rng.normal(0, 0.05, size=y.shape)

run = model.fit(t, y)
print(run.summary(digits=3))
print("T1 per wavelength:", run["T1"].u)

# Fit of fitted values: decay time against wavelength.
trend = models.polynomial(1).fit(wavelengths, run["T1"])
print(trend.summary(digits=3))

run.plot(x_label="delay [ps]", y_label="ΔA")
plt.show()
