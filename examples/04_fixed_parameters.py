import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import Model


def decay(t, offset, amplitude, tau=4.0):
    return offset + amplitude * np.exp(-t / tau)


def decay_derivative(t, offset, amplitude, tau):
    e = np.exp(-t / tau)
    return [1.0, e, amplitude * t * e / tau**2]


rng = np.random.default_rng(3)
t = np.linspace(0, 30, 60)
y = decay(t, 0.0, 5.0, 6.0) + rng.normal(0, 0.05, size=t.size)

# The offset is known from the pre-time-zero baseline; hold it at 0.
model = (
    Model.from_function(decay, name="decay", derivative=decay_derivative)
    .fix(offset=0.0)
    .constrain(tau="positive")
)
run = model.fit(t, y, backend_options={"max_iteration": 200})
print(run.summary())
print("status:", run.stats["status"], "after", run.stats["iterations"], "iterations")

# Same fit with scipy for comparison.
alt = model.fit(t, y, backend="scipy.curve_fit")
print("curve_fit tau:", alt["tau"].value, "±", alt["tau"].stderr)

run.plot()
plt.show()
