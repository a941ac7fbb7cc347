import numpy as np
import matplotlib.pyplot as plt
from ta_fitting import Model


def line(x, m, b):
    return m * x + b


model = Model.from_function(line, name="straight line")

rng = np.random.default_rng(0)
x = np.linspace(0, 10, 20)
y = line(x, 2.0, -1.0) + rng.normal(0, 1.2, size=x.size)

# No derivative supplied: the solver estimates partial derivatives numerically.
run = model.fit(x, y)

print(run["m"].value, "±", run["m"].stderr)
print(run["b"].value, "±", run["b"].stderr)
print(run.summary(digits=4))

xg = np.linspace(x.min(), x.max(), 400)
fig, ax = run.plot(xg=xg, x_label="x", y_label="y")
ax.plot(xg, line(xg, 2.0, -1.0), "k:", lw=1, label="true")
ax.legend()
plt.show()
