"""
Figure 6.5: selecting on the collider.

Among families whose parents fall in the 45th to 60th percentile of
education, grandparents and grandchildren are negatively related, because
for P to stay in that band a well-educated G must have come from a bad
neighbourhood.
"""

import matplotlib.pyplot as plt

from colliderlab import family_dag, family_set
from colliderlab.plotting import draw_dag, plot_haunted

df = family_set(n=200, seed=1)

fig, (left, right) = plt.subplots(1, 2, figsize=(11, 5), constrained_layout=True)
draw_dag(family_dag(), unobserved=["U"], ax=left)
plot_haunted(df, ax=right)
plt.show()
