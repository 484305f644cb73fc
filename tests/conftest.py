import os

# The preview plotter picks its matplotlib backend at import time.
os.environ.setdefault("GLYPHMARCH_MPL_BACKEND", "Agg")
