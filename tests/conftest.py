import os

# Keep test runs from creating logs/ handlers in the working tree.
os.environ.setdefault("ENABLE_ROOT_LOGGER", "0")
os.environ.setdefault("METRICS_ENABLED", "0")
