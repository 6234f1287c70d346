import os

# Keep telelog quiet under pytest; loggers are configured lazily on first use.
os.environ.setdefault("CONTEXT_ENGINE_DISABLE_CONSOLE", "1")
