"""Front ends that render a context list."""
