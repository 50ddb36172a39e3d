"""Release preparation: bump version, regenerate changelog, commit and tag."""

__version__ = "0.1.0"
