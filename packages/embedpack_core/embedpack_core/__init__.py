"""embedpack_core -- resource packaging policy engine for embedded-runtime bundles."""

__version__ = "0.4.0"
