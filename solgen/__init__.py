"""solgen - native build solution generator.

Reads module manifests, builds a filtered and resolved project graph, and
emits build files (CMake) for a chosen platform and configuration.
"""

__version__ = "0.1.0"
