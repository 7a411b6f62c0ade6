"""macup — declarative workstation provisioning over existing package managers."""

__version__ = "0.1.0"
